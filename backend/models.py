from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from enum import Enum
import uuid

# ============================================================================
# ENUMS (System Constants)
# ============================================================================

class NotificationEvent(str, Enum):
    ORDER_PLACED = "order_placed"
    BOOKING_CREATED = "booking_created"
    ORDER_COMPLETED = "order_completed"
    BOOKING_CONFIRMED = "booking_confirmed"

class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"

class RecipientType(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"

class UserRole(str, Enum):
    ROLE_CLIENT = "ROLE_CLIENT"
    ROLE_ADMIN = "ROLE_ADMIN"

class OutboxStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"

class AuditAction(str, Enum):
    # Notifications
    NOTIFICATION_SENT = "NOTIFICATION_SENT"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"
    NOTIFICATION_QUEUED = "NOTIFICATION_QUEUED"

    # Settings / preferences
    NOTIFICATION_SETTINGS_UPDATED = "NOTIFICATION_SETTINGS_UPDATED"
    NOTIFICATION_PREFERENCES_UPDATED = "NOTIFICATION_PREFERENCES_UPDATED"

    # Retention
    RETENTION_REMINDER_SENT = "RETENTION_REMINDER_SENT"
    RETENTION_SCAN_COMPLETED = "RETENTION_SCAN_COMPLETED"

    # Downloads
    DOWNLOAD_EMAIL_RESENT = "DOWNLOAD_EMAIL_RESENT"

    # Invoices, projects, support
    INVOICE_EMAIL_SENT = "INVOICE_EMAIL_SENT"
    PAYMENT_EMAIL_SENT = "PAYMENT_EMAIL_SENT"
    PROJECT_UPDATE_EMAIL_SENT = "PROJECT_UPDATE_EMAIL_SENT"
    SUPPORT_STATUS_EMAIL_SENT = "SUPPORT_STATUS_EMAIL_SENT"

    # Admin
    ADMIN_ACTION = "ADMIN_ACTION"


# Fixed event -> user preference field lookup.
# Every NotificationEvent must appear here (checked below).
PREFERENCE_FIELD_BY_EVENT: Dict[NotificationEvent, str] = {
    NotificationEvent.ORDER_PLACED: "notification_project_updates",
    NotificationEvent.BOOKING_CREATED: "notification_project_updates",
    NotificationEvent.ORDER_COMPLETED: "notification_downloads",
    NotificationEvent.BOOKING_CONFIRMED: "notification_project_updates",
}

_missing_events = set(NotificationEvent) - set(PREFERENCE_FIELD_BY_EVENT)
if _missing_events:
    raise RuntimeError(f"No preference field mapped for events: {sorted(e.value for e in _missing_events)}")


# ============================================================================
# NOTIFICATION SETTINGS / PROFILES
# ============================================================================

class EventNotificationConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: bool = False
    sms: bool = False
    recipients: List[RecipientType] = Field(default_factory=list)

class NotificationSettings(BaseModel):
    """Admin-controlled singleton read on every dispatch."""
    model_config = ConfigDict(extra="ignore")

    email_enabled: bool = False
    email_from_name: Optional[str] = None
    email_from_address: Optional[str] = None
    sms_enabled: bool = False
    twilio_phone_number: Optional[str] = None
    notifications: Dict[str, EventNotificationConfig] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    def event_config(self, event: NotificationEvent) -> Optional[EventNotificationConfig]:
        return self.notifications.get(event.value)

    def channel_enabled(self, channel: NotificationChannel) -> bool:
        if channel == NotificationChannel.EMAIL:
            return bool(self.email_enabled)
        return bool(self.sms_enabled)

class UserProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    notification_project_updates: Optional[bool] = None
    notification_downloads: Optional[bool] = None

class NotificationPreferences(BaseModel):
    notification_project_updates: Optional[bool] = None
    notification_downloads: Optional[bool] = None


# ============================================================================
# ORDERS (retention)
# ============================================================================

class GalleryItemRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    session_name: Optional[str] = None

class OrderItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    gallery_item: Optional[GalleryItemRef] = None

class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_number: str
    client_id: Optional[str] = None
    retention_expires_at: datetime
    archived: bool = False
    order_items: List[OrderItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None

class RetentionReminderResult(BaseModel):
    order_number: str
    email: str
    days_remaining: int
    item_count: int
    expires_at: datetime

class RetentionScanResult(BaseModel):
    success: bool = True
    reminders_sent: int = 0
    results: List[RetentionReminderResult] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None


# ============================================================================
# LOGS
# ============================================================================

class AuditLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    audit_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    action: AuditAction
    actor_role: Optional[UserRole] = None
    actor_id: Optional[str] = None
    client_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class MessageLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    channel: NotificationChannel
    recipient: str
    subject: Optional[str] = None
    tag: Optional[str] = None
    status: str = "queued"  # queued | sent | logged | failed
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# REQUEST MODELS
# ============================================================================

class DispatchRequest(BaseModel):
    event: NotificationEvent
    user_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)

class AdminDispatchRequest(BaseModel):
    event: NotificationEvent
    payload: Dict[str, Any] = Field(default_factory=dict)

class SendEmailRequest(BaseModel):
    to: Optional[EmailStr] = None
    subject: Optional[str] = None
    html: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")

class SendSMSRequest(BaseModel):
    to: Optional[str] = None
    message: Optional[str] = None

class InvoiceEmailRequest(BaseModel):
    payment_link: str

class PaymentRequestEmailRequest(BaseModel):
    amount: float = Field(gt=0)
    payment_link: str

class ProjectUpdateEmailRequest(BaseModel):
    # {"status": {"old": "pending", "new": "in_progress"}, "progress": {...}, "current_step": {...}}
    updates: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
