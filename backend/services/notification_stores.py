"""
Read/write access to the documents the notification core depends on.

Collections:
- notification_settings: admin-controlled singleton (document id "notification_settings")
- profiles: client profiles with contact details and opt-out flags
- orders: orders with retention expiry
- site_settings: site-wide singleton carrying contact_email
- invoices / invoice_payments: billing documents for invoice and receipt emails
- projects: client projects for project update emails
- support_tickets: tickets for status change emails

Each store is a small class with a module-level singleton so that the
evaluator, dispatcher and retention job can be handed a fake in tests.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from database import database
from models import NotificationSettings, UserProfile, Order, NotificationPreferences

logger = logging.getLogger(__name__)

SETTINGS_DOC_ID = "notification_settings"
SITE_SETTINGS_DOC_ID = "site_settings"


class NotificationSettingsStore:
    async def get_notification_settings(self) -> Optional[NotificationSettings]:
        """Return the singleton settings document, or None when no row exists."""
        db = database.get_db()
        doc = await db.notification_settings.find_one({"_id": SETTINGS_DOC_ID}, {"_id": 0})
        if not doc:
            return None
        return NotificationSettings(**doc)

    async def save_notification_settings(self, settings: NotificationSettings) -> NotificationSettings:
        db = database.get_db()
        settings.updated_at = datetime.now(timezone.utc)
        doc = settings.model_dump(mode="json")
        await db.notification_settings.update_one(
            {"_id": SETTINGS_DOC_ID},
            {"$set": doc},
            upsert=True,
        )
        logger.info("Notification settings saved")
        return settings


class ProfileStore:
    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        if not user_id:
            return None
        db = database.get_db()
        doc = await db.profiles.find_one({"id": user_id}, {"_id": 0})
        if not doc:
            return None
        return UserProfile(**doc)

    async def update_notification_preferences(
        self, user_id: str, preferences: NotificationPreferences
    ) -> Optional[UserProfile]:
        """Apply the opt-out flags that were supplied; returns the updated profile or None."""
        updates = preferences.model_dump(exclude_none=True)
        db = database.get_db()
        if updates:
            result = await db.profiles.update_one({"id": user_id}, {"$set": updates})
            if result.matched_count == 0:
                return None
        return await self.get_user_profile(user_id)


class OrderStore:
    async def query_orders_expiring_between(
        self, start: datetime, end: datetime, archived: bool = False
    ) -> List[Order]:
        """Orders whose retention_expires_at lies in [start, end] (inclusive)."""
        db = database.get_db()
        cursor = db.orders.find(
            {
                "archived": archived,
                "retention_expires_at": {"$gte": start, "$lte": end},
            },
            {"_id": 0},
        )
        orders: List[Order] = []
        async for doc in cursor:
            try:
                orders.append(Order(**doc))
            except Exception as e:
                logger.warning(f"Skipping malformed order {doc.get('id')}: {e}")
        return orders

    async def get_download_package(self, package_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.download_packages.find_one({"id": package_id}, {"_id": 0})

    async def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.orders.find_one({"id": order_id}, {"_id": 0})


class InvoiceStore:
    async def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.invoices.find_one({"id": invoice_id}, {"_id": 0})

    async def get_invoice_payment(self, invoice_id: str, payment_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.invoice_payments.find_one({"id": payment_id, "invoice_id": invoice_id}, {"_id": 0})


class ProjectStore:
    async def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.projects.find_one({"id": project_id}, {"_id": 0})


class SupportTicketStore:
    async def get_ticket(self, ticket_id: str) -> Optional[Dict[str, Any]]:
        db = database.get_db()
        return await db.support_tickets.find_one({"id": ticket_id}, {"_id": 0})


class SiteSettingsStore:
    async def get_site_contact_email(self) -> Optional[str]:
        db = database.get_db()
        doc = await db.site_settings.find_one({"_id": SITE_SETTINGS_DOC_ID}, {"contact_email": 1})
        if not doc:
            return None
        return (doc.get("contact_email") or "").strip() or None


notification_settings_store = NotificationSettingsStore()
profile_store = ProfileStore()
order_store = OrderStore()
site_settings_store = SiteSettingsStore()
invoice_store = InvoiceStore()
project_store = ProjectStore()
support_ticket_store = SupportTicketStore()
