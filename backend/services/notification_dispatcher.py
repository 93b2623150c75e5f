"""
Notification Dispatcher.

Single path for event notifications: for one event occurrence, resolve the
recipient, then for each channel (email, sms) independently check eligibility,
render the template and hand off to the transport.

Client and admin notifications share the same flow; they differ only in how
the recipient is resolved and which templates apply (recipient resolvers).

Nothing raised by a store, renderer or transport escapes dispatch: failures
are logged and reported per channel in the returned DispatchReport.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models import AuditAction, NotificationChannel, NotificationEvent, RecipientType
from services.email_service import EmailService, email_service
from services.notification_eligibility import NotificationEligibility, notification_eligibility
from services.notification_errors import (
    NotificationError,
    RecipientUnreachable,
    TemplateNotFound,
    TransportFailure,
)
from services.notification_stores import (
    NotificationSettingsStore,
    ProfileStore,
    SiteSettingsStore,
    notification_settings_store,
    profile_store,
    site_settings_store,
)
from services.sms_service import SMSService, sms_service
from services.template_renderer import (
    ADMIN_EMAIL_TEMPLATES,
    RenderedEmail,
    render_admin_email,
    render_email,
    render_sms,
)
from utils.audit import create_audit_log
from utils.formatting import mask_phone

logger = logging.getLogger(__name__)

ADMIN_FALLBACK_EMAIL = os.getenv("ADMIN_FALLBACK_EMAIL", "support@tfcmediagroup.com")

OUTCOME_SENT = "sent"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"

CHANNELS = (NotificationChannel.EMAIL, NotificationChannel.SMS)


@dataclass
class Recipient:
    recipient_type: RecipientType
    email: Optional[str] = None
    name: str = ""
    phone: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class DispatchReport:
    event: NotificationEvent
    recipient_type: RecipientType
    user_id: Optional[str] = None
    outcomes: Dict[str, str] = field(default_factory=dict)  # channel -> sent | skipped | failed
    reasons: Dict[str, str] = field(default_factory=dict)

    def record(self, channel: NotificationChannel, outcome: str, reason: Optional[str] = None) -> None:
        self.outcomes[channel.value] = outcome
        if reason:
            self.reasons[channel.value] = reason

    def skip_all(self, reason: str) -> "DispatchReport":
        for channel in CHANNELS:
            self.record(channel, OUTCOME_SKIPPED, reason)
        return self

    @property
    def sent_any(self) -> bool:
        return OUTCOME_SENT in self.outcomes.values()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.value,
            "recipient_type": self.recipient_type.value,
            "user_id": self.user_id,
            "outcomes": dict(self.outcomes),
            "reasons": dict(self.reasons),
        }


class ClientRecipientResolver:
    """Recipient is the user's profile; all client templates apply."""

    recipient_type = RecipientType.CLIENT

    def __init__(self, user_id: Optional[str], profiles: Optional[ProfileStore] = None):
        self.user_id = user_id
        self.profiles = profiles or profile_store

    def supports(self, event: NotificationEvent) -> bool:
        return True

    async def resolve(self) -> Optional[Recipient]:
        profile = await self.profiles.get_user_profile(self.user_id)
        if profile is None:
            return None
        return Recipient(
            recipient_type=self.recipient_type,
            email=profile.email,
            name=profile.name or "",
            phone=profile.phone,
            user_id=profile.id,
        )

    def render_email(self, event: NotificationEvent, payload: Dict[str, Any], recipient: Recipient) -> RenderedEmail:
        return render_email(event, payload, recipient.name)

    def render_sms(self, event: NotificationEvent, payload: Dict[str, Any]) -> str:
        return render_sms(event, payload)


class AdminRecipientResolver:
    """Recipient is the site contact address (fallback operator address); email only."""

    recipient_type = RecipientType.ADMIN

    def __init__(self, site_settings: Optional[SiteSettingsStore] = None):
        self.site_settings = site_settings or site_settings_store

    def supports(self, event: NotificationEvent) -> bool:
        return event in ADMIN_EMAIL_TEMPLATES

    async def resolve(self) -> Optional[Recipient]:
        contact_email = None
        try:
            contact_email = await self.site_settings.get_site_contact_email()
        except Exception as e:
            logger.error(f"Error fetching admin email from site settings: {e}")
        return Recipient(
            recipient_type=self.recipient_type,
            email=contact_email or ADMIN_FALLBACK_EMAIL,
            name="Admin",
        )

    def render_email(self, event: NotificationEvent, payload: Dict[str, Any], recipient: Recipient) -> RenderedEmail:
        return render_admin_email(event, payload)

    def render_sms(self, event: NotificationEvent, payload: Dict[str, Any]) -> str:
        raise TemplateNotFound(f"No admin SMS template for event: {event.value}")


class NotificationDispatcher:
    def __init__(
        self,
        eligibility: Optional[NotificationEligibility] = None,
        settings_store: Optional[NotificationSettingsStore] = None,
        email: Optional[EmailService] = None,
        sms: Optional[SMSService] = None,
    ):
        self.eligibility = eligibility or notification_eligibility
        self.settings_store = settings_store or notification_settings_store
        self.email = email or email_service
        self.sms = sms or sms_service

    async def dispatch(
        self, event: NotificationEvent, user_id: Optional[str], payload: Optional[Dict[str, Any]] = None
    ) -> DispatchReport:
        """Send a client notification for one event occurrence."""
        return await self._dispatch(event, payload or {}, ClientRecipientResolver(user_id))

    async def dispatch_admin(
        self, event: NotificationEvent, payload: Optional[Dict[str, Any]] = None
    ) -> DispatchReport:
        """Send an admin notification (only events with an admin template)."""
        return await self._dispatch(event, payload or {}, AdminRecipientResolver())

    async def _dispatch(self, event: NotificationEvent, payload: Dict[str, Any], resolver) -> DispatchReport:
        report = DispatchReport(
            event=event,
            recipient_type=resolver.recipient_type,
            user_id=getattr(resolver, "user_id", None),
        )

        if not resolver.supports(event):
            logger.warning(f"No {resolver.recipient_type.value} notification template for event: {event.value}")
            return report.skip_all("unsupported_event")

        try:
            settings = await self.settings_store.get_notification_settings()
        except Exception as e:
            logger.error(f"Failed to load notification settings: {e}")
            settings = None
        if settings is None:
            logger.error(f"Cannot send {event.value} notification: settings not found")
            return report.skip_all("settings_missing")

        try:
            recipient = await resolver.resolve()
        except Exception as e:
            logger.error(f"Failed to resolve recipient for {event.value}: {e}")
            recipient = None
        if recipient is None:
            logger.error(f"Cannot send {event.value} notification: user {report.user_id} not found")
            return report.skip_all("recipient_not_found")

        for channel in CHANNELS:
            try:
                eligible = await self.eligibility.should_send(
                    event, recipient.user_id, channel, resolver.recipient_type
                )
                if not eligible:
                    report.record(channel, OUTCOME_SKIPPED, "not_eligible")
                    continue

                if channel == NotificationChannel.EMAIL:
                    await self._send_email(event, payload, resolver, recipient, settings, report)
                else:
                    await self._send_sms(event, payload, resolver, recipient, settings, report)
            except TemplateNotFound as e:
                logger.warning(str(e))
                report.record(channel, OUTCOME_SKIPPED, "template_not_found")
            except RecipientUnreachable as e:
                logger.info(f"Skipping {event.value} {channel.value} for {recipient.user_id}: {e}")
                report.record(channel, OUTCOME_SKIPPED, str(e))
            except NotificationError as e:
                logger.error(f"Failed to send {event.value} {channel.value}: {e}")
                report.record(channel, OUTCOME_FAILED, str(e))
            except Exception as e:
                logger.error(f"Unexpected error sending {event.value} {channel.value}: {e}")
                report.record(channel, OUTCOME_FAILED, str(e))

            if report.outcomes.get(channel.value) in (OUTCOME_SENT, OUTCOME_FAILED):
                await self._audit(report, channel, recipient)

        logger.info(f"Dispatch {event.value} ({resolver.recipient_type.value}): {report.outcomes}")
        return report

    async def _send_email(self, event, payload, resolver, recipient: Recipient, settings, report: DispatchReport):
        rendered = resolver.render_email(event, payload, recipient)
        if not recipient.email:
            raise RecipientUnreachable("no_email")

        result = await self.email.send_email(
            to=recipient.email,
            subject=rendered.subject,
            html=rendered.html,
            from_name=settings.email_from_name,
            from_address=settings.email_from_address,
            text=rendered.text,
            tag=event.value,
        )
        if not result.success:
            raise TransportFailure(result.error or "email provider rejected the message", code=result.code)
        report.record(NotificationChannel.EMAIL, OUTCOME_SENT)

    async def _send_sms(self, event, payload, resolver, recipient: Recipient, settings, report: DispatchReport):
        if not recipient.phone:
            raise RecipientUnreachable("no_phone")

        message = resolver.render_sms(event, payload)
        result = await self.sms.send_sms(recipient.phone, message, from_number=settings.twilio_phone_number)
        if not result.success:
            logger.error(f"SMS to {mask_phone(recipient.phone)} failed: {result.code} {result.error}")
            raise TransportFailure(result.error or "sms provider rejected the message", code=result.code)
        report.record(NotificationChannel.SMS, OUTCOME_SENT)

    async def _audit(self, report: DispatchReport, channel: NotificationChannel, recipient: Recipient) -> None:
        outcome = report.outcomes[channel.value]
        await create_audit_log(
            action=AuditAction.NOTIFICATION_SENT if outcome == OUTCOME_SENT else AuditAction.NOTIFICATION_FAILED,
            client_id=recipient.user_id,
            resource_type="notification",
            resource_id=report.event.value,
            metadata={
                "event": report.event.value,
                "channel": channel.value,
                "recipient_type": report.recipient_type.value,
                "error": report.reasons.get(channel.value),
            },
        )


notification_dispatcher = NotificationDispatcher()
