"""SMS Service - Twilio integration for client notifications.
Feature flagged; missing credentials are a configuration error, not a per-call failure.
"""
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from database import database
from models import MessageLog, NotificationChannel
from services.notification_errors import ConfigurationMissing
from services.transport_result import TransportResult
from utils.formatting import mask_phone
from datetime import datetime, timezone
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Feature flag for SMS
SMS_ENABLED = os.getenv("SMS_ENABLED", "true").lower() == "true"


class SMSConfigurationError(ConfigurationMissing):
    """Twilio SID/token/sender not configured."""


class SMSService:
    def __init__(self):
        self.account_sid = os.getenv("TWILIO_ACCOUNT_SID")
        self.auth_token = os.getenv("TWILIO_AUTH_TOKEN")
        self.from_number = os.getenv("TWILIO_PHONE_NUMBER")

        self.client = None
        if self.account_sid and self.auth_token:
            try:
                self.client = Client(self.account_sid, self.auth_token)
                logger.info("Twilio client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Twilio client: {e}")

    def is_configured(self) -> bool:
        """Check if SMS service is properly configured."""
        return bool(self.client and self.from_number)

    def is_enabled(self) -> bool:
        """Check if SMS feature is enabled."""
        return SMS_ENABLED and self.is_configured()

    async def send_sms(
        self,
        to_number: str,
        message: str,
        from_number: Optional[str] = None,
    ) -> TransportResult:
        """Send an SMS message.

        Args:
            to_number: Phone number, E.164 preferred (+1...)
            message: SMS message body
            from_number: Sender number; defaults to TWILIO_PHONE_NUMBER

        Raises:
            SMSConfigurationError: Twilio credentials or sender missing, or SMS disabled
        """
        sender = (from_number or "").strip() or self.from_number
        if not SMS_ENABLED or not self.client or not sender:
            raise SMSConfigurationError("Twilio credentials not configured")

        # Validate phone number format
        if not to_number.startswith("+"):
            to_number = f"+{to_number}"

        message_log = MessageLog(
            channel=NotificationChannel.SMS,
            recipient=to_number,
            status="queued",
        )
        try:
            message_obj = self.client.messages.create(
                body=message,
                from_=sender,
                to=to_number
            )
            message_log.status = "sent"
            message_log.provider_message_id = message_obj.sid
            message_log.sent_at = datetime.now(timezone.utc)
            logger.info(f"SMS sent to {mask_phone(to_number)}: {message_obj.sid}")
            result = TransportResult(
                success=True,
                status="sent",
                message_id=message_log.message_id,
                provider_message_id=message_obj.sid,
                details={"provider_status": message_obj.status},
            )
        except TwilioRestException as e:
            logger.error(f"Twilio error sending SMS: {e.code} - {e.msg}")
            message_log.status = "failed"
            message_log.error_message = str(e.msg)[:500]
            result = TransportResult(
                success=False,
                status="failed",
                message_id=message_log.message_id,
                error=str(e.msg),
                code=str(e.code) if e.code is not None else None,
            )
        except Exception as e:
            logger.error(f"Error sending SMS: {e}")
            message_log.status = "failed"
            message_log.error_message = str(e)[:500]
            result = TransportResult(
                success=False,
                status="failed",
                message_id=message_log.message_id,
                error=str(e),
            )

        await self._store_log(message_log, message)
        return result

    async def _store_log(self, message_log: MessageLog, message: str) -> None:
        doc = message_log.model_dump()
        doc["message_preview"] = message[:50] + "..." if len(message) > 50 else message
        for key in ["created_at", "sent_at"]:
            if doc.get(key) and isinstance(doc[key], datetime):
                doc[key] = doc[key].isoformat()
        try:
            db = database.get_db()
            await db.message_logs.insert_one(doc)
        except Exception as e:
            logger.warning(f"Failed to write SMS message log: {e}")


# Singleton instance
sms_service = SMSService()
