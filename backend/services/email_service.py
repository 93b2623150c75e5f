from postmarker.core import PostmarkClient
from database import database
from models import MessageLog, NotificationChannel
from services.transport_result import TransportResult
from datetime import datetime, timezone
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Verified sender in Postmark (used when notification settings carry no from-address)
DEFAULT_SENDER = os.getenv("EMAIL_SENDER", "noreply@tfcmediagroup.com")
DEFAULT_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "TFC Media")
POSTMARK_MESSAGE_STREAM = os.getenv("POSTMARK_MESSAGE_STREAM", "outbound").strip() or "outbound"


def format_sender(from_name: Optional[str], from_address: Optional[str]) -> str:
    """Build a From header ("Name <address>") falling back to the provider default sender."""
    address = (from_address or "").strip() or DEFAULT_SENDER
    name = (from_name or "").strip() or DEFAULT_SENDER_NAME
    return f"{name} <{address}>"


class EmailService:
    def __init__(self):
        postmark_token = os.getenv("POSTMARK_SERVER_TOKEN")
        if not postmark_token:
            logger.warning("POSTMARK_SERVER_TOKEN not set - emails will be logged but not sent")
            self.client = None
        else:
            self.client = PostmarkClient(server_token=postmark_token)
            logger.info("Postmark email client initialized")

    def is_configured(self) -> bool:
        return self.client is not None

    async def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        from_name: Optional[str] = None,
        from_address: Optional[str] = None,
        text: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> TransportResult:
        """Send one email through Postmark and record a message log.

        Provider errors are returned as a failed TransportResult, never raised.
        Without a Postmark token the message is logged (dev mode) and treated as sent.
        """
        message_log = MessageLog(
            channel=NotificationChannel.EMAIL,
            recipient=to,
            subject=subject,
            tag=tag,
            status="queued",
        )
        sender = format_sender(from_name, from_address)
        error_code = None

        try:
            if self.client:
                send_kw = dict(
                    From=sender,
                    To=to,
                    Subject=subject,
                    HtmlBody=html,
                    TrackOpens=True,
                    TrackLinks="HtmlOnly",
                    MessageStream=POSTMARK_MESSAGE_STREAM,
                )
                if text:
                    send_kw["TextBody"] = text
                if tag:
                    send_kw["Tag"] = tag
                response = self.client.emails.send(**send_kw)

                message_log.provider_message_id = response["MessageID"]
                message_log.status = "sent"
                message_log.sent_at = datetime.now(timezone.utc)
                logger.info(f"Email sent to {to}: {response['MessageID']}")
            else:
                # Dev mode - just log
                message_log.status = "logged"
                message_log.sent_at = datetime.now(timezone.utc)
                logger.info(f"[DEV MODE] Email logged (not sent) to {to}: {subject}")

        except Exception as e:
            message_log.status = "failed"
            message_log.error_message = str(e)[:500]
            error_code = getattr(e, "error_code", None) or getattr(e, "code", None)
            logger.error(f"Failed to send email to {to}: {e}")

        await self._store_log(message_log)

        if message_log.status == "failed":
            return TransportResult(
                success=False,
                status="failed",
                message_id=message_log.message_id,
                error=message_log.error_message,
                code=str(error_code) if error_code is not None else None,
            )
        return TransportResult(
            success=True,
            status=message_log.status,
            message_id=message_log.message_id,
            provider_message_id=message_log.provider_message_id,
        )

    async def _store_log(self, message_log: MessageLog) -> None:
        doc = message_log.model_dump()
        for key in ["created_at", "sent_at"]:
            if doc.get(key) and isinstance(doc[key], datetime):
                doc[key] = doc[key].isoformat()
        try:
            db = database.get_db()
            await db.message_logs.insert_one(doc)
        except Exception as e:
            logger.warning(f"Failed to write email message log: {e}")


email_service = EmailService()
