"""
Retention reminder scan.

Emails clients whose orders will be archived in 90, 30, 15 or 7 days. For each
offset the scan looks at orders whose retention_expires_at falls on the UTC
calendar day `now + offset`. Designed to run once a day.

Failures are contained at the smallest scope: a failed query skips one offset,
a failed order skips one order. Only a fatal setup error fails the whole run.

When RETENTION_REMINDER_LEDGER_ENABLED is true (default), each sent reminder is
recorded in sent_reminders keyed by (order_id, offset_days) and not sent again
by a later run on the same day.
"""
from database import database
from models import (
    AuditAction,
    Order,
    RetentionReminderResult,
    RetentionScanResult,
)
from services.email_service import EmailService, email_service
from services.notification_errors import ConfigurationMissing
from services.notification_stores import OrderStore, ProfileStore, order_store, profile_store
from services.template_renderer import render_retention_reminder
from utils.audit import create_audit_log
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple
import logging
import os

logger = logging.getLogger(__name__)

REMINDER_OFFSETS_DAYS = (90, 30, 15, 7)
DEFAULT_CLIENT_NAME = "Valued Client"
APP_URL = os.getenv("APP_URL", "https://tfcmediagroup.com").rstrip("/")
LEDGER_ENABLED = os.getenv("RETENTION_REMINDER_LEDGER_ENABLED", "true").lower() == "true"


def day_window(now: datetime, offset_days: int) -> Tuple[datetime, datetime]:
    """UTC [00:00:00, 23:59:59.999999] of the calendar day `offset_days` after now."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    target_day = (now.astimezone(timezone.utc) + timedelta(days=offset_days)).date()
    start = datetime.combine(target_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(target_day, time.max, tzinfo=timezone.utc)
    return start, end


class RetentionReminderJob:
    def __init__(
        self,
        orders: Optional[OrderStore] = None,
        profiles: Optional[ProfileStore] = None,
        email: Optional[EmailService] = None,
        ledger_enabled: Optional[bool] = None,
        app_url: Optional[str] = None,
    ):
        self.orders = orders or order_store
        self.profiles = profiles or profile_store
        self.email = email or email_service
        self.ledger_enabled = LEDGER_ENABLED if ledger_enabled is None else ledger_enabled
        self.downloads_url = f"{(app_url or APP_URL).rstrip('/')}/portal/downloads"

    async def run_scan(self, now: Optional[datetime] = None) -> RetentionScanResult:
        now = now or datetime.now(timezone.utc)
        logger.info("Starting retention reminder check...")
        results = []

        try:
            if database.get_db() is None:
                raise ConfigurationMissing("Database not connected")

            for offset_days in REMINDER_OFFSETS_DAYS:
                start, end = day_window(now, offset_days)
                try:
                    orders = await self.orders.query_orders_expiring_between(start, end, archived=False)
                except Exception as e:
                    logger.error(f"Error fetching orders for {offset_days} days: {e}")
                    continue

                if not orders:
                    logger.info(f"No orders expiring in {offset_days} days")
                    continue

                logger.info(f"Found {len(orders)} orders expiring in {offset_days} days")

                for order in orders:
                    try:
                        result = await self._remind(order, offset_days)
                    except Exception as e:
                        logger.error(f"Error processing order {order.order_number}: {e}")
                        continue
                    if result is not None:
                        results.append(result)

        except Exception as e:
            logger.error(f"Error in retention reminder function: {e}")
            return RetentionScanResult(success=False, reminders_sent=0, results=[], error=str(e))

        message = f"Sent {len(results)} retention reminder(s)"
        logger.info(f"Retention reminders complete. {message}")
        await create_audit_log(
            action=AuditAction.RETENTION_SCAN_COMPLETED,
            resource_type="retention_scan",
            metadata={"reminders_sent": len(results), "run_at": now.isoformat()},
        )
        return RetentionScanResult(
            success=True,
            reminders_sent=len(results),
            results=results,
            message=message,
        )

    async def _remind(self, order: Order, offset_days: int) -> Optional[RetentionReminderResult]:
        if self.ledger_enabled and await self._already_sent(order.id, offset_days):
            logger.info(f"Reminder for order {order.order_number} at {offset_days} days already sent")
            return None

        profile = await self.profiles.get_user_profile(order.client_id)
        if profile is None or not profile.email:
            logger.error(f"Client profile not found for order {order.order_number}")
            return None

        item_count = len(order.order_items)
        client_name = profile.name or DEFAULT_CLIENT_NAME
        rendered = render_retention_reminder(client_name, offset_days, item_count, self.downloads_url)

        send_result = await self.email.send_email(
            to=profile.email,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            tag="retention_reminder",
        )
        if not send_result.success:
            logger.error(f"Failed to send reminder for order {order.order_number}: {send_result.error}")
            return None

        logger.info(f"Sent {offset_days}-day reminder for order {order.order_number} to {profile.email}")
        if self.ledger_enabled:
            await self._record_sent(order.id, offset_days, now=datetime.now(timezone.utc))
        await create_audit_log(
            action=AuditAction.RETENTION_REMINDER_SENT,
            client_id=profile.id,
            resource_type="order",
            resource_id=order.id,
            metadata={"offset_days": offset_days, "item_count": item_count},
        )
        return RetentionReminderResult(
            order_number=order.order_number,
            email=profile.email,
            days_remaining=offset_days,
            item_count=item_count,
            expires_at=order.retention_expires_at,
        )

    async def _already_sent(self, order_id: str, offset_days: int) -> bool:
        db = database.get_db()
        existing = await db.sent_reminders.find_one(
            {"order_id": order_id, "offset_days": offset_days}, {"_id": 1}
        )
        return existing is not None

    async def _record_sent(self, order_id: str, offset_days: int, now: datetime) -> None:
        db = database.get_db()
        try:
            await db.sent_reminders.insert_one({
                "order_id": order_id,
                "offset_days": offset_days,
                "sent_at": now,
            })
        except Exception as e:
            if "duplicate key" in str(e).lower() or "E11000" in str(e):
                return
            logger.warning(f"Failed to record reminder for order {order_id}: {e}")


retention_reminder_job = RetentionReminderJob()
