"""
Shared job runner for scheduled background jobs.
Used by server (scheduler) and admin (manual run).
Each run_* returns a dict with "message" (and optionally "count") for admin toast.
"""
import logging

logger = logging.getLogger(__name__)


async def run_retention_reminders():
    try:
        from services.retention_reminders import retention_reminder_job
        result = await retention_reminder_job.run_scan()
        if not result.success:
            raise RuntimeError(result.error or "Retention scan failed")
        logger.info(f"Retention reminders job completed: {result.reminders_sent} reminders sent")
        return {"message": result.message, "count": result.reminders_sent}
    except Exception as e:
        logger.error(f"Retention reminders job failed: {e}")
        raise


async def run_notification_outbox_worker():
    """Process notification_outbox: claim PENDING tasks and dispatch them."""
    try:
        from services.notification_outbox import process_outbox
        processed = await process_outbox()
        if processed:
            logger.info(f"Notification outbox worker: {processed} processed")
        return {"message": f"Notification outbox worker: {processed} processed", "count": processed}
    except Exception as e:
        logger.error(f"Notification outbox worker failed: {e}")
        raise


# Map scheduler job id -> run function (for admin manual run)
JOB_RUNNERS = {
    "retention_reminders": run_retention_reminders,
    "notification_outbox_worker": run_notification_outbox_worker,
}
