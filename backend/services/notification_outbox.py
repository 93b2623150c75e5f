"""
Notification outbox.
Callers enqueue a dispatch task and return immediately; the outbox worker
(job_runner.run_notification_outbox_worker) claims PENDING tasks (and RUNNING tasks
whose lease expired) and runs the dispatcher.
Delivery is at-least-once; duplicates are tolerated.
"""
from database import database
from models import AuditAction, NotificationEvent, OutboxStatus, RecipientType
from utils.audit import create_audit_log
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

OUTBOX_BATCH_SIZE = 25
# A RUNNING task not updated within this lease is treated as abandoned and reclaimed.
OUTBOX_CLAIM_TIMEOUT_SECONDS = 300


def _claimable(now: datetime) -> Dict[str, Any]:
    stale_before = now - timedelta(seconds=OUTBOX_CLAIM_TIMEOUT_SECONDS)
    return {"$or": [
        {"status": OutboxStatus.PENDING.value},
        {"status": OutboxStatus.RUNNING.value, "updated_at": {"$lt": stale_before}},
    ]}


async def enqueue_notification(
    event: NotificationEvent,
    payload: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    recipient_type: RecipientType = RecipientType.CLIENT,
) -> str:
    """Insert a PENDING dispatch task. Returns the task_id."""
    if recipient_type == RecipientType.CLIENT and not user_id:
        raise ValueError("user_id is required for client notifications")

    db = database.get_db()
    now = datetime.now(timezone.utc)
    task_id = str(uuid.uuid4())
    await db.notification_outbox.insert_one({
        "task_id": task_id,
        "event": event.value,
        "recipient_type": recipient_type.value,
        "user_id": user_id,
        "payload": payload or {},
        "status": OutboxStatus.PENDING.value,
        "attempts": 0,
        "last_error": None,
        "report": None,
        "created_at": now,
        "updated_at": now,
    })
    logger.info(f"Enqueued {recipient_type.value} notification {event.value} task_id={task_id}")
    await create_audit_log(
        action=AuditAction.NOTIFICATION_QUEUED,
        client_id=user_id,
        resource_type="notification_outbox",
        resource_id=task_id,
        metadata={"event": event.value, "recipient_type": recipient_type.value},
    )
    return task_id


async def process_outbox(dispatcher=None, limit: int = OUTBOX_BATCH_SIZE) -> int:
    """
    Claim up to `limit` PENDING tasks (oldest first), plus RUNNING tasks whose
    lease has expired, and dispatch each one.
    A failing task is marked FAILED with its error; the batch continues.
    Returns the number of tasks marked DONE.
    """
    if dispatcher is None:
        from services.notification_dispatcher import notification_dispatcher
        dispatcher = notification_dispatcher

    db = database.get_db()
    now = datetime.now(timezone.utc)
    cursor = db.notification_outbox.find(_claimable(now)).sort("created_at", 1).limit(limit)
    tasks = await cursor.to_list(limit)

    processed = 0
    for task in tasks:
        # Atomic claim
        claimed = await db.notification_outbox.update_one(
            {"_id": task["_id"], **_claimable(now)},
            {
                "$set": {"status": OutboxStatus.RUNNING.value, "updated_at": datetime.now(timezone.utc)},
                "$inc": {"attempts": 1},
            },
        )
        if claimed.modified_count == 0:
            continue

        task_id = task.get("task_id")
        try:
            event = NotificationEvent(task["event"])
            recipient_type = RecipientType(task.get("recipient_type", RecipientType.CLIENT.value))
            payload = task.get("payload") or {}
            if recipient_type == RecipientType.ADMIN:
                report = await dispatcher.dispatch_admin(event, payload)
            else:
                report = await dispatcher.dispatch(event, task.get("user_id"), payload)

            await db.notification_outbox.update_one(
                {"_id": task["_id"]},
                {"$set": {
                    "status": OutboxStatus.DONE.value,
                    "report": report.to_dict(),
                    "updated_at": datetime.now(timezone.utc),
                }},
            )
            processed += 1
        except Exception as e:
            logger.warning(f"Outbox task {task_id} failed: {e}")
            await db.notification_outbox.update_one(
                {"_id": task["_id"]},
                {"$set": {
                    "status": OutboxStatus.FAILED.value,
                    "last_error": str(e)[:500],
                    "updated_at": datetime.now(timezone.utc),
                }},
            )
    return processed
