"""
Notification Routes - Trigger client/admin notifications for an event.
Requests are queued on the notification outbox and delivered by the outbox worker.
"""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import require_auth
from models import DispatchRequest, AdminDispatchRequest, RecipientType, UserRole
from services.notification_outbox import enqueue_notification
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/dispatch", status_code=status.HTTP_202_ACCEPTED)
async def dispatch_notification(
    body: DispatchRequest,
    current_user: dict = Depends(require_auth),
):
    """Queue a client notification. Clients may only notify themselves."""
    is_admin = current_user.get("role") == UserRole.ROLE_ADMIN.value
    user_id = body.user_id or current_user.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")
    if not is_admin and user_id != current_user.get("user_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot send notifications for another user"
        )

    try:
        task_id = await enqueue_notification(body.event, body.payload, user_id=user_id)
    except Exception as e:
        logger.error(f"Failed to enqueue {body.event.value} notification: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to queue notification"
        )
    return {"queued": True, "task_id": task_id}


@router.post("/admin-dispatch", status_code=status.HTTP_202_ACCEPTED)
async def dispatch_admin_notification(
    body: AdminDispatchRequest,
    current_user: dict = Depends(require_auth),
):
    """Queue an admin notification (e.g. a client created a booking)."""
    try:
        task_id = await enqueue_notification(
            body.event,
            body.payload,
            user_id=current_user.get("user_id"),
            recipient_type=RecipientType.ADMIN,
        )
    except Exception as e:
        logger.error(f"Failed to enqueue admin {body.event.value} notification: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to queue notification"
        )
    return {"queued": True, "task_id": task_id}
