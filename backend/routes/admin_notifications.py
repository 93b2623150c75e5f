"""
Admin Notifications Routes - Notification settings and manual background job runs.
"""
from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import BaseModel
from middleware import admin_route_guard
from models import AuditAction, NotificationSettings, UserRole
from services.notification_stores import notification_settings_store
from utils.audit import create_audit_log
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin-notifications"])


class RunJobRequest(BaseModel):
    job: str


# ============================================
# NOTIFICATION SETTINGS
# ============================================

@router.get("/notification-settings")
async def get_notification_settings(
    current_user: dict = Depends(admin_route_guard),
):
    """Get the notification settings singleton."""
    settings = await notification_settings_store.get_notification_settings()
    if settings is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification settings not configured"
        )
    return settings.model_dump(mode="json")


@router.put("/notification-settings")
async def update_notification_settings(
    body: NotificationSettings,
    current_user: dict = Depends(admin_route_guard),
):
    """Create or replace the notification settings singleton."""
    try:
        saved = await notification_settings_store.save_notification_settings(body)
    except Exception as e:
        logger.error(f"Failed to save notification settings: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save notification settings"
        )

    await create_audit_log(
        action=AuditAction.NOTIFICATION_SETTINGS_UPDATED,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        resource_type="notification_settings",
        metadata={
            "email_enabled": saved.email_enabled,
            "sms_enabled": saved.sms_enabled,
            "events": sorted(saved.notifications.keys()),
        },
    )
    return saved.model_dump(mode="json")


# ============================================
# JOBS
# ============================================

@router.post("/jobs/run")
async def run_job_now(
    body: RunJobRequest,
    current_user: dict = Depends(admin_route_guard),
):
    """Run a single background job by id (admin only). Returns job-specific message for toast."""
    from job_runner import JOB_RUNNERS

    job_id = (body.job or "").strip()
    if not job_id or job_id not in JOB_RUNNERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid job. Use one of: {', '.join(sorted(JOB_RUNNERS.keys()))}"
        )
    try:
        result = await JOB_RUNNERS[job_id]()
    except Exception as e:
        logger.error(f"Manual job run error ({job_id}): {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to run job: {job_id}"
        )

    message = (result.get("message") if result else None) or f"Job {job_id} completed"
    await create_audit_log(
        action=AuditAction.ADMIN_ACTION,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        metadata={
            "action": "manual_job_run",
            "job_id": job_id,
            "admin_email": current_user.get("email"),
        },
    )
    return {"success": True, "job": job_id, "message": message, "count": result.get("count") if result else None}
