"""User Profile Routes
Allows clients to view and update their notification preferences (opt-outs).
"""
from fastapi import APIRouter, HTTPException, Request, status
from middleware import require_auth
from models import AuditAction, NotificationPreferences, UserRole
from services.notification_stores import profile_store
from utils.audit import create_audit_log
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["profile"])


def _preferences_response(profile) -> dict:
    # Unset means opted in
    return {
        "notification_project_updates": profile.notification_project_updates is not False,
        "notification_downloads": profile.notification_downloads is not False,
    }


@router.get("/notification-preferences")
async def get_notification_preferences(request: Request):
    """Get the current user's notification preferences."""
    user = await require_auth(request)
    profile = await profile_store.get_user_profile(user.get("user_id"))
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return _preferences_response(profile)


@router.put("/notification-preferences")
async def update_notification_preferences(request: Request, body: NotificationPreferences):
    """Update the current user's notification preferences. Omitted fields are unchanged."""
    user = await require_auth(request)
    user_id = user.get("user_id")

    try:
        profile = await profile_store.update_notification_preferences(user_id, body)
    except Exception as e:
        logger.error(f"Failed to update notification preferences for {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update preferences"
        )
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    await create_audit_log(
        action=AuditAction.NOTIFICATION_PREFERENCES_UPDATED,
        actor_role=UserRole.ROLE_CLIENT,
        actor_id=user_id,
        client_id=user_id,
        resource_type="profile",
        resource_id=user_id,
        metadata={"changes": body.model_dump(exclude_none=True)},
    )
    return _preferences_response(profile)
