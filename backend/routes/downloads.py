"""Download Routes - Re-send the 'download package ready' email for a package."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import admin_route_guard
from models import AuditAction, UserRole
from services.email_service import email_service
from services.notification_stores import order_store, profile_store
from services.template_renderer import render_download_package_ready
from utils.audit import create_audit_log
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/downloads", tags=["downloads"])

DEFAULT_EVENT_NAME = "Your Event"
DEFAULT_CLIENT_NAME = "Valued Client"


def _parse_expiry(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable package expiry: {value}")
    return datetime.now(timezone.utc)


def _event_name(package: dict, order: dict) -> str:
    if package.get("event_name"):
        return package["event_name"]
    for item in order.get("order_items") or []:
        gallery_item = item.get("gallery_item") or {}
        if gallery_item.get("session_name"):
            return gallery_item["session_name"]
    return DEFAULT_EVENT_NAME


@router.post("/{package_id}/resend-email")
async def resend_download_email(
    package_id: str,
    current_user: dict = Depends(admin_route_guard),
):
    """Look up package -> order -> client profile, render the package email and send it."""
    package = await order_store.get_download_package(package_id)
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")

    order = await order_store.get_order(package.get("order_id")) if package.get("order_id") else None
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    profile = await profile_store.get_user_profile(order.get("client_id"))
    if profile is None or not profile.email:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")

    rendered = render_download_package_ready(
        client_name=profile.name or DEFAULT_CLIENT_NAME,
        event_name=_event_name(package, order),
        item_count=int(package.get("item_count") or 0),
        file_size=int(package.get("file_size") or 0),
        download_url=package.get("zip_url") or "",
        expires_at=_parse_expiry(package.get("expires_at")),
    )
    result = await email_service.send_email(
        to=profile.email,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        tag="download_package_ready",
    )
    if not result.success:
        logger.error(f"Error resending download email for package {package_id}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send email: {result.error}"
        )

    await create_audit_log(
        action=AuditAction.DOWNLOAD_EMAIL_RESENT,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        client_id=profile.id,
        resource_type="download_package",
        resource_id=package_id,
    )
    return {"success": True, "email_id": result.provider_message_id, "sent_to": profile.email}
