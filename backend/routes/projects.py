"""Project Routes - Email the client a summary of changes to their project."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import admin_route_guard
from models import AuditAction, UserRole, ProjectUpdateEmailRequest
from services.email_service import email_service
from services.notification_stores import project_store, profile_store
from services.template_renderer import APP_URL, PROJECT_UPDATE_FIELDS, render_project_update
from utils.audit import create_audit_log
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/projects", tags=["projects"])

DEFAULT_CLIENT_NAME = "Valued Client"


@router.post("/{project_id}/update-email")
async def send_project_update_email(
    project_id: str,
    body: ProjectUpdateEmailRequest,
    current_user: dict = Depends(admin_route_guard),
):
    """Look up project -> client profile, render the change summary and send it."""
    if not any(field in body.updates for field, _ in PROJECT_UPDATE_FIELDS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No status, progress or current_step change supplied"
        )

    project = await project_store.get_project(project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    profile = await profile_store.get_user_profile(project.get("client_id"))
    if profile is None or not profile.email:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")

    rendered = render_project_update(
        client_name=profile.name or DEFAULT_CLIENT_NAME,
        project_name=project.get("name") or project.get("title") or "",
        updates=body.updates,
        portal_url=f"{APP_URL}/portal",
    )
    result = await email_service.send_email(
        to=profile.email,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        tag="project_update",
    )
    if not result.success:
        logger.error(f"Error sending project update email for project {project_id}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send email: {result.error}"
        )

    await create_audit_log(
        action=AuditAction.PROJECT_UPDATE_EMAIL_SENT,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        client_id=profile.id,
        resource_type="project",
        resource_id=project_id,
        metadata={"fields": sorted(body.updates)},
    )
    return {"success": True, "email_id": result.provider_message_id, "sent_to": profile.email}
