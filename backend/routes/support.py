"""Support Routes - Email the ticket owner its current status and any staff response."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import admin_route_guard
from models import AuditAction, UserRole
from services.email_service import email_service
from services.notification_stores import support_ticket_store
from services.template_renderer import render_support_status
from utils.audit import create_audit_log
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/support", tags=["support"])

SUPPORT_FROM_NAME = "TFC Media Support"


@router.post("/tickets/{ticket_id}/status-email")
async def send_ticket_status_email(
    ticket_id: str,
    current_user: dict = Depends(admin_route_guard),
):
    ticket = await support_ticket_store.get_ticket(ticket_id)
    if not ticket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    if not ticket.get("email"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Ticket has no contact email")

    rendered = render_support_status(
        name=ticket.get("name") or "Customer",
        ticket_number=ticket.get("ticket_number", ""),
        subject=ticket.get("subject", ""),
        status=ticket.get("status") or "new",
        admin_response=ticket.get("admin_response"),
    )
    result = await email_service.send_email(
        to=ticket["email"],
        subject=rendered.subject,
        html=rendered.html,
        from_name=SUPPORT_FROM_NAME,
        text=rendered.text,
        tag="support_status",
    )
    if not result.success:
        logger.error(f"Error sending status email for ticket {ticket_id}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send email: {result.error}"
        )

    await create_audit_log(
        action=AuditAction.SUPPORT_STATUS_EMAIL_SENT,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        client_id=ticket.get("user_id"),
        resource_type="support_ticket",
        resource_id=ticket_id,
        metadata={"status": ticket.get("status")},
    )
    return {"success": True, "email_id": result.provider_message_id, "sent_to": ticket["email"]}
