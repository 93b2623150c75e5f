"""Invoice Routes - Invoice, payment request, reminder and receipt emails for a client invoice."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import admin_route_guard
from models import AuditAction, UserRole, InvoiceEmailRequest, PaymentRequestEmailRequest
from services.email_service import email_service
from services.notification_stores import invoice_store
from services.template_renderer import (
    RenderedEmail,
    render_invoice_created,
    render_payment_request,
    render_payment_reminder,
    render_payment_received,
)
from utils.audit import create_audit_log
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/invoices", tags=["invoices"])

DEFAULT_CLIENT_NAME = "Valued Client"


async def _get_invoice(invoice_id: str) -> dict:
    invoice = await invoice_store.get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if not invoice.get("client_email"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice has no client email")
    return invoice


async def _send(
    invoice: dict,
    rendered: RenderedEmail,
    tag: str,
    action: AuditAction,
    current_user: dict,
    metadata: Optional[dict] = None,
) -> dict:
    to = invoice["client_email"]
    result = await email_service.send_email(
        to=to,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        tag=tag,
    )
    if not result.success:
        logger.error(f"Error sending {tag} email for invoice {invoice.get('id')}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send email: {result.error}"
        )

    await create_audit_log(
        action=action,
        actor_role=UserRole.ROLE_ADMIN,
        actor_id=current_user.get("user_id"),
        client_id=invoice.get("client_id"),
        resource_type="invoice",
        resource_id=invoice.get("id"),
        metadata={"template": tag, **(metadata or {})},
    )
    return {"success": True, "email_id": result.provider_message_id, "sent_to": to}


@router.post("/{invoice_id}/send-email")
async def send_invoice_email(
    invoice_id: str,
    body: InvoiceEmailRequest,
    current_user: dict = Depends(admin_route_guard),
):
    invoice = await _get_invoice(invoice_id)
    rendered = render_invoice_created(
        client_name=invoice.get("client_name") or DEFAULT_CLIENT_NAME,
        invoice_number=invoice.get("invoice_number", ""),
        title=invoice.get("title", ""),
        total_amount=invoice.get("total_amount") or 0,
        amount_due=invoice.get("amount_due") or 0,
        payment_type=invoice.get("payment_type") or "full",
        payment_link=body.payment_link,
        due_date=invoice.get("due_date"),
        notes=invoice.get("notes"),
    )
    return await _send(invoice, rendered, "invoice_created", AuditAction.INVOICE_EMAIL_SENT, current_user)


@router.post("/{invoice_id}/payment-request")
async def send_payment_request_email(
    invoice_id: str,
    body: PaymentRequestEmailRequest,
    current_user: dict = Depends(admin_route_guard),
):
    """Ask for one installment. The amount may not exceed what is still owed."""
    invoice = await _get_invoice(invoice_id)
    remaining = float(invoice.get("amount_due") or 0)
    if body.amount > remaining:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Requested amount exceeds remaining balance of {remaining:.2f}"
        )

    rendered = render_payment_request(
        client_name=invoice.get("client_name") or DEFAULT_CLIENT_NAME,
        invoice_number=invoice.get("invoice_number", ""),
        title=invoice.get("title", ""),
        total_amount=invoice.get("total_amount") or 0,
        amount_requested=body.amount,
        payment_link=body.payment_link,
        due_date=invoice.get("due_date"),
        notes=invoice.get("notes"),
    )
    return await _send(
        invoice, rendered, "payment_request", AuditAction.PAYMENT_EMAIL_SENT, current_user,
        metadata={"amount_requested": body.amount},
    )


@router.post("/{invoice_id}/payment-reminder")
async def send_payment_reminder_email(
    invoice_id: str,
    body: InvoiceEmailRequest,
    current_user: dict = Depends(admin_route_guard),
):
    invoice = await _get_invoice(invoice_id)
    if invoice.get("status") == "fully_paid":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice is already fully paid")

    rendered = render_payment_reminder(
        client_name=invoice.get("client_name") or DEFAULT_CLIENT_NAME,
        invoice_number=invoice.get("invoice_number", ""),
        title=invoice.get("title", ""),
        total_amount=invoice.get("total_amount") or 0,
        remaining_balance=invoice.get("amount_due") or 0,
        payment_link=body.payment_link,
        due_date=invoice.get("due_date"),
    )
    return await _send(invoice, rendered, "payment_reminder", AuditAction.PAYMENT_EMAIL_SENT, current_user)


@router.post("/{invoice_id}/payments/{payment_id}/confirmation-email")
async def send_payment_confirmation_email(
    invoice_id: str,
    payment_id: str,
    current_user: dict = Depends(admin_route_guard),
):
    invoice = await _get_invoice(invoice_id)
    payment = await invoice_store.get_invoice_payment(invoice_id, payment_id)
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    rendered = render_payment_received(
        client_name=invoice.get("client_name") or DEFAULT_CLIENT_NAME,
        invoice_number=invoice.get("invoice_number", ""),
        title=invoice.get("title", ""),
        payment_amount=payment.get("amount") or 0,
        total_amount=invoice.get("total_amount") or 0,
        amount_paid=invoice.get("amount_paid") or 0,
        remaining_balance=invoice.get("amount_due") or 0,
        payment_date=payment.get("created_at"),
        payment_method=payment.get("payment_method"),
        is_fully_paid=invoice.get("status") == "fully_paid",
    )
    return await _send(
        invoice, rendered, "payment_received", AuditAction.PAYMENT_EMAIL_SENT, current_user,
        metadata={"payment_id": payment_id},
    )
