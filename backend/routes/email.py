"""Email Routes - Send a raw transactional email through the configured provider."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import require_auth
from models import SendEmailRequest
from services.email_service import email_service
import logging
import re

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/email", tags=["email"])

# "Name <address>" or bare address
_FROM_PATTERN = re.compile(r"^\s*(?:(?P<name>[^<]*?)\s*<(?P<address>[^>]+)>|(?P<bare>\S+@\S+))\s*$")


def _split_from(value):
    if not value:
        return None, None
    match = _FROM_PATTERN.match(value)
    if not match:
        return None, None
    if match.group("bare"):
        return None, match.group("bare")
    return (match.group("name") or None), match.group("address").strip()


@router.post("/send")
async def send_email(
    body: SendEmailRequest,
    current_user: dict = Depends(require_auth),
):
    """Send one email. 400 on missing fields, 500 when no provider is configured, 502 on provider error."""
    if not body.to or not body.subject or not body.html:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: to, subject, html"
        )
    if not email_service.is_configured():
        logger.error("Email send requested but POSTMARK_SERVER_TOKEN is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Email service not configured"
        )

    from_name, from_address = _split_from(body.from_)
    result = await email_service.send_email(
        to=str(body.to),
        subject=body.subject,
        html=body.html,
        from_name=from_name,
        from_address=from_address,
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error or "Failed to send email"
        )
    return {"success": True, "id": result.provider_message_id, "message_id": result.message_id}
