"""SMS Routes - Raw SMS send and SMS service status."""
from fastapi import APIRouter, HTTPException, Depends, status
from middleware import admin_route_guard
from models import SendSMSRequest
from services.sms_service import sms_service, SMSConfigurationError
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sms", tags=["sms"])


@router.get("/status")
async def get_sms_status():
    """Get SMS service status and configuration."""
    return {
        "enabled": sms_service.is_enabled(),
        "configured": sms_service.is_configured(),
    }


@router.post("/send")
async def send_sms(
    body: SendSMSRequest,
    current_user: dict = Depends(admin_route_guard),
):
    """Send one SMS. 400 on missing fields or provider error, 500 when Twilio is not configured."""
    if not body.to or not body.message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: to, message"
        )
    try:
        result = await sms_service.send_sms(body.to, body.message)
    except SMSConfigurationError as e:
        logger.error(f"SMS send requested but not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error or "Failed to send SMS"
        )
    return {
        "success": True,
        "messageSid": result.provider_message_id,
        "status": result.details.get("provider_status"),
    }
