"""Retention Routes - Scheduler trigger for the retention reminder scan."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from middleware import cron_or_admin_guard
from services.retention_reminders import retention_reminder_job
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/retention", tags=["retention"])


@router.post("/send-reminders")
async def send_retention_reminders(caller: dict = Depends(cron_or_admin_guard)):
    """
    Run the retention reminder scan now.
    Callable by an external scheduler (X-Cron-Secret) or an admin.
    Returns 500 with {success: false, error} when the scan fails as a whole.
    """
    logger.info(f"Retention reminder scan triggered by {caller.get('user_id')}")
    result = await retention_reminder_job.run_scan()
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": result.error},
        )
    return result.model_dump(mode="json", exclude_none=True)
