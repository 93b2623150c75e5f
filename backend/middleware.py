from fastapi import Request, HTTPException, status
from typing import Optional
import logging
from auth import decode_access_token, check_rbac, verify_cron_secret
from models import UserRole

logger = logging.getLogger(__name__)

CRON_SECRET_HEADER = "X-Cron-Secret"

async def get_current_user(request: Request) -> Optional[dict]:
    """Extract and validate current user from JWT token."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ")[1]
    payload = decode_access_token(token)

    if not payload:
        return None

    return payload

async def require_auth(request: Request) -> dict:
    """Require valid authentication."""
    user = await get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user

async def require_role(request: Request, required_role: UserRole) -> dict:
    """Require specific role."""
    user = await require_auth(request)

    if not check_rbac(user.get("role"), required_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )

    return user

async def require_admin(request: Request) -> dict:
    """Require admin role."""
    return await require_role(request, UserRole.ROLE_ADMIN)

async def admin_route_guard(request: Request) -> dict:
    """Guard for admin routes."""
    user = await require_admin(request)
    return user

async def cron_or_admin_guard(request: Request) -> dict:
    """Guard for scheduler-triggered routes: X-Cron-Secret header or an admin token."""
    if verify_cron_secret(request.headers.get(CRON_SECRET_HEADER)):
        return {"user_id": "scheduler", "role": "SYSTEM"}
    return await admin_route_guard(request)
