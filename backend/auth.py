from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import hmac
import os
from models import UserRole

JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))
CRON_SECRET = os.getenv("CRON_SECRET", "")

def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Expected claims: user_id (profile id) and role (UserRole value).
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRATION_HOURS)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload
    except JWTError:
        return None

def verify_cron_secret(provided: Optional[str]) -> bool:
    """Constant-time check of the scheduler shared secret. Always False when CRON_SECRET is unset."""
    if not CRON_SECRET or not provided:
        return False
    return hmac.compare_digest(provided, CRON_SECRET)

def check_rbac(user_role: str, required_role: UserRole) -> bool:
    """Check if user has required role."""
    role_hierarchy = {
        UserRole.ROLE_ADMIN.value: 2,
        UserRole.ROLE_CLIENT.value: 1,
    }
    return role_hierarchy.get(user_role, 0) >= role_hierarchy.get(required_role.value, 0)
