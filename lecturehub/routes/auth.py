"""
lecturehub/routes/auth.py
Acting-user resolution from bearer JWTs

Sign-in itself (Google OAuth) happens elsewhere; this service only verifies
the access token it issues and resolves the user row. The consolidation core
trusts the resolved user id.
"""
import os
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.database import get_db
from lecturehub.errors import ErrorCode, raise_forbidden, raise_unauthorized
from lecturehub.orm.user import User

logger = logging.getLogger(__name__)

# ================= CONFIG =================

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

bearer_scheme = HTTPBearer(auto_error=False)


def get_admin_emails() -> set:
    return {
        email.strip().lower()
        for email in os.getenv("ADMIN_EMAILS", "").split(",")
        if email.strip()
    }


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with sub = user id"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access"
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the acting user from the Authorization: Bearer header."""
    if credentials is None:
        raise_unauthorized()

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected token: {str(e)}")
        raise_unauthorized("Could not validate credentials", ErrorCode.AUTH_INVALID)

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise_unauthorized("Could not validate credentials", ErrorCode.AUTH_INVALID)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise_unauthorized("User no longer exists", ErrorCode.AUTH_INVALID)

    return user


def is_admin(user: User) -> bool:
    return (user.email or "").lower() in get_admin_emails()


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require an admin account.
    Use as: Depends(require_admin)
    """
    if not is_admin(current_user):
        logger.warning(f"Access denied: user {current_user.id} is not an admin")
        raise_forbidden("Admin access required", ErrorCode.ADMIN_REQUIRED)
    return current_user
