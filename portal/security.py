"""Password hashing, bearer tokens and role checks for API routes."""

import logging
import os
import secrets
from datetime import timedelta

import bcrypt
import jwt
from dotenv import load_dotenv
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User, utcnow
from .schemas import UserRole

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "dev-portal-secret")
JWT_ALGORITHM = "HS256"
JWT_TTL_HOURS = int(os.getenv("JWT_TTL_HOURS", "72"))
RESET_TOKEN_TTL = timedelta(hours=1)

security = HTTPBearer(auto_error=False)

# Compared against when the username is unknown so login timing stays flat
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode("utf-8")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH.encode("utf-8"))
        return False
    return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))


def create_access_token(user: User) -> str:
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=JWT_TTL_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by a token, or raise 401."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


def new_reset_token() -> str:
    return secrets.token_urlsafe(32)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Resolve the caller from the bearer token. Anonymous callers get None."""
    if not credentials:
        return None
    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    # Tokens issued before a block stop working immediately
    if user.is_blocked:
        raise HTTPException(status_code=403, detail=user.block_reason or "Account is blocked")
    return user


async def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def role_of(user: User | None) -> UserRole:
    return user.role_enum if user else UserRole.GUEST


def require_role(minimum: UserRole):
    """Build a dependency that admits users at or above `minimum`."""

    async def checker(user: User = Depends(require_user)) -> User:
        if not user.role_enum.at_least(minimum):
            raise HTTPException(status_code=403, detail=f"{minimum.value} role required")
        return user

    return checker


require_moderator = require_role(UserRole.MODERATOR)
require_admin = require_role(UserRole.ADMIN)


def is_moderator(user: User | None) -> bool:
    return role_of(user).at_least(UserRole.MODERATOR)


def is_admin(user: User | None) -> bool:
    return role_of(user) == UserRole.ADMIN
