"""Registration, login, password reset and the current user's profile."""

import logging
import os

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User, utcnow
from ..schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserProfileUpdate,
    UserRead,
    UserRole,
)
from ..security import (
    RESET_TOKEN_TTL,
    create_access_token,
    hash_password,
    new_reset_token,
    require_user,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _expose_reset_tokens() -> bool:
    return os.getenv("EXPOSE_RESET_TOKENS", "").lower() in ("1", "true", "yes")


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    existing = db.query(User).filter(func.lower(User.username) == body.username.lower()).first()
    if existing:
        raise HTTPException(status_code=409, detail="Username already exists")

    data = body.model_dump(exclude={"password"})
    user = User(
        **data,
        password_hash=hash_password(body.password),
        role=UserRole.REGISTERED.value,
        is_resident=body.is_local_resident or body.owns_home_in_bb or body.rents_home_in_bb,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        raise

    logger.info("Registered user %s", user.username)
    return AuthResponse(token=create_access_token(user), user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(func.lower(User.username) == body.username.strip().lower()).first()
    if not verify_password(body.password, user.password_hash if user else None):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if user.is_blocked:
        logger.info("Blocked user %s attempted to log in", user.username)
        raise HTTPException(status_code=403, detail=user.block_reason or "Account is blocked")
    return AuthResponse(token=create_access_token(user), user=UserRead.model_validate(user))


@router.get("/user", response_model=UserRead)
def current_user(user: User = Depends(require_user)):
    return user


@router.patch("/user", response_model=UserRead)
def update_profile(
    body: UserProfileUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Update the caller's profile and resident survey.

    Declaring a membership badge with a badge number makes the user a
    badge holder unless they already hold a higher role.
    """
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, value)

    user.is_resident = bool(user.is_local_resident or user.owns_home_in_bb or user.rents_home_in_bb)
    if (
        user.has_membership_badge
        and user.membership_badge_number
        and not user.role_enum.at_least(UserRole.BADGE_HOLDER)
    ):
        user.role = UserRole.BADGE_HOLDER.value
        logger.info("User %s upgraded to badge holder", user.username)

    try:
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        raise
    return user


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    message = "If that email is registered, a reset link has been sent"
    user = db.query(User).filter(func.lower(User.email) == body.email.lower()).first()
    if not user:
        return {"message": message}

    user.reset_token = new_reset_token()
    user.reset_token_expires = utcnow() + RESET_TOKEN_TTL
    db.commit()
    logger.info("Issued password reset token for user %s", user.id)

    response = {"message": message}
    if _expose_reset_tokens():
        response["reset_token"] = user.reset_token
    return response


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.reset_token == body.token).first()
    if not user or not user.reset_token_expires or user.reset_token_expires < utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.password_hash = hash_password(body.password)
    user.reset_token = None
    user.reset_token_expires = None
    db.commit()
    logger.info("Password reset for user %s", user.id)
    return {"message": "Password has been reset"}
