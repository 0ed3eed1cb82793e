"""User administration: listing, roles, blocking and deletion."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User
from ..schemas import BlockRequest, RoleUpdate, UserRead, UserRole
from ..security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[UserRead])
def list_users(
    role: UserRole | None = None,
    blocked: bool | None = None,
    search: str | None = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role.value)
    if blocked is not None:
        query = query.filter(User.is_blocked == blocked)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            User.username.ilike(pattern),
            User.email.ilike(pattern),
            User.full_name.ilike(pattern),
        ))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


@router.patch("/{user_id}/role", response_model=UserRead)
def update_role(
    user_id: int,
    body: RoleUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    if user.id == admin.id and body.role != UserRole.ADMIN:
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")

    previous = user.role
    user.role = body.role.value
    db.commit()
    db.refresh(user)
    logger.info("Admin %s changed role of user %s: %s -> %s", admin.id, user.id, previous, user.role)
    return user


@router.post("/{user_id}/block", response_model=UserRead)
def block_user(
    user_id: int,
    body: BlockRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot block yourself")

    user.is_blocked = True
    user.block_reason = body.reason
    db.commit()
    db.refresh(user)
    logger.info("Admin %s blocked user %s", admin.id, user.id)
    return user


@router.post("/{user_id}/unblock", response_model=UserRead)
def unblock_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    user.is_blocked = False
    user.block_reason = None
    db.commit()
    db.refresh(user)
    logger.info("Admin %s unblocked user %s", admin.id, user.id)
    return user


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    try:
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Admin %s deleted user %s", admin.id, user_id)
