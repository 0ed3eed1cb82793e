"""Feature flag lookup and administration."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..features import flag_enabled, flags_for_role
from ..models import FeatureFlag, User
from ..schemas import FeatureFlagRead, FeatureFlagUpdate
from ..security import get_current_user, require_admin, role_of

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/features", tags=["features"])


@router.get("", response_model=list[FeatureFlagRead])
def list_features(
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All flags, each marked enabled or not for the caller's role."""
    return flags_for_role(db, role_of(user))


@router.patch("/{name}", response_model=FeatureFlagRead)
def update_feature(
    name: str,
    body: FeatureFlagUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    flag = db.query(FeatureFlag).filter(FeatureFlag.name == name).first()
    if not flag:
        raise HTTPException(status_code=404, detail="Feature flag not found")

    changes = body.model_dump(mode="json", exclude_unset=True)
    for field, value in changes.items():
        setattr(flag, field, value)
    db.commit()
    db.refresh(flag)
    logger.info("Admin %s updated feature flag %s: %s", admin.id, name, changes)

    return FeatureFlagRead.model_validate(flag).model_copy(
        update={"enabled": flag_enabled(flag, role_of(admin))}
    )
