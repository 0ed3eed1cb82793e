"""Feature flags: which roles can see each portal section."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import FeatureFlag
from .schemas import FeatureFlagRead, UserRole

logger = logging.getLogger(__name__)

_MEMBERS = [r.value for r in UserRole if r != UserRole.GUEST]
_EVERYONE = [r.value for r in UserRole]

DEFAULT_FLAGS = [
    ("calendar", "Calendar", _EVERYONE, "Community events calendar"),
    ("forum", "Forum", _EVERYONE, "Discussion forum"),
    ("for_sale", "For Sale", _EVERYONE, "Classifieds and real-estate listings"),
    ("store", "Store", _EVERYONE, "Merchandise and memberships"),
    ("vendors", "Vendors", _EVERYONE, "Local vendor directory"),
    ("community", "Community", _EVERYONE, "Community information pages"),
    ("launch_screen", "Launch Screen", [], "Pre-launch splash screen"),
    ("admin_access", "Admin", [UserRole.ADMIN.value], "Admin dashboard"),
    ("weather_rocket_icons", "Weather & Rocket Icons", _EVERYONE, "Weather and launch icons in navigation"),
    ("messages", "Messages", _MEMBERS, "Private messaging between users"),
]


def seed_feature_flags(db: Session) -> int:
    """Insert any default flag that is missing. Returns how many were added."""
    existing = set(db.scalars(select(FeatureFlag.name)).all())
    added = 0
    for name, display_name, roles, description in DEFAULT_FLAGS:
        if name in existing:
            continue
        db.add(FeatureFlag(
            name=name,
            display_name=display_name,
            enabled_for_roles=list(roles),
            description=description,
            is_active=True,
        ))
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d feature flags", added)
    return added


def flag_enabled(flag: FeatureFlag, role: UserRole) -> bool:
    if role == UserRole.ADMIN and flag.name == "admin_access":
        return True
    return flag.is_active and role.value in (flag.enabled_for_roles or [])


def flags_for_role(db: Session, role: UserRole) -> list[FeatureFlagRead]:
    flags = db.scalars(select(FeatureFlag).order_by(FeatureFlag.name)).all()
    return [
        FeatureFlagRead.model_validate(flag).model_copy(update={"enabled": flag_enabled(flag, role)})
        for flag in flags
    ]
