"""Vendor and community category management."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import CommunityCategory, User, VendorCategory
from ..schemas import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    VendorCategoryCreate,
    VendorCategoryRead,
    VendorCategoryUpdate,
)
from ..security import get_current_user, is_admin, require_admin
from ..slugs import slugify
from ..vendors import move_category, vendor_pages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["categories"])


def _check_unique(db: Session, model, slug: str, name: str, category_id: int | None = None) -> None:
    query = db.query(model).filter((model.slug == slug) | (model.name == name))
    if category_id is not None:
        query = query.filter(model.id != category_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A category with that slug or name already exists")


def _get(db: Session, model, category_id: int):
    category = db.get(model, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# =============================================================================
# VENDOR CATEGORIES
# =============================================================================


@router.get("/vendor-categories", response_model=list[VendorCategoryRead])
def list_vendor_categories(
    include_hidden: bool = False,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(VendorCategory)
    if not (include_hidden and is_admin(user)):
        query = query.filter(VendorCategory.is_hidden == False)
    return query.order_by(VendorCategory.order, VendorCategory.name).all()


@router.post("/vendor-categories", response_model=VendorCategoryRead, status_code=201)
def create_vendor_category(
    body: VendorCategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    slug = slugify(body.slug)
    _check_unique(db, VendorCategory, slug, body.name)
    category = VendorCategory(**body.model_dump(exclude={"slug"}), slug=slug)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Admin %s created vendor category %s", admin.id, category.slug)
    return category


@router.patch("/vendor-categories/{category_id}", response_model=VendorCategoryRead)
def update_vendor_category(
    category_id: int,
    body: VendorCategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Update a vendor category. A new slug moves its vendor pages with it."""
    category = _get(db, VendorCategory, category_id)
    changes = body.model_dump(exclude_unset=True)
    if "slug" in changes:
        changes["slug"] = slugify(changes["slug"])
    _check_unique(
        db, VendorCategory, changes.get("slug", category.slug), changes.get("name", category.name), category.id
    )

    old_slug = category.slug
    try:
        if changes.get("slug") and changes["slug"] != old_slug:
            moved = move_category(db, old_slug, changes["slug"])
            logger.info("Moved %d vendor pages from %s to %s", moved, old_slug, changes["slug"])
        for field, value in changes.items():
            setattr(category, field, value)
        db.commit()
        db.refresh(category)
    except Exception:
        db.rollback()
        raise
    return category


@router.delete("/vendor-categories/{category_id}", status_code=204)
def delete_vendor_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get(db, VendorCategory, category_id)
    remaining = len(vendor_pages(db, category.slug))
    if remaining:
        raise HTTPException(
            status_code=409,
            detail=f"Category still has {remaining} vendors; move or delete them first",
        )
    db.delete(category)
    db.commit()
    logger.info("Admin %s deleted vendor category %s", admin.id, category.slug)


# =============================================================================
# COMMUNITY CATEGORIES
# =============================================================================


@router.get("/community-categories", response_model=list[CategoryRead])
def list_community_categories(db: Session = Depends(get_db)):
    return db.query(CommunityCategory).order_by(CommunityCategory.order, CommunityCategory.name).all()


@router.post("/community-categories", response_model=CategoryRead, status_code=201)
def create_community_category(
    body: CategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    slug = slugify(body.slug)
    _check_unique(db, CommunityCategory, slug, body.name)
    category = CommunityCategory(**body.model_dump(exclude={"slug"}), slug=slug)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/community-categories/{category_id}", response_model=CategoryRead)
def update_community_category(
    category_id: int,
    body: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get(db, CommunityCategory, category_id)
    changes = body.model_dump(exclude_unset=True)
    if "slug" in changes:
        changes["slug"] = slugify(changes["slug"])
    _check_unique(
        db, CommunityCategory, changes.get("slug", category.slug), changes.get("name", category.name), category.id
    )
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/community-categories/{category_id}", status_code=204)
def delete_community_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get(db, CommunityCategory, category_id)
    db.delete(category)
    db.commit()
