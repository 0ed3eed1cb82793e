"""Vendor directory: vendor pages, slug repair, comments and interactions."""

import logging
from typing import get_args

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..content import snapshot_page
from ..database import get_db
from ..models import PageContent, User, VendorCategory, VendorComment, VendorInteraction
from ..schemas import (
    CommentCreate,
    InteractionResponse,
    PageRead,
    SlugRepairReport,
    VendorCommentRead,
    VendorCreate,
    VendorInteractionRequest,
    VendorInteractionType,
    VendorRead,
    VendorUpdate,
)
from ..security import get_current_user, is_admin, is_moderator, require_admin, require_user
from ..slugs import VENDOR_PREFIX, generate_vendor_slug, url_to_vendor_slug, vendor_slug_to_url
from ..vendors import (
    category_of,
    known_categories,
    rename_vendor_slug,
    repair_vendor_slugs,
    resolve_category,
    vendor_pages,
)
from .pages import clean_content, ensure_slug_free

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vendors", tags=["vendors"])


def _to_read(page: PageContent, categories: list[str]) -> VendorRead:
    return VendorRead(
        **PageRead.model_validate(page).model_dump(),
        category=category_of(page.slug, categories),
        public_url=vendor_slug_to_url(page.slug, categories),
    )


def _get_vendor(db: Session, slug: str) -> PageContent:
    page = db.query(PageContent).filter(PageContent.slug == slug).first()
    if not page or not page.slug.startswith(VENDOR_PREFIX):
        raise HTTPException(status_code=404, detail="Vendor not found")
    return page


def _hidden_categories(db: Session) -> set[str]:
    return {slug for (slug,) in db.query(VendorCategory.slug).filter(VendorCategory.is_hidden == True)}


def _visible(page: PageContent, categories: list[str], hidden: set[str]) -> bool:
    return not page.is_hidden and category_of(page.slug, categories) not in hidden


def _interaction_counts(db: Session, slug: str) -> dict[str, int]:
    counts = {kind: 0 for kind in get_args(VendorInteractionType)}
    rows = (
        db.query(VendorInteraction.interaction_type, func.count(VendorInteraction.id))
        .filter(VendorInteraction.page_slug == slug)
        .group_by(VendorInteraction.interaction_type)
        .all()
    )
    counts.update({kind: count for kind, count in rows})
    return counts


@router.get("", response_model=list[VendorRead])
def list_vendors(
    category: str | None = None,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Vendor pages, optionally for one category. Hidden vendors and hidden
    categories are only listed for admins."""
    categories = known_categories(db)
    pages = vendor_pages(db, resolve_category(db, category) if category else None)
    if not is_admin(user):
        hidden = _hidden_categories(db)
        pages = [p for p in pages if _visible(p, categories, hidden)]
    return [_to_read(p, categories) for p in pages]


@router.post("", response_model=VendorRead, status_code=201)
def create_vendor(
    body: VendorCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = resolve_category(db, body.category)
    slug = generate_vendor_slug(body.title, category)
    if not slug:
        raise HTTPException(status_code=400, detail="Title and category must contain letters or digits")
    ensure_slug_free(db, slug)

    page = PageContent(
        slug=slug,
        title=body.title,
        content=clean_content(body.content),
        media_urls=body.media_urls,
        is_hidden=body.is_hidden,
        order=body.order,
        updated_by=admin.id,
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    logger.info("Admin %s created vendor %s", admin.id, page.slug)
    return _to_read(page, known_categories(db))


@router.post("/repair-slugs", response_model=SlugRepairReport)
def repair_slugs(
    dry_run: bool = True,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    logger.info("Admin %s running vendor slug repair (dry_run=%s)", admin.id, dry_run)
    return repair_vendor_slugs(db, dry_run=dry_run)


@router.delete("/comments/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    comment = db.get(VendorComment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != user.id and not is_moderator(user):
        raise HTTPException(status_code=403, detail="You can only delete your own comments")
    db.delete(comment)
    db.commit()


@router.get("/by-slug/{slug}/comments", response_model=list[VendorCommentRead])
def list_comments(slug: str, db: Session = Depends(get_db)):
    _get_vendor(db, slug)
    return (
        db.query(VendorComment)
        .filter(VendorComment.page_slug == slug)
        .order_by(VendorComment.created_at, VendorComment.id)
        .all()
    )


@router.post("/by-slug/{slug}/comments", response_model=VendorCommentRead, status_code=201)
def add_comment(
    slug: str,
    body: CommentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get_vendor(db, slug)
    comment = VendorComment(page_slug=slug, user_id=user.id, content=body.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.get("/by-slug/{slug}/interactions", response_model=dict[str, int])
def interaction_counts(slug: str, db: Session = Depends(get_db)):
    _get_vendor(db, slug)
    return _interaction_counts(db, slug)


@router.post("/by-slug/{slug}/interactions", response_model=InteractionResponse)
def toggle_interaction(
    slug: str,
    body: VendorInteractionRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Toggle like / recommend on a vendor for the caller."""
    _get_vendor(db, slug)
    existing = db.query(VendorInteraction).filter(
        VendorInteraction.page_slug == slug,
        VendorInteraction.user_id == user.id,
        VendorInteraction.interaction_type == body.interaction_type,
    ).first()
    if existing:
        db.delete(existing)
        active = False
    else:
        db.add(VendorInteraction(page_slug=slug, user_id=user.id, interaction_type=body.interaction_type))
        active = True
    db.commit()
    return InteractionResponse(active=active, counts=_interaction_counts(db, slug))


@router.patch("/{slug}", response_model=VendorRead)
def update_vendor(
    slug: str,
    body: VendorUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Edit a vendor. A new title or category re-derives the slug."""
    page = _get_vendor(db, slug)
    categories = known_categories(db)
    changes = body.model_dump(exclude_unset=True)
    snapshot_page(db, page, admin.id, "Vendor edit")

    if "title" in changes or "category" in changes:
        category = (
            resolve_category(db, changes["category"]) if changes.get("category")
            else category_of(page.slug, categories)
        )
        new_slug = generate_vendor_slug(changes.get("title") or page.title, category)
        if new_slug != page.slug:
            ensure_slug_free(db, new_slug, page.id)
            rename_vendor_slug(db, page, new_slug)
    changes.pop("category", None)

    if "content" in changes:
        changes["content"] = clean_content(changes["content"] or "")
    for field, value in changes.items():
        setattr(page, field, value)
    page.updated_by = admin.id

    try:
        db.commit()
        db.refresh(page)
    except Exception:
        db.rollback()
        raise
    return _to_read(page, known_categories(db))


@router.delete("/{slug}", status_code=204)
def delete_vendor(
    slug: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = _get_vendor(db, slug)
    db.query(VendorComment).filter(VendorComment.page_slug == slug).delete(synchronize_session=False)
    db.query(VendorInteraction).filter(VendorInteraction.page_slug == slug).delete(synchronize_session=False)
    db.delete(page)
    db.commit()
    logger.info("Admin %s deleted vendor %s", admin.id, slug)


@router.get("/{category}/{identifier}", response_model=VendorRead)
def get_vendor_by_url(
    category: str,
    identifier: str,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Resolve the public /vendors/{category}/{identifier} form."""
    slug = url_to_vendor_slug(category, identifier)
    page = db.query(PageContent).filter(PageContent.slug == slug).first() if slug else None
    categories = known_categories(db)
    if not page or (not is_admin(user) and not _visible(page, categories, _hidden_categories(db))):
        raise HTTPException(status_code=404, detail="Vendor not found")
    return _to_read(page, categories)
