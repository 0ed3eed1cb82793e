"""Slug-keyed CMS pages with version history."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..content import ContentTooLarge, restore_version, sanitize_page_content, snapshot_page
from ..database import get_db
from ..models import ContentVersion, PageContent, User
from ..schemas import ContentVersionRead, PageCreate, PageRead, PageUpdate
from ..security import get_current_user, is_admin, require_admin
from ..slugs import normalize_page_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pages", tags=["pages"])


def get_page(db: Session, page_id: int) -> PageContent:
    page = db.get(PageContent, page_id)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


def ensure_slug_free(db: Session, slug: str, page_id: int | None = None) -> None:
    query = db.query(PageContent.id).filter(PageContent.slug == slug)
    if page_id is not None:
        query = query.filter(PageContent.id != page_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"A page with slug '{slug}' already exists")


def clean_content(content: str) -> str:
    try:
        return sanitize_page_content(content)
    except ContentTooLarge as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[PageRead])
def list_pages(
    prefix: str | None = None,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(PageContent)
    if prefix:
        query = query.filter(PageContent.slug.startswith(normalize_page_slug(prefix)))
    if not is_admin(user):
        query = query.filter(PageContent.is_hidden == False)
    return query.order_by(PageContent.order, PageContent.slug).all()


@router.get("/{page_id}/versions", response_model=list[ContentVersionRead])
def list_versions(
    page_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return get_page(db, page_id).versions


@router.post("/{page_id}/versions/{version_id}/restore", response_model=PageRead)
def restore_page_version(
    page_id: int,
    version_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = get_page(db, page_id)
    version = db.get(ContentVersion, version_id)
    if not version or version.content_id != page.id:
        raise HTTPException(status_code=404, detail="Version not found for this page")
    try:
        restore_version(db, page, version, admin.id)
        db.commit()
        db.refresh(page)
    except Exception:
        db.rollback()
        raise
    logger.info("Admin %s restored page %s to version %s", admin.id, page.id, version.version_number)
    return page


@router.get("/{slug:path}", response_model=PageRead)
def get_page_by_slug(
    slug: str,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Look a page up by slug. '/Vendors/Home-Services/ABC' finds 'vendors-home-services-abc'."""
    page = db.query(PageContent).filter(PageContent.slug == normalize_page_slug(slug)).first()
    if not page or (page.is_hidden and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@router.post("", response_model=PageRead, status_code=201)
def create_page(
    body: PageCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    slug = normalize_page_slug(body.slug)
    if not slug:
        raise HTTPException(status_code=400, detail="Slug is required")
    ensure_slug_free(db, slug)

    page = PageContent(
        **body.model_dump(exclude={"slug", "content"}),
        slug=slug,
        content=clean_content(body.content),
        updated_by=admin.id,
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    logger.info("Admin %s created page %s", admin.id, page.slug)
    return page


@router.patch("/{page_id}", response_model=PageRead)
def update_page(
    page_id: int,
    body: PageUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Apply an edit after snapshotting the page's current state."""
    page = get_page(db, page_id)
    changes = body.model_dump(exclude_unset=True, exclude={"version_note"})

    if "slug" in changes:
        changes["slug"] = normalize_page_slug(changes["slug"])
        ensure_slug_free(db, changes["slug"], page.id)
    if "content" in changes:
        changes["content"] = clean_content(changes["content"] or "")

    try:
        snapshot_page(db, page, admin.id, body.version_note)
        for field, value in changes.items():
            setattr(page, field, value)
        page.updated_by = admin.id
        db.commit()
        db.refresh(page)
    except Exception:
        db.rollback()
        raise
    return page


@router.delete("/{page_id}", status_code=204)
def delete_page(
    page_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = get_page(db, page_id)
    db.delete(page)
    db.commit()
    logger.info("Admin %s deleted page %s", admin.id, page_id)
