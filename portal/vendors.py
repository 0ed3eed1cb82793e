"""Vendor directory operations on top of slug-keyed pages."""

import logging

from sqlalchemy.orm import Session

from .models import PageContent, VendorCategory, VendorComment, VendorInteraction
from .schemas import SlugRepair, SlugRepairReport
from .slugs import VENDOR_PREFIX, needs_slug_repair, repair_vendor_slug, slugify, split_vendor_slug

logger = logging.getLogger(__name__)


def known_categories(db: Session) -> list[str]:
    return [slug for (slug,) in db.query(VendorCategory.slug).all()]


def resolve_category(db: Session, category: str) -> str:
    """Category slug for a name or slug, preferring the vendor_categories table."""
    match = db.query(VendorCategory).filter(
        (VendorCategory.slug == category) | (VendorCategory.name == category)
    ).first()
    return match.slug if match else slugify(category)


def category_of(slug: str, categories: list[str]) -> str | None:
    parts = split_vendor_slug(slug, categories)
    return parts[0] if parts else None


def vendor_pages(db: Session, category: str | None = None) -> list[PageContent]:
    """Vendor pages, optionally limited to one category.

    A prefix match alone would put "vendors-home-services-x" under "home",
    so each slug is split against the known categories.
    """
    prefix = f"{VENDOR_PREFIX}{category}-" if category else VENDOR_PREFIX
    pages = (
        db.query(PageContent)
        .filter(PageContent.slug.startswith(prefix))
        .order_by(PageContent.order, PageContent.title, PageContent.id)
        .all()
    )
    if not category:
        return pages
    categories = known_categories(db) + [category]
    return [p for p in pages if category_of(p.slug, categories) == category]


def rename_vendor_slug(db: Session, page: PageContent, new_slug: str) -> None:
    """Change a vendor page's slug, carrying its comments and interactions along."""
    old_slug = page.slug
    if old_slug == new_slug:
        return
    page.slug = new_slug
    db.query(VendorComment).filter(VendorComment.page_slug == old_slug).update(
        {VendorComment.page_slug: new_slug}, synchronize_session=False
    )
    db.query(VendorInteraction).filter(VendorInteraction.page_slug == old_slug).update(
        {VendorInteraction.page_slug: new_slug}, synchronize_session=False
    )
    logger.info("Vendor page %s renamed %s -> %s", page.id, old_slug, new_slug)


def move_category(db: Session, old_category: str, new_category: str) -> int:
    """Move every vendor page from one category prefix to another."""
    old_prefix = f"{VENDOR_PREFIX}{old_category}-"
    pages = vendor_pages(db, old_category)
    for page in pages:
        rename_vendor_slug(db, page, f"{VENDOR_PREFIX}{new_category}-{page.slug[len(old_prefix):]}")
    return len(pages)


def repair_vendor_slugs(db: Session, dry_run: bool = True) -> SlugRepairReport:
    """Find malformed vendor slugs and rebuild them from title and category.

    A repair whose result is already taken by another page is reported and
    skipped. Nothing is written when `dry_run` is set.
    """
    categories = known_categories(db)
    pages = vendor_pages(db)
    taken = {slug for (slug,) in db.query(PageContent.slug).all()}

    repairs = []
    for page in pages:
        if not needs_slug_repair(page.slug, categories):
            continue
        category = category_of(page.slug, categories)
        new_slug = repair_vendor_slug(page.slug, category, page.title)
        if not new_slug or new_slug == page.slug:
            continue

        if new_slug in taken:
            repairs.append(SlugRepair(
                page_id=page.id,
                old_slug=page.slug,
                new_slug=new_slug,
                applied=False,
                reason="slug already in use",
            ))
            continue

        taken.discard(page.slug)
        taken.add(new_slug)
        repairs.append(SlugRepair(
            page_id=page.id, old_slug=page.slug, new_slug=new_slug, applied=not dry_run
        ))
        if not dry_run:
            rename_vendor_slug(db, page, new_slug)

    if not dry_run:
        db.commit()
    logger.info(
        "Vendor slug repair: checked=%d repairs=%d dry_run=%s", len(pages), len(repairs), dry_run
    )
    return SlugRepairReport(checked=len(pages), repairs=repairs, dry_run=dry_run)
