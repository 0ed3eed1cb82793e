"""CMS page helpers: content sanitising and version history."""

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import ContentVersion, PageContent
from .schemas import MAX_PAGE_CONTENT_LENGTH

logger = logging.getLogger(__name__)

# Rich-text editors paste images inline as base64; those belong in /media
_INLINE_IMAGE_SRC = re.compile(r"""src\s*=\s*(["'])data:[^"']*\1""", re.IGNORECASE)


class ContentTooLarge(ValueError):
    pass


def sanitize_page_content(content: str) -> str:
    """Strip inline data: image payloads and enforce the size limit."""
    cleaned, stripped = _INLINE_IMAGE_SRC.subn('src=""', content or "")
    if stripped:
        logger.warning("Stripped %d inline data: images from page content", stripped)
    if len(cleaned) > MAX_PAGE_CONTENT_LENGTH:
        raise ContentTooLarge(
            f"Page content is {len(cleaned)} characters; the limit is {MAX_PAGE_CONTENT_LENGTH}"
        )
    return cleaned


def next_version_number(db: Session, page_id: int) -> int:
    current = db.scalar(
        select(func.max(ContentVersion.version_number)).where(ContentVersion.content_id == page_id)
    )
    return (current or 0) + 1


def snapshot_page(
    db: Session, page: PageContent, user_id: int | None, notes: str | None = None
) -> ContentVersion:
    """Record the page's current state as a new version."""
    version = ContentVersion(
        content_id=page.id,
        slug=page.slug,
        title=page.title,
        content=page.content,
        media_urls=list(page.media_urls or []),
        version_number=next_version_number(db, page.id),
        created_by=user_id,
        notes=notes or "",
    )
    db.add(version)
    db.flush()
    return version


def restore_version(
    db: Session, page: PageContent, version: ContentVersion, user_id: int | None
) -> PageContent:
    """Copy a version back onto its page, snapshotting the current state first.

    The slug is not restored when another page has taken it since.
    """
    snapshot_page(db, page, user_id, notes=f"Before restoring version {version.version_number}")
    page.title = version.title
    page.content = version.content
    page.media_urls = list(version.media_urls or [])
    if version.slug != page.slug:
        taken = db.scalar(
            select(PageContent.id).where(PageContent.slug == version.slug, PageContent.id != page.id)
        )
        if taken is None:
            page.slug = version.slug
        else:
            logger.warning(
                "Not restoring slug %s on page %s: now used by page %s", version.slug, page.id, taken
            )
    page.updated_by = user_id
    return page
