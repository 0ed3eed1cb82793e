"""Uploaded media: storage on disk, URL normalisation and unused-file cleanup.

Files live under MEDIA_ROOT/{section}/ and are served at /media/{section}/...
Records refer to them by URL, in several legacy shapes that
`normalize_media_url` folds into the /media/ form.
"""

import logging
import os
import re
import uuid
from pathlib import Path

from dotenv import load_dotenv
from fastapi import UploadFile
from sqlalchemy.orm import Session

from .models import ContentVersion, Event, ForumComment, ForumPost, Listing, PageContent, Product, User
from .schemas import MediaSection, UploadResponse

load_dotenv()

logger = logging.getLogger(__name__)

MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", "./uploads"))
MEDIA_URL_PREFIX = "/media/"
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
ALLOWED_CONTENT_TYPES = ("image/", "video/")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MEDIA_IN_HTML = re.compile(r"""(?:src|href)\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_OBJECT_STORAGE = re.compile(r"^https?://object-storage\.replit\.app/", re.IGNORECASE)
_SECTIONS = {s.value for s in MediaSection}


class UploadRejected(ValueError):
    pass


def safe_filename(original: str | None) -> str:
    """uuid-prefixed filename with only portable characters."""
    name = Path(original or "upload").name
    stem, ext = os.path.splitext(name)
    stem = _UNSAFE_CHARS.sub("-", stem).strip("-.")[:80] or "file"
    ext = _UNSAFE_CHARS.sub("", ext.lower())[:10]
    return f"{uuid.uuid4().hex[:12]}-{stem}{ext}"


def is_allowed_content_type(content_type: str | None) -> bool:
    return bool(content_type) and content_type.startswith(ALLOWED_CONTENT_TYPES)


async def save_upload(section: MediaSection, upload: UploadFile) -> UploadResponse:
    """Write an uploaded file to MEDIA_ROOT/{section}/ and return its public URL."""
    if not is_allowed_content_type(upload.content_type):
        raise UploadRejected(f"Only image and video uploads are allowed, got {upload.content_type}")

    data = await upload.read()
    if not data:
        raise UploadRejected("Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise UploadRejected(f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit")

    directory = MEDIA_ROOT / section.value
    directory.mkdir(parents=True, exist_ok=True)
    filename = safe_filename(upload.filename)
    (directory / filename).write_bytes(data)

    logger.info("Stored upload %s/%s (%d bytes)", section.value, filename, len(data))
    return UploadResponse(
        url=f"{MEDIA_URL_PREFIX}{section.value}/{filename}",
        filename=filename,
        size=len(data),
        content_type=upload.content_type,
    )


def normalize_media_url(url: str | None, section: str | None = None) -> str:
    """Fold legacy media URL shapes into /media/{section}/{filename}.

    Handles /uploads/..., /api/storage-proxy/{BUCKET}/..., direct object
    storage URLs and bare filenames (which need `section`). Other external
    URLs pass through unchanged.
    """
    if not url:
        return ""
    value = url.strip()

    if value.startswith(MEDIA_URL_PREFIX):
        return value
    if value.startswith("media/"):
        return "/" + value

    for legacy in ("/uploads/", "uploads/", "/public/uploads/"):
        if value.startswith(legacy):
            return MEDIA_URL_PREFIX + value[len(legacy):]

    if value.startswith("/api/storage-proxy/") or _OBJECT_STORAGE.match(value):
        if value.startswith("/"):
            path = value[len("/api/storage-proxy/"):]
        else:
            path = _OBJECT_STORAGE.sub("", value)
        parts = [p for p in path.split("/") if p]
        if len(parts) >= 2:
            bucket = parts[0].lower()
            target = bucket if bucket in _SECTIONS else (section or bucket)
            return f"{MEDIA_URL_PREFIX}{target}/{parts[-1]}"
        return value

    if "://" in value:
        return value

    if "/" not in value and section:
        return f"{MEDIA_URL_PREFIX}{section}/{value}"
    return value


def _relative_media_path(url: str) -> str | None:
    normalized = normalize_media_url(url)
    if not normalized.startswith(MEDIA_URL_PREFIX):
        return None
    return normalized[len(MEDIA_URL_PREFIX):].split("?", 1)[0]


def referenced_media(db: Session) -> set[str]:
    """Relative paths (section/filename) referenced by any stored record."""
    urls: list[str] = []

    for (media,) in db.query(Event.media_urls):
        urls.extend(media or [])
    for (photos,) in db.query(Listing.photos):
        urls.extend(photos or [])
    for (images,) in db.query(Product.image_urls):
        urls.extend(images or [])
    for (media,) in db.query(ForumPost.media_urls):
        urls.extend(media or [])
    for (media,) in db.query(ForumComment.media_urls):
        urls.extend(media or [])
    for (media,) in db.query(ContentVersion.media_urls):
        urls.extend(media or [])
    for media, content in db.query(PageContent.media_urls, PageContent.content):
        urls.extend(media or [])
        urls.extend(_MEDIA_IN_HTML.findall(content or ""))
    for (avatar,) in db.query(User.avatar_url).filter(User.avatar_url.is_not(None)):
        urls.append(avatar)

    paths = {_relative_media_path(url) for url in urls if url}
    paths.discard(None)
    return paths


def stored_media() -> dict[str, int]:
    """Relative path -> size in bytes for every file under MEDIA_ROOT."""
    if not MEDIA_ROOT.exists():
        return {}
    return {
        path.relative_to(MEDIA_ROOT).as_posix(): path.stat().st_size
        for path in MEDIA_ROOT.rglob("*")
        if path.is_file()
    }


def unused_media(db: Session) -> dict[str, int]:
    referenced = referenced_media(db)
    return {path: size for path, size in sorted(stored_media().items()) if path not in referenced}


def delete_media(paths: list[str]) -> list[str]:
    """Delete files by relative path. Paths outside MEDIA_ROOT are ignored."""
    root = MEDIA_ROOT.resolve()
    deleted = []
    for relative in paths:
        target = (MEDIA_ROOT / relative).resolve()
        if root not in target.parents:
            logger.warning("Refusing to delete %s: outside media root", relative)
            continue
        if target.is_file():
            target.unlink()
            deleted.append(relative)
    logger.info("Deleted %d unused media files", len(deleted))
    return deleted
