"""Media uploads and unused-file cleanup."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from .. import media
from ..database import get_db
from ..models import User
from ..schemas import (
    MediaCleanupRequest,
    MediaCleanupResponse,
    MediaPreviewResponse,
    MediaSection,
    UploadResponse,
)
from ..security import require_admin, require_moderator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["media"])


@router.post("/upload/{section}", response_model=UploadResponse, status_code=201)
async def upload_media(
    section: MediaSection,
    file: UploadFile = File(...),
    user: User = Depends(require_moderator),
):
    try:
        stored = await media.save_upload(section, file)
    except media.UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("User %s uploaded %s", user.id, stored.url)
    return stored


@router.get("/admin/preview/media", response_model=MediaPreviewResponse)
def preview_media_cleanup(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Stored files that no record references."""
    unused = media.unused_media(db)
    return MediaPreviewResponse(
        file_count=len(unused),
        files_to_delete=list(unused),
        total_bytes=sum(unused.values()),
    )


@router.post("/admin/cleanup/media", response_model=MediaCleanupResponse)
def cleanup_media(
    body: MediaCleanupRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delete the previewed files, provided the unused set has not changed."""
    unused = media.unused_media(db)
    if set(body.confirm_files) != set(unused):
        raise HTTPException(
            status_code=409,
            detail="Files have changed since preview; run the preview again",
        )
    deleted = media.delete_media(sorted(unused))
    logger.info("Admin %s cleaned up %d media files", admin.id, len(deleted))
    return MediaCleanupResponse(deleted_count=len(deleted), deleted=deleted)
