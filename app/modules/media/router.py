from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import ServiceUnavailable, ValidationError
from app.core.storage import R2Storage, StorageError
from app.db.session import get_db
from app.deps import get_current_session, get_settings, get_storage
from app.modules.auth.schemas.auth import AuthSession
from app.modules.media.schemas import (
    MediaDeleteResponse,
    MediaListResponse,
    MediaResponse,
    MediaSort,
    MediaUpdate,
)
from .service import MediaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="")


def get_media_service(
    db: Session = Depends(get_db),
    storage: R2Storage = Depends(get_storage),
) -> MediaService:
    return MediaService(db, storage)


@router.get("/", response_model=MediaListResponse)
@router.get("", response_model=MediaListResponse, include_in_schema=False)
def read_media(
    media_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=1_000_000),
    sort: MediaSort = Query(MediaSort.NEWEST),
    media_service: MediaService = Depends(get_media_service),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Media library listing with per-type counts.
    """
    items, total = media_service.list_media(
        media_type=media_type, search=search, limit=limit, offset=offset, sort=sort
    )
    return {
        "success": True,
        "items": items,
        "total": total,
        "limit": limit,
        "offset": offset,
        "stats": media_service.stats_by_type(),
    }


@router.post("/upload", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    media_service: MediaService = Depends(get_media_service),
    settings: Settings = Depends(get_settings),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Upload a file to the media library.
    """
    if file is None or not file.filename:
        raise ValidationError("No file was uploaded")

    # One byte past the limit is enough to reject the file
    content = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    try:
        media = media_service.upload(
            content,
            original_name=file.filename,
            mime_type=file.content_type,
            uploader_id=auth.user_id,
            max_size=settings.MAX_UPLOAD_SIZE,
        )
    except StorageError as e:
        logger.error(f"Error uploading media: {str(e)}")
        raise ServiceUnavailable("Failed to store the uploaded file")
    return {"success": True, "data": media}


@router.get("/{media_id}", response_model=MediaResponse)
def read_media_item(
    media_id: str,
    media_service: MediaService = Depends(get_media_service),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    return {"success": True, "data": media_service.get(media_id)}


@router.patch("/{media_id}", response_model=MediaResponse)
def update_media_item(
    media_id: str,
    media_in: MediaUpdate,
    media_service: MediaService = Depends(get_media_service),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Update alt text, caption, title or description of a media item.
    """
    return {"success": True, "data": media_service.update(media_id, media_in)}


@router.delete("/{media_id}", response_model=MediaDeleteResponse)
def delete_media_item(
    media_id: str,
    media_service: MediaService = Depends(get_media_service),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    media_service.delete(media_id)
    return {"success": True, "message": "Media deleted successfully"}
