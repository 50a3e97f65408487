import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.core.storage import R2Storage
from app.modules.media.models import Media, MediaType
from app.modules.media.schemas import MediaSort, MediaUpdate

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {
    MediaType.IMAGE: ["image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"],
    MediaType.VIDEO: ["video/mp4", "video/webm", "video/quicktime"],
    MediaType.DOCUMENT: [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ],
    MediaType.AUDIO: ["audio/mpeg", "audio/wav", "audio/ogg"],
}

SORT_ORDERING = {
    MediaSort.NEWEST: Media.created_at.desc(),
    MediaSort.OLDEST: Media.created_at.asc(),
    MediaSort.NAME_ASC: Media.original_name.asc(),
    MediaSort.NAME_DESC: Media.original_name.desc(),
    MediaSort.SIZE_ASC: Media.size.asc(),
    MediaSort.SIZE_DESC: Media.size.desc(),
}

SEARCH_COLUMNS = (Media.original_name, Media.file_name, Media.alt, Media.title)


def media_type_for(mime_type: Optional[str]) -> Optional[MediaType]:
    """Media type for an accepted MIME type, None when the type is not accepted"""
    for media_type, mime_types in ALLOWED_TYPES.items():
        if mime_type in mime_types:
            return media_type
    return None


class MediaService:
    def __init__(self, db: Session, storage: R2Storage):
        self.db = db
        self.storage = storage

    def _active(self):
        return self.db.query(Media).filter(Media.deleted_at.is_(None))

    def list_media(
        self,
        media_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
        sort: MediaSort = MediaSort.NEWEST,
    ) -> Tuple[List[Media], int]:
        query = self._active()
        if media_type and media_type.lower() != "all":
            try:
                query = query.filter(Media.type == MediaType(media_type.upper()))
            except ValueError:
                raise ValidationError(f"Unknown media type: {media_type}")
        if search:
            query = query.filter(
                or_(*(column.icontains(search, autoescape=True) for column in SEARCH_COLUMNS))
            )

        total = query.count()
        items = query.order_by(SORT_ORDERING[sort], Media.id).offset(offset).limit(limit).all()
        return items, total

    def stats_by_type(self) -> Dict[str, int]:
        """Count of every non-deleted media item per type, independent of list filters"""
        rows = (
            self.db.query(Media.type, func.count(Media.id))
            .filter(Media.deleted_at.is_(None))
            .group_by(Media.type)
            .all()
        )
        stats = {media_type.value: 0 for media_type in MediaType}
        for media_type, count in rows:
            stats[media_type.value] = count
        return stats

    def total_size(self) -> int:
        return self._active().with_entities(func.coalesce(func.sum(Media.size), 0)).scalar() or 0

    def get(self, media_id: str) -> Media:
        media = self._active().filter(Media.id == media_id).first()
        if not media:
            raise NotFound("Media not found")
        return media

    def update(self, media_id: str, media_in: MediaUpdate) -> Media:
        update_data = media_in.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No fields to update. Allowed: alt, caption, title, description")

        media = self.get(media_id)
        for field, value in update_data.items():
            setattr(media, field, value)
        self.db.commit()
        self.db.refresh(media)
        logger.info(f"Updated media {media.id} fields={sorted(update_data)}")
        return media

    def delete(self, media_id: str) -> Media:
        """Remove the stored object, then soft delete the row"""
        media = self.get(media_id)
        if media.path:
            try:
                if not self.storage.delete(media.path):
                    logger.warning(f"Stored object for media {media.id} was not deleted: {media.path}")
            except Exception as e:
                logger.error(f"Failed to delete stored object for media {media.id}: {str(e)}")

        media.deleted_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Soft deleted media {media.id}")
        return media

    def upload(
        self,
        content: bytes,
        original_name: str,
        mime_type: Optional[str],
        uploader_id: str,
        max_size: int,
    ) -> Media:
        """Validate, store and register an uploaded file"""
        if len(content) > max_size:
            raise ValidationError(f"File too large. Maximum: {max_size // (1024 * 1024)}MB")

        media_type = media_type_for(mime_type)
        if media_type is None:
            raise ValidationError(f"Unsupported file type: {mime_type or 'unknown'}")

        file_name = self.storage.unique_filename(original_name)
        stored = self.storage.save(content, file_name, content_type=mime_type)

        media = Media(
            type=media_type,
            file_name=file_name,
            original_name=original_name,
            mime_type=mime_type,
            size=len(content),
            url=stored.url,
            path=stored.key,
            uploader_id=uploader_id,
        )
        self.db.add(media)
        self.db.commit()
        self.db.refresh(media)
        logger.info(f"Uploaded media {media.id} ({media_type.value}, {media.size} bytes) by {uploader_id}")
        return media
