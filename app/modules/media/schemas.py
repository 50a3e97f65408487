import enum
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from app.modules.media.models import MediaType


class MediaSort(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    SIZE_ASC = "size-asc"
    SIZE_DESC = "size-desc"


class Media(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: MediaType
    file_name: str
    original_name: str
    mime_type: Optional[str] = None
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    url: str
    path: Optional[str] = None
    alt: Optional[str] = None
    caption: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    uploader_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MediaUpdate(BaseModel):
    alt: Optional[str] = None
    caption: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class MediaListResponse(BaseModel):
    success: bool = True
    items: List[Media]
    total: int
    limit: int
    offset: int
    stats: Dict[str, int]


class MediaResponse(BaseModel):
    success: bool = True
    data: Media


class MediaDeleteResponse(BaseModel):
    success: bool = True
    message: str
