import enum
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from app.modules.posts.models.post import ContentStatus


class PostSortField(str, enum.Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    PUBLISHED_AT = "publishedAt"
    TITLE = "title"
    VIEW_COUNT = "viewCount"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    color: Optional[str] = None


class TagSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    color: Optional[str] = None


class ImageSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    alt: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class PostCreate(BaseModel):
    # title and content are checked by the service so that a missing field is a 400
    title: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[ContentStatus] = None
    category_id: Optional[str] = None
    author_id: Optional[str] = None
    featured_image_id: Optional[str] = None
    is_featured: bool = False
    published_at: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    tag_ids: Optional[List[str]] = None


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[ContentStatus] = None
    category_id: Optional[str] = None
    featured_image_id: Optional[str] = None
    is_featured: Optional[bool] = None
    published_at: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    tag_ids: Optional[List[str]] = None


class _PostRelations(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    author: Optional[AuthorSummary] = None
    category: Optional[CategorySummary] = None
    featured_image: Optional[ImageSummary] = None
    tags: List[TagSummary] = []

    @field_validator("tags", mode="before")
    @classmethod
    def drop_deleted_tags(cls, v):
        return [tag for tag in (v or []) if getattr(tag, "deleted_at", None) is None]


class PostSummary(_PostRelations):
    """Post as shown in public listings"""
    id: str
    slug: str
    title: str
    excerpt: Optional[str] = None
    published_at: Optional[datetime] = None
    reading_time: Optional[int] = None
    view_count: int = 0
    is_featured: bool = False


class Post(_PostRelations):
    """Post model returned to client"""
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    status: ContentStatus
    category_id: Optional[str] = None
    author_id: str
    featured_image_id: Optional[str] = None
    is_featured: bool = False
    published_at: Optional[datetime] = None
    view_count: int = 0
    reading_time: Optional[int] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RelatedPost(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    excerpt: Optional[str] = None
    published_at: Optional[datetime] = None
    reading_time: Optional[int] = None
    category: Optional[CategorySummary] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostListResponse(BaseModel):
    success: bool = True
    data: List[PostSummary]
    pagination: Pagination


class AdminPostListResponse(BaseModel):
    success: bool = True
    data: List[Post]
    pagination: Pagination


class PostResponse(BaseModel):
    success: bool = True
    data: Post


class PostWithRelated(BaseModel):
    post: Post
    related_posts: List[RelatedPost]


class PostWithRelatedResponse(BaseModel):
    success: bool = True
    data: PostWithRelated


class MessageResponse(BaseModel):
    success: bool = True
    message: str
