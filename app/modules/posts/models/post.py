import enum
import uuid

from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class ContentStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class PostTag(Base):
    __tablename__ = "post_tags"

    post_id = Column(String, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)


class Post(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    status = Column(Enum(ContentStatus, name="content_status"), nullable=False, default=ContentStatus.DRAFT, index=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=True, index=True)
    author_id = Column(String, ForeignKey("users.id"), nullable=False)
    featured_image_id = Column(String, ForeignKey("media.id"), nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    reading_time = Column(Integer, nullable=True)
    meta_title = Column(String, nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True)

    author = relationship("User")
    category = relationship("Category")
    featured_image = relationship("Media")
    tags = relationship("Tag", secondary="post_tags", order_by="Tag.name")
