import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import InsufficientPermission, NotFound, ValidationError
from app.core.text import reading_time, slugify
from app.modules.audit.models.audit_log import AuditAction
from app.modules.audit.services import audit
from app.modules.auth.schemas.auth import AuthSession
from app.modules.auth.services.auth import ADMIN_ROLES, can_delete_post, can_edit_post, can_publish
from app.modules.categories.models.category import Category
from app.modules.media.models import Media
from app.modules.posts.models.post import ContentStatus, Post
from app.modules.posts.schemas.post import PostCreate, PostSortField, PostUpdate, SortOrder
from app.modules.tags.models.tag import Tag
from app.modules.user_management.models.user import User

logger = logging.getLogger(__name__)

RELATED_POSTS_LIMIT = 3

SORT_COLUMNS = {
    PostSortField.CREATED_AT: Post.created_at,
    PostSortField.UPDATED_AT: Post.updated_at,
    PostSortField.PUBLISHED_AT: Post.published_at,
    PostSortField.TITLE: Post.title,
    PostSortField.VIEW_COUNT: Post.view_count,
}


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "pages": page_count(total, limit)}


def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get a non-deleted post by ID"""
    return db.query(Post).filter(Post.id == post_id, Post.deleted_at.is_(None)).first()


def get_published_posts(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    featured: bool = False,
) -> Tuple[List[Post], int]:
    """Published, non-deleted posts, newest first, optionally for one category slug"""
    logger.info(f"Getting published posts page={page}, limit={limit}, category={category}")
    query = db.query(Post).filter(
        Post.status == ContentStatus.PUBLISHED,
        Post.deleted_at.is_(None),
    )
    if category:
        query = query.join(Category, Post.category_id == Category.id).filter(Category.slug == category)
    if featured:
        query = query.filter(Post.is_featured.is_(True))

    total = query.count()
    posts = (
        query.order_by(Post.published_at.desc(), Post.created_at.desc(), Post.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return posts, total


def get_admin_posts(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[ContentStatus] = None,
    category_id: Optional[str] = None,
    sort_by: PostSortField = PostSortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> Tuple[List[Post], int]:
    """All non-deleted posts, drafts included, for the admin panel"""
    query = db.query(Post).filter(Post.deleted_at.is_(None))

    if search:
        # % and _ in the search text match literally
        query = query.filter(
            or_(Post.title.icontains(search, autoescape=True), Post.content.icontains(search, autoescape=True))
        )
    if status:
        query = query.filter(Post.status == status)
    if category_id:
        query = query.filter(Post.category_id == category_id)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == SortOrder.ASC else column.desc()

    total = query.count()
    posts = query.order_by(ordering, Post.id).offset((page - 1) * limit).limit(limit).all()
    return posts, total


def get_published_post_by_slug(db: Session, slug: str) -> Post:
    """
    Fetch a published post for public pages and count the view.

    Drafts, posts under review and soft-deleted posts are reported as missing.
    """
    post = db.query(Post).filter(Post.slug == slug, Post.deleted_at.is_(None)).first()
    if not post or post.status != ContentStatus.PUBLISHED:
        raise NotFound("Post not found")

    # Single UPDATE so concurrent readers never lose an increment
    db.query(Post).filter(Post.id == post.id).update(
        {Post.view_count: Post.view_count + 1, Post.updated_at: Post.updated_at},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(post)
    return post


def get_related_posts(db: Session, post: Post, limit: int = RELATED_POSTS_LIMIT) -> List[Post]:
    if not post.category_id:
        return []
    return (
        db.query(Post)
        .filter(
            Post.category_id == post.category_id,
            Post.status == ContentStatus.PUBLISHED,
            Post.deleted_at.is_(None),
            Post.id != post.id,
        )
        .order_by(Post.published_at.desc(), Post.id)
        .limit(limit)
        .all()
    )


def _slug_taken(db: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
    # Soft-deleted posts keep their slug, the unique index covers every row
    query = db.query(Post.id).filter(Post.slug == slug)
    if exclude_id:
        query = query.filter(Post.id != exclude_id)
    return query.first() is not None


def unique_slug(db: Session, base: str) -> str:
    """base, or base-2, base-3, ... whichever is free first"""
    candidate = base
    suffix = 2
    while _slug_taken(db, candidate):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def _explicit_slug(db: Session, value: str, exclude_id: Optional[str] = None) -> str:
    slug = slugify(value)
    if not slug:
        raise ValidationError("Slug must contain letters or digits")
    if _slug_taken(db, slug, exclude_id=exclude_id):
        raise ValidationError(f"Slug '{slug}' is already in use")
    return slug


def _load_tags(db: Session, tag_ids: List[str]) -> List[Tag]:
    wanted = set(tag_ids)
    if not wanted:
        return []
    tags = db.query(Tag).filter(Tag.id.in_(wanted), Tag.deleted_at.is_(None)).all()
    missing = wanted - {tag.id for tag in tags}
    if missing:
        raise ValidationError(f"Unknown tags: {', '.join(sorted(missing))}")
    return tags


def _check_category(db: Session, category_id: Optional[str]) -> None:
    if not category_id:
        return
    exists = db.query(Category.id).filter(Category.id == category_id, Category.deleted_at.is_(None)).first()
    if not exists:
        raise ValidationError("Category not found")


def _check_featured_image(db: Session, media_id: Optional[str]) -> None:
    if not media_id:
        return
    exists = db.query(Media.id).filter(Media.id == media_id, Media.deleted_at.is_(None)).first()
    if not exists:
        raise ValidationError("Featured image not found")


def _check_status(auth: AuthSession, status: Optional[ContentStatus]) -> None:
    if status == ContentStatus.DELETED:
        raise ValidationError("Use DELETE to remove a post")
    if status == ContentStatus.PUBLISHED and not can_publish(auth):
        raise InsufficientPermission("You are not allowed to publish posts. Submit the post for review.")


def _commit(db: Session, flush_only: bool = False) -> None:
    try:
        if flush_only:
            db.flush()
        else:
            db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Post write rejected by the database: {e.orig}")
        if "slug" in str(e.orig).lower():
            raise ValidationError("Slug is already in use") from e
        raise ValidationError("Post references missing or conflicting data") from e


def create_post(db: Session, post_in: PostCreate, auth: AuthSession) -> Post:
    """Create new post"""
    title = (post_in.title or "").strip()
    content = (post_in.content or "").strip()
    if not title or not content:
        raise ValidationError("Missing required fields: title, content")

    status = post_in.status or ContentStatus.DRAFT
    _check_status(auth, status)

    if post_in.slug:
        slug = _explicit_slug(db, post_in.slug)
    else:
        base = slugify(title)
        if not base:
            raise ValidationError("Title must contain letters or digits to build a slug")
        slug = unique_slug(db, base)

    author_id = auth.user_id
    if post_in.author_id and post_in.author_id != auth.user_id:
        if auth.role not in ADMIN_ROLES:
            raise InsufficientPermission("Only administrators can create posts for other authors")
        if not db.query(User.id).filter(User.id == post_in.author_id).first():
            raise ValidationError("Author not found")
        author_id = post_in.author_id

    _check_category(db, post_in.category_id)
    _check_featured_image(db, post_in.featured_image_id)

    published_at = post_in.published_at
    if status == ContentStatus.PUBLISHED and published_at is None:
        published_at = datetime.utcnow()

    logger.info(f"Creating post '{slug}' for author ID: {author_id}")
    post = Post(
        title=title,
        slug=slug,
        excerpt=post_in.excerpt,
        content=post_in.content,
        status=status,
        category_id=post_in.category_id,
        author_id=author_id,
        featured_image_id=post_in.featured_image_id,
        is_featured=post_in.is_featured,
        published_at=published_at,
        reading_time=reading_time(content),
        meta_title=post_in.meta_title,
        meta_description=post_in.meta_description,
    )
    if post_in.tag_ids:
        post.tags = _load_tags(db, post_in.tag_ids)

    db.add(post)
    _commit(db, flush_only=True)
    audit.record(db, AuditAction.CREATE, "Post", post.id, auth.user_id, f"Post created: {post.title}")
    _commit(db)
    db.refresh(post)
    return post


def update_post(db: Session, post_id: str, post_in: PostUpdate, auth: AuthSession) -> Post:
    """Update post"""
    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")

    if not can_edit_post(auth, post.author_id):
        raise InsufficientPermission("You are not allowed to edit this post")

    update_data = post_in.model_dump(exclude_unset=True)
    tag_ids = update_data.pop("tag_ids", None)

    for field in ("title", "content"):
        if field in update_data and not (update_data[field] or "").strip():
            raise ValidationError(f"{field} cannot be empty")
    for field in ("status", "is_featured"):
        if field in update_data and update_data[field] is None:
            del update_data[field]

    if "status" in update_data:
        _check_status(auth, update_data["status"])
    if "slug" in update_data:
        update_data["slug"] = _explicit_slug(db, update_data["slug"] or "", exclude_id=post.id)
    if "category_id" in update_data:
        _check_category(db, update_data["category_id"])
    if "featured_image_id" in update_data:
        _check_featured_image(db, update_data["featured_image_id"])

    logger.info(f"Updating post with ID: {post.id} fields={sorted(update_data)}")
    for field, value in update_data.items():
        setattr(post, field, value)

    if "content" in update_data:
        post.reading_time = reading_time(post.content)
    if post.status == ContentStatus.PUBLISHED and post.published_at is None:
        post.published_at = datetime.utcnow()
    if tag_ids is not None:
        post.tags = _load_tags(db, tag_ids)

    audit.record(db, AuditAction.UPDATE, "Post", post.id, auth.user_id, f"Post updated: {post.title}")
    _commit(db)
    db.refresh(post)
    return post


def soft_delete_post(db: Session, post_id: str, auth: AuthSession) -> Post:
    """
    Mark a post as deleted; the row stays for history and keeps its slug
    """
    if not can_delete_post(auth):
        raise InsufficientPermission("You are not allowed to delete posts")

    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")

    logger.info(f"Soft deleting post with ID: {post.id}")
    post.deleted_at = datetime.utcnow()
    post.status = ContentStatus.DELETED
    audit.record(db, AuditAction.DELETE, "Post", post.id, auth.user_id, f"Post deleted: {post.title}")
    db.commit()
    return post


def get_post_stats(db: Session) -> Dict[str, int]:
    """Counts of non-deleted posts per status"""
    rows = (
        db.query(Post.status, func.count(Post.id))
        .filter(Post.deleted_at.is_(None))
        .group_by(Post.status)
        .all()
    )
    by_status = {status.value: count for status, count in rows}
    return {
        "total": sum(by_status.values()),
        "published": by_status.get(ContentStatus.PUBLISHED.value, 0),
        "draft": by_status.get(ContentStatus.DRAFT.value, 0),
        "review": by_status.get(ContentStatus.REVIEW.value, 0),
        "archived": by_status.get(ContentStatus.ARCHIVED.value, 0),
    }
