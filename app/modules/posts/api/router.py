from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db.session import get_db
from app.deps import get_current_session, require_publisher
from app.modules.auth.schemas.auth import AuthSession
from app.modules.posts.models.post import ContentStatus
from app.modules.posts.schemas.post import (
    AdminPostListResponse,
    MessageResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostSortField,
    PostUpdate,
    PostWithRelatedResponse,
    SortOrder,
)
from app.modules.posts.services.post import (
    create_post,
    get_admin_posts,
    get_post,
    get_published_post_by_slug,
    get_published_posts,
    get_related_posts,
    pagination,
    soft_delete_post,
    update_post,
)

logger = logging.getLogger(__name__)

# Keeps (page - 1) * limit inside the database offset range
MAX_PAGE = 10_000

router = APIRouter(prefix="")


@router.get("/", response_model=PostListResponse)
@router.get("", response_model=PostListResponse, include_in_schema=False)
def read_posts(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = Query(None),
    featured: bool = Query(False),
) -> Any:
    """
    Published posts for the public website, newest first.
    """
    posts, total = get_published_posts(db, page=page, limit=limit, category=category, featured=featured)
    return {"success": True, "data": posts, "pagination": pagination(page, limit, total)}


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_new_post(
    *,
    db: Session = Depends(get_db),
    post_in: PostCreate,
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Create new post. Authors may only create drafts or submit for review.
    """
    post = create_post(db, post_in, auth)
    return {"success": True, "data": post}


@router.get("/admin", response_model=AdminPostListResponse)
def read_admin_posts(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    post_status: Optional[ContentStatus] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    sort_by: PostSortField = Query(PostSortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    auth: AuthSession = Depends(require_publisher),
) -> Any:
    """
    All posts, drafts included, for the admin panel.
    """
    posts, total = get_admin_posts(
        db,
        page=page,
        limit=limit,
        search=search,
        status=post_status,
        category_id=category_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {"success": True, "data": posts, "pagination": pagination(page, limit, total)}


@router.get("/by-slug/{slug}", response_model=PostResponse)
def read_post_by_slug(slug: str, db: Session = Depends(get_db)) -> Any:
    post = get_published_post_by_slug(db, slug)
    return {"success": True, "data": post}


@router.get("/slug/{slug}", response_model=PostWithRelatedResponse)
def read_post_with_related(slug: str, db: Session = Depends(get_db)) -> Any:
    """
    Published post plus up to three recent posts of the same category.
    """
    post = get_published_post_by_slug(db, slug)
    related = get_related_posts(db, post)
    return {"success": True, "data": {"post": post, "related_posts": related}}


@router.get("/{post_id}", response_model=PostResponse)
def read_post(
    post_id: str,
    db: Session = Depends(get_db),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Get post by ID, whatever its status.
    """
    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    return {"success": True, "data": post}


@router.put("/{post_id}", response_model=PostResponse)
def update_existing_post(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    post_in: PostUpdate,
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Update a post.
    """
    post = update_post(db, post_id, post_in, auth)
    return {"success": True, "data": post}


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_existing_post(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Soft delete a post.
    """
    soft_delete_post(db, post_id, auth)
    return {"success": True, "message": "Post deleted successfully"}
