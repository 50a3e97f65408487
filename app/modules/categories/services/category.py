import logging
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.categories.models.category import Category
from app.modules.posts.models.post import ContentStatus, Post

logger = logging.getLogger(__name__)


def get_visible_categories(db: Session) -> List[Category]:
    """Visible, non-deleted categories in display order"""
    return (
        db.query(Category)
        .filter(Category.is_visible.is_(True), Category.deleted_at.is_(None))
        .order_by(Category.order.asc(), Category.name.asc())
        .all()
    )


def get_published_post_counts(db: Session) -> Dict[str, int]:
    rows = (
        db.query(Post.category_id, func.count(Post.id))
        .filter(
            Post.status == ContentStatus.PUBLISHED,
            Post.deleted_at.is_(None),
            Post.category_id.isnot(None),
        )
        .group_by(Post.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}
