from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.storage import R2Storage
from app.modules.auth.services.auth import ADMIN_ROLES
from app.modules.media.service import MediaService
from app.modules.posts.services.post import get_post_stats
from app.modules.user_management.models.user import User, UserStatus


def get_dashboard_stats(db: Session, storage: R2Storage) -> Dict[str, Any]:
    """Figures shown on the admin dashboard"""
    media_service = MediaService(db, storage)
    active_users = db.query(User).filter(User.deleted_at.is_(None), User.status == UserStatus.ACTIVE)
    return {
        "posts": get_post_stats(db),
        "media": {
            "total": sum(media_service.stats_by_type().values()),
            "total_size": media_service.total_size(),
        },
        "users": {
            "active": active_users.count(),
            "administrators": active_users.filter(User.role.in_(ADMIN_ROLES)).count(),
        },
    }
