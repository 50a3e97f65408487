# Import all models here so Alembic and create_all can detect them
from app.db.session import Base

# Import all models below
from app.modules.user_management.models.user import User
from app.modules.auth.models.session import Session
from app.modules.categories.models.category import Category
from app.modules.tags.models.tag import Tag
from app.modules.media.models import Media
from app.modules.posts.models.post import Post, PostTag
from app.modules.audit.models.audit_log import AuditLog
