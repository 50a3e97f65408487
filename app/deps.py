from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.storage import R2Storage
from app.db.session import get_db
from app.modules.auth.schemas.auth import AuthSession
from app.modules.auth.services.auth import validate_session
from app.modules.user_management.models.user import UserRole


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_registry(request: Request):
    return request.app.state.token_registry


def get_storage(request: Request) -> R2Storage:
    return request.app.state.storage


def get_session_token(request: Request) -> Optional[str]:
    """
    Dependency for reading the admin session cookie
    """
    return request.cookies.get(request.app.state.settings.AUTH_COOKIE_NAME)


def get_current_session(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(get_session_token),
) -> AuthSession:
    """
    Dependency for getting the current authenticated admin session
    """
    return validate_session(db, token)


def require_roles(*roles: UserRole) -> Callable[..., AuthSession]:
    """
    Dependency factory: authenticated session whose user holds one of roles
    """
    def dependency(
        db: Session = Depends(get_db),
        token: Optional[str] = Depends(get_session_token),
    ) -> AuthSession:
        return validate_session(db, token, require_roles=roles)

    return dependency


require_publisher = require_roles(UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.EDITOR)
