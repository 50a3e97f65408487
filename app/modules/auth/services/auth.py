import enum
import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from app.core.config import Settings
from app.core.errors import (
    AccountInactive,
    AuthError,
    InsufficientPermission,
    InvalidCredentials,
    InvalidSession,
    SessionExpired,
    Unauthenticated,
    ValidationError,
)
from app.core.security import generate_session_token, session_expiry, verify_password
from app.core.token_registry import TokenRegistryError
from app.modules.auth.models.session import Session
from app.modules.auth.schemas.auth import AuthSession, UserProjection
from app.modules.user_management.models.user import User, UserRole, UserStatus

logger = logging.getLogger("app")

PUBLISHER_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.EDITOR)
ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN)


def get_session_by_token(db: DBSession, token: str) -> Optional[Session]:
    return db.query(Session).filter(Session.session_token == token).first()


def _delete_expired_session(db: DBSession, session: Session) -> None:
    try:
        db.delete(session)
        db.commit()
        logger.info(f"Deleted expired session for user {session.user_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete expired session for user {session.user_id}: {e}")


def validate_session(
    db: DBSession,
    token: Optional[str],
    require_roles: Optional[Iterable[UserRole]] = None,
) -> AuthSession:
    """
    Resolve a session token into an authenticated session.

    Raises Unauthenticated when no token is given, InvalidSession when no
    session matches, SessionExpired after deleting an expired session,
    AccountInactive when the user is not ACTIVE and InsufficientPermission when
    require_roles is given and does not contain the user's role.
    """
    if not token:
        raise Unauthenticated()

    session = get_session_by_token(db, token)
    if not session or not session.user:
        raise InvalidSession()

    if session.expires_at < datetime.utcnow():
        _delete_expired_session(db, session)
        raise SessionExpired()

    user = session.user
    if user.status != UserStatus.ACTIVE:
        raise AccountInactive()

    roles = list(require_roles or [])
    if roles and user.role not in roles:
        accepted = ", ".join(role.value for role in roles)
        raise InsufficientPermission(f"Access denied. Requires one of the following roles: {accepted}")

    return AuthSession(
        session_token=session.session_token,
        user_id=session.user_id,
        user=UserProjection.model_validate(user),
    )


def can_publish(auth: AuthSession) -> bool:
    return auth.role in PUBLISHER_ROLES


def can_edit_post(auth: AuthSession, post_author_id: str) -> bool:
    # Editors and above edit anything, authors only their own posts
    if auth.role in PUBLISHER_ROLES:
        return True
    return auth.role == UserRole.AUTHOR and auth.user_id == post_author_id


def can_delete_post(auth: AuthSession) -> bool:
    return auth.role in ADMIN_ROLES


class AccessDecision(str, enum.Enum):
    ALLOW = "allow"
    LOGIN = "login"
    LOGIN_CLEAR_COOKIE = "login_clear_cookie"


def _forget_token(token_registry, token: str) -> None:
    """Drop a token whose session no longer exists from the allow-list"""
    try:
        token_registry.remove_token(token)
        logger.info("Removed stale admin token from registry")
    except TokenRegistryError as e:
        logger.warning(f"Could not remove stale admin token from registry: {e}")


def check_admin_access(
    token: Optional[str],
    token_registry,
    settings: Settings,
    db: Optional[DBSession] = None,
) -> AccessDecision:
    """
    Decide whether a request may enter a protected admin area.

    The token must be in the registry allow-list and, when a db session is
    given, must also pass validate_session, so the edge check and the API
    handlers agree on which tokens are valid.
    """
    if not token:
        return AccessDecision.LOGIN

    try:
        valid_tokens = token_registry.get_tokens()
    except TokenRegistryError as e:
        if settings.is_production:
            logger.error(f"Token registry unavailable, denying admin access: {e}")
            return AccessDecision.LOGIN
        logger.warning(f"Token registry unavailable, allowing admin access outside production: {e}")
        return AccessDecision.ALLOW

    if token not in valid_tokens:
        logger.warning("Admin token not present in registry")
        return AccessDecision.LOGIN_CLEAR_COOKIE

    if db is not None:
        try:
            validate_session(db, token)
        except AuthError as e:
            logger.warning(f"Registry token rejected by session validation: {e.code}")
            if isinstance(e, (SessionExpired, InvalidSession)):
                _forget_token(token_registry, token)
            return AccessDecision.LOGIN_CLEAR_COOKIE

    return AccessDecision.ALLOW


def login(
    db: DBSession,
    email: Optional[str],
    password: Optional[str],
    settings: Settings,
    token_registry=None,
    user_agent: str = None,
    ip: str = None,
) -> Tuple[User, Session]:
    """Check credentials and open a new session"""
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = db.query(User).filter(User.email == email, User.deleted_at.is_(None)).first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for {email}")
        raise InvalidCredentials()

    if user.status != UserStatus.ACTIVE:
        raise AccountInactive()

    now = datetime.utcnow()
    session = Session(
        session_token=generate_session_token(),
        user_id=user.id,
        expires_at=session_expiry(settings.SESSION_MAX_AGE_SECONDS, now),
        user_agent=user_agent[:255] if user_agent else None,
        ip=ip,
    )
    user.last_login_at = now
    db.add(session)
    db.commit()
    db.refresh(session)

    if token_registry is not None:
        try:
            token_registry.add_token(session.session_token)
        except TokenRegistryError as e:
            logger.warning(f"Could not register admin token for {user.email}: {e}")

    logger.info(f"Login successful: {user.email}")
    return user, session


def logout(db: DBSession, token: Optional[str], token_registry=None) -> bool:
    """Close the session behind token; returns whether a session was removed"""
    if not token:
        return False

    removed = False
    session = get_session_by_token(db, token)
    if session:
        db.delete(session)
        db.commit()
        removed = True

    if token_registry is not None:
        try:
            token_registry.remove_token(token)
        except TokenRegistryError as e:
            logger.warning(f"Could not remove admin token from registry: {e}")

    return removed
