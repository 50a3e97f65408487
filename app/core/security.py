# Implements security-related functionality:
# Opaque session token generation for the admin cookie
# Password hashing and verification using bcrypt
# Provides core security functions used by the authentication module

from datetime import datetime, timedelta
import secrets
import string
import logging

from passlib.context import CryptContext

logger = logging.getLogger("app")

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def generate_session_token() -> str:
    # 256-bit random token, hex encoded
    return secrets.token_hex(32)


def session_expiry(max_age_seconds: int, now: datetime = None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(seconds=max_age_seconds)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.warning(f"Password hash could not be verified: {e}")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_strong_password(length: int = 16) -> str:
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    password = ''.join(secrets.choice(alphabet) for _ in range(length))
    return password
