import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

# Configure test environment before the application is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["EDGE_CONFIG"] = ""

from app.core.config import Settings
from app.core.security import generate_session_token, get_password_hash
from app.core.storage import R2Storage
from app.core.token_registry import TokenRegistryError
from app.db.session import Database
from app.main import create_app
from app.modules.audit.models.audit_log import AuditLog
from app.modules.auth.models.session import Session
from app.modules.user_management.models.user import User, UserRole, UserStatus

TEST_PASSWORD = "correct-horse-battery"


class FakeTokenRegistry:
    """In-memory stand-in for the Edge Config allow-list"""

    def __init__(self):
        self.tokens = set()
        self.fail = False

    def get_tokens(self):
        if self.fail:
            raise TokenRegistryError("registry unavailable")
        return set(self.tokens)

    def add_token(self, token):
        if self.fail:
            raise TokenRegistryError("registry unavailable")
        self.tokens.add(token)

    def remove_token(self, token):
        if self.fail:
            raise TokenRegistryError("registry unavailable")
        self.tokens.discard(token)


def entity_history(db, entity_type, entity_id):
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "ENVIRONMENT": "test",
        "EDGE_CONFIG": "",
        "UPLOAD_DIRECTORY": str(tmp_path / "uploads"),
        "BASE_URL": "http://testserver",
        "R2_ENDPOINT": "",
        "R2_ACCESS_KEY_ID": "",
        "R2_SECRET_ACCESS_KEY": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def database():
    database = Database("sqlite://", poolclass=StaticPool)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def registry():
    return FakeTokenRegistry()


@pytest.fixture
def storage(settings):
    return R2Storage(settings)


@pytest.fixture
def app(settings, database, registry, storage):
    return create_app(settings=settings, database=database, token_registry=registry, storage=storage)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=UserRole.ADMIN, status=UserStatus.ACTIVE, email=None, password=TEST_PASSWORD):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@asof.org.br",
            name=f"User {counter['n']}",
            password_hash=get_password_hash(password),
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_session(db, registry):
    def _make_session(user, expires_in=timedelta(days=1), register=True):
        session = Session(
            session_token=generate_session_token(),
            user_id=user.id,
            expires_at=datetime.utcnow() + expires_in,
        )
        db.add(session)
        db.commit()
        if register:
            registry.tokens.add(session.session_token)
        return session.session_token

    return _make_session


@pytest.fixture
def login_as(client, make_session, settings):
    """Put a fresh session cookie for user on the test client"""
    def _login_as(user, **kwargs):
        token = make_session(user, **kwargs)
        client.cookies.set(settings.AUTH_COOKIE_NAME, token)
        return token

    return _login_as
