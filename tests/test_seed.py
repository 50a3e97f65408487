from app.core.security import verify_password
from app.modules.categories.models.category import Category
from app.modules.tags.models.tag import Tag
from app.modules.user_management.models.user import User, UserRole
from conftest import make_settings
from init_db import seed


def test_seed_is_idempotent(db, tmp_path):
    settings = make_settings(tmp_path, INITIAL_ADMIN_PASSWORD="s3nha-inicial")

    admin = seed(db, settings)
    seed(db, settings)

    assert admin.role == UserRole.SUPER_ADMIN
    assert verify_password("s3nha-inicial", admin.password_hash)
    assert db.query(User).count() == 1
    assert [c.slug for c in db.query(Category).order_by(Category.order)] == [
        "noticias", "eventos", "institucional", "transparencia",
    ]
    assert db.query(Tag).count() == 5


def test_seed_generates_password_when_unset(db, tmp_path):
    admin = seed(db, make_settings(tmp_path, INITIAL_ADMIN_PASSWORD=None))
    assert admin.password_hash
    assert admin.email == "admin@asof.org.br"
