"""
Database initialization script.
Creates all tables and optionally seeds the initial admin, categories and tags.
Run this as: python init_db.py [--seed]
"""

import argparse
import logging
import sys

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.security import generate_strong_password, get_password_hash
from app.db.init_db import init_db as run_migrations
from app.db.session import Database
from app.modules.categories.models.category import Category
from app.modules.tags.models.tag import Tag
from app.modules.user_management.models.user import User, UserRole, UserStatus

DEFAULT_CATEGORIES = [
    {"name": "Notícias", "slug": "noticias", "description": "Notícias e atualizações sobre a ASOF e a carreira diplomática", "color": "#2563eb", "icon": "newspaper", "order": 1},
    {"name": "Eventos", "slug": "eventos", "description": "Eventos, palestras e atividades da ASOF", "color": "#7c3aed", "icon": "calendar", "order": 2},
    {"name": "Institucional", "slug": "institucional", "description": "Informações institucionais sobre a ASOF", "color": "#059669", "icon": "building", "order": 3},
    {"name": "Transparência", "slug": "transparencia", "description": "Documentos de transparência e prestação de contas", "color": "#dc2626", "icon": "file-text", "order": 4},
]

DEFAULT_TAGS = [
    {"name": "Diplomacia", "slug": "diplomacia", "color": "#3b82f6"},
    {"name": "Carreira", "slug": "carreira", "color": "#8b5cf6"},
    {"name": "Benefícios", "slug": "beneficios", "color": "#10b981"},
    {"name": "Associação", "slug": "associacao", "color": "#f59e0b"},
    {"name": "Direitos", "slug": "direitos", "color": "#ef4444"},
]


def seed(db: Session, settings: Settings) -> User:
    """Insert the initial super admin, categories and tags; existing rows are left alone"""
    admin = db.query(User).filter(User.email == settings.INITIAL_ADMIN_EMAIL).first()
    if not admin:
        password = settings.INITIAL_ADMIN_PASSWORD
        if not password:
            password = generate_strong_password()
            logger.warning("INITIAL_ADMIN_PASSWORD not set, generated a random password for the super admin")
            logger.warning(f"  Email: {settings.INITIAL_ADMIN_EMAIL}")
            logger.warning(f"  Password: {password}")
            logger.warning("  Change it after the first login")
        admin = User(
            email=settings.INITIAL_ADMIN_EMAIL,
            name="Administrador ASOF",
            password_hash=get_password_hash(password),
            role=UserRole.SUPER_ADMIN,
            status=UserStatus.ACTIVE,
        )
        db.add(admin)
        db.flush()
        logger.info(f"Created super admin {admin.email}")

    for data in DEFAULT_CATEGORIES:
        if not db.query(Category).filter(Category.slug == data["slug"]).first():
            db.add(Category(created_by_id=admin.id, is_visible=True, **data))
            logger.info(f"Created category {data['slug']}")

    for data in DEFAULT_TAGS:
        if not db.query(Tag).filter(Tag.slug == data["slug"]).first():
            db.add(Tag(**data))
            logger.info(f"Created tag {data['slug']}")

    db.commit()
    return admin


def init_db(with_seed: bool = False, migrate: bool = False) -> bool:
    """Initialize the database by creating all tables, or through Alembic with migrate."""
    database = Database(settings.DATABASE_URL)
    try:
        if migrate:
            run_migrations()
        else:
            new_tables = database.create_all()
            if new_tables:
                logger.info(f"Newly created tables: {new_tables}")
            else:
                logger.info("No new tables were created")

        if with_seed:
            db = database.session()
            try:
                seed(db, settings)
            finally:
                db.close()
        return True
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        return False
    finally:
        database.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the ASOF CMS database tables")
    parser.add_argument("--seed", action="store_true", help="Insert the initial admin, categories and tags")
    parser.add_argument("--migrate", action="store_true", help="Apply Alembic migrations instead of create_all")
    args = parser.parse_args()

    logger.info("Starting database initialization")
    success = init_db(with_seed=args.seed, migrate=args.migrate)
    if success:
        logger.info("Database initialization completed successfully")
    else:
        logger.error("Database initialization failed")
        sys.exit(1)
