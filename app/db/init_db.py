import logging

from alembic.config import Config
from alembic import command

from app.db.session import Database

logger = logging.getLogger(__name__)


def init_db(alembic_ini: str = "alembic.ini") -> None:
    """
    Initialize the database by running Alembic migrations.
    """
    try:
        alembic_cfg = Config(alembic_ini)
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations applied successfully")
    except Exception as e:
        logger.error(f"Error applying database migrations: {e}")
        raise


def create_all_tables(database: Database) -> bool:
    try:
        database.create_all()
        return True
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        return False
