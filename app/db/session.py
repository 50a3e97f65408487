from typing import Generator
import logging

from fastapi import Request
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger("app")

# Base class for all SQLAlchemy models
Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one process.

    Built once by the application factory (or a script entry point) and shared
    through app.state; request handlers receive sessions via get_db().
    """

    def __init__(self, url: str, **engine_kwargs):
        if not url:
            logger.error("DATABASE_URL is not set or empty!")
            raise ValueError("DATABASE_URL environment variable is required")

        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)  # Check connection before using from pool
            engine_kwargs.setdefault("pool_recycle", 3600)   # Recycle connections after 1 hour

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        # Create session factory for database interactions
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> set:
        """Create missing tables and return the names of the new ones"""
        # Import models so they are registered on Base.metadata
        import app.db.base  # noqa: F401

        existing_tables = set(inspect(self.engine).get_table_names())
        Base.metadata.create_all(bind=self.engine)
        new_tables = set(inspect(self.engine).get_table_names()) - existing_tables
        if new_tables:
            logger.info(f"Created new tables: {new_tables}")
        return new_tables

    def dispose(self) -> None:
        self.engine.dispose()


# Database session dependency for FastAPI
def get_db(request: Request) -> Generator:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
