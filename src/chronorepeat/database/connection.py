"""Database connection and session management."""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from chronorepeat.config import settings
from chronorepeat.models import Base
import logging

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        self.database_url = database_url or settings.database_url
        self.echo = settings.database_echo if echo is None else echo
        self.engine = None
        self.SessionLocal = None

    def initialize(self):
        """Initialize database connection and create tables."""
        url = make_url(self.database_url)
        is_sqlite = url.get_backend_name() == "sqlite"
        is_memory = is_sqlite and (not url.database or url.database == ":memory:")

        # Ensure database directory exists for file-backed SQLite
        if is_sqlite and not is_memory:
            db_dir = Path(url.database).parent
            db_dir.mkdir(parents=True, exist_ok=True)

        # In-memory SQLite lives in one connection, so every session must share it
        connect_args = {"check_same_thread": False} if is_sqlite else {}
        engine_kwargs = {"poolclass": StaticPool} if is_memory else {}

        self.engine = create_engine(
            self.database_url,
            connect_args=connect_args,
            echo=self.echo,
            **engine_kwargs
        )

        # Create all tables
        Base.metadata.create_all(bind=self.engine)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

        logger.info(f"Database initialized at {url.render_as_string(hide_password=True)}")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session.

        The session commits when the block exits cleanly and rolls back
        (re-raising the error) otherwise.
        """
        if not self.SessionLocal:
            self.initialize()

        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close database connection."""
        if self.engine:
            self.engine.dispose()
            self.engine = None
            self.SessionLocal = None
            logger.info("Database connection closed")


# Global database manager instance
db_manager = DatabaseManager()
