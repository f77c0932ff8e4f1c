"""Synchronous database service with SQLModel and SQLAlchemy 2.0.

The field cache never owns entity persistence. This service exists so the
read-through path can resolve an entity from its identifier on a cache miss.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional, Type

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from fieldcache.core.config import Settings
from fieldcache.core.logging import get_logger

logger = get_logger(__name__)


class Database:
    """Database service with SQLModel."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = None

    def startup(self):
        """Initialize database connection and create tables."""
        try:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
            logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

            url = self.settings.database_url
            if url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory SQLite must share one connection across sessions
                self.engine = create_engine(
                    url,
                    echo=self.settings.database_echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                self.engine = create_engine(url, echo=self.settings.database_echo)

            SQLModel.metadata.create_all(self.engine)
            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error("Database startup failed", error=str(e))
            raise

    def shutdown(self):
        """Close database connections."""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")

    @contextmanager
    def get_session(self):
        """Get database session."""
        if not self.engine:
            raise RuntimeError("Database not initialized")

        with Session(self.engine, expire_on_commit=False) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise

    def load(self, entity_type: Type[Any], identifier: Any) -> Optional[Any]:
        """Load an entity by primary key, None if the row does not exist."""
        with self.get_session() as session:
            return session.get(entity_type, identifier)
