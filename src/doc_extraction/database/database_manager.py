"""Database manager for the document extraction application.

This module contains the DatabaseManager class for handling database
connections, session creation, and database initialization.
"""

from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import Config
from ..models import Base
from ..exceptions import PersistenceError

__all__ = ["DatabaseManager"]


class DatabaseManager:
    """Manages database connections and session creation.

    This class handles SQLAlchemy engine creation, database initialization,
    and provides methods for creating database sessions. It implements
    lazy initialization for better resource management.

    Attributes:
        database_url: SQLAlchemy database URL
        _engine: Cached SQLAlchemy engine instance
        _session_factory: Cached sessionmaker factory
    """

    def __init__(self, database_url: str = Config.DATABASE_URL) -> None:
        """Initialize DatabaseManager with database URL.

        Args:
            database_url: SQLAlchemy database URL string
        """
        self.database_url: str = database_url
        self._engine: Optional[Any] = None
        self._session_factory: Optional[Any] = None

    @property
    def engine(self) -> Any:
        """Get or create SQLAlchemy engine with lazy initialization.

        SQLite URLs get a connection timeout and cross-thread access,
        since repositories are called from worker threads, and enforce
        foreign keys on every connection. In-memory SQLite additionally
        shares a single connection.

        Returns:
            SQLAlchemy engine instance

        Raises:
            PersistenceError: If engine creation or database initialization fails
        """
        if self._engine is None:
            try:
                engine = create_engine(self.database_url, echo=False, **self._engine_options())
                if engine.dialect.name == "sqlite":
                    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
                self._engine = engine
                Base.metadata.create_all(self._engine)
            except Exception as e:
                raise PersistenceError(f"Database initialization error: {str(e)}")
        return self._engine

    def create_session(self) -> Session:
        """Create a new database session.

        Sessions keep loaded attributes after commit so records can be
        built from rows once the transaction has ended.

        Returns:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory()

    def _engine_options(self) -> Dict[str, Any]:
        if not self.database_url.startswith("sqlite"):
            return {}
        options: Dict[str, Any] = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 20
            }
        }
        if self.database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """Turn on foreign key enforcement, which SQLite leaves off by default."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()
