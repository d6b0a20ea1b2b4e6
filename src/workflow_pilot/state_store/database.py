"""Database connection manager for the State Store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workflow_pilot.state_store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

IN_MEMORY = ":memory:"

# Wait for a competing writer instead of failing with "database is locked"
BUSY_TIMEOUT_MS = 5000


class Database:
    """SQLite connection manager for the project store.

    Every connection runs in WAL mode with foreign keys enforced and a busy
    timeout, so the API server and the autopilot loop can share one file.
    """

    def __init__(
        self, db_path: str = "workflow_pilot.db", busy_timeout_ms: int = BUSY_TIMEOUT_MS
    ) -> None:
        """Initialize the manager. The engine is created on first use.

        Args:
            db_path: SQLite file path, or ":memory:".
            busy_timeout_ms: How long a write waits on another process's lock.
        """
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_engine(self._url(), **self._engine_options())

            # Per-connection settings; SQLite does not persist them in the file
            @event.listens_for(self._engine, "connect")
            def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")
                cursor.close()

        return self._engine

    def _url(self) -> str:
        if self.db_path == IN_MEMORY:
            return "sqlite:///:memory:"
        # A fresh install points at a data directory that may not exist yet
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{self.db_path}"

    def _engine_options(self) -> dict[str, Any]:
        if self.db_path != IN_MEMORY:
            return {}
        # One shared connection, usable from the TestClient's worker threads
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            # Returned rows stay readable after the session commits and closes
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory

    def create_tables(self) -> None:
        """Create the projects and events tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            A session bound to this database. The caller closes it.
        """
        return self.session_factory()

    def is_wal_mode(self) -> bool:
        """Check whether connections run in WAL journal mode.

        Returns:
            True if WAL mode is enabled.
        """
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def close(self) -> None:
        """Dispose of the engine. The next access creates a new one."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
