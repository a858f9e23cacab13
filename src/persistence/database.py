"""Database connection and session management."""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.persistence.models import Base

logger = logging.getLogger(__name__)

# Columns added after the first release; created on older stores at startup.
_ADDED_COLUMNS = {
    "jobs": {
        "posted_at": "VARCHAR",
        "experience": "VARCHAR",
        "source": "VARCHAR DEFAULT 'greenhouse'",
    },
    "companies": {
        "source": "VARCHAR DEFAULT 'greenhouse'",
    },
}


def _build_engine(url: str) -> Engine:
    """Create SQLAlchemy engine with appropriate settings for the database backend."""
    if url.startswith("sqlite"):
        in_memory = url == "sqlite://" or ":memory:" in url
        kwargs = {"connect_args": {"check_same_thread": False}}
        if in_memory:
            # One shared connection so every session sees the same in-memory store
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=False, **kwargs)

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            # pysqlite defers BEGIN until the first DML, so a SAVEPOINT opened
            # before any write would start (and RELEASE would commit) the
            # outer transaction. Transactions are begun explicitly below.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    # PostgreSQL (or other server-based databases)
    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
    )


class Database:
    """Store handle: engine, session factory and one-time schema setup.

    Construct once per process and pass it to the components that need the
    store. Tables, additive migrations and the optional company seed run in
    the constructor.
    """

    def __init__(self, url: str, seed_file: Optional[Path] = None):
        self.url = url
        self.engine = _build_engine(url)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        self.init_db(seed_file)

    def init_db(self, seed_file: Optional[Path] = None) -> None:
        """Create tables, apply column migrations and seed companies."""
        Base.metadata.create_all(bind=self.engine)
        self._migrate_add_columns()
        if seed_file is not None:
            from src.persistence.seed import seed_companies

            with self.session() as session:
                seed_companies(session, seed_file)

    def _migrate_add_columns(self) -> None:
        """Add columns to tables created before those columns existed."""
        inspector = inspect(self.engine)
        table_names = set(inspector.get_table_names())

        # Inspect before opening the ALTER transaction: an in-memory store has
        # a single connection and cannot nest a second BEGIN on it.
        missing = []
        for table, columns in _ADDED_COLUMNS.items():
            if table not in table_names:
                continue
            existing = {col["name"] for col in inspector.get_columns(table)}
            missing.extend(
                (table, column, ddl) for column, ddl in columns.items() if column not in existing
            )
        if not missing:
            return

        with self.engine.begin() as conn:
            for table, column, ddl in missing:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
                logger.info("Added %s column to %s", column, table)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional session: commit on success, roll back and re-raise on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def session_direct(self) -> Session:
        """Get a database session directly (caller responsible for cleanup)."""
        return self._session_factory()

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"<Database {self.engine.url!r}>"
