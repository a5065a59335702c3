"""
clipcore.database

Shared SQLAlchemy declarative base and session management for ORM model definitions.

Overview:
- Provides a single `declarative_base()` instance (`Base`) to be inherited by all
    SQLAlchemy ORM entity classes.
- Includes a utility class for generating SQLAlchemy sessions bound to the history
    database.

Contents:
- Base:
    Singleton `declarative_base` instance. ClipEntryEntity inherits from it.

- DatabaseSessionGenerator:
    Utility class to generate SQLAlchemy sessions bound to a specific engine.
    - __init__(database_url, engine=None):
        Initializes the engine from the URL unless an engine is supplied.
    - from_settings(settings: HistorySettings):
        Builds a generator for the configured SQLite file, creating its directory.
    - get_session() -> Session:
        Creates a new synchronous SQLAlchemy session.
    - init_db():
        Creates all tables defined in the ORM models.

Design Notes:
- Centralizing the declarative base avoids circular import issues and ensures all
    models share the same MetaData instance.
- Passing a prebuilt engine lets tests run against an in-memory database
    with a StaticPool.
- SQLite transactions start with BEGIN IMMEDIATE instead of the driver's lazy
    BEGIN, so a read-modify-write holds the write lock from its first read. This
    is SQLAlchemy's documented pysqlite recipe (driver BEGIN disabled on connect,
    explicit BEGIN on the engine "begin" event).
"""

from typing import Optional

from sqlalchemy import engine as sa_engine
from sqlalchemy import event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from clipcore.config import HistorySettings


Base = declarative_base()
"""Singleton `declarative_base` instance for ORM models."""


def _disable_driver_begin(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


def _begin_immediate(conn) -> None:
    conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseSessionGenerator:
    """
    Utility class to generate SQLAlchemy sessions bound to a specific engine.

    Attributes:
        engine (sqlalchemy.engine.Engine): The SQLAlchemy engine to bind sessions to.
    """

    def __init__(
        self,
        database_url: str = "sqlite:///:memory:",
        engine: Optional[sa_engine.Engine] = None,
    ):
        self.engine = engine or sa_engine.create_engine(database_url)
        if self.engine.dialect.name == "sqlite" and not event.contains(
            self.engine, "begin", _begin_immediate
        ):
            event.listen(self.engine, "connect", _disable_driver_begin)
            event.listen(self.engine, "begin", _begin_immediate)
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: HistorySettings) -> "DatabaseSessionGenerator":
        """
        Creates a generator for the configured history database.

        Returns:
            DatabaseSessionGenerator: A generator bound to ``settings.database_url``.
        """
        settings.database_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(settings.database_url)

    def get_session(self) -> Session:
        """
        Creates a new SQLAlchemy session bound to the configured engine.

        Returns:
            sqlalchemy.orm.Session: A new session instance.
        """
        return self._session_factory()

    def init_db(self) -> None:
        """
        Initializes the database by creating all tables defined in the ORM models.
        """
        # Entities register themselves on import
        import clipcore.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
