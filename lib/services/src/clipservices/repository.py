# region Docstring
"""
clipservices.repository
Durable storage for the history list.
Overview:
- HistoryRepository is the persistence handle injected into the history store:
    load() returns every stored entry, apply() runs one read-modify-write of the
    stored history.
- SqlHistoryRepository keeps the history in the clip_entries table of a SQLite
    database through SQLAlchemy sessions from DatabaseSessionGenerator.
Design Notes:
- apply() reads the rows inside the same write transaction it commits, so a
    mutation always sees what other processes (a `clipdeck` CLI command next to a
    running `clipdeck watch`) committed before it. SQLite sessions start with
    BEGIN IMMEDIATE (see clipcore.database), which keeps two writers from
    interleaving between the read and the write.
- Only the rows that differ are written: changed entries are merged, removed ids
    are deleted. Untouched rows are never rewritten.
- On any database or OS error the transaction is rolled back and PersistenceError
    is raised. Exceptions raised by the mutation itself roll back and propagate
    unchanged.
- Rows that no longer validate are skipped on load and logged, so one bad row
    never hides the rest of the history.
"""
# endregion
# region Imports
from logging import Logger
from typing import Callable, Protocol

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clipcore.database import DatabaseSessionGenerator
from clipcore.models.history import ClipEntry, ClipEntryEntity

from .errors import PersistenceError
from .models import HistoryChange

Mutation = Callable[[list[ClipEntry]], list[ClipEntry]]


# endregion
# region Repository Protocol
class HistoryRepository(Protocol):
    def load(self) -> list[ClipEntry]: ...

    def apply(self, mutation: Mutation) -> HistoryChange: ...


# endregion
# region SQL Repository
class SqlHistoryRepository:
    """
    History persistence on SQLAlchemy.

    Attributes:
        db (DatabaseSessionGenerator): Session source for the history database.
        logger (Logger): Child logger named after the class.
    """

    def __init__(self, db: DatabaseSessionGenerator, logger: Logger) -> None:
        """
        Initializes the repository and creates the tables if needed.

        Args:
            db (DatabaseSessionGenerator): The database session generator.
            logger (Logger): The logger instance for logging.
        """
        self.db = db
        self.logger = logger.getChild(self.__class__.__name__)
        try:
            self.db.init_db()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Cannot initialise history database: {e}") from e

    def _read(self, session: Session) -> list[ClipEntry]:
        entries = []
        for entity in session.scalars(select(ClipEntryEntity)):
            try:
                entries.append(entity.model)
            except ValidationError as e:
                self.logger.warning(f"Skipping unreadable entry {entity.id}: {e}")
        return entries

    def load(self) -> list[ClipEntry]:
        """
        Reads every stored entry.

        Returns:
            list[ClipEntry]: Stored entries (order is not significant).

        Raises:
            PersistenceError: If the database cannot be read.
        """
        try:
            with self.db.get_session() as session:
                entries = self._read(session)
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Cannot read history: {e}") from e
        self.logger.debug(f"Loaded {len(entries)} entries")
        return entries

    def apply(self, mutation: Mutation) -> HistoryChange:
        """
        Runs ``mutation`` on the stored entries and writes the rows it changed.

        Arguments:
            mutation (Mutation): Receives the current entries, returns the new history.

        Returns:
            HistoryChange: The new history and the rows written.

        Raises:
            PersistenceError: If the transaction fails; nothing is written.
        """
        try:
            with self.db.get_session() as session, session.begin():
                current = self._read(session)
                change = HistoryChange.between(current, mutation(current))
                if change.removed:
                    session.execute(
                        delete(ClipEntryEntity).where(
                            ClipEntryEntity.id.in_([e.id for e in change.removed])
                        )
                    )
                for entry in change.upserted:
                    session.merge(entry.entity)
        except (SQLAlchemyError, OSError) as e:
            self.logger.error(f"Failed to persist history change: {e}")
            raise PersistenceError(f"Cannot write history: {e}") from e
        if change.changed:
            self.logger.debug(
                f"Wrote {len(change.upserted)} entries, deleted {len(change.removed)}"
            )
        return change


# endregion
__all__ = ["HistoryRepository", "Mutation", "SqlHistoryRepository"]
