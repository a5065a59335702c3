"""
clipcore.models.history
Package initialization for clipboard history persistence and domain models.
Contents:
- Entity Models:
    - ClipEntryEntity: SQLAlchemy row for one history entry.
- Domain Models:
    - ClipEntry, WindowSource, EntryPatch: Pydantic models for entries, their
        capture context and partial updates.
"""

from .clip_entry import (  # noqa: F401
    ClipEntry,
    ClipEntryEntity,
    EntryPatch,
    EntryType,
    WindowSource,
)


__entities__ = ["ClipEntryEntity"]
__models__ = ["ClipEntry", "EntryPatch", "EntryType", "WindowSource"]
__all__ = [*__entities__, *__models__]
