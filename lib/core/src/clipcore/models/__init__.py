# region Docstring
"""
clipcore.models
Centralized imports for all Pydantic models and SQLAlchemy entities of clipdeck.

Contents:
- History Models:
        - ClipEntry / ClipEntryEntity: one captured clipboard item
        - WindowSource: foreground window recorded at capture time
        - EntryPatch: partial update applied by the history store
- Search Models:
        - SearchFilter, ParsedQuery: structured form of a search string
        - RankedEntry: a scored search hit with highlight offsets

Exports:
- __entities__: SQLAlchemy entity class names
- __models__: Pydantic model class names
"""
# endregion
# region Imports
from .history import (  # noqa: F401
    ClipEntry,
    ClipEntryEntity,
    EntryPatch,
    EntryType,
    WindowSource,
)
from .search import ParsedQuery, RankedEntry, SearchFilter  # noqa: F401

# endregion

__entities__ = ["ClipEntryEntity"]
__models__ = [
    "ClipEntry",
    "EntryPatch",
    "EntryType",
    "ParsedQuery",
    "RankedEntry",
    "SearchFilter",
    "WindowSource",
]
__all__ = [*__entities__, *__models__]
