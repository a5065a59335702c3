# region Docstring
"""
Service exceptions raised across the clipdeck service layer.
"""

# endregion
# region ServiceExceptions


class ClipdeckError(Exception):
    """Base class for clipdeck service errors."""

    pass


class PersistenceError(ClipdeckError):
    """The history could not be written to (or read from) durable storage."""

    pass


class DuplicateEntryError(ClipdeckError):
    """An entry with the same id already exists in the history."""

    pass


class OcrUnavailableError(ClipdeckError):
    """The OCR engine cannot run in this environment (missing binary or model)."""

    pass


class ClipboardUnavailableError(ClipdeckError):
    """The clipboard backend cannot be used in this environment."""

    pass


# endregion

__all__ = [
    "ClipboardUnavailableError",
    "ClipdeckError",
    "DuplicateEntryError",
    "OcrUnavailableError",
    "PersistenceError",
]
