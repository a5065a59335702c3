"""
clipdeck core package.

This package contains the parts of clipdeck that have no side effects on the
operating system: configuration, the history entry models, the query parser and
the matching engine used for interactive search.

It leverages Pydantic for settings management and validation, supporting
multiple sources such as environment variables and YAML files.
"""

from . import constants  # noqa: F401
from .config import (  # noqa: F401
    AppSettings,
    ClipboardWatcherSettings,
    HistorySettings,
    OcrSettings,
    SearchSettings,
    get_settings,
)
