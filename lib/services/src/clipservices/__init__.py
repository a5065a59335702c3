"""
clipdeck services package.

Stateful components of the clipboard history manager: the history store and its
SQL repository, the clipboard backend and capture poller, foreground-window
context sampling and OCR enrichment of image entries.
"""

from .capture import CapturePoller  # noqa: F401
from .clipboard import ClipboardBackend, SystemClipboard  # noqa: F401
from .context import ContextSampler, build_resolver  # noqa: F401
from .errors import (  # noqa: F401
    ClipboardUnavailableError,
    ClipdeckError,
    DuplicateEntryError,
    OcrUnavailableError,
    PersistenceError,
)
from .history_store import HistoryStore  # noqa: F401
from .models import CaptureOutcome, ClipboardRead, OcrResult  # noqa: F401
from .ocr import OcrEnricher, TesseractOcrEngine  # noqa: F401
from .repository import HistoryRepository, SqlHistoryRepository  # noqa: F401
