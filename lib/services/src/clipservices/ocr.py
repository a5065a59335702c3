# region Docstring
"""
clipservices.ocr
Asynchronous OCR enrichment of image entries.
Overview:
- OcrEngine is the recognition strategy. TesseractOcrEngine drives the tesseract
    binary through pytesseract.
- OcrEnricher runs one job per newly captured image, off the capture path, and
    hands the text to HistoryStore.enrich(), which re-reads the current history so
    results for entries deleted in the meantime are dropped.
Design Notes:
- The engine is initialised once in a worker thread, by start() or by the first job.
    Any failure (binary or language data missing, or an unexpected error) is
    logged once and enrichment stays disabled for the session.
- Per-image failures (unreadable file, engine error, timeout) are logged and
    skip only that entry.
- Jobs are bounded by a semaphore and a timeout. The timeout is also handed to
    tesseract so the subprocess is killed rather than left running in its thread. Running jobs are never cancelled when their
    entry is deleted.
"""
# endregion
# region Imports
import asyncio
from logging import Logger
from pathlib import Path
from typing import Optional, Protocol

import pytesseract
from PIL import Image

from clipcore.config import OcrSettings

from .errors import OcrUnavailableError
from .history_store import HistoryStore
from .models import OcrResult


# endregion
# region Engines
class OcrEngine(Protocol):
    def initialize(self) -> None: ...

    def recognize(self, image_path: Path) -> str: ...


class TesseractOcrEngine:
    """
    OCR through pytesseract.

    Attributes:
        language (str): Tesseract language code(s).
        tesseract_cmd (Optional[str]): Explicit path to the tesseract executable.
        timeout (float): Seconds before tesseract is killed; 0 disables the limit.
    """

    def __init__(
        self,
        language: str = "eng",
        tesseract_cmd: Optional[str] = None,
        timeout: float = 0,
    ) -> None:
        self.language = language
        self.tesseract_cmd = tesseract_cmd
        self.timeout = timeout

    def initialize(self) -> None:
        """
        Raises:
            OcrUnavailableError: If tesseract or the language data is missing.
        """
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            pytesseract.get_tesseract_version()
            languages = pytesseract.get_languages(config="")
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrUnavailableError(f"tesseract is not available: {e}") from e
        missing = [lang for lang in self.language.split("+") if lang not in languages]
        if missing:
            raise OcrUnavailableError(f"tesseract language data missing: {', '.join(missing)}")

    def recognize(self, image_path: Path) -> str:
        with Image.open(image_path) as img:
            return pytesseract.image_to_string(img, lang=self.language, timeout=self.timeout)


# endregion
# region Enricher
class OcrEnricher:
    """
    Schedules OCR jobs for image entries and stores their text.

    Attributes:
        engine (OcrEngine): Recognition strategy.
        store (HistoryStore): Destination of recognised text.
        timeout (float): Upper bound for one job in seconds.
        available (Optional[bool]): None until the engine was initialised, then
            whether it can be used.
    """

    def __init__(
        self,
        engine: OcrEngine,
        store: HistoryStore,
        logger: Logger,
        timeout: float = 30.0,
        max_concurrent: int = 1,
    ) -> None:
        self.engine = engine
        self.store = store
        self.logger = logger.getChild(self.__class__.__name__)
        self.timeout = timeout
        self.available: Optional[bool] = None
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._init_lock = asyncio.Lock()
        self._jobs: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls, settings: OcrSettings, store: HistoryStore, logger: Logger
    ) -> "OcrEnricher":
        enricher = cls(
            TesseractOcrEngine(
                settings.language, settings.tesseract_cmd, timeout=settings.timeout
            ),
            store,
            logger,
            timeout=settings.timeout,
            max_concurrent=settings.max_concurrent,
        )
        if not settings.enabled:
            enricher.available = False
        return enricher

    async def start(self) -> bool:
        """
        Initialises the engine in a worker thread, once.

        Returns:
            bool: Whether OCR can be used for this session.
        """
        async with self._init_lock:
            if self.available is None:
                self.available = await asyncio.to_thread(self._initialize)
        return self.available

    def _initialize(self) -> bool:
        try:
            self.engine.initialize()
        except OcrUnavailableError as e:
            self.logger.error(f"OCR disabled for this session: {e}")
            return False
        except Exception as e:
            self.logger.error(f"OCR disabled for this session: {type(e).__name__}: {e}")
            return False
        return True

    def schedule(self, entry_id: int, image_path: Path) -> Optional[asyncio.Task]:
        """
        Starts an OCR job for ``entry_id`` on the running event loop.

        Returns:
            Optional[asyncio.Task]: The job, or None once OCR is known to be disabled.
        """
        if self.available is False:
            return None
        task = asyncio.get_running_loop().create_task(self.run(entry_id, image_path))
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)
        return task

    async def run(self, entry_id: int, image_path: Path) -> OcrResult:
        """Recognises ``image_path`` and passes the text to the store."""
        if not await self.start():
            return OcrResult(entry_id=entry_id, success=False, message="OCR unavailable")
        async with self._semaphore:
            try:
                text = await asyncio.wait_for(
                    asyncio.to_thread(self.engine.recognize, image_path),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                message = f"OCR timed out after {self.timeout}s"
                self.logger.warning(f"Entry {entry_id}: {message}")
                return OcrResult(entry_id=entry_id, success=False, message=message)
            except Exception as e:
                message = f"OCR failed: {type(e).__name__}: {e}"
                self.logger.warning(f"Entry {entry_id}: {message}")
                return OcrResult(entry_id=entry_id, success=False, message=message)

        try:
            stored = await asyncio.to_thread(self.store.enrich, entry_id, text)
        except Exception as e:
            message = f"Could not store OCR text: {e}"
            self.logger.error(f"Entry {entry_id}: {message}")
            return OcrResult(entry_id=entry_id, success=False, text=text, message=message)

        if not stored:
            return OcrResult(
                entry_id=entry_id,
                success=False,
                text=text,
                message="entry gone or no text recognised",
            )
        self.logger.debug(f"Entry {entry_id}: stored {len(text)} OCR characters")
        return OcrResult(entry_id=entry_id, success=True, text=text, message="stored")

    async def drain(self) -> None:
        """Waits for every scheduled job."""
        while self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)


# endregion
__all__ = ["OcrEngine", "OcrEnricher", "TesseractOcrEngine"]
