# region Docstring
"""
clipservices.capture
Service module turning clipboard changes into history entries.
Overview:
- CapturePoller samples the clipboard on a fixed interval. Each tick looks for an
    image first and falls back to text when there is none.
- Images are encoded to PNG and hashed in a worker thread. A new signature leads
    to a backing file, a thumbnail, an `image` entry and an OCR job.
- Text is stored unless it is empty, equal to the last text seen on the clipboard,
    or equal to the text of the newest history entry.
Contents:
- Service Classes:
    - CapturePoller:
        tick() performs one sampling step and returns a CaptureOutcome;
        run() repeats it until the stop event is set.
Design Notes:
- Dedup only compares against the last observation and the newest entry. The
    same value copied again later is stored again.
- A failed tick leaves the last-observed state untouched, so the value is retried
    once the clipboard changes. Each distinct error is logged once until a tick
    succeeds again.
- Image persistence is serialised by an asyncio.Lock so images arriving back to
    back are inserted in capture order.
- Store inserts run in a worker thread so the database write never blocks the loop.
- run() logs and survives any error escaping a tick; only the stop event ends it.
"""
# endregion
# region Imports
import asyncio
from datetime import datetime
from logging import Logger
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from clipcore import constants
from clipcore.models.history import ClipEntry, WindowSource
from clipcore.utils import MonotonicIdGenerator, get_time

from .clipboard import ClipboardBackend, read_image, read_text
from .context import ContextSampler
from .errors import ClipdeckError
from .history_store import HistoryStore
from .imaging import encode_png, image_signature, make_thumbnail, write_backing_file
from .models import CaptureOutcome
from .ocr import OcrEnricher


# endregion
# region Capture Poller
class CapturePoller:
    """
    Polls a clipboard backend and inserts new content into the history.

    Attributes:
        store (HistoryStore): Destination of captured entries.
        clipboard (ClipboardBackend): Clipboard to sample.
        image_directory (Path): Where backing files of image entries are written.
        thumbnail_dim (tuple[int, int]): Bounding box of previews.
        poll_interval (float): Seconds between ticks in run().
        last_image_signature (Optional[str]): Signature of the last stored image.
        last_text (Optional[str]): Last raw text observed on the clipboard.
    """

    def __init__(
        self,
        store: HistoryStore,
        clipboard: ClipboardBackend,
        logger: Logger,
        image_directory: Path,
        thumbnail_dim: tuple[int, int] = constants.THUMBNAIL_DIM,
        poll_interval: float = constants.DEFAULT_POLL_INTERVAL,
        id_generator: Optional[MonotonicIdGenerator] = None,
        clock: Callable[[], datetime] = get_time,
        context: Optional[ContextSampler] = None,
        ocr: Optional[OcrEnricher] = None,
    ) -> None:
        self.store = store
        self.clipboard = clipboard
        self.logger = logger.getChild(self.__class__.__name__)
        self.image_directory = Path(image_directory)
        self.thumbnail_dim = thumbnail_dim
        self.poll_interval = poll_interval
        self.id_generator = id_generator or MonotonicIdGenerator(clock=clock)
        self.id_generator.seed(store.max_id())
        self.clock = clock
        self.context = context
        self.ocr = ocr

        self.last_image_signature: Optional[str] = None
        self.last_text: Optional[str] = None
        self._last_error: Optional[str] = None
        self._image_lock = asyncio.Lock()

    # region Loop
    async def run(self, stop: asyncio.Event) -> None:
        """Tick every `poll_interval` seconds until ``stop`` is set."""
        self.logger.info(f"Watching the clipboard every {self.poll_interval}s")
        while not stop.is_set():
            try:
                await self.tick()
            except Exception as e:
                self._failed(f"Capture tick failed: {type(e).__name__}: {e}")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        self.logger.info("Clipboard watcher stopped")

    async def tick(self) -> CaptureOutcome:
        """One sampling step: image first, text otherwise."""
        image_read = await asyncio.to_thread(read_image, self.clipboard)
        if not image_read.ok:
            return self._failed(f"Clipboard image read failed: {image_read.error}")
        if image_read.image is not None:
            outcome = await self._capture_image(image_read.image)
        else:
            text_read = await asyncio.to_thread(read_text, self.clipboard)
            if not text_read.ok:
                return self._failed(f"Clipboard text read failed: {text_read.error}")
            outcome = await self._capture_text(text_read.text)
        if outcome.status != "failed":
            self._last_error = None
        return outcome

    # endregion
    # region Capture Paths
    async def _capture_image(self, image: Image.Image) -> CaptureOutcome:
        try:
            png_bytes = await asyncio.to_thread(encode_png, image)
            signature = image_signature(png_bytes)
        except Exception as e:
            return self._failed(f"Cannot encode clipboard image: {e}", kind="image")
        if signature == self.last_image_signature:
            return CaptureOutcome(status="duplicate", kind="image")

        async with self._image_lock:
            # another tick may have stored this image while we waited
            if signature == self.last_image_signature:
                return CaptureOutcome(status="duplicate", kind="image")

            entry_id = self.id_generator()
            try:
                path = await asyncio.to_thread(
                    write_backing_file, png_bytes, self.image_directory, entry_id
                )
                thumbnail = await asyncio.to_thread(make_thumbnail, image, self.thumbnail_dim)
            except Exception as e:
                return self._failed(f"Cannot store clipboard image: {e}", kind="image")

            entry = ClipEntry(
                id=entry_id,
                type="image",
                file_path=str(path),
                thumbnail=thumbnail,
                width=image.width,
                height=image.height,
                source=self._source(),
                ts=self.clock(),
            )
            try:
                await asyncio.to_thread(self.store.insert, entry)
            except ClipdeckError as e:
                self._remove_orphan(path)
                return self._failed(f"Cannot insert image entry: {e}", kind="image")

            self.last_image_signature = signature
            self.logger.debug(f"Captured image {entry_id} ({entry.dimensions})")
            if self.ocr is not None:
                self.ocr.schedule(entry_id, path)
            return CaptureOutcome(status="inserted", kind="image", entry_id=entry_id)

    async def _capture_text(self, text: Optional[str]) -> CaptureOutcome:
        if text is None or not text.strip():
            return CaptureOutcome(status="empty")
        if text == self.last_text:
            return CaptureOutcome(status="duplicate", kind="text")
        newest = self.store.newest()
        if newest is not None and newest.type == "text" and newest.text == text:
            self.last_text = text
            return CaptureOutcome(status="duplicate", kind="text")

        entry = ClipEntry(
            id=self.id_generator(),
            type="text",
            text=text,
            source=self._source(),
            ts=self.clock(),
        )
        try:
            inserted = await asyncio.to_thread(self.store.insert, entry)
        except ClipdeckError as e:
            return self._failed(f"Cannot insert text entry: {e}", kind="text")

        self.last_text = text
        if not inserted:
            return CaptureOutcome(status="duplicate", kind="text")
        self.logger.debug(f"Captured text {entry.id} ({len(text)} chars)")
        return CaptureOutcome(status="inserted", kind="text", entry_id=entry.id)

    # endregion
    # region Helpers
    def _source(self) -> Optional[WindowSource]:
        return self.context.current() if self.context is not None else None

    def _failed(self, message: str, kind: Optional[str] = None) -> CaptureOutcome:
        if message != self._last_error:
            self.logger.error(message)
            self._last_error = message
        return CaptureOutcome(status="failed", kind=kind, message=message)

    def _remove_orphan(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Could not delete image file {path}: {e}")

    # endregion


# endregion
__all__ = ["CapturePoller"]
