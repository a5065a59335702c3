# region Docstring
"""
clipservices.history_store
The authoritative, ordered, size-bounded clipboard history.
Overview:
- HistoryStore owns the history of this process. Every other component works on
    snapshots returned by list() or asks the store to mutate.
- Invariants kept after every mutation:
    1. Entry ids are unique.
    2. Order is pinned first, then newest first (ties: higher id first).
    3. At most max_items entries; the tail of the order is evicted.
    4. Each image entry owns one backing file, removed when the entry leaves.
- Each mutation is a function of the *stored* history: the repository reads the
    latest rows, the store computes the new list from them and the repository writes
    the changed rows, all in one transaction. Edits made by another process (a CLI
    command next to the watcher) are therefore never overwritten by a stale copy.
Contents:
- HistoryStore:
    insert / update / remove / clear / list plus enrich (OCR results),
    subscribe (observer registration) and drain (wait for file cleanup).
Design Notes:
- Mutations are serialised by a lock and may be called from worker threads; the
    capture poller and the OCR enricher call them through asyncio.to_thread so the
    database round trip never runs on the event loop. Listeners are called on the
    thread that performed the mutation.
- A failed write leaves the previous list in place and raises PersistenceError;
    nothing is notified and no files are deleted.
- Backing files are deleted in a worker thread when called on the event loop and
    inline otherwise. Deletion errors are logged with the path and swallowed.
"""
# endregion
# region Imports
import asyncio
import threading
from logging import Logger
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from clipcore import constants
from clipcore.models.history import ClipEntry, EntryPatch
from clipcore.utils import truncate

from .errors import DuplicateEntryError, PersistenceError
from .models import HistoryChange
from .repository import HistoryRepository, Mutation

Listener = Callable[[list[ClipEntry]], None]


# endregion
# region Helpers
def order_entries(entries: Iterable[ClipEntry]) -> list[ClipEntry]:
    """Pinned first, then newest first; equal timestamps put the higher id first."""
    return sorted(entries, key=lambda e: (not e.pinned, -e.ts.timestamp(), -e.id))


def newest_entry(entries: Iterable[ClipEntry]) -> Optional[ClipEntry]:
    """Most recently captured entry, regardless of pin state."""
    return max(entries, key=lambda e: (e.ts, e.id), default=None)


# endregion
# region History Store
class HistoryStore:
    """
    Ordered clipboard history with dedup, eviction and persistence.

    Attributes:
        repository (HistoryRepository): Durable storage for the list.
        logger (Logger): Child logger named after the class.
        max_items (int): Size cap.
        max_ocr_chars (int): Cap applied to recognised text in enrich().
    """

    def __init__(
        self,
        repository: HistoryRepository,
        logger: Logger,
        max_items: int = constants.DEFAULT_MAX_ITEMS,
        max_ocr_chars: int = constants.MAX_OCR_CHARS,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        self.repository = repository
        self.logger = logger.getChild(self.__class__.__name__)
        self.max_items = max_items
        self.max_ocr_chars = max_ocr_chars
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task] = set()
        self._lock = threading.RLock()

        self._entries: list[ClipEntry] = order_entries(repository.load())
        if len(self._entries) > max_items:
            self.logger.info(
                f"Trimming loaded history from {len(self._entries)} to {max_items} entries"
            )
            self._mutate(self._trim)

    # region Queries
    def list(self) -> list[ClipEntry]:
        """Ordered snapshot of the history."""
        return [entry.model_copy(deep=True) for entry in self._entries]

    def get(self, entry_id: int) -> Optional[ClipEntry]:
        entry = self._find(self._entries, entry_id)
        return entry.model_copy(deep=True) if entry else None

    def newest(self) -> Optional[ClipEntry]:
        """Most recently captured entry, regardless of pin state."""
        entry = newest_entry(self._entries)
        return entry.model_copy(deep=True) if entry else None

    def max_id(self) -> int:
        return max((entry.id for entry in self._entries), default=0)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return any(entry.id == entry_id for entry in self._entries)

    # endregion
    # region Mutations
    def insert(self, entry: ClipEntry) -> bool:
        """
        Adds ``entry`` and evicts whatever falls beyond the cap.

        A text entry equal to the newest stored entry's text is not stored again.

        Returns:
            bool: False when the entry was skipped as a duplicate.

        Raises:
            DuplicateEntryError: If an entry with the same id exists.
            PersistenceError: If the new list cannot be saved.
        """
        skipped = False

        def add(current: list[ClipEntry]) -> list[ClipEntry]:
            nonlocal skipped
            if self._find(current, entry.id) is not None:
                raise DuplicateEntryError(f"Entry {entry.id} already exists")
            if entry.type == "text":
                newest = newest_entry(current)
                if newest is not None and newest.type == "text" and newest.text == entry.text:
                    skipped = True
                    return order_entries(current)
            return order_entries([entry.model_copy(deep=True), *current])[: self.max_items]

        change = self._mutate(add)
        if skipped:
            self.logger.debug(f"Skipping entry {entry.id}: same text as newest entry")
            return False
        if change.removed:
            self.logger.debug(
                f"Evicted {len(change.removed)} entries beyond cap {self.max_items}"
            )
        return True

    def update(self, entry_id: int, patch: Union[EntryPatch, dict]) -> None:
        """
        Shallow-merges ``patch`` into the entry. Unknown ids are ignored.

        Raises:
            PersistenceError: If the new list cannot be saved.
        """
        if isinstance(patch, dict):
            patch = EntryPatch.model_validate(patch)
        change = self._mutate(lambda current: self._patched(current, entry_id, patch))
        if not change.changed:
            self.logger.debug(f"Update of entry {entry_id} changed nothing")

    def remove(self, entry_id: int) -> None:
        """
        Deletes the entry (and its backing file). Unknown ids are ignored.

        Raises:
            PersistenceError: If the new list cannot be saved.
        """
        self._mutate(lambda current: [e for e in order_entries(current) if e.id != entry_id])

    def clear(self) -> None:
        """
        Deletes every entry and backing file.

        Raises:
            PersistenceError: If the empty list cannot be saved.
        """
        self._mutate(lambda current: [])

    def enrich(self, entry_id: int, recognized_text: Optional[str]) -> bool:
        """
        Attaches recognised text to an image entry.

        The entry is looked up in the stored history; if it has been deleted in the
        meantime the text is discarded.

        Returns:
            bool: True when ocr_text was stored.
        """
        text = (recognized_text or "").strip()
        if not text:
            return False
        patch = EntryPatch(ocr_text=truncate(text, self.max_ocr_chars))
        stored = False

        def attach(current: list[ClipEntry]) -> list[ClipEntry]:
            nonlocal stored
            target = self._find(current, entry_id)
            if target is None or target.type != "image":
                return order_entries(current)
            stored = True
            return self._patched(current, entry_id, patch)

        self._mutate(attach)
        if not stored:
            self.logger.debug(f"Discarding OCR text for missing entry {entry_id}")
        return stored

    def set_max_items(self, max_items: int) -> None:
        """Applies a new size cap, evicting immediately if needed."""
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        self.max_items = max_items
        if len(self._entries) > max_items:
            self._mutate(self._trim)

    # endregion
    # region Observers
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registers ``listener`` to receive the full list after each mutation.

        Returns:
            Callable[[], None]: Call to unsubscribe.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.list()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self.logger.exception("History listener failed")

    # endregion
    # region Internals
    @staticmethod
    def _find(entries: Iterable[ClipEntry], entry_id: int) -> Optional[ClipEntry]:
        for entry in entries:
            if entry.id == entry_id:
                return entry
        return None

    @staticmethod
    def _patched(
        current: List[ClipEntry], entry_id: int, patch: EntryPatch
    ) -> List[ClipEntry]:
        return order_entries(patch.apply(e) if e.id == entry_id else e for e in current)

    def _trim(self, current: List[ClipEntry]) -> List[ClipEntry]:
        return order_entries(current)[: self.max_items]

    def _mutate(self, mutation: Mutation) -> HistoryChange:
        with self._lock:
            try:
                change = self.repository.apply(mutation)
            except (PersistenceError, DuplicateEntryError):
                raise
            except Exception as e:
                raise PersistenceError(f"Cannot write history: {e}") from e
            self._entries = change.entries
            if not change.changed:
                return change
            self._discard_files(change.removed)
            self._notify()
            return change

    def _discard_files(self, removed: Iterable[ClipEntry]) -> None:
        paths = [Path(e.file_path) for e in removed if e.type == "image" and e.file_path]
        if not paths:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        for path in paths:
            if loop is None:
                self._unlink(path)
                continue
            task = loop.create_task(asyncio.to_thread(self._unlink, path))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def _unlink(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Could not delete image file {path}: {e}")

    async def drain(self) -> None:
        """Waits for background file deletions to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # endregion


# endregion
__all__ = ["HistoryStore", "Listener", "newest_entry", "order_entries"]
