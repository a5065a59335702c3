import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from clipcore.database import DatabaseSessionGenerator
from clipcore.models.history import ClipEntry
from clipservices.errors import OcrUnavailableError, PersistenceError
from clipservices.history_store import HistoryStore
from clipservices.models import HistoryChange
from clipservices.repository import SqlHistoryRepository

BASE_TS = datetime(2024, 5, 31, 16, 0, 0, tzinfo=timezone.utc)


# region Fakes
class MemoryRepository:
    """HistoryRepository kept in memory; set ``fail`` to make writes raise."""

    def __init__(self, entries=()):
        self.stored = [e.model_copy(deep=True) for e in entries]
        self.saves = 0
        self.fail = False

    def load(self):
        return [e.model_copy(deep=True) for e in self.stored]

    def apply(self, mutation):
        change = HistoryChange.between(self.load(), mutation(self.load()))
        if change.changed:
            if self.fail:
                raise PersistenceError("disk full")
            self.saves += 1
            self.stored = [e.model_copy(deep=True) for e in change.entries]
        return change


class FakeClipboard:
    """ClipboardBackend whose content is set by the test."""

    def __init__(self):
        self.image: Optional[Image.Image] = None
        self.text: Optional[str] = None
        self.error: Optional[Exception] = None
        self.written_text: list[str] = []
        self.written_images: list[Path] = []

    def read_image(self):
        if self.error is not None:
            raise self.error
        return self.image

    def read_text(self):
        if self.error is not None:
            raise self.error
        return self.text

    def write_text(self, text):
        self.written_text.append(text)

    def write_image(self, path):
        self.written_images.append(path)


class FakeOcrEngine:
    """
    OcrEngine returning ``text`` for every image.

    ``gate`` (a threading.Event) holds recognition until released so a test can
    act while the job is in flight.
    """

    def __init__(self, text="recognised text", fail_init=False, error=None, gate=None):
        self.text = text
        self.fail_init = fail_init
        self.error = error
        self.gate = gate
        self.init_calls = 0
        self.calls: list[Path] = []

    def initialize(self):
        self.init_calls += 1
        if self.fail_init:
            raise OcrUnavailableError("language data missing")

    def recognize(self, image_path):
        self.calls.append(image_path)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.text


class Clock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TS):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


# endregion
# region Fixtures
@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests.clipservices")


@pytest.fixture
def db():
    """DatabaseSessionGenerator on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    generator = DatabaseSessionGenerator(engine=engine)
    yield generator
    generator.dispose()


@pytest.fixture
def sql_repository(db, logger) -> SqlHistoryRepository:
    return SqlHistoryRepository(db, logger)


@pytest.fixture
def memory_repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def store(memory_repository, logger) -> HistoryStore:
    return HistoryStore(memory_repository, logger, max_items=500)


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def gate():
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def make_text():
    def _make(entry_id: int, text: str, age: int = 0, pinned: bool = False) -> ClipEntry:
        return ClipEntry(
            id=entry_id,
            type="text",
            text=text,
            pinned=pinned,
            ts=BASE_TS - timedelta(seconds=age),
        )

    return _make


@pytest.fixture
def make_image(tmp_path):
    """Image entry with a real backing file under tmp_path."""

    def _make(entry_id: int, age: int = 0, pinned: bool = False) -> ClipEntry:
        path = tmp_path / "images" / f"{entry_id}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", (4, 4), "red").save(path)
        return ClipEntry(
            id=entry_id,
            type="image",
            file_path=str(path),
            width=4,
            height=4,
            pinned=pinned,
            ts=BASE_TS - timedelta(seconds=age),
        )

    return _make


@pytest.fixture
def make_ocr_engine():
    """FakeOcrEngine factory."""
    return FakeOcrEngine


@pytest.fixture
def make_repository():
    """MemoryRepository factory preloaded with entries."""
    return MemoryRepository


# endregion
