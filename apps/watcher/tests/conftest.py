import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest
from PIL import Image
from rich.console import Console
from typer.testing import CliRunner

from clipcore.config import HistorySettings, SearchSettings
from clipcore.database import DatabaseSessionGenerator
from clipcore.models.history import ClipEntry
from clipwatch import cli
from clipwatch.services import build_services

BASE_TS = datetime(2024, 5, 31, 16, 0, 0, tzinfo=timezone.utc)


class RecordingClipboard:
    def __init__(self):
        self.image = None
        self.text = None
        self.written_text = []
        self.written_images = []

    def read_image(self):
        return self.image

    def read_text(self):
        return self.text

    def write_text(self, text):
        self.written_text.append(text)

    def write_image(self, path):
        self.written_images.append(Path(path))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def app_env(monkeypatch, tmp_path):
    """
    Points the CLI at a SQLite file under tmp_path and a recording clipboard.
    Each command builds fresh services on the same file, like separate runs.
    """
    clipboard = RecordingClipboard()
    url = f"sqlite:///{(tmp_path / 'history.db').as_posix()}"

    def factory():
        return build_services(
            history=HistorySettings(),
            search=SearchSettings(),
            clipboard=clipboard,
            db=DatabaseSessionGenerator(url),
            logger=logging.getLogger("tests.clipwatch"),
        )

    monkeypatch.setattr(cli, "build_services", factory)
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)
    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setattr(cli, "err_console", Console(width=200, stderr=True))
    return SimpleNamespace(clipboard=clipboard, factory=factory, tmp_path=tmp_path)


@pytest.fixture
def seed(app_env):
    """Insert entries through a separate services instance."""

    def _seed(*entries: ClipEntry) -> None:
        services = app_env.factory()
        try:
            for entry in entries:
                services.store.insert(entry)
        finally:
            services.close()

    return _seed


@pytest.fixture
def text_entry():
    def _make(entry_id: int, text: str, age: int = 0, **kwargs) -> ClipEntry:
        return ClipEntry(
            id=entry_id, type="text", text=text, ts=BASE_TS - timedelta(seconds=age), **kwargs
        )

    return _make


@pytest.fixture
def image_entry(tmp_path):
    def _make(entry_id: int, age: int = 0, **kwargs) -> ClipEntry:
        path = tmp_path / "images" / f"{entry_id}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", (8, 4), "navy").save(path)
        return ClipEntry(
            id=entry_id,
            type="image",
            file_path=str(path),
            width=8,
            height=4,
            ts=BASE_TS - timedelta(seconds=age),
            **kwargs,
        )

    return _make
