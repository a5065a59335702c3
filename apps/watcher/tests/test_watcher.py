import asyncio

from clipcore.config import ClipboardWatcherSettings, OcrSettings
from clipcore.models.history import WindowSource
from clipservices.context import NullWindowResolver
from clipwatch.services import Watcher


class FixedResolver:
    def __init__(self, window):
        self.window = window

    def active_window(self):
        return self.window


def watcher_settings(tmp_path, **overrides) -> ClipboardWatcherSettings:
    values = {
        "poll_interval": 0.01,
        "paste_directory": tmp_path / "pastes",
        "capture_context": False,
        "context_interval": 0.01,
    }
    values.update(overrides)
    return ClipboardWatcherSettings().model_copy(update=values)


def ocr_off() -> OcrSettings:
    return OcrSettings().model_copy(update={"enabled": False})


async def test_watcher_captures_until_stopped(app_env):
    services = app_env.factory()
    try:
        app_env.clipboard.text = "captured by the watcher"
        watcher = Watcher(services, settings=watcher_settings(app_env.tmp_path), ocr_settings=ocr_off())
        assert watcher.context is None
        assert watcher.ocr.available is False

        stop = asyncio.Event()
        task = asyncio.create_task(watcher.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)
        assert [e.text for e in services.store.list()] == ["captured by the watcher"]
    finally:
        services.close()


async def test_context_is_attached_when_enabled(app_env):
    services = app_env.factory()
    try:
        window = WindowSource(app="Code", title="todo.md")
        app_env.clipboard.text = "with a source"
        watcher = Watcher(
            services,
            settings=watcher_settings(app_env.tmp_path, capture_context=True),
            ocr_settings=ocr_off(),
            resolver=FixedResolver(window),
        )
        assert watcher.context is not None

        stop = asyncio.Event()
        task = asyncio.create_task(watcher.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)
        assert services.store.list()[0].source == window
    finally:
        services.close()


def test_unsupported_platform_disables_context(app_env, caplog):
    services = app_env.factory()
    try:
        watcher = Watcher(
            services,
            settings=watcher_settings(app_env.tmp_path, capture_context=True),
            ocr_settings=ocr_off(),
            resolver=NullWindowResolver(),
        )
        assert watcher.context is None
        assert watcher.poller.context is None
        assert "Context capture is not supported" in caplog.text
    finally:
        services.close()
