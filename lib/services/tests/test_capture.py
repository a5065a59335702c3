import asyncio
import logging
import threading
from pathlib import Path

import pytest
from PIL import Image

from clipcore.models.history import WindowSource
from clipcore.utils import epoch_ms
from clipservices.capture import CapturePoller
from clipservices.context import ContextSampler
from clipservices.history_store import HistoryStore
from clipservices.ocr import OcrEnricher


@pytest.fixture
def image_dir(tmp_path) -> Path:
    return tmp_path / "captured"


@pytest.fixture
def poller(store, clipboard, logger, image_dir, clock) -> CapturePoller:
    return CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)


def solid(color: str, size=(32, 16)) -> Image.Image:
    return Image.new("RGB", size, color)


# region Text
class TestTextCapture:
    async def test_new_text_is_inserted(self, poller, clipboard, store):
        clipboard.text = "hello"
        outcome = await poller.tick()
        assert outcome.status == "inserted"
        assert outcome.kind == "text"
        entry = store.get(outcome.entry_id)
        assert entry.text == "hello"
        assert entry.source is None

    async def test_consecutive_text_is_stored_once(self, poller, clipboard, store):
        clipboard.text = "hello"
        await poller.tick()
        outcome = await poller.tick()
        assert outcome.status == "duplicate"
        assert len(store) == 1

    async def test_repeated_text_after_other_is_stored_again(self, poller, clipboard, store):
        for text in ["hello", "world", "hello"]:
            clipboard.text = text
            await poller.tick()
        assert [e.text for e in store.list()] == ["hello", "world", "hello"]

    async def test_text_equal_to_newest_entry_is_skipped(
        self, store, clipboard, logger, image_dir, clock, make_text
    ):
        store.insert(make_text(1, "already there"))
        poller = CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)
        clipboard.text = "already there"
        outcome = await poller.tick()
        assert outcome.status == "duplicate"
        assert len(store) == 1

    @pytest.mark.parametrize("text", [None, "", "   \n\t"])
    async def test_empty_text_is_ignored(self, poller, clipboard, store, text):
        clipboard.text = text
        outcome = await poller.tick()
        assert outcome.status == "empty"
        assert len(store) == 0

    async def test_ids_are_seeded_from_store(
        self, store, clipboard, logger, image_dir, clock, make_text
    ):
        far_future = epoch_ms(clock.now) + 10_000_000
        store.insert(make_text(far_future, "from a previous run"))
        poller = CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)
        clipboard.text = "new"
        outcome = await poller.tick()
        assert outcome.entry_id == far_future + 1


# endregion
# region Images
class TestImageCapture:
    async def test_image_is_inserted_with_file_and_thumbnail(
        self, poller, clipboard, store, image_dir
    ):
        clipboard.image = solid("blue", (640, 320))
        clipboard.text = "ignored while an image is present"
        outcome = await poller.tick()
        assert outcome.status == "inserted"
        assert outcome.kind == "image"

        entry = store.get(outcome.entry_id)
        assert entry.type == "image"
        assert (entry.width, entry.height) == (640, 320)
        assert Path(entry.file_path) == image_dir / f"{entry.id}.png"
        assert Path(entry.file_path).exists()
        assert entry.thumbnail.startswith("data:image/png;base64,")
        assert len(store) == 1

    async def test_image_dedup_sequence(self, poller, clipboard, store):
        a, b = solid("red"), solid("green")
        statuses = []
        for image in [a, a.copy(), b, a]:
            clipboard.image = image
            statuses.append((await poller.tick()).status)
        assert statuses == ["inserted", "duplicate", "inserted", "inserted"]
        assert len(store) == 3

    async def test_zero_size_image_falls_back_to_text(self, poller, clipboard, store):
        clipboard.image = Image.new("RGB", (0, 0))
        clipboard.text = "fallback"
        outcome = await poller.tick()
        assert outcome.kind == "text"
        assert store.get(outcome.entry_id).text == "fallback"

    async def test_concurrent_ticks_store_one_image(self, poller, clipboard, store):
        clipboard.image = solid("purple")
        outcomes = await asyncio.gather(poller.tick(), poller.tick())
        assert sorted(o.status for o in outcomes) == ["duplicate", "inserted"]
        assert len(store) == 1

    async def test_back_to_back_images_keep_capture_order(self, poller, clipboard, store):
        clipboard.image = solid("red")
        first = await poller.tick()
        clipboard.image = solid("green")
        second = await poller.tick()
        assert [e.id for e in store.list()] == [second.entry_id, first.entry_id]
        assert second.entry_id > first.entry_id

    async def test_ocr_is_scheduled(
        self, store, clipboard, logger, image_dir, clock, make_ocr_engine
    ):
        engine = make_ocr_engine(text="Invoice 42")
        ocr = OcrEnricher(engine, store, logger)
        poller = CapturePoller(
            store, clipboard, logger, image_directory=image_dir, clock=clock, ocr=ocr
        )
        clipboard.image = solid("white")
        outcome = await poller.tick()
        await ocr.drain()
        assert store.get(outcome.entry_id).ocr_text == "Invoice 42"
        assert engine.calls == [image_dir / f"{outcome.entry_id}.png"]

    async def test_broken_ocr_engine_does_not_fail_capture(
        self, store, clipboard, logger, image_dir, clock, make_ocr_engine
    ):
        engine = make_ocr_engine()

        def broken_initialize():
            raise RuntimeError("bad tessdata")

        engine.initialize = broken_initialize
        ocr = OcrEnricher(engine, store, logger)
        poller = CapturePoller(
            store, clipboard, logger, image_directory=image_dir, clock=clock, ocr=ocr
        )
        clipboard.image = solid("navy")
        outcome = await poller.tick()
        await ocr.drain()
        assert outcome.status == "inserted"
        assert ocr.available is False
        assert engine.calls == []

        clipboard.image = solid("teal")
        assert (await poller.tick()).status == "inserted"
        assert len(store) == 2


# endregion
# region Context
class WindowStub:
    def __init__(self, window):
        self.window = window

    def active_window(self):
        return self.window


async def test_context_is_attached(store, clipboard, logger, image_dir, clock):
    window = WindowSource(app="Code", title="notes.md")
    sampler = ContextSampler(WindowStub(window), logger)
    poller = CapturePoller(
        store, clipboard, logger, image_directory=image_dir, clock=clock, context=sampler
    )
    clipboard.text = "with context"
    outcome = await poller.tick()
    assert store.get(outcome.entry_id).source == window


# endregion
# region Failures
class TestFailures:
    async def test_read_failure_keeps_state_and_logs_once(
        self, poller, clipboard, store, caplog
    ):
        clipboard.text = "hello"
        await poller.tick()
        clipboard.error = OSError("clipboard locked")
        with caplog.at_level(logging.ERROR):
            first = await poller.tick()
            second = await poller.tick()
        assert first.status == second.status == "failed"
        assert "clipboard locked" in first.message
        assert poller.last_text == "hello"
        assert len([r for r in caplog.records if "clipboard locked" in r.getMessage()]) == 1

        clipboard.error = None
        clipboard.text = "recovered"
        assert (await poller.tick()).status == "inserted"
        assert len(store) == 2

    async def test_error_is_logged_again_after_recovery(self, poller, clipboard, caplog):
        with caplog.at_level(logging.ERROR):
            clipboard.error = OSError("busy")
            await poller.tick()
            clipboard.error = None
            clipboard.text = "ok"
            await poller.tick()
            clipboard.error = OSError("busy")
            await poller.tick()
        assert len([r for r in caplog.records if "busy" in r.getMessage()]) == 2

    async def test_failed_image_insert_removes_file(
        self, make_repository, logger, clipboard, image_dir, clock
    ):
        repository = make_repository()
        store = HistoryStore(repository, logger)
        poller = CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)
        repository.fail = True
        clipboard.image = solid("orange")
        outcome = await poller.tick()
        assert outcome.status == "failed"
        assert poller.last_image_signature is None
        assert list(image_dir.glob("*.png")) == []

        repository.fail = False
        assert (await poller.tick()).status == "inserted"

    async def test_failed_text_insert_is_retried(
        self, make_repository, logger, clipboard, image_dir, clock
    ):
        repository = make_repository()
        store = HistoryStore(repository, logger)
        poller = CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)
        repository.fail = True
        clipboard.text = "important"
        assert (await poller.tick()).status == "failed"
        assert poller.last_text is None
        repository.fail = False
        assert (await poller.tick()).status == "inserted"


# endregion
# region Loop
async def test_run_stops_on_event(poller, clipboard, store):
    poller.poll_interval = 0.01
    clipboard.text = "loop"
    stop = asyncio.Event()
    task = asyncio.create_task(poller.run(stop))
    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(task, timeout=1)
    assert [e.text for e in store.list()] == ["loop"]


async def test_run_survives_unexpected_tick_error(poller, clipboard, store, caplog):
    poller.poll_interval = 0.01
    clipboard.text = "after the error"
    tick = poller.tick
    calls = []

    async def flaky_tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("thumbnail cache corrupted")
        return await tick()

    poller.tick = flaky_tick
    stop = asyncio.Event()
    with caplog.at_level(logging.ERROR):
        task = asyncio.create_task(poller.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)
    assert len(calls) > 1
    assert [e.text for e in store.list()] == ["after the error"]
    assert "Capture tick failed: RuntimeError: thumbnail cache corrupted" in caplog.text


async def test_store_writes_run_off_the_loop(
    make_repository, logger, clipboard, image_dir, clock
):
    repository = make_repository()
    apply = repository.apply
    threads = []

    def recording_apply(mutation):
        threads.append(threading.get_ident())
        return apply(mutation)

    repository.apply = recording_apply
    store = HistoryStore(repository, logger)
    poller = CapturePoller(store, clipboard, logger, image_directory=image_dir, clock=clock)
    clipboard.text = "off the loop"
    assert (await poller.tick()).status == "inserted"
    clipboard.image = solid("olive")
    assert (await poller.tick()).status == "inserted"
    assert len(threads) == 2
    assert threading.get_ident() not in threads


# endregion
