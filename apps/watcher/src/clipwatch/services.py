# region Docstring
"""
clipwatch.services
Wiring of the clipdeck components from settings.
Overview:
- build_services() opens the history database and builds the store, the search
    engine and the clipboard backend used by every CLI command.
- Watcher adds the long-running parts for `clipdeck watch`: the capture poller,
    the optional foreground-window sampler and OCR enrichment, and runs them on one
    event loop until stopped.
"""
# endregion
# region Imports
import asyncio
from logging import Logger
from typing import Optional

from clipcore.config import (
    ClipboardWatcherSettings,
    HistorySettings,
    OcrSettings,
    SearchSettings,
)
from clipcore.database import DatabaseSessionGenerator
from clipcore.search import SearchEngine
from clipservices import (
    CapturePoller,
    ClipboardBackend,
    ContextSampler,
    HistoryStore,
    OcrEnricher,
    SqlHistoryRepository,
    SystemClipboard,
    build_resolver,
)
from clipservices.context import NullWindowResolver, WindowResolver

from . import config
from .logger import logger as app_logger


# endregion
# region Services
class Services:
    """
    Components shared by the CLI commands.

    Attributes:
        db (DatabaseSessionGenerator): History database.
        store (HistoryStore): The loaded history.
        search (SearchEngine): Search bound to the search settings.
        clipboard (ClipboardBackend): Clipboard used for write-back and capture.
        logger (Logger): Application logger.
    """

    def __init__(
        self,
        db: DatabaseSessionGenerator,
        store: HistoryStore,
        search: SearchEngine,
        clipboard: ClipboardBackend,
        logger: Logger,
    ) -> None:
        self.db = db
        self.store = store
        self.search = search
        self.clipboard = clipboard
        self.logger = logger

    def close(self) -> None:
        self.db.dispose()


def build_services(
    history: Optional[HistorySettings] = None,
    search: Optional[SearchSettings] = None,
    clipboard: Optional[ClipboardBackend] = None,
    db: Optional[DatabaseSessionGenerator] = None,
    logger: Logger = app_logger,
) -> Services:
    """
    Build the shared components.

    Raises:
        PersistenceError: If the history database cannot be opened.
    """
    history = history or config.history_settings
    db = db or DatabaseSessionGenerator.from_settings(history)
    repository = SqlHistoryRepository(db, logger)
    store = HistoryStore(
        repository,
        logger,
        max_items=history.max_items,
        max_ocr_chars=history.max_ocr_chars,
    )
    return Services(
        db=db,
        store=store,
        search=SearchEngine(search or config.search_settings),
        clipboard=clipboard or SystemClipboard(),
        logger=logger,
    )


# endregion
# region Watcher
class Watcher:
    """
    Long-running capture pipeline.

    Attributes:
        poller (CapturePoller): Clipboard sampling.
        context (Optional[ContextSampler]): Foreground-window sampling, None when
            context capture is off or unsupported.
        ocr (OcrEnricher): OCR enrichment of new images.
    """

    def __init__(
        self,
        services: Services,
        settings: Optional[ClipboardWatcherSettings] = None,
        ocr_settings: Optional[OcrSettings] = None,
        resolver: Optional[WindowResolver] = None,
        ocr: Optional[OcrEnricher] = None,
    ) -> None:
        settings = settings or config.watcher_settings
        self.services = services
        self.logger = services.logger.getChild(self.__class__.__name__)
        self.ocr = ocr or OcrEnricher.from_settings(
            ocr_settings or config.ocr_settings, services.store, services.logger
        )

        self.context: Optional[ContextSampler] = None
        if settings.capture_context:
            resolver = resolver or build_resolver(services.logger)
            if isinstance(resolver, NullWindowResolver):
                self.logger.warning("Context capture is not supported here, disabled for this session")
            else:
                self.context = ContextSampler(
                    resolver,
                    services.logger,
                    freshness=settings.context_freshness,
                    interval=settings.context_interval,
                    ignored=settings.ignored_windows,
                )

        self.poller = CapturePoller(
            services.store,
            services.clipboard,
            services.logger,
            image_directory=settings.paste_directory,
            thumbnail_dim=settings.thumbnail_dim,
            poll_interval=settings.poll_interval,
            context=self.context,
            ocr=self.ocr,
        )

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Run until ``stop`` is set (or the task is cancelled), then drain."""
        stop = stop or asyncio.Event()
        jobs = [self.ocr.start(), self.poller.run(stop)]
        if self.context is not None:
            jobs.append(self.context.run(stop))
        try:
            await asyncio.gather(*jobs)
        finally:
            stop.set()
            await self.ocr.drain()
            await self.services.store.drain()


# endregion
__all__ = ["Services", "Watcher", "build_services"]
