# region Docstring
"""
clipservices.context
Foreground-window context attached to captured entries.
Overview:
- WindowResolver is the external provider of the foreground window. The Windows
    implementation uses ctypes against user32/kernel32; elsewhere the null
    resolver is used and no context is recorded.
- ContextSampler polls the resolver in the background and remembers the latest
    plausible window. At capture time current() returns that sample if it is at
    most `freshness` seconds old, otherwise it does one synchronous lookup.
- Windows with an empty title, or whose app/title is one of the ignored names
    (screenshot tools, shell UI, clipdeck itself), are treated as noise: while the
    user takes a screenshot the window that was focused before is the useful one.
"""
# endregion
# region Imports
import asyncio
import ctypes
import os
import time
from logging import Logger
from typing import Callable, Iterable, Optional, Protocol

from clipcore import constants
from clipcore.models.history import WindowSource


# endregion
# region Resolvers
class WindowResolver(Protocol):
    def active_window(self) -> Optional[WindowSource]: ...


class NullWindowResolver:
    """Resolver for platforms without window introspection."""

    def active_window(self) -> Optional[WindowSource]:
        return None


class Win32WindowResolver:
    """Foreground window via the Win32 API."""

    PROCESS_QUERY_LIMITED_INFORMATION = 0x1000

    def __init__(self) -> None:
        if os.name != "nt":
            raise OSError("Win32WindowResolver requires Windows")
        self.user32 = ctypes.windll.user32  # type: ignore[attr-defined]
        self.kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]

    def _title(self, hwnd: int) -> str:
        length = self.user32.GetWindowTextLengthW(hwnd)
        buf = ctypes.create_unicode_buffer(length + 1)
        self.user32.GetWindowTextW(hwnd, buf, length + 1)
        return buf.value

    def _process_name(self, hwnd: int) -> str:
        pid = ctypes.c_ulong()
        self.user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
        handle = self.kernel32.OpenProcess(
            self.PROCESS_QUERY_LIMITED_INFORMATION, False, pid.value
        )
        if not handle:
            return ""
        try:
            buf = ctypes.create_unicode_buffer(260)
            size = ctypes.c_ulong(len(buf))
            if self.kernel32.QueryFullProcessImageNameW(handle, 0, buf, ctypes.byref(size)):
                name = os.path.basename(buf.value)
                return name[:-4] if name.lower().endswith(".exe") else name
        finally:
            self.kernel32.CloseHandle(handle)
        return ""

    def active_window(self) -> Optional[WindowSource]:
        hwnd = self.user32.GetForegroundWindow()
        if not hwnd:
            return None
        return WindowSource(app=self._process_name(hwnd) or None, title=self._title(hwnd))


def build_resolver(logger: Logger) -> WindowResolver:
    """Best resolver for this platform, falling back to NullWindowResolver."""
    try:
        return Win32WindowResolver()
    except (OSError, AttributeError) as e:
        logger.info(f"Window context unavailable, capturing without it: {e}")
        return NullWindowResolver()


# endregion
# region Noise Filter
def _normalize(name: Optional[str]) -> str:
    value = (name or "").strip().lower()
    return value[:-4] if value.endswith(".exe") else value


def is_noise(window: Optional[WindowSource], ignored: Iterable[str]) -> bool:
    """True for missing windows, empty titles and ignored apps/titles."""
    if window is None or not (window.title or "").strip():
        return True
    names = {_normalize(name) for name in ignored}
    return _normalize(window.app) in names or _normalize(window.title) in names


# endregion
# region Sampler
class ContextSampler:
    """
    Caches the latest plausible foreground window.

    Attributes:
        resolver (WindowResolver): Source of foreground windows.
        freshness (float): Maximum age (seconds) of a cached sample used by current().
        interval (float): Background sampling period in seconds.
    """

    def __init__(
        self,
        resolver: WindowResolver,
        logger: Logger,
        freshness: float = constants.DEFAULT_CONTEXT_FRESHNESS,
        interval: float = constants.DEFAULT_CONTEXT_INTERVAL,
        ignored: Iterable[str] = constants.IGNORED_WINDOW_NAMES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.resolver = resolver
        self.logger = logger.getChild(self.__class__.__name__)
        self.freshness = freshness
        self.interval = interval
        self.ignored = list(ignored)
        self._clock = clock
        self._cached: Optional[WindowSource] = None
        self._cached_at: Optional[float] = None
        self._last_error: Optional[str] = None

    def lookup(self) -> Optional[WindowSource]:
        """Query the resolver once; plausible windows refresh the cache."""
        try:
            window = self.resolver.active_window()
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            if message != self._last_error:
                self.logger.warning(f"Window lookup failed: {message}")
                self._last_error = message
            return None
        self._last_error = None
        if is_noise(window, self.ignored):
            return None
        self._cached = window
        self._cached_at = self._clock()
        return window

    def current(self) -> Optional[WindowSource]:
        """The cached window if fresh, else a one-off lookup."""
        if self._cached is not None and self._cached_at is not None:
            if self._clock() - self._cached_at <= self.freshness:
                return self._cached
        return self.lookup()

    async def run(self, stop: asyncio.Event) -> None:
        """Sample every `interval` seconds until ``stop`` is set."""
        self.logger.debug(f"Sampling foreground window every {self.interval}s")
        while not stop.is_set():
            self.lookup()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass


# endregion
__all__ = [
    "ContextSampler",
    "NullWindowResolver",
    "Win32WindowResolver",
    "WindowResolver",
    "build_resolver",
    "is_noise",
]
