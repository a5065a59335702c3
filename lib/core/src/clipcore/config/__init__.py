"""
clipcore.config
Configuration and settings management for the clipdeck clipboard history manager.
Overview:
- Provides Pydantic-based settings classes for every component of the capture,
    storage and search pipeline.
- Each settings class inherits from FactoryBaseSettings and supports environment variable
    overrides via Field aliases.
- Settings are organized by component for modular configuration management.
Contents:
- Settings Classes:
    - AppSettings:
        Global application settings including app root directory, environment, timezone,
        log level and computed properties for logs, cache and data directories.
    - HistorySettings:
        History store configuration: maximum entry count, database location and the
        cap applied to recognised image text.
    - SearchSettings:
        Search mode (exact or fuzzy), fuzzy threshold and the fuzzy scorer strategy.
    - ClipboardWatcherSettings:
        Configuration for clipboard monitoring including poll interval, thumbnail
        dimensions, image directory and foreground-window context capture.
    - OcrSettings:
        Configuration for OCR enrichment of captured images (Tesseract).
Design Notes:
- All settings classes use Pydantic Field with aliases to support environment variable
    configuration (e.g., HISTORY_MAX_ITEMS, SEARCH_MODE).
- Default values are provided for all fields enabling zero-configuration startup.
- Values that come from user-editable sources are clamped instead of rejected, so a
    bad value in clipdeck.yaml never prevents startup.
"""

from clipcore.imports import (
    json,
    Annotated,
    NoDecode,
    timedelta,
    timezone,
    Path,
    Any,
    Field,
    Literal,
    Optional,
    field_validator,
)
from clipcore import constants
from clipcore.config.base import APP_ENV, APP_ROOT, DATA_DIR
from clipcore.config.factory import FactoryBaseSettings
from clipcore.config.factory import get_settings, reset_settings  # noqa: F401  This is used externally


def clamp_threshold(value: Any) -> float:
    """
    Coerce a fuzzy threshold into the supported range.

    Non-numeric input falls back to the default threshold.

    Example:
        >>> clamp_threshold(2)
        0.9
        >>> clamp_threshold("nope")
        0.4
    """
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        return constants.DEFAULT_FUZZY_THRESHOLD
    if threshold != threshold:  # NaN
        return constants.DEFAULT_FUZZY_THRESHOLD
    return min(
        constants.MAX_FUZZY_THRESHOLD, max(constants.MIN_FUZZY_THRESHOLD, threshold)
    )


class AppSettings(FactoryBaseSettings):
    """Application configuration settings."""

    app_root: Path = Field(
        default=Path(APP_ROOT),
        description="Root directory for application data storage.",
        alias="APP_ROOT",
    )
    environment: str = Field(
        default=APP_ENV,
        description="Current application environment (prod, docker, dev).",
        alias="ENVIRONMENT",
    )
    tz: timezone = Field(
        default=timezone(timedelta(hours=0)),
        description="[timezone] Timezone used when displaying timestamps.",
        alias="SERVER_TIMEZONE_OFFSET_HOURS",
    )
    log_level: str = Field(
        default="info",
        description="Log level for the clipdeck services.",
        alias="CLIPDECK_LOG_LEVEL",
    )

    @property
    def logs_dir(self) -> Path:
        """Base directory for logs."""
        return self.app_root / "logs"

    @property
    def cache_dir(self) -> Path:
        """Base directory for cache."""
        return self.app_root / ".cache"

    @property
    def data_dir(self) -> Path:
        """Base directory for history data."""
        return DATA_DIR

    @field_validator("tz", mode="before")
    def parse_timezone(cls, v: Any) -> Any:
        if isinstance(v, (str, int)):
            try:
                offset_hours = int(v)
                return timezone(timedelta(hours=offset_hours))
            except ValueError:
                pass
        return v


class HistorySettings(FactoryBaseSettings):
    """
    History store configuration settings.
    """

    max_items: int = Field(
        default=constants.DEFAULT_MAX_ITEMS,
        description="Maximum number of entries kept in history. [50..5000]",
        alias="HISTORY_MAX_ITEMS",
    )
    database_path: Path = Field(
        default=DATA_DIR / "history.db",
        description="SQLite file holding the history.",
        alias="HISTORY_DATABASE_PATH",
    )
    max_ocr_chars: int = Field(
        default=constants.MAX_OCR_CHARS,
        description="Cap on recognised text stored per image entry.",
        alias="HISTORY_MAX_OCR_CHARS",
    )

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the history database."""
        return f"sqlite:///{self.database_path.as_posix()}"

    @field_validator("max_items", mode="before")
    def clamp_max_items(cls, v: Any) -> int:
        try:
            value = int(v)
        except (TypeError, ValueError):
            return constants.DEFAULT_MAX_ITEMS
        return max(constants.MIN_MAX_ITEMS, min(constants.MAX_MAX_ITEMS, value))


class SearchSettings(FactoryBaseSettings):
    """
    Search configuration settings.
    """

    mode: Literal["exact", "fuzzy"] = Field(
        default="fuzzy",
        description="Search mode: 'exact' token matching or 'fuzzy' ranking.",
        alias="SEARCH_MODE",
    )
    fuzzy_threshold: float = Field(
        default=constants.DEFAULT_FUZZY_THRESHOLD,
        description="Minimum fuzzy score kept in results. [0.1..0.9]",
        alias="SEARCH_FUZZY_THRESHOLD",
    )
    scorer: Literal["span", "ratio"] = Field(
        default="span",
        description="Fuzzy scorer: 'span' (span-density) or 'ratio' (difflib ratio).",
        alias="SEARCH_SCORER",
    )

    @field_validator("mode", mode="before")
    def parse_mode(cls, v: Any) -> str:
        return "exact" if str(v).strip().lower() == "exact" else "fuzzy"

    @field_validator("fuzzy_threshold", mode="before")
    def parse_threshold(cls, v: Any) -> float:
        return clamp_threshold(v)

    @field_validator("scorer", mode="before")
    def parse_scorer(cls, v: Any) -> str:
        return "ratio" if str(v).strip().lower() == "ratio" else "span"


class ClipboardWatcherSettings(FactoryBaseSettings):
    """
    Configuration for the Clipboard Watcher Service.
    """

    poll_interval: float = Field(
        default=constants.DEFAULT_POLL_INTERVAL,
        description="Interval for polling the clipboard. (Seconds) [Default: 0.2]",
        alias="CLIPBOARD_WATCHER_POLL_INTERVAL",
    )
    thumbnail_dim: Annotated[tuple[int, int], NoDecode] = Field(
        default=constants.THUMBNAIL_DIM,
        description="Bounding box of the preview image. (Width,Height) [Default: (160,160)]",
        alias="CLIPBOARD_WATCHER_THUMBNAIL_SIZE",
    )
    paste_directory: Path = Field(
        default=DATA_DIR / "images",
        description="Directory holding the backing files of image entries.",
        alias="CLIPBOARD_WATCHER_PASTE_DIRECTORY",
    )
    capture_context: bool = Field(
        default=False,
        description="Attach the foreground window (app, title) to new entries.",
        alias="CLIPBOARD_WATCHER_CAPTURE_CONTEXT",
    )
    context_interval: float = Field(
        default=constants.DEFAULT_CONTEXT_INTERVAL,
        description="Interval for sampling the foreground window. (Seconds)",
        alias="CLIPBOARD_WATCHER_CONTEXT_INTERVAL",
    )
    context_freshness: float = Field(
        default=constants.DEFAULT_CONTEXT_FRESHNESS,
        description="Maximum age of a cached window sample. (Seconds) [Default: 7]",
        alias="CLIPBOARD_WATCHER_CONTEXT_FRESHNESS",
    )
    ignored_windows: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(constants.IGNORED_WINDOW_NAMES),
        description="App or title names treated as transient system windows.",
        alias="CLIPBOARD_WATCHER_IGNORED_WINDOWS",
    )

    @field_validator("thumbnail_dim", mode="before")
    def parse_thumbnail_dim(cls, v: Any) -> Any:
        if isinstance(v, str):
            cleaned = v.strip().strip("[]()").lower().replace("x", ",")
            return tuple(int(p) for p in cleaned.split(",") if p.strip())
        return v

    @field_validator("ignored_windows", mode="before")
    def parse_ignored_windows(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = json.loads(v) if v.strip().startswith("[") else v.split(",")
        return [str(name).strip().lower() for name in v if str(name).strip()]


class OcrSettings(FactoryBaseSettings):
    """
    Configuration for OCR enrichment of image entries.
    """

    enabled: bool = Field(
        default=True,
        description="Run OCR on captured images.",
        alias="OCR_ENABLED",
    )
    language: str = Field(
        default="eng",
        description="Tesseract language code(s), e.g. 'eng+deu'.",
        alias="OCR_LANGUAGE",
    )
    timeout: float = Field(
        default=30.0,
        description="Upper bound for a single recognition job. (Seconds)",
        alias="OCR_TIMEOUT",
    )
    max_concurrent: int = Field(
        default=1,
        ge=1,
        description="Number of recognition jobs allowed to run at once.",
        alias="OCR_MAX_CONCURRENT",
    )
    tesseract_cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract executable when it is not on PATH.",
        alias="OCR_TESSERACT_CMD",
    )


__all__ = [
    "AppSettings",
    "ClipboardWatcherSettings",
    "HistorySettings",
    "OcrSettings",
    "SearchSettings",
    "clamp_threshold",
    "get_settings",
    "reset_settings",
]
