# region Docstring
"""
clipwatch.logger
Logging setup for the clipdeck application.
Overview:
- configure_logging() applies a dictConfig with a JSON lines file handler
    (python-json-logger) and a plain console handler.
- Before the file handler opens the log, the previous log file is archived
    once a day and only the newest archives are kept.
Design Notes:
- Nothing is configured at import time; the CLI calls configure_logging() once
    per invocation. Until then `logger` behaves like any unconfigured stdlib logger.
"""
# endregion
# region Imports
import logging
from datetime import datetime
from logging import Logger as T_Logger
from logging.config import dictConfig
from pathlib import Path
from typing import Optional

from clipcore.constants import APP_NAME
from clipcore.utils import get_time
from pythonjsonlogger.json import JsonFormatter  # type: ignore # noqa F401

from .config import LOG_FILE_PATH, app_settings

ARCHIVE_TIME_FORMAT = "%Y%m%d_%H%M%S"

logger: T_Logger = logging.getLogger(APP_NAME)
system_logger = logger.getChild("SYSTEM")


# endregion
# region Config
def build_config(log_file: Path, level: str) -> dict:
    """dictConfig mapping for ``log_file`` at ``level``."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_file),
                "formatter": "json",
                "level": level,
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": "WARNING",
            },
        },
        "loggers": {
            APP_NAME: {
                "handlers": ["file", "console"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    }


def configure_logging(
    log_file: Path = LOG_FILE_PATH, level: Optional[str] = None
) -> T_Logger:
    """
    Archive old logs and configure the ``clipdeck`` logger.

    Arguments:
        log_file (Path): JSON lines log file.
        level (Optional[str]): Log level. DEFAULT: AppSettings.log_level

    Returns:
        Logger: The application logger.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    archive_daily_log_file(log_file)
    manage_logfile_archives(log_file)
    dictConfig(build_config(log_file, level or app_settings.log_level))
    system_logger.debug(f"Logger for {APP_NAME} initialized.")
    return logger


# endregion
# region Archives
def _archives(log_file: Path) -> list[Path]:
    return sorted(
        log_file.parent.glob(f"{log_file.stem}_*.jsonl"),
        key=lambda f: f.stat().st_mtime,
        reverse=True,
    )


def archive_daily_log_file(log_file: Path, now: Optional[datetime] = None) -> Optional[Path]:
    """
    Rename ``log_file`` with a timestamp unless an archive younger than a day exists.

    Returns:
        Optional[Path]: The archive written, if any.
    """
    current_time = now or get_time()
    archive_files = _archives(log_file)
    if archive_files:
        latest_archive = archive_files[0]
        timestamp_str = latest_archive.stem.replace(f"{log_file.stem}_", "")
        try:
            timestamp = datetime.strptime(timestamp_str, ARCHIVE_TIME_FORMAT).replace(
                tzinfo=current_time.tzinfo
            )
        except ValueError:
            system_logger.warning(
                f"Could not parse timestamp from archive file {latest_archive}, skipping archiving."
            )
            return None
        if (current_time - timestamp).total_seconds() < 24 * 3600:
            return None

    if not log_file.exists():
        return None
    archive_path = log_file.with_name(
        f"{log_file.stem}_{current_time.strftime(ARCHIVE_TIME_FORMAT)}.jsonl"
    )
    log_file.rename(archive_path)
    return archive_path


def manage_logfile_archives(log_file: Path, days_to_keep: int = 10) -> list[Path]:
    """
    Keep only the newest ``days_to_keep`` archives of ``log_file``.

    Returns:
        list[Path]: The archives deleted.
    """
    archive_files = _archives(log_file)
    removed = archive_files[days_to_keep:]
    for archive_file in removed:
        archive_file.unlink()
    return removed


# endregion
__all__ = [
    "archive_daily_log_file",
    "build_config",
    "configure_logging",
    "logger",
    "manage_logfile_archives",
]
