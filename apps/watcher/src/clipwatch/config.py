"""
Configuration settings for the clipdeck watcher application.

This module provides the settings instances shared by the CLI and the watcher,
as well as the path of the JSON log file.

Attributes:
    app_settings: Application-wide settings instance.
    history_settings: History store settings (max items, database path).
    search_settings: Search mode, fuzzy threshold and scorer.
    watcher_settings: Clipboard polling, image directory and context capture.
    ocr_settings: OCR enrichment settings.
    LOG_FILE_PATH: JSON lines log file of the application.
"""

from pathlib import Path

from clipcore.config import (
    AppSettings,
    ClipboardWatcherSettings,
    HistorySettings,
    OcrSettings,
    SearchSettings,
    get_settings,
)

app_settings: AppSettings = get_settings(AppSettings)
"""Application-wide settings instance."""
history_settings: HistorySettings = get_settings(HistorySettings)
"""History store settings instance: ('HISTORY_MAX_ITEMS', 'HISTORY_DATABASE_PATH', ...)."""
search_settings: SearchSettings = get_settings(SearchSettings)
"""Search settings instance: ('SEARCH_MODE', 'SEARCH_FUZZY_THRESHOLD', 'SEARCH_SCORER')."""
watcher_settings: ClipboardWatcherSettings = get_settings(ClipboardWatcherSettings)
"""Clipboard watcher settings instance."""
ocr_settings: OcrSettings = get_settings(OcrSettings)
"""OCR settings instance."""

LOG_FILE_PATH: Path = app_settings.logs_dir / "clipdeck.jsonl"
"""Path to the JSON lines log file (archived daily)."""
