import json
import logging
import os
from datetime import datetime, timedelta, timezone

import pytest

from clipcore.constants import APP_NAME
from clipwatch.logger import (
    archive_daily_log_file,
    build_config,
    configure_logging,
    manage_logfile_archives,
)

NOW = datetime(2024, 5, 31, 16, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "logs" / "clipdeck.jsonl"


@pytest.fixture
def restore_app_logger():
    app_logger = logging.getLogger(APP_NAME)
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level
    yield app_logger
    for handler in list(root.handlers):
        if handler not in root_handlers:
            root.removeHandler(handler)
    for handler in root_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(root_level)
    for handler in list(app_logger.handlers):
        handler.close()
        app_logger.removeHandler(handler)
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)


# region Archives
class TestArchiving:
    def test_archives_existing_log(self, log_file):
        log_file.parent.mkdir(parents=True)
        log_file.write_text("{}\n")
        archive = archive_daily_log_file(log_file, now=NOW)
        assert archive.name == "clipdeck_20240531_160000.jsonl"
        assert archive.exists()
        assert not log_file.exists()

    def test_recent_archive_skips(self, log_file):
        log_file.parent.mkdir(parents=True)
        log_file.write_text("{}\n")
        archive_daily_log_file(log_file, now=NOW)
        log_file.write_text("{}\n")
        assert archive_daily_log_file(log_file, now=NOW + timedelta(hours=1)) is None
        assert log_file.exists()
        later = archive_daily_log_file(log_file, now=NOW + timedelta(hours=25))
        assert later.name == "clipdeck_20240601_170000.jsonl"

    def test_missing_log_is_not_archived(self, log_file):
        log_file.parent.mkdir(parents=True)
        assert archive_daily_log_file(log_file, now=NOW) is None

    def test_keeps_newest_archives(self, log_file):
        log_file.parent.mkdir(parents=True)
        archives = []
        for day in range(12):
            path = log_file.with_name(f"clipdeck_202405{day + 1:02d}_000000.jsonl")
            path.write_text("{}\n")
            stamp = (NOW + timedelta(days=day)).timestamp()
            os.utime(path, (stamp, stamp))
            archives.append(path)
        removed = manage_logfile_archives(log_file, days_to_keep=10)
        assert sorted(removed) == archives[:2]
        assert all(p.exists() for p in archives[2:])


# endregion
# region Config
def test_build_config_levels(log_file):
    config = build_config(log_file, "debug")
    assert config["handlers"]["file"]["level"] == "DEBUG"
    assert config["handlers"]["file"]["filename"] == str(log_file)
    assert config["loggers"][APP_NAME]["propagate"] is False


def test_configure_logging_writes_json_lines(log_file, restore_app_logger):
    configure_logging(log_file, level="info")
    restore_app_logger.getChild("Test").info("entry captured")
    for handler in restore_app_logger.handlers:
        handler.flush()
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    record = records[-1]
    assert record["message"] == "entry captured"
    assert record["levelname"] == "INFO"
    assert record["name"] == f"{APP_NAME}.Test"


# endregion
