"""Unit tests for panelforms.engine.logging — FileLogger, entry builders, global log."""

import json
import logging
from datetime import date, timedelta

import pytest

from panelforms.engine.logging import (
    CATEGORIES,
    FileLogger,
    LogEntry,
    get_file_logger,
    init_logging,
    log,
    log_tab_focused,
    log_upload_cleared,
    log_upload_persisted,
    log_upload_staged,
    log_validation_failed,
    shutdown_logging,
)


class TestLogEntry:

    def test_to_json(self):
        entry = LogEntry("events", {"event": "tab_focused", "target": "profile.media"})
        parsed = json.loads(entry.to_json())
        assert parsed == {"event": "tab_focused", "target": "profile.media"}


class TestFileLogger:

    def test_creates_category_dirs(self, tmp_path):
        FileLogger(log_dir=str(tmp_path / "logs"))
        for category in CATEGORIES:
            assert (tmp_path / "logs" / category).is_dir()

    def test_write_appends_jsonl(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        file_logger.write(LogEntry("uploads", {"n": 1}))
        file_logger.write(LogEntry("uploads", {"n": 2}))

        path = tmp_path / "logs" / "uploads" / f"{date.today().isoformat()}.jsonl"
        lines = path.read_text().strip().splitlines()
        assert [json.loads(line)["n"] for line in lines] == [1, 2]

    def test_unknown_category(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        with pytest.raises(ValueError, match="Unknown log category"):
            file_logger.write(LogEntry("metrics", {}))

    def test_query_newest_first_with_filters(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        for n in range(3):
            file_logger.write(LogEntry("events", {"n": n, "component": "a"}))
        file_logger.write(LogEntry("events", {"n": 9, "component": "b"}))

        assert [e["n"] for e in file_logger.query("events")] == [9, 2, 1, 0]
        assert [e["n"] for e in file_logger.query("events", filters={"component": "a"})] == [2, 1, 0]
        assert len(file_logger.query("events", limit=2)) == 2

    def test_query_reads_older_days(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        yesterday = date.today() - timedelta(days=1)
        (tmp_path / "logs" / "validation" / f"{yesterday.isoformat()}.jsonl").write_text(
            '{"n": "old"}\nnot json\n', encoding="utf-8",
        )
        file_logger.write(LogEntry("validation", {"n": "new"}))
        assert [e["n"] for e in file_logger.query("validation")] == ["new", "old"]

    def test_query_unknown_category_is_empty(self, tmp_path):
        assert FileLogger(log_dir=str(tmp_path / "logs")).query("nope") == []


class TestBuilders:

    def test_validation_failed(self):
        entry = log_validation_failed("app.Form", {"avatar": ["max"]}, focused_field="avatar")
        assert entry.category == "validation"
        assert entry.data["event"] == "validation_failed"
        assert entry.data["level"] == "WARNING"
        assert entry.data["scope"] == "form"
        assert entry.data["failed"] == {"avatar": ["max"]}
        assert entry.data["focused_field"] == "avatar"

    def test_none_extras_are_dropped(self):
        entry = log_validation_failed("app.Form", {"name": ["required"]})
        assert "focused_field" not in entry.data

    def test_upload_entries(self):
        staged = log_upload_staged("c", "avatar", "me.png", 120, "image/png")
        persisted = log_upload_persisted("c", "avatar", "public", "avatars/x.png", "public")
        assert staged.category == persisted.category == "uploads"
        assert staged.data["size_bytes"] == 120
        assert persisted.data["path"] == "avatars/x.png"

    def test_upload_cleared_event_names(self):
        assert log_upload_cleared("c", "avatar").data["event"] == "upload_cleared"
        assert log_upload_cleared("c", "avatar", removed_stored=True).data["event"] == "upload_removed"

    def test_tab_focused(self):
        entry = log_tab_focused("c", "avatar", "profile.media")
        assert entry.category == "events"
        assert entry.data["target"] == "profile.media"


class TestGlobalLog:

    def test_log_before_init_is_noop(self):
        assert get_file_logger() is None
        assert log(log_tab_focused("c", "f", "t")) is False

    def test_init_uses_config(self, forms_config, tmp_path):
        file_logger = init_logging()
        assert file_logger.log_dir == tmp_path / "logs"
        assert get_file_logger() is file_logger
        assert logging.getLogger("panelforms").level == logging.INFO

        assert log(log_tab_focused("c", "f", "t")) is True
        assert file_logger.query("events")[0]["target"] == "t"

        shutdown_logging()
        assert get_file_logger() is None

    def test_init_overrides(self, forms_config, tmp_path):
        file_logger = init_logging(log_dir=str(tmp_path / "elsewhere"), level="DEBUG")
        assert file_logger.log_dir == tmp_path / "elsewhere"
        assert logging.getLogger("panelforms").level == logging.DEBUG
