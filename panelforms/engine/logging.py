"""
panelforms Interaction Log — Structured JSON file-based logging.

Implements:
- LogEntry: one structured record destined for a category file
- FileLogger: per-category log files with daily rotation
- Entry builders for validation failures, upload lifecycle and tab focus
- A process-wide logger installed by init_logging()

Layout: {log_dir}/{category}/{YYYY-MM-DD}.jsonl

Writes are synchronous — every form interaction runs to completion inside a
single request, so there is nothing to flush in the background.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("panelforms.engine.logging")

CATEGORIES = ("validation", "uploads", "events")


class LogEntry:
    """A structured log entry destined for a specific category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.
    Files rotate daily: {log_dir}/{category}/{YYYY-MM-DD}.jsonl
    """

    def __init__(self, log_dir: str = ".panelforms/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for category in CATEGORIES:
            (self._log_dir / category).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in CATEGORIES:
            raise ValueError(f"Unknown log category '{entry.category}'")

        file_path = self._resolve_path(entry.category)
        with self._file_locks[str(file_path)]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, category: str) -> Path:
        """Resolve the log file path for today's date."""
        return self._log_dir / category / f"{date.today().isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries back from the JSONL files of one category.

        Args:
            category: "validation", "uploads" or "events".
            start_date: Earliest date to include (defaults to 7 days ago).
            end_date: Latest date to include (defaults to today).
            filters: Only entries whose top-level keys equal ALL of these values.
            limit: Max number of entries to return.

        Returns:
            List of parsed entries, newest first.
        """
        if end_date is None:
            end_date = date.today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        base = self._log_dir / category
        if not base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            file_path = base / f"{current.isoformat()}.jsonl"
            if file_path.exists():
                day = self._read_jsonl(file_path, filters)
                # Lines within a file are chronological
                day.reverse()
                results.extend(day[: limit - len(results)])
            current -= timedelta(days=1)
        return results

    @staticmethod
    def _read_jsonl(path: Path, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, component: str, **extra: Any) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "component": component,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_validation_failed(
    component: str,
    failed: Dict[str, List[str]],
    scope: str = "form",
    focused_field: Optional[str] = None,
) -> LogEntry:
    """Build a validation failure entry. ``scope`` is form | field | uploads."""
    data = _base_entry(
        event="validation_failed",
        level="WARNING",
        component=component,
        scope=scope,
        failed=failed,
        focused_field=focused_field,
    )
    return LogEntry("validation", data)


def log_upload_staged(
    component: str,
    field: str,
    filename: str,
    size_bytes: int,
    mime_type: str,
) -> LogEntry:
    """Build an entry for a client file staged under the temporary namespace."""
    data = _base_entry(
        event="upload_staged",
        level="INFO",
        component=component,
        field=field,
        filename=filename,
        size_bytes=size_bytes,
        mime_type=mime_type,
    )
    return LogEntry("uploads", data)


def log_upload_persisted(
    component: str,
    field: str,
    disk: str,
    path: str,
    visibility: str,
) -> LogEntry:
    """Build an entry for a staged upload moved to permanent storage."""
    data = _base_entry(
        event="upload_persisted",
        level="INFO",
        component=component,
        field=field,
        disk=disk,
        path=path,
        visibility=visibility,
    )
    return LogEntry("uploads", data)


def log_upload_cleared(component: str, field: str, removed_stored: bool = False) -> LogEntry:
    data = _base_entry(
        event="upload_removed" if removed_stored else "upload_cleared",
        level="INFO",
        component=component,
        field=field,
    )
    return LogEntry("uploads", data)


def log_tab_focused(component: str, field: str, target: str) -> LogEntry:
    """Build an entry for a switch-tab hint sent to the browser."""
    data = _base_entry(
        event="tab_focused",
        level="INFO",
        component=component,
        field=field,
        target=target,
    )
    return LogEntry("events", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger
# ---------------------------------------------------------------------------

_global_logger: Optional[FileLogger] = None


def init_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> FileLogger:
    """
    Install the global interaction log and set the panelforms logger level.

    Both arguments default to the loaded config's logging section.
    """
    global _global_logger
    from panelforms.engine.config import get_config

    cfg = get_config().logging
    logging.getLogger("panelforms").setLevel(level or cfg.level)
    _global_logger = FileLogger(log_dir=log_dir or cfg.directory)
    logger.info(f"Interaction log writing to {_global_logger.log_dir}")
    return _global_logger


def get_file_logger() -> Optional[FileLogger]:
    """Get the global interaction log, if installed."""
    return _global_logger


def log(entry: LogEntry) -> bool:
    """
    Write an entry to the global interaction log.

    Returns False (entry dropped) when logging was never initialized or the
    write failed; interaction logging never interrupts a form interaction.
    """
    if _global_logger is None:
        return False
    try:
        _global_logger.write(entry)
        return True
    except OSError as e:
        logger.error(f"Interaction log write failed: {e}")
        return False


def shutdown_logging() -> None:
    """Detach the global interaction log."""
    global _global_logger
    _global_logger = None
