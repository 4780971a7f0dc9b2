"""
DocVault Logging - Structured JSONL audit log for repository operations.

Implements:
- FileLogger: Per-object-type, per-category log files (daily rotation)
- Log entry builders for document, lock, template and command events
- init_logging / log / shutdown_logging module-level audit sink
- FileLogger.query: newest entries for one log, read back by `docvault audit`

Diagnostics go through the standard ``logging`` module; the audit log records
who changed what. Writes are synchronous, matching the blocking call model of
the repository itself.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("docvault.engine.logging")

OBJECT_TYPE_CATEGORIES = {
    "documents": ["execution", "security"],
    "locks": ["execution", "security"],
    "templates": ["execution"],
    "commands": ["execution"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe: one lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in OBJECT_TYPE_CATEGORIES.get(entry.object_type, ()):
            raise ValueError(
                f"Unknown log target {entry.object_type}/{entry.category}"
            )
        file_path = self._resolve_path(entry.object_type, entry.category)
        with self._file_locks[str(file_path)]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        object_type: str,
        category: str,
        *,
        days: int = 7,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Most recent entries for one object_type/category, oldest first.

        Args:
            object_type: The object type folder (e.g. "documents", "locks").
            category: The category folder (e.g. "execution", "security").
            days: How many daily files to read, counting back from today.
            filters: Only entries whose top-level keys equal ALL of these.
            limit: Keep at most this many of the newest matching entries.
        """
        base = self._log_dir / object_type / category
        today = date.today()
        entries: List[Dict[str, Any]] = []
        for offset in range(days - 1, -1, -1):
            path = base / f"{(today - timedelta(days=offset)).isoformat()}.jsonl"
            if not path.is_file():
                continue
            for data in _iter_jsonl(path):
                if filters and any(data.get(k) != v for k, v in filters.items()):
                    continue
                entries.append(data)
        return entries[-limit:] if limit > 0 else entries


def _iter_jsonl(path: Path) -> Iterator[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                # torn line from a crashed writer
                continue


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    object_ref: str,
    actor: Optional[str] = None,
    execution_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "object_ref": object_ref,
    }
    if actor:
        entry["actor"] = actor
    if execution_id:
        entry["execution_id"] = execution_id
    entry.update(extra)
    return entry


def log_document_event(
    event: str,
    object_ref: str,
    actor: Optional[str],
    success: bool,
    execution_id: Optional[str] = None,
    version: Optional[int] = None,
    size_bytes: Optional[int] = None,
    message: Optional[str] = None,
) -> LogEntry:
    """Build a document operation log entry (save, checkin, delete...)."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        object_ref=object_ref,
        actor=actor,
        execution_id=execution_id,
        success=success,
    )
    if version is not None:
        data["version"] = version
    if size_bytes is not None:
        data["size_bytes"] = size_bytes
    if message:
        data["message"] = message
    return LogEntry("documents", "execution", data)


def log_lock_event(
    event: str,
    object_ref: str,
    actor: Optional[str],
    holder: Optional[str],
    granted: bool,
    execution_id: Optional[str] = None,
) -> LogEntry:
    """
    Build a lock log entry.

    Refused lock requests go to the security category so contention is
    queryable separately from normal checkout traffic.
    """
    data = _base_entry(
        event=event,
        level="INFO" if granted else "WARNING",
        object_ref=object_ref,
        actor=actor,
        execution_id=execution_id,
        holder=holder or "",
        granted=granted,
    )
    return LogEntry("locks", "execution" if granted else "security", data)


def log_template_event(
    event: str,
    object_ref: str,
    language: str = "",
    success: bool = True,
    execution_id: Optional[str] = None,
) -> LogEntry:
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        object_ref=object_ref,
        execution_id=execution_id,
        language=language,
        success=success,
    )
    return LogEntry("templates", "execution", data)


def log_command_event(
    command: str,
    object_ref: str,
    actor: Optional[str],
    success: bool,
    return_type: Optional[str] = None,
    execution_id: Optional[str] = None,
) -> LogEntry:
    data = _base_entry(
        event="command_executed",
        level="INFO" if success else "WARNING",
        object_ref=object_ref,
        actor=actor,
        execution_id=execution_id,
        command=command,
        success=success,
    )
    if return_type:
        data["return_type"] = return_type
    return LogEntry("commands", "execution", data)


# ---------------------------------------------------------------------------
# Global audit sink
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = "logs", level: str = "INFO") -> FileLogger:
    """Initialize the global audit log and the ``docvault`` logger level."""
    global _file_logger
    logging.getLogger("docvault").setLevel(level)
    _file_logger = FileLogger(log_dir=log_dir)
    logger.info(f"Audit log initialized at {_file_logger.log_dir}")
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write an entry to the audit log. Returns False when not initialized."""
    if _file_logger is None:
        return False
    _file_logger.write(entry)
    return True


def shutdown_logging() -> None:
    global _file_logger
    _file_logger = None
