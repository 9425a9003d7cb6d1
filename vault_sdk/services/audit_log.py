"""Client-side audit log of API requests, stored as rotating JSON lines."""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path.home() / ".lsvault" / "audit.log"
MAX_LOG_SIZE = 10 * 1024 * 1024
MAX_ROTATED_FILES = 5

CSV_COLUMNS = ("timestamp", "method", "path", "status", "durationMs")


class AuditEntry(BaseModel):
    """A single recorded request."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    method: str
    path: str
    status: int
    duration_ms: int = Field(..., alias="durationMs")


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _entry_time(entry: AuditEntry) -> Optional[datetime]:
    try:
        return _parse_time(entry.timestamp)
    except ValueError:
        return None


class AuditLogger:
    """Append request records to a size-rotated log file."""

    def __init__(
        self,
        log_path: Union[str, Path, None] = None,
        *,
        max_size: int = MAX_LOG_SIZE,
        max_files: int = MAX_ROTATED_FILES,
    ) -> None:
        self._log_path = Path(log_path).expanduser() if log_path else DEFAULT_LOG_PATH
        self._max_size = max_size
        self._max_files = max_files

    @property
    def log_path(self) -> Path:
        return self._log_path

    def log(self, entry: AuditEntry) -> None:
        """Append ``entry``, rotating the current file first when it is full."""
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._rotate_if_needed()
        with self._log_path.open("a", encoding="utf-8") as handle:
            handle.write(entry.model_dump_json(by_alias=True) + "\n")

    def _rotated(self, index: int) -> Path:
        return self._log_path.with_name(f"{self._log_path.name}.{index}")

    def _rotate_if_needed(self) -> None:
        try:
            size = self._log_path.stat().st_size
        except FileNotFoundError:
            return
        if size < self._max_size:
            return

        # audit.log.N is dropped, .N-1 -> .N, ..., audit.log -> .1
        self._rotated(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, 0, -1):
            source = self._rotated(index)
            if source.exists():
                source.replace(self._rotated(index + 1))
        self._log_path.replace(self._rotated(1))
        logger.debug("Rotated audit log %s", self._log_path)

    def read_entries(
        self,
        *,
        tail: Optional[int] = None,
        status: Optional[int] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Return logged entries from the current file, oldest first.

        Malformed lines are skipped. ``since``/``until`` are inclusive
        ISO-8601 bounds that drop entries with unreadable timestamps;
        ``tail`` keeps only the last N matches.
        """
        try:
            content = self._log_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []

        entries: List[AuditEntry] = []
        for line in content.splitlines():
            if not line.strip():
                continue
            try:
                entries.append(AuditEntry.model_validate(json.loads(line)))
            except (ValueError, SchemaValidationError):  # skip malformed lines
                continue

        if status is not None:
            entries = [entry for entry in entries if entry.status == status]
        if since or until:
            since_at = _parse_time(since) if since else None
            until_at = _parse_time(until) if until else None
            windowed: List[AuditEntry] = []
            for entry in entries:
                at = _entry_time(entry)
                if at is None:
                    continue
                if since_at is not None and at < since_at:
                    continue
                if until_at is not None and at > until_at:
                    continue
                windowed.append(entry)
            entries = windowed
        if tail is not None:
            entries = entries[-tail:] if tail > 0 else []
        return entries

    @staticmethod
    def export_csv(entries: List[AuditEntry]) -> str:
        """Render entries as CSV with a header row."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for entry in entries:
            writer.writerow(
                [entry.timestamp, entry.method, entry.path, entry.status, entry.duration_ms]
            )
        return buffer.getvalue()


__all__ = ["AuditEntry", "AuditLogger", "DEFAULT_LOG_PATH"]
