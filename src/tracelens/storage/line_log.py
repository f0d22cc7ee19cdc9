"""Append-only mirror of every ingested tracer line, plus the session summary."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import os
from pathlib import Path
import tempfile
from threading import Lock
from typing import Any, TextIO


_SESSION_PREFIX = "session-"
_LOG_SUFFIX = ".log"
_SUMMARY_SUFFIX = ".summary.json"


def session_stamp(now: datetime | None = None) -> str:
    """Return the UTC timestamp used to name one session's files."""

    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


class SessionLineLog:
    """Plain-text mirror, one newline-terminated line per ingested line.

    The file is opened in append mode and flushed after every write, so a
    crashed session still leaves every line read so far on disk.
    """

    def __init__(self, directory: Path, *, stamp: str | None = None) -> None:
        self.directory = directory
        self.stamp = stamp or session_stamp()
        self.path = directory / f"{_SESSION_PREFIX}{self.stamp}{_LOG_SUFFIX}"
        self.summary_path = directory / f"{_SESSION_PREFIX}{self.stamp}{_SUMMARY_SUFFIX}"
        self._lock = Lock()
        self._handle: TextIO | None = None

    def open(self) -> SessionLineLog:
        if self._handle is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8")
        return self

    def append(self, line: str) -> None:
        text = line.rstrip("\r\n")
        with self._lock:
            if self._handle is None:
                self.open()
            self._handle.write(text + "\n")
            self._handle.flush()

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def __enter__(self) -> SessionLineLog:
        return self.open()

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def write_summary(self, payload: dict[str, Any]) -> Path:
        """Write the session summary JSON atomically (temp file + rename)."""

        write_json_atomic(self.summary_path, payload)
        return self.summary_path


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, indent=2, sort_keys=True) + "\n")
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


def iter_session_logs(directory: Path) -> list[Path]:
    """Return mirrored session logs in chronological order."""

    if not directory.exists():
        return []
    return sorted(directory.glob(f"{_SESSION_PREFIX}*{_LOG_SUFFIX}"))
