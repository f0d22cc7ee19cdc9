"""In-memory ingestion counters."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Any

from tracelens.tracer.records import MetricRecord, record_kind


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class IngestStats:
    """Counters updated by the ingestion loop and read by consumers."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.started_at = _now()
        self.updated_at: str | None = None
        self.lines = 0
        self.dropped = 0
        self.unmatched = 0
        self.by_kind: dict[str, int] = {}

    def record_line(self) -> None:
        with self._lock:
            self.lines += 1
            self.updated_at = _now()

    def record_dropped(self) -> None:
        with self._lock:
            self.dropped += 1

    def record_classified(self, record: MetricRecord, *, matched: bool) -> None:
        kind = record_kind(record)
        with self._lock:
            self.by_kind[kind] = self.by_kind.get(kind, 0) + 1
            if not matched:
                self.unmatched += 1

    @property
    def classified(self) -> int:
        with self._lock:
            return sum(self.by_kind.values())

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "started_at": self.started_at,
                "updated_at": self.updated_at,
                "lines": self.lines,
                "classified": sum(self.by_kind.values()),
                "dropped": self.dropped,
                "unmatched": self.unmatched,
                "by_kind": dict(self.by_kind),
            }
