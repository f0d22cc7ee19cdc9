"""Append-only, most-recent-wins store of metric records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from tracelens.store.locks import ReadWriteLock
from tracelens.tracer.names import prefix_match
from tracelens.tracer.records import (
    ElementRecord,
    InterElementLatency,
    MetricRecord,
)


# A node id, or a (source_id, target_id) edge.
EntityRef = Union[str, tuple[str, str]]


@dataclass(frozen=True, slots=True)
class StoreSnapshot:
    """Point-in-time copy of both record sequences."""

    elements: tuple[ElementRecord, ...]
    latencies: tuple[InterElementLatency, ...]
    epoch: int

    def latest_for(
        self,
        entity: EntityRef,
        kind: type | None = None,
        *,
        incoming: tuple[str, ...] = (),
    ) -> MetricRecord | None:
        return _scan_latest(self.elements, self.latencies, entity, kind, incoming)


def _latency_belongs(
    latency: InterElementLatency,
    source_id: str,
    target_id: str,
    incoming: tuple[str, ...],
) -> bool:
    """Apply the target-endpoint rule to one `(source_id, target_id)` edge.

    `incoming` lists the source ids of every edge into `target_id`, in
    insertion order. A record whose source matches one of them belongs to
    that edge only; any other record goes to the first incoming edge.
    """

    if not prefix_match(target_id, latency.target):
        return False
    if prefix_match(source_id, latency.source):
        return True
    sources = incoming or (source_id,)
    if any(prefix_match(other, latency.source) for other in sources):
        return False
    return sources[0] == source_id


def _scan_latest(
    elements: tuple[ElementRecord, ...] | list[ElementRecord],
    latencies: tuple[InterElementLatency, ...] | list[InterElementLatency],
    entity: EntityRef,
    kind: type | None,
    incoming: tuple[str, ...] = (),
) -> MetricRecord | None:
    if isinstance(entity, tuple):
        source_id, target_id = entity
        for latency in reversed(latencies):
            if _latency_belongs(latency, source_id, target_id, incoming):
                return latency
        return None

    for record in reversed(elements):
        if kind is not None and not isinstance(record, kind):
            continue
        if prefix_match(entity, record.element):
            return record
    return None


class LiveMetricStore:
    """Two insertion-ordered record sequences behind a reader/writer lock.

    The ingestion loop is the only writer. Consumers query through
    `latest_for` / `snapshot` and may reset everything with `clear`.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._elements: list[ElementRecord] = []
        self._latencies: list[InterElementLatency] = []
        self._epoch = 0

    def record(self, metric: MetricRecord) -> None:
        """Append one record; records begun before a completed `clear` are discarded."""

        epoch = self._epoch
        with self._lock.write():
            if epoch != self._epoch:
                return
            if isinstance(metric, InterElementLatency):
                self._latencies.append(metric)
            else:
                self._elements.append(metric)

    def latest_for(
        self,
        entity: EntityRef,
        kind: type | None = None,
        *,
        incoming: tuple[str, ...] = (),
    ) -> MetricRecord | None:
        """Most recent record whose raw name prefix-matches the entity.

        A string entity scans per-element records (optionally restricted to
        one record class); an `(source_id, target_id)` pair scans latency
        records, matching on the target endpoint. Pass the source ids of all
        edges into the target as `incoming` so a record whose source names a
        sibling edge is not reported for this one.
        """

        with self._lock.read():
            return _scan_latest(self._elements, self._latencies, entity, kind, incoming)

    def clear(self) -> None:
        with self._lock.write():
            self._elements = []
            self._latencies = []
            self._epoch += 1

    def snapshot(self) -> StoreSnapshot:
        with self._lock.read():
            return StoreSnapshot(
                elements=tuple(self._elements),
                latencies=tuple(self._latencies),
                epoch=self._epoch,
            )

    def counts(self) -> dict[str, int]:
        with self._lock.read():
            return {
                "elements": len(self._elements),
                "latencies": len(self._latencies),
            }

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._elements) + len(self._latencies)
