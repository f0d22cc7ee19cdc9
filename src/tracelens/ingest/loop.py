"""Streaming ingestion: line source -> classifier -> correlator -> store."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from enum import Enum
import logging
import threading
from typing import Any, Callable

from tracelens.graph.builder import PipelineGraph
from tracelens.graph.correlator import Binding, Correlator
from tracelens.ingest.sources import LineSource
from tracelens.observability.logging import get_logger, log_event
from tracelens.observability.stats import IngestStats
from tracelens.storage.line_log import SessionLineLog
from tracelens.store.live import LiveMetricStore
from tracelens.tracer.classifier import classify_line


_LOGGER = get_logger("tracelens.ingest")


class LoopState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    CLOSED = "CLOSED"


@dataclass(slots=True)
class SessionOutcome:
    """How an ingestion session ended."""

    lines_read: int
    records: int
    unmatched: int
    dropped: int
    returncode: int | None
    error: str | None = None

    @property
    def ended_cleanly(self) -> bool:
        return self.error is None and self.returncode in (0, None)

    def as_dict(self) -> dict[str, Any]:
        return {**asdict(self), "ended_cleanly": self.ended_cleanly}


class IngestionLoop:
    """Single writer of the live store.

    States: IDLE -> RUNNING -> CLOSED. CLOSED is terminal; a finished or
    crashed source ends the session for good.
    """

    def __init__(
        self,
        source: LineSource,
        graph: PipelineGraph,
        store: LiveMetricStore,
        *,
        mirror: SessionLineLog | None = None,
        sink: Callable[[Binding], None] | None = None,
        stats: IngestStats | None = None,
        recent_lines: int = 200,
    ) -> None:
        self.source = source
        self.graph = graph
        self.store = store
        self.mirror = mirror
        self.sink = sink
        self.stats = stats or IngestStats()
        self.correlator = Correlator(graph)
        self._recent: deque[str] = deque(maxlen=max(1, recent_lines))
        self._recent_lock = threading.Lock()
        self._state = LoopState.IDLE
        self._state_lock = threading.Lock()
        self._closed = threading.Event()
        self._thread: threading.Thread | None = None
        self._failure: BaseException | None = None
        self.outcome: SessionOutcome | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def recent_lines(self) -> list[str]:
        with self._recent_lock:
            return list(self._recent)

    def process_line(self, line: str) -> Binding | None:
        """Mirror, classify, correlate and record one line."""

        self.stats.record_line()
        if self.mirror is not None:
            self.mirror.append(line)
        with self._recent_lock:
            self._recent.append(line)

        record = classify_line(line)
        if record is None:
            self.stats.record_dropped()
            return None

        binding = self.correlator.correlate(record)
        self.store.record(record)
        self.stats.record_classified(record, matched=binding.matched)
        if self.sink is not None:
            self.sink(binding)
        return binding

    def run(self) -> SessionOutcome:
        """Consume the source until it is exhausted; return the outcome."""

        with self._state_lock:
            if self._state is not LoopState.IDLE:
                raise RuntimeError(f"Ingestion loop cannot run from state {self._state.value}.")
            self._state = LoopState.RUNNING
        log_event(_LOGGER, "ingest_started", nodes=len(self.graph))

        error: str | None = None
        try:
            iterator = iter(self.source)
            while True:
                try:
                    line = next(iterator)
                except StopIteration:
                    break
                except Exception as exc:
                    error = f"{type(exc).__name__}: {exc}"
                    _LOGGER.error(
                        "ingest_source_failed",
                        exc_info=True,
                        extra={"event": "ingest_source_failed", "error": error},
                    )
                    break
                self.process_line(line)
        finally:
            self._close(error)
        return self.outcome

    def _close(self, error: str | None) -> None:
        try:
            self.source.close()
            stats = self.stats.as_dict()
            self.outcome = SessionOutcome(
                lines_read=stats["lines"],
                records=stats["classified"],
                unmatched=stats["unmatched"],
                dropped=stats["dropped"],
                returncode=self.source.returncode,
                error=error,
            )
            if self.mirror is not None:
                self._write_summary(
                    self.mirror,
                    {"outcome": self.outcome.as_dict(), "stats": stats},
                )
            log_event(
                _LOGGER,
                "ingest_closed",
                level=logging.INFO if self.outcome.ended_cleanly else logging.WARNING,
                **self.outcome.as_dict(),
            )
        finally:
            with self._state_lock:
                self._state = LoopState.CLOSED
            self._closed.set()

    def _write_summary(self, mirror: SessionLineLog, payload: dict[str, Any]) -> None:
        try:
            mirror.write_summary(payload)
        except OSError as exc:
            log_event(
                _LOGGER,
                "summary_write_failed",
                level=logging.ERROR,
                path=str(mirror.summary_path),
                error=f"{type(exc).__name__}: {exc}",
            )

    def _thread_main(self) -> None:
        try:
            self.run()
        except BaseException as exc:
            self._failure = exc
            _LOGGER.error(
                "ingest_failed",
                exc_info=True,
                extra={"event": "ingest_failed"},
            )

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread."""

        if self._thread is not None:
            raise RuntimeError("Ingestion loop already started.")
        self._thread = threading.Thread(
            target=self._thread_main,
            name="tracelens-ingest",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def wait(self, timeout: float | None = None) -> SessionOutcome | None:
        """Wait for the loop to close; re-raise anything that escaped it."""

        if self._thread is not None:
            self._thread.join(timeout)
        else:
            self._closed.wait(timeout)
        if self._failure is not None:
            raise self._failure
        return self.outcome
