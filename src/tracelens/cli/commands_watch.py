"""`tracelens watch` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from tracelens.config.loader import load_session_config
from tracelens.config.profiles import apply_profile
from tracelens.config.schema import SessionConfig, Thresholds, TracerConfig
from tracelens.graph.builder import build_graph
from tracelens.ingest.loop import IngestionLoop, SessionOutcome
from tracelens.ingest.process import TracedProcess
from tracelens.observability.logging import configure_logging, get_logger, log_event
from tracelens.storage.line_log import SessionLineLog
from tracelens.store.live import LiveMetricStore
from tracelens.view.dashboard import run_dashboard


_LOGGER = get_logger("tracelens.cli")


@dataclass(slots=True)
class WatchCommand:
    """Launch a pipeline with tracers enabled and show live metrics."""

    pipeline: str | None = None
    config: str | None = None
    tracers: tuple[str, ...] = ()
    profile: str | None = None
    min_bitrate: int | None = None
    min_framerate: float | None = None
    max_latency_ms: float | None = None
    log_dir: Path | None = None
    refresh_interval: float | None = None
    log_level: str = "WARNING"


def apply_threshold_overrides(
    thresholds: Thresholds,
    *,
    profile: str | None,
    min_bitrate: int | None,
    min_framerate: float | None,
    max_latency_ms: float | None,
) -> Thresholds:
    """Apply a profile first, then any explicit bounds on top of it."""

    if profile is not None:
        apply_profile(thresholds, profile)
    if min_bitrate is not None:
        thresholds.min_bitrate = min_bitrate
    if min_framerate is not None:
        thresholds.min_framerate = min_framerate
    if max_latency_ms is not None:
        thresholds.max_latency_ns = int(max_latency_ms * 1_000_000)
    # Re-run validation on the combined values.
    return Thresholds(
        min_bitrate=thresholds.min_bitrate,
        min_framerate=thresholds.min_framerate,
        max_latency_ns=thresholds.max_latency_ns,
    )


def resolve_session(command: WatchCommand) -> SessionConfig:
    cfg = load_session_config(command.config, command.pipeline)
    if command.tracers:
        cfg.tracer = TracerConfig(
            tracers=list(command.tracers),
            debug=cfg.tracer.debug,
            launcher=cfg.tracer.launcher,
        )
    cfg.thresholds = apply_threshold_overrides(
        cfg.thresholds,
        profile=command.profile,
        min_bitrate=command.min_bitrate,
        min_framerate=command.min_framerate,
        max_latency_ms=command.max_latency_ms,
    )
    if command.log_dir is not None:
        cfg.log_dir = command.log_dir
    if command.refresh_interval is not None:
        cfg.refresh_interval = command.refresh_interval
    return cfg


def describe_outcome(outcome: SessionOutcome | None) -> str:
    if outcome is None:
        return "pipeline still running"
    if outcome.ended_cleanly:
        return f"pipeline ended: lines={outcome.lines_read} records={outcome.records}"
    detail = outcome.error or f"returncode={outcome.returncode}"
    return f"pipeline crashed ({detail}): lines={outcome.lines_read} records={outcome.records}"


def exit_code(outcome: SessionOutcome | None) -> int:
    if outcome is None or outcome.ended_cleanly:
        return 0
    if outcome.returncode:
        return outcome.returncode if outcome.returncode > 0 else 1
    return 1


def execute(command: WatchCommand) -> int:
    configure_logging(command.log_level)
    cfg = resolve_session(command)
    graph = build_graph(cfg.pipeline)
    store = LiveMetricStore()
    process = TracedProcess(cfg.pipeline, cfg.tracer).start()

    mirror = SessionLineLog(cfg.log_dir).open() if cfg.log_dir is not None else None
    loop = IngestionLoop(
        process,
        graph,
        store,
        mirror=mirror,
        recent_lines=cfg.recent_lines,
    )
    console = Console()
    try:
        loop.start()
        try:
            outcome = run_dashboard(
                loop,
                graph,
                store,
                cfg.thresholds,
                refresh_interval=cfg.refresh_interval,
                console=console,
            )
        except KeyboardInterrupt:
            log_event(_LOGGER, "watch_interrupted", pid=process.pid)
            process.terminate()
            outcome = loop.wait()
    finally:
        if mirror is not None:
            mirror.close()

    console.print(describe_outcome(outcome))
    if mirror is not None:
        console.print(f"session log: {mirror.path}")
    return exit_code(outcome)
