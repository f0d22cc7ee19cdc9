"""`tracelens replay` command."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Annotated

from rich.console import Console
import tyro

from tracelens.cli.commands_watch import (
    WatchCommand,
    describe_outcome,
    exit_code,
    resolve_session,
)
from tracelens.graph.builder import build_graph
from tracelens.ingest.loop import IngestionLoop
from tracelens.ingest.sources import FileSource
from tracelens.observability.logging import configure_logging
from tracelens.storage.line_log import iter_session_logs
from tracelens.store.live import LiveMetricStore
from tracelens.view.dashboard import render_view
from tracelens.view.model import build_view


@dataclass(slots=True)
class ReplayCommand:
    """Feed a saved tracer log through the pipeline graph and print the result.

    PATH may be a log file or a session directory (the newest session log is used).
    """

    path: Annotated[Path, tyro.conf.Positional]
    pipeline: str | None = None
    config: str | None = None
    profile: str | None = None
    min_bitrate: int | None = None
    min_framerate: float | None = None
    max_latency_ms: float | None = None
    json: bool = False
    log_level: str = "WARNING"


def _resolve_log_path(path: Path) -> Path:
    if path.is_dir():
        logs = iter_session_logs(path)
        if not logs:
            raise FileNotFoundError(f"No session logs found in {path}")
        return logs[-1]
    if not path.exists():
        raise FileNotFoundError(f"Log file not found: {path}")
    return path


def execute(command: ReplayCommand, console: Console | None = None) -> int:
    configure_logging(command.log_level)
    cfg = resolve_session(
        WatchCommand(
            pipeline=command.pipeline,
            config=command.config,
            profile=command.profile,
            min_bitrate=command.min_bitrate,
            min_framerate=command.min_framerate,
            max_latency_ms=command.max_latency_ms,
        )
    )
    log_path = _resolve_log_path(command.path)
    graph = build_graph(cfg.pipeline)
    store = LiveMetricStore()
    loop = IngestionLoop(FileSource(log_path), graph, store, recent_lines=cfg.recent_lines)
    outcome = loop.run()
    view = build_view(graph, store, cfg.thresholds)

    console = console or Console()
    if command.json:
        payload = {
            "source": str(log_path),
            "outcome": outcome.as_dict(),
            "view": view.as_dict(),
        }
        console.print_json(json.dumps(payload, sort_keys=True))
    else:
        console.print(render_view(view, title=str(log_path), status=describe_outcome(outcome)))
    return exit_code(outcome)
