"""Polling terminal dashboard built on rich."""

from __future__ import annotations

import time
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tracelens.config.schema import Thresholds
from tracelens.graph.builder import PipelineGraph
from tracelens.ingest.loop import IngestionLoop, SessionOutcome
from tracelens.store.live import LiveMetricStore
from tracelens.view.model import GraphView, build_view


def _clip(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return f"{value[: width - 3]}..."


def format_bitrate(bits_per_second: int | None) -> str:
    if bits_per_second is None:
        return "-"
    value = float(bits_per_second)
    for unit in ("bps", "kbps", "Mbps"):
        if value < 1000.0:
            return f"{value:.0f} {unit}" if unit == "bps" else f"{value:.1f} {unit}"
        value /= 1000.0
    return f"{value:.1f} Gbps"


def format_framerate(fps: float | None) -> str:
    return "-" if fps is None else f"{fps:.1f} fps"


def format_ns(nanoseconds: int | None) -> str:
    if nanoseconds is None:
        return "-"
    if nanoseconds < 1_000:
        return f"{nanoseconds} ns"
    if nanoseconds < 1_000_000:
        return f"{nanoseconds / 1_000:.1f} us"
    if nanoseconds < 1_000_000_000:
        return f"{nanoseconds / 1_000_000:.2f} ms"
    return f"{nanoseconds / 1_000_000_000:.3f} s"


def render_view(
    view: GraphView,
    *,
    title: str = "Pipeline",
    status: str | None = None,
    recent: list[str] | None = None,
) -> Panel:
    """Return a rich renderable for one GraphView."""

    parts: list[Any] = []
    if status:
        parts.append(Text(status, style="bold"))
    if not view.has_data:
        parts.append(Text("No tracing data yet...", style="dim"))

    nodes = Table(expand=True, show_header=True, pad_edge=False)
    nodes.add_column("#", width=3, justify="right")
    nodes.add_column("Element")
    nodes.add_column("Bitrate", justify="right")
    nodes.add_column("Framerate", justify="right")
    nodes.add_column("Proc time", justify="right")
    for node in view.nodes:
        style = "" if node.passes else "red"
        nodes.add_row(
            str(node.index),
            Text(node.id, style=style or "bold"),
            Text(format_bitrate(node.bitrate), style=style),
            Text(format_framerate(node.framerate), style=style),
            format_ns(node.processing_ns),
        )
    parts.append(nodes)

    if view.edges:
        edges = Table(expand=True, show_header=True, pad_edge=False)
        edges.add_column("Link")
        edges.add_column("Latency", justify="right")
        for edge in view.edges:
            edges.add_row(
                f"{edge.source} -> {edge.target}",
                Text(
                    format_ns(edge.latency_ns),
                    style="bold red" if edge.breached else "",
                ),
            )
        parts.append(edges)

    if recent:
        tail = "\n".join(_clip(line, 160) for line in recent)
        parts.append(Panel(Text(tail, style="dim"), title="Recent lines", border_style="blue"))

    return Panel(Group(*parts), title=title, border_style="cyan")


def _status_line(loop: IngestionLoop) -> str:
    stats = loop.stats.as_dict()
    return (
        f"state={loop.state.value} lines={stats['lines']} "
        f"records={stats['classified']} unmatched={stats['unmatched']}"
    )


def run_dashboard(
    loop: IngestionLoop,
    graph: PipelineGraph,
    store: LiveMetricStore,
    thresholds: Thresholds,
    *,
    refresh_interval: float = 0.5,
    recent_count: int = 8,
    console: Console | None = None,
) -> SessionOutcome | None:
    """Redraw on a fixed cadence until the ingestion loop closes."""

    interval = max(0.05, refresh_interval)

    def _frame() -> Panel:
        view = build_view(graph, store, thresholds)
        recent = loop.recent_lines()[-recent_count:] if recent_count > 0 else None
        return render_view(
            view,
            title="tracelens",
            status=_status_line(loop),
            recent=recent,
        )

    with Live(_frame(), console=console, auto_refresh=False) as live:
        while not loop.closed:
            time.sleep(interval)
            live.update(_frame(), refresh=True)
        live.update(_frame(), refresh=True)
    return loop.wait()
