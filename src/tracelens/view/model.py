"""Point-in-time view of the graph decorated with the latest metrics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from tracelens.config.schema import Thresholds
from tracelens.graph.builder import PipelineGraph
from tracelens.store.live import LiveMetricStore
from tracelens.store.thresholds import latency_breached, node_passes
from tracelens.tracer.records import FrameRate, ProcessingTime, Throughput


@dataclass(frozen=True, slots=True)
class NodeView:
    index: int
    id: str
    bitrate: int | None
    framerate: float | None
    processing_ns: int | None
    passes: bool


@dataclass(frozen=True, slots=True)
class EdgeView:
    source: str
    target: str
    latency_ns: int | None
    latency_raw: str | None
    breached: bool


@dataclass(frozen=True, slots=True)
class GraphView:
    nodes: tuple[NodeView, ...]
    edges: tuple[EdgeView, ...]
    record_count: int

    @property
    def has_data(self) -> bool:
        return self.record_count > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "nodes": [asdict(node) for node in self.nodes],
            "edges": [asdict(edge) for edge in self.edges],
            "record_count": self.record_count,
        }


def build_view(
    graph: PipelineGraph,
    store: LiveMetricStore,
    thresholds: Thresholds,
) -> GraphView:
    """Resolve every node and edge against one consistent store snapshot."""

    snapshot = store.snapshot()

    nodes: list[NodeView] = []
    for node in graph.nodes:
        throughput = snapshot.latest_for(node.id, Throughput)
        framerate = snapshot.latest_for(node.id, FrameRate)
        proctime = snapshot.latest_for(node.id, ProcessingTime)
        bitrate = throughput.bits_per_second if throughput is not None else None
        fps = framerate.frames_per_second if framerate is not None else None
        nodes.append(
            NodeView(
                index=node.index,
                id=node.id,
                bitrate=bitrate,
                framerate=fps,
                processing_ns=proctime.nanoseconds if proctime is not None else None,
                passes=node_passes(bitrate, fps, thresholds),
            )
        )

    pairs = graph.edge_pairs()
    incoming: dict[str, list[str]] = {}
    for source_id, target_id in pairs:
        incoming.setdefault(target_id, []).append(source_id)

    edges: list[EdgeView] = []
    for source_id, target_id in pairs:
        latency = snapshot.latest_for(
            (source_id, target_id),
            incoming=tuple(incoming[target_id]),
        )
        latency_ns = latency.nanoseconds if latency is not None else None
        edges.append(
            EdgeView(
                source=source_id,
                target=target_id,
                latency_ns=latency_ns,
                latency_raw=latency.raw_time if latency is not None else None,
                breached=latency_breached(latency_ns, thresholds),
            )
        )

    return GraphView(
        nodes=tuple(nodes),
        edges=tuple(edges),
        record_count=len(snapshot.elements) + len(snapshot.latencies),
    )
