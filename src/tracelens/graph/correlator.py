"""Bind raw metric records to graph nodes and edges."""

from __future__ import annotations

from dataclasses import dataclass

from tracelens.graph.builder import Edge, Element, PipelineGraph
from tracelens.tracer.names import prefix_match
from tracelens.tracer.records import InterElementLatency, MetricRecord


@dataclass(frozen=True, slots=True)
class Binding:
    """A metric record together with the graph entity it was bound to."""

    record: MetricRecord
    node: Element | None = None
    edge: Edge | None = None

    @property
    def matched(self) -> bool:
        return self.node is not None or self.edge is not None


def match_edge(
    graph: PipelineGraph,
    edges: tuple[Edge, ...] | list[Edge],
    source_name: str,
    target_name: str,
) -> Edge | None:
    """Pick the edge a latency between two raw pad names belongs to.

    The edge target must prefix-match `target_name`. When several edges
    qualify, one whose source also matches `source_name` wins, otherwise the
    first in insertion order.
    """

    fallback: Edge | None = None
    for edge in edges:
        source, target = graph.endpoints(edge)
        if not prefix_match(target.id, target_name):
            continue
        if prefix_match(source.id, source_name):
            return edge
        if fallback is None:
            fallback = edge
    return fallback


class Correlator:
    """Resolve records against a read-only PipelineGraph."""

    def __init__(self, graph: PipelineGraph) -> None:
        self.graph = graph

    def find_node(self, raw_name: str) -> Element | None:
        for node in self.graph.nodes:
            if prefix_match(node.id, raw_name):
                return node
        return None

    def correlate(self, record: MetricRecord) -> Binding:
        if isinstance(record, InterElementLatency):
            edge = match_edge(self.graph, self.graph.edges, record.source, record.target)
            return Binding(record=record, edge=edge)
        return Binding(record=record, node=self.find_node(record.element))
