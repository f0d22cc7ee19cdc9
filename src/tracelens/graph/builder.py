"""Build the element graph from a gst-launch style pipeline description."""

from __future__ import annotations

from dataclasses import dataclass


LINK_OPERATOR = "!"


@dataclass(frozen=True, slots=True)
class Element:
    """One pipeline element, identified by the name written in the description."""

    id: str
    index: int
    properties: tuple[tuple[str, str], ...] = ()

    def get_property(self, key: str) -> str | None:
        for prop_key, value in self.properties:
            if prop_key == key:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Edge:
    """Directed link between two node indices."""

    source: int
    target: int


@dataclass(frozen=True, slots=True)
class PipelineGraph:
    """Read-only directed graph of elements.

    Edges reference node indices rather than ids because ids may repeat
    (`queue ! ... ! queue`).
    """

    nodes: tuple[Element, ...] = ()
    edges: tuple[Edge, ...] = ()

    def __post_init__(self) -> None:
        count = len(self.nodes)
        for edge in self.edges:
            if not (0 <= edge.source < count and 0 <= edge.target < count):
                raise ValueError(
                    f"Edge {edge.source}->{edge.target} references a missing element "
                    f"(graph has {count} nodes)."
                )

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def edge_pairs(self) -> list[tuple[str, str]]:
        return [(self.nodes[e.source].id, self.nodes[e.target].id) for e in self.edges]

    def successors(self, index: int) -> list[Element]:
        return [self.nodes[e.target] for e in self.edges if e.source == index]

    def predecessors(self, index: int) -> list[Element]:
        return [self.nodes[e.source] for e in self.edges if e.target == index]

    def endpoints(self, edge: Edge) -> tuple[Element, Element]:
        return self.nodes[edge.source], self.nodes[edge.target]


def _element_name(token: str) -> str:
    # `name=foo` style leading tokens carry the real name after the first `=`.
    if "=" in token:
        return token.split("=", 1)[1]
    return token


def _is_branch_ref(token: str) -> bool:
    return token.endswith(".") and "=" not in token and len(token) > 1


def build_graph(description: str) -> PipelineGraph:
    """Parse a `!`-separated pipeline description into a PipelineGraph.

    Each segment contributes one element named by its first token; trailing
    `key=value` tokens are kept as properties. Tee-style branches are
    supported: `name=t` anchors an element, and a `t.` token either starts a
    segment (link from the anchor) or ends one (close the current chain so the
    next segment branches from the anchor).
    """

    nodes: list[Element] = []
    edges: list[Edge] = []
    anchors: dict[str, int] = {}
    previous: int | None = None

    for segment in description.split(LINK_OPERATOR):
        tokens = segment.split()
        if not tokens:
            continue

        if _is_branch_ref(tokens[0]):
            previous = anchors.get(tokens[0][:-1])
            tokens = tokens[1:]
            if not tokens:
                continue

        index = len(nodes)
        head_key, head_sep, head_value = tokens[0].partition("=")
        if head_sep and head_key == "name":
            anchors[head_value] = index
        properties: list[tuple[str, str]] = []
        pending_branch: str | None = None
        for token in tokens[1:]:
            if _is_branch_ref(token):
                pending_branch = token[:-1]
                continue
            key, sep, value = token.partition("=")
            if sep:
                properties.append((key, value))
                if key == "name":
                    anchors[value] = index

        nodes.append(
            Element(id=_element_name(tokens[0]), index=index, properties=tuple(properties))
        )
        if previous is not None:
            edges.append(Edge(source=previous, target=index))
        previous = index

        if pending_branch is not None:
            previous = anchors.get(pending_branch)

    return PipelineGraph(nodes=tuple(nodes), edges=tuple(edges))
