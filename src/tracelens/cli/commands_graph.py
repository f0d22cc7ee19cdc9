"""`tracelens graph` command."""

from __future__ import annotations

from dataclasses import dataclass
import json

from rich.console import Console
from rich.table import Table

from tracelens.graph.builder import build_graph


@dataclass(slots=True)
class GraphCommand:
    """Print the element graph parsed from a pipeline description."""

    pipeline: str
    json: bool = False


def execute(command: GraphCommand, console: Console | None = None) -> int:
    graph = build_graph(command.pipeline)
    console = console or Console()

    if command.json:
        payload = {
            "nodes": [
                {"index": node.index, "id": node.id, "properties": dict(node.properties)}
                for node in graph.nodes
            ],
            "edges": [list(pair) for pair in graph.edge_pairs()],
        }
        console.print_json(json.dumps(payload, sort_keys=True))
        return 0

    if graph.is_empty:
        console.print("no pipeline")
        return 0

    table = Table(show_header=True, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Element")
    table.add_column("Links to")
    for node in graph.nodes:
        targets = ", ".join(target.id for target in graph.successors(node.index))
        table.add_row(str(node.index), node.id, targets or "-")
    console.print(table)
    return 0
