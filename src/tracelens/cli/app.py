"""Tyro CLI application entrypoint."""

from __future__ import annotations

from typing import Annotated

import tyro

from tracelens.cli import commands_graph, commands_replay, commands_watch


TopLevelCommand = Annotated[
    commands_watch.WatchCommand,
    tyro.conf.subcommand(name="watch"),
] | Annotated[
    commands_replay.ReplayCommand,
    tyro.conf.subcommand(name="replay"),
] | Annotated[
    commands_graph.GraphCommand,
    tyro.conf.subcommand(name="graph"),
]


def dispatch(command: TopLevelCommand) -> int:
    """Dispatch parsed top-level command object; return the exit code."""

    if isinstance(command, commands_watch.WatchCommand):
        return commands_watch.execute(command)
    if isinstance(command, commands_replay.ReplayCommand):
        return commands_replay.execute(command)
    if isinstance(command, commands_graph.GraphCommand):
        return commands_graph.execute(command)
    raise TypeError(f"Unsupported command type: {type(command).__name__}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run requested command."""

    command = tyro.cli(TopLevelCommand, args=argv)
    code = dispatch(command)
    if code:
        raise SystemExit(code)
