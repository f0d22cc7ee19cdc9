"""tracelens package entrypoint."""

from tracelens.cli.app import main as _cli_main


def main() -> None:
    """Run the tracelens CLI."""
    _cli_main()
