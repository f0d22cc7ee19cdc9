"""Line sources feeding the ingestion loop."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Protocol


class LineSource(Protocol):
    """Ordered, lazy, possibly endless sequence of text lines.

    `returncode` is None for sources that are not backed by a process, or
    while the process is still running.
    """

    returncode: int | None

    def __iter__(self) -> Iterator[str]:
        ...

    def close(self) -> None:
        ...


class IterableSource:
    """Wrap any iterable of strings (lists, generators, open files)."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = lines
        self.returncode: int | None = None

    def __iter__(self) -> Iterator[str]:
        for line in self._lines:
            yield line.rstrip("\r\n")

    def close(self) -> None:
        closer = getattr(self._lines, "close", None)
        if callable(closer):
            closer()


class FileSource:
    """Replay a previously mirrored session log, or any saved tracer output."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.returncode: int | None = None

    def __iter__(self) -> Iterator[str]:
        with self.path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                yield line.rstrip("\r\n")

    def close(self) -> None:
        return None
