"""Reader/writer lock for the live metric store.

Many readers or one writer. A waiting writer blocks new readers, so a steady
stream of snapshot queries cannot starve the ingestion thread. Not reentrant.
"""

from __future__ import annotations

from threading import Condition, Lock
from types import TracebackType
from typing import Literal


class ReaderContext:
    """Context manager for read locks."""

    def __init__(self, lock: ReadWriteLock):
        self._lock = lock

    def __enter__(self) -> ReaderContext:
        self._lock.acquire_read()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        self._lock.release_read()
        return False


class WriterContext:
    """Context manager for write locks."""

    def __init__(self, lock: ReadWriteLock):
        self._lock = lock

    def __enter__(self) -> WriterContext:
        self._lock.acquire_write()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        self._lock.release_write()
        return False


class ReadWriteLock:
    """Writer-preferring read/write lock built on a single condition."""

    def __init__(self) -> None:
        self._cond = Condition(Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("release_read without matching acquire_read")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write without matching acquire_write")
            self._writer = False
            self._cond.notify_all()

    def read(self) -> ReaderContext:
        return ReaderContext(self)

    def write(self) -> WriterContext:
        return WriterContext(self)
