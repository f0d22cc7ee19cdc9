"""Launch gst-launch with tracers enabled and stream its stderr."""

from __future__ import annotations

import os
import shlex
import subprocess
from typing import Any, Callable, Iterator

from tracelens.config.schema import TracerConfig
from tracelens.observability.logging import get_logger, log_event


_LOGGER = get_logger("tracelens.process")


class LaunchError(RuntimeError):
    """The traced pipeline process could not be started."""


def build_command(pipeline: str, tracer: TracerConfig) -> list[str]:
    return [tracer.launcher, *shlex.split(pipeline)]


def build_env(tracer: TracerConfig, base: dict[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if base is None else base)
    env["GST_TRACERS"] = tracer.tracers_env
    env["GST_DEBUG"] = tracer.debug
    env["GST_DEBUG_NO_COLOR"] = "1"
    return env


class TracedProcess:
    """A gst-launch child whose stderr is consumed as a line source."""

    def __init__(
        self,
        pipeline: str,
        tracer: TracerConfig | None = None,
        *,
        popen: Callable[..., Any] = subprocess.Popen,
        stop_timeout: float = 5.0,
    ) -> None:
        self.pipeline = pipeline
        self.tracer = tracer or TracerConfig()
        self.returncode: int | None = None
        self.stop_timeout = stop_timeout
        self._popen = popen
        self._process: Any = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def start(self) -> TracedProcess:
        if self._process is not None:
            return self
        cmd = build_command(self.pipeline, self.tracer)
        try:
            self._process = self._popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=build_env(self.tracer),
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise LaunchError(f"Could not launch {cmd[0]!r}: {exc}") from exc
        log_event(
            _LOGGER,
            "process_launched",
            pid=self._process.pid,
            command=cmd,
            tracers=self.tracer.tracers_env,
        )
        return self

    def __iter__(self) -> Iterator[str]:
        self.start()
        stream = self._process.stderr
        for line in stream:
            yield line.rstrip("\r\n")
        self.returncode = self._process.wait()
        log_event(_LOGGER, "process_exited", pid=self._process.pid, returncode=self.returncode)

    def terminate(self) -> None:
        process = self._process
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def close(self) -> None:
        if self._process is None:
            return
        self.terminate()
        if self.returncode is None:
            self.returncode = self._process.poll()
        if self._process.stderr is not None:
            self._process.stderr.close()
