"""Typed metric records extracted from tracer lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class Throughput:
    """Bitrate reported for one pad."""

    element: str
    bits_per_second: int


@dataclass(frozen=True, slots=True)
class FrameRate:
    """Frames per second reported for one pad."""

    element: str
    frames_per_second: float


@dataclass(frozen=True, slots=True)
class ProcessingTime:
    """Time an element spent processing one buffer."""

    element: str
    nanoseconds: int


@dataclass(frozen=True, slots=True)
class InterElementLatency:
    """Latency between a source pad and a downstream pad.

    `raw_time` keeps the duration exactly as the tracer printed it.
    """

    source: str
    target: str
    nanoseconds: int
    raw_time: str


MetricRecord = Union[Throughput, FrameRate, ProcessingTime, InterElementLatency]
ElementRecord = Union[Throughput, FrameRate, ProcessingTime]


def record_kind(record: MetricRecord) -> str:
    """Return the short tracer name for a record."""

    if isinstance(record, Throughput):
        return "bitrate"
    if isinstance(record, FrameRate):
        return "framerate"
    if isinstance(record, ProcessingTime):
        return "proctime"
    if isinstance(record, InterElementLatency):
        return "interlatency"
    raise TypeError(f"Unsupported metric record type: {type(record).__name__}")
