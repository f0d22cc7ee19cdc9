"""Classify tracer lines into typed metric records."""

from __future__ import annotations

import math
from typing import Callable

from tracelens.tracer.grammars import (
    DURATION_PATTERN,
    FLOAT_PATTERN,
    FRAME_RATE,
    INTER_ELEMENT_LATENCY,
    PROCESSING_TIME,
    THROUGHPUT,
    UINT_PATTERN,
    Grammar,
)
from tracelens.tracer.records import (
    FrameRate,
    InterElementLatency,
    MetricRecord,
    ProcessingTime,
    Throughput,
)


_NS_PER_HOUR = 3_600_000_000_000
_NS_PER_MINUTE = 60_000_000_000
_NS_PER_SECOND = 1_000_000_000


def parse_uint(text: str) -> int | None:
    """Parse an unsigned decimal integer, returning None when malformed."""

    if UINT_PATTERN.fullmatch(text) is None:
        return None
    return int(text)


def parse_rate(text: str) -> float | None:
    """Parse a finite non-negative rate."""

    if FLOAT_PATTERN.fullmatch(text) is None:
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def parse_duration_ns(text: str) -> int | None:
    """Decompose an `H:MM:SS.fraction` duration into integer nanoseconds.

    Returns None for anything malformed, including minute or second fields of
    60 or more (GStreamer prints `99:99:99.999999999` for an unknown time).
    """

    match = DURATION_PATTERN.fullmatch(text)
    if match is None:
        return None
    minutes = int(match.group("minutes"))
    seconds = int(match.group("seconds"))
    if minutes >= 60 or seconds >= 60:
        return None
    fraction = int(match.group("fraction").ljust(9, "0"))
    return (
        int(match.group("hours")) * _NS_PER_HOUR
        + minutes * _NS_PER_MINUTE
        + seconds * _NS_PER_SECOND
        + fraction
    )


def parse_latency_ns(text: str) -> int | None:
    """Parse an inter-element latency, given as a duration or raw nanoseconds."""

    if ":" in text:
        return parse_duration_ns(text)
    return parse_uint(text)


def _throughput(fields: dict[str, str]) -> MetricRecord | None:
    bitrate = parse_uint(fields["bitrate"])
    if bitrate is None:
        return None
    return Throughput(element=fields["pad"], bits_per_second=bitrate)


def _frame_rate(fields: dict[str, str]) -> MetricRecord | None:
    fps = parse_rate(fields["fps"])
    if fps is None:
        return None
    return FrameRate(element=fields["pad"], frames_per_second=fps)


def _processing_time(fields: dict[str, str]) -> MetricRecord | None:
    nanoseconds = parse_duration_ns(fields["time"])
    if nanoseconds is None:
        return None
    return ProcessingTime(element=fields["element"], nanoseconds=nanoseconds)


def _inter_element_latency(fields: dict[str, str]) -> MetricRecord | None:
    raw_time = fields["time"]
    nanoseconds = parse_latency_ns(raw_time)
    if nanoseconds is None:
        return None
    return InterElementLatency(
        source=fields["from_pad"],
        target=fields["to_pad"],
        nanoseconds=nanoseconds,
        raw_time=raw_time,
    )


_BUILDERS: tuple[tuple[Grammar, Callable[[dict[str, str]], MetricRecord | None]], ...] = (
    (THROUGHPUT, _throughput),
    (FRAME_RATE, _frame_rate),
    (PROCESSING_TIME, _processing_time),
    (INTER_ELEMENT_LATENCY, _inter_element_latency),
)


def classify_line(line: str) -> MetricRecord | None:
    """Return the first grammar match for a line as a typed record.

    Lines matching no grammar, or matching one whose numeric field does not
    parse, yield None.
    """

    for grammar, build in _BUILDERS:
        fields = grammar.match(line)
        if fields is None:
            continue
        record = build(fields)
        if record is not None:
            return record
    return None
