"""Threshold predicates used to select and flag metrics for display."""

from __future__ import annotations

from tracelens.config.schema import Thresholds
from tracelens.tracer.records import FrameRate, MetricRecord, Throughput


def passes_threshold(metric: MetricRecord, thresholds: Thresholds) -> bool:
    """Return whether a single record satisfies the node display bounds.

    Processing time and latency records always pass; exceeding the latency
    bound changes how they are shown, not whether they are shown.
    """

    if isinstance(metric, Throughput):
        return metric.bits_per_second >= thresholds.min_bitrate
    if isinstance(metric, FrameRate):
        return metric.frames_per_second >= thresholds.min_framerate
    return True


def node_passes(
    bitrate: int | None,
    framerate: float | None,
    thresholds: Thresholds,
) -> bool:
    """Combined node predicate; a missing value satisfies its own bound."""

    if bitrate is not None and bitrate < thresholds.min_bitrate:
        return False
    if framerate is not None and framerate < thresholds.min_framerate:
        return False
    return True


def latency_breached(nanoseconds: int | None, thresholds: Thresholds) -> bool:
    if nanoseconds is None or thresholds.max_latency_ns is None:
        return False
    return nanoseconds > thresholds.max_latency_ns
