"""Shared pytest fixtures."""

import pytest

from tests.samples import (
    BITRATE_LINE,
    FRAMERATE_LINE,
    INTERLATENCY_LINE,
    NOISE_LINE,
    PIPELINE,
    PROCTIME_LINE,
)
from tracelens.graph.builder import build_graph
from tracelens.store.live import LiveMetricStore


@pytest.fixture
def graph():
    return build_graph(PIPELINE)


@pytest.fixture
def store():
    return LiveMetricStore()


@pytest.fixture
def tracer_lines():
    return [
        "Setting pipeline to PAUSED ...",
        BITRATE_LINE,
        NOISE_LINE,
        FRAMERATE_LINE,
        PROCTIME_LINE,
        INTERLATENCY_LINE,
        "0:00:01.5 31337 0x55d1c0a0 TRACE GST_TRACER :0:: bitrate, pad=(string)sink_0, bitrate=(guint64)abc;",
    ]
