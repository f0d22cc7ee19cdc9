"""Dataclass-based configuration schema for tracelens."""

from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_TRACERS = ["bitrate", "framerate", "proctime", "interlatency"]


@dataclass(slots=True)
class Thresholds:
    """Display bounds; changed by the consumer, only read by the core."""

    min_bitrate: int = 0
    min_framerate: float = 0.0
    max_latency_ns: int | None = None

    def __post_init__(self) -> None:
        if self.min_bitrate < 0:
            raise ValueError(f"min_bitrate must be >= 0, got {self.min_bitrate}")
        if self.min_framerate < 0:
            raise ValueError(f"min_framerate must be >= 0, got {self.min_framerate}")
        if self.max_latency_ns is not None and self.max_latency_ns < 0:
            raise ValueError(f"max_latency_ns must be >= 0, got {self.max_latency_ns}")


@dataclass(slots=True)
class TracerConfig:
    """How the traced gst-launch process is started."""

    tracers: list[str] = field(default_factory=lambda: list(DEFAULT_TRACERS))
    debug: str = "GST_TRACER:7"
    launcher: str = "gst-launch-1.0"

    @property
    def tracers_env(self) -> str:
        return ";".join(self.tracers)


@dataclass(slots=True)
class SessionConfig:
    """Top-level session configuration."""

    pipeline: str
    tracer: TracerConfig = field(default_factory=TracerConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    log_dir: Path | None = None
    refresh_interval: float = 0.5
    recent_lines: int = 200
