"""Example tracelens session config.

    tracelens watch --config example_session.py:SESSION
"""

from pathlib import Path

from tracelens.config.schema import SessionConfig, Thresholds, TracerConfig


SESSION = SessionConfig(
    pipeline=(
        "videotestsrc is-live=true ! videoconvert ! x264enc tune=zerolatency "
        "! h264parse ! avdec_h264 ! fakesink sync=true"
    ),
    tracer=TracerConfig(
        tracers=["bitrate", "framerate", "proctime", "interlatency"],
        debug="GST_TRACER:7",
    ),
    thresholds=Thresholds(
        min_bitrate=1_000_000,
        min_framerate=29.0,
        max_latency_ns=33_000_000,
    ),
    log_dir=Path(".tracelens/sessions"),
    refresh_interval=0.5,
)
