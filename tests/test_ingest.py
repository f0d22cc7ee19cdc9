"""Tests for the ingestion loop, line sources and the process launcher."""

import io
import logging
import subprocess

import pytest

from tests.samples import BITRATE_LINE, NOISE_LINE, PIPELINE
from tracelens.config.schema import TracerConfig
from tracelens.ingest.loop import IngestionLoop, LoopState
from tracelens.ingest.process import LaunchError, TracedProcess, build_command, build_env
from tracelens.ingest.sources import FileSource, IterableSource
from tracelens.storage.line_log import SessionLineLog
from tracelens.tracer.records import FrameRate, InterElementLatency, ProcessingTime, Throughput


class _FailingSource:
    returncode = None

    def __init__(self, lines, exc):
        self._lines = lines
        self._exc = exc
        self.closed = False

    def __iter__(self):
        yield from self._lines
        raise self._exc

    def close(self):
        self.closed = True


class _ReadOnlyMirror(SessionLineLog):
    def write_summary(self, payload):
        raise OSError("disk full")


class _UnclosableSource(IterableSource):
    def close(self):
        raise OSError("broken pipe")


class TestIngestionLoop:
    def test_full_session(self, graph, store, tracer_lines):
        bindings = []
        loop = IngestionLoop(IterableSource(tracer_lines), graph, store, sink=bindings.append)
        assert loop.state is LoopState.IDLE

        outcome = loop.run()

        assert loop.state is LoopState.CLOSED
        assert loop.closed
        assert outcome.ended_cleanly
        assert outcome.returncode is None
        assert outcome.lines_read == len(tracer_lines)
        assert outcome.records == 4
        assert outcome.dropped == 3
        assert outcome.unmatched == 0

        assert store.latest_for("queue", Throughput).bits_per_second == 128000
        assert store.latest_for("queue", FrameRate).frames_per_second == 30.0
        assert store.latest_for("queue", ProcessingTime).nanoseconds == 12345
        assert isinstance(store.latest_for(("queue", "autoaudiosink")), InterElementLatency)

        assert [b.node.id if b.node else None for b in bindings] == ["queue", "queue", "queue", None]
        assert bindings[-1].edge is not None

    def test_malformed_numeric_line_does_not_populate_store(self, graph, store):
        loop = IngestionLoop(
            IterableSource(["bitrate, pad=(string)queue0_src, bitrate=(guint64)abc;"]),
            graph,
            store,
        )
        outcome = loop.run()
        assert outcome.ended_cleanly
        assert outcome.dropped == 1
        assert len(store) == 0

    def test_unmatched_records_are_stored_and_counted(self, graph, store):
        loop = IngestionLoop(
            IterableSource(["bitrate, pad=(string)sink_0, bitrate=(guint64)128000;"]),
            graph,
            store,
        )
        outcome = loop.run()
        assert outcome.unmatched == 1
        assert len(store) == 1
        assert loop.stats.as_dict()["by_kind"] == {"bitrate": 1}

    def test_records_keep_line_order(self, graph, store):
        lines = [
            f"bitrate, pad=(string)queue0_src, bitrate=(guint64){value};" for value in (5, 1, 9, 3)
        ]
        IngestionLoop(IterableSource(lines), graph, store).run()
        assert [r.bits_per_second for r in store.snapshot().elements] == [5, 1, 9, 3]
        assert store.latest_for("queue").bits_per_second == 3

    def test_source_failure_is_reported_not_raised(self, graph, store):
        source = _FailingSource([BITRATE_LINE], OSError("pipe broke"))
        loop = IngestionLoop(source, graph, store)
        outcome = loop.run()
        assert loop.state is LoopState.CLOSED
        assert source.closed
        assert not outcome.ended_cleanly
        assert "OSError" in outcome.error
        assert outcome.records == 1

    def test_nonzero_returncode_is_a_crash(self, graph, store):
        source = IterableSource([NOISE_LINE])
        source.returncode = 1
        outcome = IngestionLoop(source, graph, store).run()
        assert outcome.error is None
        assert not outcome.ended_cleanly

    def test_sink_errors_propagate_after_close(self, graph, store):
        def sink(_binding):
            raise ValueError("bad sink")

        loop = IngestionLoop(IterableSource([BITRATE_LINE]), graph, store, sink=sink)
        with pytest.raises(ValueError, match="bad sink"):
            loop.run()
        assert loop.state is LoopState.CLOSED

    def test_closed_is_terminal(self, graph, store):
        loop = IngestionLoop(IterableSource([]), graph, store)
        loop.run()
        with pytest.raises(RuntimeError, match="CLOSED"):
            loop.run()

    def test_background_thread(self, graph, store, tracer_lines):
        loop = IngestionLoop(IterableSource(tracer_lines), graph, store)
        loop.start()
        outcome = loop.wait(timeout=10)
        assert outcome is not None and outcome.ended_cleanly
        assert loop.closed
        with pytest.raises(RuntimeError, match="already started"):
            loop.start()

    def test_background_failure_is_reraised_by_wait(self, graph, store):
        def sink(_binding):
            raise ValueError("bad sink")

        loop = IngestionLoop(IterableSource([BITRATE_LINE]), graph, store, sink=sink)
        loop.start()
        with pytest.raises(ValueError, match="bad sink"):
            loop.wait(timeout=10)

    def test_summary_write_failure_still_closes(self, graph, store, tmp_path, caplog):
        ingest_logger = logging.getLogger("tracelens.ingest")
        ingest_logger.addHandler(caplog.handler)
        try:
            with _ReadOnlyMirror(tmp_path, stamp="20260101T000000Z") as mirror:
                loop = IngestionLoop(IterableSource([BITRATE_LINE]), graph, store, mirror=mirror)
                loop.start()
                outcome = loop.wait(timeout=5)
        finally:
            ingest_logger.removeHandler(caplog.handler)
        assert loop.closed
        assert loop.state is LoopState.CLOSED
        assert outcome is not None and outcome.ended_cleanly
        assert any(getattr(record, "event", None) == "summary_write_failed" for record in caplog.records)

    def test_source_close_failure_still_closes(self, graph, store):
        loop = IngestionLoop(_UnclosableSource([BITRATE_LINE]), graph, store)
        loop.start()
        with pytest.raises(OSError, match="broken pipe"):
            loop.wait(timeout=5)
        assert loop.closed
        assert loop.state is LoopState.CLOSED

    def test_recent_lines_are_bounded(self, graph, store):
        lines = [f"noise {idx}" for idx in range(10)]
        loop = IngestionLoop(IterableSource(lines), graph, store, recent_lines=3)
        loop.run()
        assert loop.recent_lines() == ["noise 7", "noise 8", "noise 9"]

    def test_mirror_receives_every_line(self, graph, store, tracer_lines, tmp_path):
        with SessionLineLog(tmp_path, stamp="20260101T000000Z") as mirror:
            IngestionLoop(IterableSource(tracer_lines), graph, store, mirror=mirror).run()
        text = mirror.path.read_text(encoding="utf-8")
        assert text == "".join(line + "\n" for line in tracer_lines)
        assert mirror.summary_path.exists()


class TestSources:
    def test_iterable_source_strips_newlines(self):
        source = IterableSource(io.StringIO("a\nb\r\nc"))
        assert list(source) == ["a", "b", "c"]
        source.close()

    def test_file_source(self, tmp_path):
        path = tmp_path / "trace.log"
        path.write_text(f"{NOISE_LINE}\n{BITRATE_LINE}\n", encoding="utf-8")
        assert list(FileSource(path)) == [NOISE_LINE, BITRATE_LINE]


class _FakePopen:
    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = 4242
        self.stderr = io.StringIO(f"{NOISE_LINE}\n{BITRATE_LINE}\n")
        self._returncode = None
        self.terminated = False

    def wait(self, timeout=None):
        if self._returncode is None:
            self._returncode = 0
        return self._returncode

    def poll(self):
        return self._returncode

    def terminate(self):
        self.terminated = True
        self._returncode = -15


class TestTracedProcess:
    def test_command_and_environment(self):
        tracer = TracerConfig(tracers=["bitrate", "framerate"])
        assert build_command(PIPELINE, tracer) == [
            "gst-launch-1.0",
            "audiotestsrc",
            "!",
            "queue",
            "!",
            "autoaudiosink",
        ]
        env = build_env(tracer, base={"PATH": "/usr/bin"})
        assert env["GST_TRACERS"] == "bitrate;framerate"
        assert env["GST_DEBUG"] == "GST_TRACER:7"
        assert env["GST_DEBUG_NO_COLOR"] == "1"
        assert env["PATH"] == "/usr/bin"

    def test_streams_stderr_and_reports_returncode(self, graph, store):
        created = []

        def popen(cmd, **kwargs):
            created.append(_FakePopen(cmd, **kwargs))
            return created[-1]

        process = TracedProcess(PIPELINE, popen=popen)
        outcome = IngestionLoop(process, graph, store).run()

        fake = created[0]
        assert fake.kwargs["stderr"] is subprocess.PIPE
        assert fake.kwargs["env"]["GST_TRACERS"] == "bitrate;framerate;proctime;interlatency"
        assert outcome.returncode == 0
        assert outcome.ended_cleanly
        assert outcome.lines_read == 2
        assert store.latest_for("queue").bits_per_second == 128000
        assert not fake.terminated

    def test_launch_failure(self):
        def popen(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        with pytest.raises(LaunchError, match="gst-launch-1.0"):
            TracedProcess(PIPELINE, popen=popen).start()

    def test_launch_failure_inside_loop_is_a_crash(self, graph, store):
        def popen(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        outcome = IngestionLoop(TracedProcess(PIPELINE, popen=popen), graph, store).run()
        assert not outcome.ended_cleanly
        assert "LaunchError" in outcome.error

    def test_terminate_running_process(self):
        fake = _FakePopen(["gst-launch-1.0"])
        process = TracedProcess(PIPELINE, popen=lambda cmd, **kwargs: fake).start()
        assert process.pid == 4242
        process.close()
        assert fake.terminated
        assert process.returncode == -15
