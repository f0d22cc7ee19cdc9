"""Tests for the graph and replay commands and CLI dispatch."""

import io
import json

import pytest
from rich.console import Console

from tests.samples import PIPELINE
from tracelens.cli import commands_graph, commands_replay
from tracelens.cli.app import dispatch, main
from tracelens.cli.commands_watch import describe_outcome, exit_code
from tracelens.ingest.loop import SessionOutcome


def _console():
    buffer = io.StringIO()
    return Console(file=buffer, width=10_000), buffer


class TestGraphCommand:
    def test_json_output(self):
        console, buffer = _console()
        code = commands_graph.execute(
            commands_graph.GraphCommand(pipeline="audiotestsrc wave=sine ! queue ! autoaudiosink", json=True),
            console=console,
        )
        assert code == 0
        payload = json.loads(buffer.getvalue())
        assert [node["id"] for node in payload["nodes"]] == ["audiotestsrc", "queue", "autoaudiosink"]
        assert payload["nodes"][0]["properties"] == {"wave": "sine"}
        assert payload["edges"] == [["audiotestsrc", "queue"], ["queue", "autoaudiosink"]]

    def test_table_output(self):
        console, buffer = _console()
        commands_graph.execute(commands_graph.GraphCommand(pipeline=PIPELINE), console=console)
        assert "autoaudiosink" in buffer.getvalue()

    def test_empty_pipeline(self):
        console, buffer = _console()
        commands_graph.execute(commands_graph.GraphCommand(pipeline=""), console=console)
        assert "no pipeline" in buffer.getvalue()

    def test_main_dispatches(self, capsys):
        main(["graph", "--pipeline", "a ! b"])
        assert "a" in capsys.readouterr().out


class TestReplayCommand:
    def test_replay_json(self, tmp_path, tracer_lines):
        log = tmp_path / "session-20260101T000000Z.log"
        log.write_text("\n".join(tracer_lines) + "\n", encoding="utf-8")
        console, buffer = _console()

        code = commands_replay.execute(
            commands_replay.ReplayCommand(path=tmp_path, pipeline=PIPELINE, json=True),
            console=console,
        )

        assert code == 0
        payload = json.loads(buffer.getvalue())
        assert payload["source"] == str(log)
        assert payload["outcome"]["records"] == 4
        assert payload["outcome"]["ended_cleanly"] is True
        queue = payload["view"]["nodes"][1]
        assert queue["bitrate"] == 128000
        assert queue["processing_ns"] == 12345
        assert payload["view"]["edges"][1]["latency_ns"] == 1_500_000

    def test_replay_table(self, tmp_path, tracer_lines):
        log = tmp_path / "trace.log"
        log.write_text("\n".join(tracer_lines), encoding="utf-8")
        console, buffer = _console()
        commands_replay.execute(
            commands_replay.ReplayCommand(path=log, pipeline=PIPELINE, profile="video-hd"),
            console=console,
        )
        output = buffer.getvalue()
        assert "pipeline ended" in output
        assert "128.0 kbps" in output

    def test_missing_log(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            commands_replay.execute(
                commands_replay.ReplayCommand(path=tmp_path / "nope.log", pipeline=PIPELINE)
            )
        with pytest.raises(FileNotFoundError, match="No session logs"):
            commands_replay.execute(commands_replay.ReplayCommand(path=tmp_path, pipeline=PIPELINE))


class TestOutcomeReporting:
    def test_clean_and_crashed(self):
        clean = SessionOutcome(lines_read=3, records=1, unmatched=0, dropped=2, returncode=0)
        crashed = SessionOutcome(lines_read=3, records=1, unmatched=0, dropped=2, returncode=2)
        killed = SessionOutcome(lines_read=0, records=0, unmatched=0, dropped=0, returncode=-15)
        failed = SessionOutcome(
            lines_read=0, records=0, unmatched=0, dropped=0, returncode=None, error="OSError: x"
        )
        assert describe_outcome(clean).startswith("pipeline ended")
        assert describe_outcome(crashed).startswith("pipeline crashed (returncode=2)")
        assert "OSError" in describe_outcome(failed)
        assert [exit_code(o) for o in (clean, crashed, killed, failed, None)] == [0, 2, 1, 1, 0]

    def test_dispatch_rejects_unknown(self):
        with pytest.raises(TypeError, match="Unsupported command type"):
            dispatch(object())
