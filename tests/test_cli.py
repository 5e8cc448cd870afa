"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

from canscope import cli
from canscope.core.frame import Direction, Frame
from canscope.database.dbc import save_json
from canscope.database.profiles import default_store
from canscope.trace.writer import render_trace, write_trace

CAPTURE_START = 1_714_571_110.0


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep rich from wrapping table cells."""
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def trace_path(tmp_path: Path) -> Path:
    frames = [
        Frame(identifier="0x18305040", data=bytes([0x03, 0xE8, 0x5A, 0, 0, 0, 0, 0]), timestamp_ms=0.0),
        Frame(identifier="0x500", data=bytes([0xAA]), timestamp_ms=20.0, direction=Direction.TX),
    ]
    return write_trace(tmp_path / "capture.trc", frames, CAPTURE_START)


class TestNormalizeCommand:
    """Tests for `canscope normalize`."""

    def test_normalize(self, runner: CliRunner) -> None:
        result = runner.invoke(cli.main, ["normalize", "291", "0x18305040", "7ff"])

        assert result.exit_code == 0
        assert "291 -> 123" in result.output
        assert "0x18305040 -> 18305040" in result.output
        assert "7ff -> 7FF" in result.output

    def test_invalid_identifier(self, runner: CliRunner) -> None:
        result = runner.invoke(cli.main, ["normalize", "0x123", "nope!"])

        assert result.exit_code == 1
        assert "0x123 -> 123" in result.output
        assert "Unrecognized identifier" in result.output


class TestTraceCommands:
    """Tests for the trace inspection commands."""

    def test_show(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["show", str(trace_path)])

        assert result.exit_code == 0
        assert "0x18305040" in result.output
        assert "03E85A0000000000" in result.output
        assert "Tx" in result.output

    def test_show_limit(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["show", "--limit", "1", str(trace_path)])

        assert result.exit_code == 0
        assert "0x500" not in result.output

    def test_decode_builtin_database(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["decode", str(trace_path)])

        assert result.exit_code == 0
        assert "MCU_Status" in result.output
        assert "Motor Speed=1000.00 rpm" in result.output
        assert "Decoded 1 of 2 frames" in result.output
        assert "No descriptor for: 0x500" in result.output

    def test_decode_filter(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["decode", "--id", "0x500", str(trace_path)])

        assert result.exit_code == 0
        assert "Decoded 0 of 1 frames" in result.output

    def test_decode_bad_filter(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["decode", "--id", "??", str(trace_path)])

        assert result.exit_code == 2

    def test_decode_json_database(self, runner: CliRunner, trace_path: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "db.json"
        save_json(default_store(), db_path)

        result = runner.invoke(cli.main, ["decode", "--database", str(db_path), str(trace_path)])

        assert result.exit_code == 0
        assert "Motor Temp=50.00 degC" in result.output

    def test_decode_database_from_environment(
        self, runner: CliRunner, trace_path: Path, tmp_path: Path
    ) -> None:
        db_path = tmp_path / "db.xml"
        db_path.write_text("<db/>", encoding="utf-8")

        result = runner.invoke(cli.main, ["decode", str(trace_path)], env={"CANSCOPE_DATABASE": str(db_path)})

        assert result.exit_code == 1
        assert "Unsupported database format" in result.output

    def test_reformat(self, runner: CliRunner, tmp_path: Path) -> None:
        source = tmp_path / "messy.trc"
        source.write_text(
            ";$STARTTIME=1714571110.0\r\n"
            "1) 0.0 dt 18305040 rx 2 03 e8 ff\r\n"
            "junk line\r\n"
            "2) 0.02 DT 500 TX 0\r\n",
            encoding="utf-8",
        )
        output = tmp_path / "clean.trc"

        result = runner.invoke(cli.main, ["reformat", str(source), str(output)])

        assert result.exit_code == 0
        assert "Wrote 2 frames" in result.output
        assert "Dropped 1 malformed line(s)" in result.output
        expected = render_trace(
            [
                Frame(identifier="0x18305040", data=b"\x03\xe8", timestamp_ms=0.0),
                Frame(identifier="0x500", timestamp_ms=20.0, direction=Direction.TX),
            ],
            CAPTURE_START,
        )
        assert output.read_text(encoding="utf-8") == expected

    def test_reformat_to_directory(self, runner: CliRunner, trace_path: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "out"
        out_dir.mkdir()

        result = runner.invoke(cli.main, ["reformat", str(trace_path), str(out_dir)])

        assert result.exit_code == 0
        assert (out_dir / "Trace_2024-05-01_13-45-10.trc").exists()

    def test_info(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["info", str(trace_path)])

        assert result.exit_code == 0
        assert "Version: 2.0" in result.output
        assert "Frames: 2" in result.output
        assert "2024-05-01T13:45:10" in result.output
        assert "0x18305040" in result.output

    def test_trace_without_records(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "empty.trc"
        path.write_text(";$FILEVERSION=2.0\n;\n", encoding="utf-8")

        result = runner.invoke(cli.main, ["show", str(path)])

        assert result.exit_code == 1
        assert "No valid trace records found" in result.output


class TestGlobalOptions:
    """Tests for group-level options."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli.main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_environment(self, runner: CliRunner) -> None:
        result = runner.invoke(cli.main, ["normalize", "1"], env={"CANSCOPE_BUFFER_SIZE": "many"})

        assert result.exit_code == 1
        assert "CANSCOPE_BUFFER_SIZE" in result.output

    def test_log_level_option(self, runner: CliRunner, trace_path: Path) -> None:
        result = runner.invoke(cli.main, ["--log-level", "debug", "info", str(trace_path)])
        assert result.exit_code == 0
