"""Tests for external process execution."""

import sys

import pytest

from dumpkeeper.core.exceptions import ProcessError
from dumpkeeper.process.runner import ProcessOutput, SubprocessRunner, check_output, tail


class StaticRunner:
    """Runner returning a fixed result."""

    def __init__(self, result: ProcessOutput):
        self.result = result

    def run(self, command, env=None):
        return self.result


class TestSubprocessRunner:
    """Tests for SubprocessRunner against the running interpreter."""

    def test_captures_combined_output(self) -> None:
        runner = SubprocessRunner()
        result = runner.run([
            sys.executable, "-c",
            "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)",
        ])
        assert result.ok
        assert "out" in result.output
        assert "err" in result.output

    def test_reports_exit_status(self) -> None:
        result = SubprocessRunner().run([sys.executable, "-c", "raise SystemExit(3)"])
        assert result.returncode == 3
        assert not result.ok

    def test_passes_environment(self) -> None:
        result = SubprocessRunner().run(
            [sys.executable, "-c", "import os; print(os.environ['PGPASSWORD'])"],
            env={"PGPASSWORD": "s3cret"},
        )
        assert result.output.strip() == "s3cret"

    def test_missing_executable(self) -> None:
        with pytest.raises(ProcessError) as exc_info:
            SubprocessRunner().run(["definitely-not-a-real-binary-xyz"])
        assert exc_info.value.reason == "not_found"

    def test_output_cap(self) -> None:
        runner = SubprocessRunner(max_output_bytes=1024)
        with pytest.raises(ProcessError) as exc_info:
            runner.run([sys.executable, "-c", "print('x' * 100000)"])
        assert exc_info.value.reason == "output_limit_exceeded"

    def test_empty_command(self) -> None:
        with pytest.raises(ProcessError):
            SubprocessRunner().run([])


class TestCheckOutput:
    """Tests for check_output."""

    def test_success_passes_through(self) -> None:
        result = check_output(StaticRunner(ProcessOutput(0, "fine")), ["pg_dump"])
        assert result.output == "fine"

    def test_nonzero_exit_raises(self) -> None:
        runner = StaticRunner(ProcessOutput(1, "pg_dump: error: connection refused"))
        with pytest.raises(ProcessError) as exc_info:
            check_output(runner, ["pg_dump", "-h", "db"])
        error = exc_info.value
        assert error.reason == "nonzero_exit"
        assert error.command == "pg_dump"
        assert "connection refused" in error.output

    def test_signal_exit(self) -> None:
        with pytest.raises(ProcessError) as exc_info:
            check_output(StaticRunner(ProcessOutput(-9, "")), ["pg_dump"])
        assert "signal 9" in exc_info.value.message


class TestTail:
    """Tests for tail."""

    def test_short_text_unchanged(self) -> None:
        assert tail("  hello \n") == "hello"

    def test_long_text_truncated(self) -> None:
        text = "a" * 50 + "b" * 10
        assert tail(text, limit=10) == "..." + "b" * 10
