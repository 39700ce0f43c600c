"""
Bounded subprocess runner tests.
"""

import time

import pytest

from src.core.errors import ExecutionFailure
from src.core.shell import CommandOutput, run_command


class TestRunCommand:

    def test_successful_command_captures_stdout(self):
        result = run_command("echo hello")
        assert isinstance(result, CommandOutput)
        assert result.stdout.strip() == "hello"
        assert result.exit_code == 0

    def test_stderr_is_captured_as_warnings(self):
        result = run_command("echo oops 1>&2")
        assert result.stdout == ""
        assert result.stderr.strip() == "oops"

    def test_non_zero_exit_raises_with_partial_output(self):
        """Output produced before the failure is attached to the error."""
        with pytest.raises(ExecutionFailure) as exc_info:
            run_command("echo partial; echo broken 1>&2; exit 3")

        error = exc_info.value
        assert error.exit_code == 3
        assert error.output.strip() == "partial"
        assert "broken" in str(error)

    def test_timeout_kills_command(self):
        with pytest.raises(ExecutionFailure) as exc_info:
            run_command("echo started; sleep 10", timeout_sec=0.5)

        assert "timed out" in str(exc_info.value)
        assert "started" in exc_info.value.output

    def test_output_ceiling(self):
        """Output past the byte ceiling fails the command and keeps the captured prefix."""
        with pytest.raises(ExecutionFailure) as exc_info:
            run_command("head -c 5000 /dev/zero | tr '\\0' 'a'", max_output_bytes=1000)

        assert "exceeded 1000 bytes" in str(exc_info.value)
        assert exc_info.value.output == "a" * 1000

    def test_output_at_ceiling_is_allowed(self):
        result = run_command("printf 'abcd'", max_output_bytes=4)
        assert result.stdout == "abcd"

    def test_missing_binary_is_execution_failure(self):
        with pytest.raises(ExecutionFailure):
            run_command("definitely-not-a-real-binary-xyz")

    def test_background_child_is_killed_on_exit(self, tmp_path):
        """A child left running in the background dies with the command."""
        marker = tmp_path / "child_ran"

        result = run_command(f"date; (sleep 2; touch {marker}) > /dev/null 2>&1 &", timeout_sec=1)

        assert result.stdout.strip() != ""
        time.sleep(3)
        assert not marker.exists()
