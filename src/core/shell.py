"""
Bounded subprocess execution for approved commands.

Commands run through the system shell in their own process group with a
wall-clock timeout and a per-stream output ceiling. Exceeding either limit
kills the whole group, and the group is killed again once the shell exits so
background children never outlive the command.
"""

import os
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Optional

from .config import COMMAND_TIMEOUT_SEC, COMMAND_MAX_OUTPUT_BYTES
from .errors import ExecutionFailure

_READ_CHUNK = 8192


@dataclass
class CommandOutput:
    """Captured output of a command that exited successfully."""
    stdout: str
    stderr: str
    exit_code: int = 0


class _StreamCollector(threading.Thread):
    """Reads one pipe into memory, stopping at the byte limit."""

    def __init__(self, stream: IO[bytes], limit: int, on_overflow):
        super().__init__(daemon=True)
        self.stream = stream
        self.limit = limit
        self.on_overflow = on_overflow
        self.buffer = bytearray()
        self.overflowed = False

    def run(self):
        try:
            while True:
                chunk = self.stream.read1(_READ_CHUNK)
                if not chunk:
                    break
                remaining = self.limit - len(self.buffer)
                if len(chunk) > remaining:
                    self.buffer.extend(chunk[:remaining])
                    self.overflowed = True
                    self.on_overflow()
                    break
                self.buffer.extend(chunk)
        except (OSError, ValueError):
            # Pipe closed underneath us after the process group was killed
            pass
        finally:
            self.stream.close()

    def text(self) -> str:
        return bytes(self.buffer).decode("utf-8", errors="replace")


def _kill_group(process: subprocess.Popen):
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


def run_command(command: str, timeout_sec: float = COMMAND_TIMEOUT_SEC,
                max_output_bytes: int = COMMAND_MAX_OUTPUT_BYTES,
                cwd: Optional[str] = None) -> CommandOutput:
    """
    Run a shell command with a timeout and output ceiling.

    Args:
        command: Shell command string (already validated and approved)
        timeout_sec: Wall-clock limit before the process group is killed
        max_output_bytes: Ceiling applied to stdout and stderr independently
        cwd: Optional working directory

    Returns:
        CommandOutput for a zero exit status

    Raises:
        ExecutionFailure: on start failure, timeout, output overflow or non-zero exit.
            Partial output captured before the failure is attached.
    """
    try:
        process = subprocess.Popen(
            command,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            start_new_session=True,
        )
    except OSError as e:
        raise ExecutionFailure(f"Command could not be started: {e}")

    collectors = [
        _StreamCollector(process.stdout, max_output_bytes, lambda: _kill_group(process)),
        _StreamCollector(process.stderr, max_output_bytes, lambda: _kill_group(process)),
    ]
    for collector in collectors:
        collector.start()

    timed_out = False
    try:
        exit_code = process.wait(timeout=timeout_sec)
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_group(process)
        exit_code = process.wait()

    # Background children share the group and must not outlive the command
    _kill_group(process)

    for collector in collectors:
        collector.join(timeout=5)

    stdout_collector, stderr_collector = collectors
    stdout, stderr = stdout_collector.text(), stderr_collector.text()

    if timed_out:
        raise ExecutionFailure(
            f"Command timed out after {timeout_sec}s",
            output=stdout, warnings=stderr, exit_code=exit_code
        )

    if stdout_collector.overflowed or stderr_collector.overflowed:
        raise ExecutionFailure(
            f"Command output exceeded {max_output_bytes} bytes",
            output=stdout, warnings=stderr, exit_code=exit_code
        )

    if exit_code != 0:
        detail = stderr.strip() or "no error output"
        raise ExecutionFailure(
            f"Command exited with status {exit_code}: {detail}",
            output=stdout, warnings=stderr, exit_code=exit_code
        )

    return CommandOutput(stdout=stdout, stderr=stderr, exit_code=exit_code)
