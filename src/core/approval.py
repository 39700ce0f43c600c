"""
Command approval workflow - human oversight before any shell command runs.

A PendingApprovalStore holds validated commands until a human approves or
rejects them. Each entry is resolved exactly once:

    pending -> approved-and-executed
    pending -> rejected

Both outcomes are terminal and remove the entry, so a second decision on the
same id raises NotFound.
"""

import itertools
import threading
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .config import COMMAND_TIMEOUT_SEC, COMMAND_MAX_OUTPUT_BYTES
from .errors import ExecutionFailure, NotFound
from .shell import CommandOutput, run_command
from util.logging import logger, audit_event


@dataclass(frozen=True)
class PendingCommand:
    id: str
    command: str
    description: str
    created_at: datetime

    def to_dict(self) -> Dict:
        """Convert to dictionary for API responses."""
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass
class CommandResult:
    """Outcome of an approved command (the command_result payload)."""
    success: bool
    command: str
    output: Optional[str] = None
    warnings: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {"type": "command_result", "success": self.success, "command": self.command}
        for field_name in ("output", "warnings", "error"):
            value = getattr(self, field_name)
            if value is not None:
                data[field_name] = value
        return data


@dataclass(frozen=True)
class CommandRejection:
    """A rejected command, returned so the user can confirm what was dropped."""
    command_id: str
    command: str

    def to_dict(self) -> Dict:
        return {"type": "command_rejected", "commandId": self.command_id, "command": self.command}


class PendingApprovalStore:
    """Keyed in-memory store of commands awaiting a human decision.

    One instance is created at startup and handed to the command tool and the
    orchestrator. All mutations go through a single lock; approve and reject
    take the entry out with an atomic pop so racing decisions on the same id
    resolve to exactly one winner.
    """

    def __init__(self, id_prefix: str = "cmd",
                 runner: Callable[..., CommandOutput] = run_command,
                 timeout_sec: float = COMMAND_TIMEOUT_SEC,
                 max_output_bytes: int = COMMAND_MAX_OUTPUT_BYTES):
        self._pending: Dict[str, PendingCommand] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._id_prefix = id_prefix
        self._runner = runner
        self.timeout_sec = timeout_sec
        self.max_output_bytes = max_output_bytes

    def submit(self, command: str, description: str) -> str:
        """Queue an already-validated command and return its id."""
        with self._lock:
            command_id = f"{self._id_prefix}_{next(self._counter)}"
            self._pending[command_id] = PendingCommand(
                id=command_id,
                command=command,
                description=description,
                created_at=datetime.now()
            )

        logger.log_approval_request(command_id, command)
        return command_id

    def approve(self, command_id: str) -> CommandResult:
        """
        Approve and run a pending command.

        The entry is removed before the command starts, so it is never pending
        again whatever the outcome. Execution failures are reported in the
        returned CommandResult rather than raised.

        Raises:
            NotFound: if the id is unknown or already resolved
        """
        entry = self._take(command_id)
        logger.log_approval_decision(command_id, "approved")
        audit_event("approval.approved", {"command_id": command_id}, {"command": entry.command})

        start_time = time.time()
        try:
            output = self._runner(
                entry.command,
                timeout_sec=self.timeout_sec,
                max_output_bytes=self.max_output_bytes
            )
        except ExecutionFailure as e:
            logger.log_command_execution(command_id, start_time, time.time(), "failed", {
                "error": str(e),
                "exit_code": e.exit_code
            })
            return CommandResult(
                success=False,
                command=entry.command,
                output=e.output or None,
                warnings=e.warnings or None,
                error=f"Command execution failed: {e}"
            )

        logger.log_command_execution(command_id, start_time, time.time(), "success", {
            "output_chars": len(output.stdout)
        })
        return CommandResult(
            success=True,
            command=entry.command,
            output=output.stdout,
            warnings=output.stderr or None
        )

    def reject(self, command_id: str) -> CommandRejection:
        """Drop a pending command without running it.

        Raises:
            NotFound: if the id is unknown or already resolved
        """
        entry = self._take(command_id)
        logger.log_approval_decision(command_id, "rejected")
        audit_event("approval.rejected", {"command_id": command_id}, {"command": entry.command})
        return CommandRejection(command_id=command_id, command=entry.command)

    def list(self) -> List[PendingCommand]:
        """Snapshot of pending commands, oldest first."""
        with self._lock:
            # dict preserves submission order, which is creation order under the lock
            return list(self._pending.values())

    def get(self, command_id: str) -> Optional[PendingCommand]:
        with self._lock:
            return self._pending.get(command_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def _take(self, command_id: str) -> PendingCommand:
        with self._lock:
            entry = self._pending.pop(command_id, None)
        if entry is None:
            raise NotFound(command_id)
        return entry
