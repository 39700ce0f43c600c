"""
Error taxonomy for routing, validation and the command approval workflow.

Every error carries a stable ``code`` so callers at the API and terminal
boundaries can branch without inspecting messages.
"""

from typing import Optional


class AgentError(Exception):
    """Base class for all agent errors."""
    code = "agent_error"


class ValidationDenied(AgentError):
    """A command (or SQL statement) was blocked before it could run. Not retryable."""
    code = "validation_denied"

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.category = category


class NotFound(AgentError):
    """Unknown or already-resolved pending command id."""
    code = "not_found"

    def __init__(self, command_id: str):
        super().__init__(f"Command {command_id} not found or already resolved")
        self.command_id = command_id


class ParseError(AgentError):
    """Malformed structured classifier output or malformed tool input."""
    code = "parse_error"


class ExecutionFailure(AgentError):
    """An approved command exited non-zero, timed out, overflowed or failed to start."""
    code = "execution_failure"

    def __init__(self, message: str, output: str = "", warnings: str = "",
                 exit_code: Optional[int] = None):
        super().__init__(message)
        self.output = output
        self.warnings = warnings
        self.exit_code = exit_code


class UpstreamUnavailable(AgentError):
    """The language model service could not be reached."""
    code = "upstream_unavailable"


class ToolExecutionError(AgentError):
    """A tool's backing resource (database, document directory) failed."""
    code = "tool_error"
