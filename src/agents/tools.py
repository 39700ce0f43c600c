"""
Data-access tools and the registry that dispatches to them.

Available tools, keyed by ToolName:
- sqlite_database - read-only SQL over the music database
- document_search - keyword search over economics books and documents
- bash_command - queue a validated shell command for human approval

Every tool implements the same capability interface: describe() for the
classifier menu, validate() to turn raw tool input into checked arguments,
and execute() to produce a ToolResult.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from ..core.approval import PendingApprovalStore
from ..core.command_validator import CommandValidator
from ..core.documents import DocumentCorpus, search
from ..core.errors import ParseError, ValidationDenied
from ..core.music_db import MusicDatabase, SCHEMA_DESCRIPTION, check_read_only
from .router import ToolName, strip_code_fence


@dataclass
class ToolResult:
    """Result of a tool execution."""
    tool: ToolName
    data: Any
    execution_time: Optional[datetime] = None

    def __post_init__(self):
        if self.execution_time is None:
            self.execution_time = datetime.now()

    def to_json(self) -> str:
        return json.dumps(self.data, indent=2, default=str)


@dataclass(frozen=True)
class CommandRequest:
    command: str
    description: str


class Tool(ABC):
    """Common capability interface for all tools."""

    name: ToolName

    @abstractmethod
    def describe(self) -> str:
        """Short description shown to the classifier."""

    @abstractmethod
    def validate(self, tool_input: str) -> Any:
        """Check raw tool input and return the arguments for execute()."""

    @abstractmethod
    def execute(self, arguments: Any) -> ToolResult:
        """Run the tool on validated arguments."""

    def run(self, tool_input: str) -> ToolResult:
        return self.execute(self.validate(tool_input))


class SqlQueryTool(Tool):
    name = ToolName.SQL_QUERY

    def __init__(self, database: MusicDatabase):
        self.database = database

    def describe(self) -> str:
        return "For querying music database (artists, albums, tracks, sales). " + SCHEMA_DESCRIPTION

    def validate(self, tool_input: str) -> str:
        statement = strip_code_fence(tool_input)
        check_read_only(statement)
        return statement

    def execute(self, arguments: str) -> ToolResult:
        return ToolResult(tool=self.name, data=self.database.execute(arguments))


class DocumentSearchTool(Tool):
    name = ToolName.DOCUMENT_SEARCH

    def __init__(self, corpus: DocumentCorpus):
        self.corpus = corpus

    def describe(self) -> str:
        return "For searching economics books and documents"

    def validate(self, tool_input: str) -> str:
        return tool_input

    def execute(self, arguments: str) -> ToolResult:
        outcome = search(arguments, self.corpus.load())
        return ToolResult(tool=self.name, data=outcome.to_dict())


class CommandExecutionTool(Tool):
    """
    Validates a proposed command and parks it in the approval store.

    Nothing runs here: execute() only returns an approval request. The
    command runs later, if and when a human approves it.
    """

    name = ToolName.COMMAND_EXECUTION

    def __init__(self, validator: CommandValidator, store: PendingApprovalStore):
        self.validator = validator
        self.store = store

    def describe(self) -> str:
        return ("For executing system commands and getting external data "
                "(date, curl, system information). All commands require user approval before execution.")

    def validate(self, tool_input: str) -> CommandRequest:
        try:
            data = json.loads(strip_code_fence(tool_input))
        except json.JSONDecodeError:
            raise ParseError("Invalid input format. Expected JSON with command and description.")

        if not isinstance(data, dict) or not isinstance(data.get("command"), str):
            raise ParseError("Invalid input format. Expected JSON with command and description.")

        command = data["command"].strip()
        description = str(data.get("description") or command)

        outcome = self.validator.validate(command)
        if not outcome.allowed:
            raise ValidationDenied(f"Command rejected: {outcome.reason}", category=outcome.category)

        return CommandRequest(command=command, description=description)

    def execute(self, arguments: CommandRequest) -> ToolResult:
        command_id = self.store.submit(arguments.command, arguments.description)
        return ToolResult(tool=self.name, data=approval_request(command_id, arguments))


def approval_request(command_id: str, request: CommandRequest) -> Dict[str, str]:
    """Build the approval_request payload shown to the user."""
    return {
        "type": "approval_request",
        "commandId": command_id,
        "command": request.command,
        "description": request.description,
        "message": (
            f"Command requires approval:\n{request.description}\nCommand: {request.command}"
            f"\n\nTo approve, use: approve {command_id}"
        ),
    }


class ToolRegistry:
    """Closed mapping from ToolName to its implementation."""

    def __init__(self, tools: Iterable[Tool]):
        self.tools: Dict[ToolName, Tool] = {tool.name: tool for tool in tools}
        missing = [tool_name.value for tool_name in ToolName if tool_name not in self.tools]
        if missing:
            raise ValueError(f"No implementation registered for tools: {', '.join(missing)}")

    def get(self, tool_name: ToolName) -> Tool:
        return self.tools[tool_name]

    def dispatch(self, tool_name: ToolName, tool_input: str) -> ToolResult:
        return self.get(tool_name).run(tool_input)

    def tool_menu(self) -> Dict[ToolName, str]:
        return {tool_name: tool.describe() for tool_name, tool in self.tools.items()}

    def list_available_tools(self) -> Dict[str, Any]:
        """Get information about all available tools."""
        return {
            tool_name.value: {
                "description": tool.describe(),
                "requires_approval": tool_name is ToolName.COMMAND_EXECUTION
            }
            for tool_name, tool in self.tools.items()
        }
