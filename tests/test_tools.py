"""
Tool capability and registry tests.
"""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from src.agents.router import ToolName
from src.agents.tools import (
    CommandExecutionTool,
    CommandRequest,
    DocumentSearchTool,
    SqlQueryTool,
    ToolRegistry,
    ToolResult,
    approval_request,
)
from src.core.approval import PendingApprovalStore
from src.core.command_validator import CommandValidator
from src.core.documents import DocumentCorpus
from src.core.errors import ParseError, ValidationDenied


@pytest.fixture
def store():
    return PendingApprovalStore(runner=MagicMock())


@pytest.fixture
def command_tool(store):
    return CommandExecutionTool(CommandValidator(), store)


@pytest.fixture
def corpus_dir(tmp_path):
    (tmp_path / "wealth_of_nations.txt").write_text(
        "Of the division of labour.\n\nThe market is limited by labour.", encoding="utf-8")
    return tmp_path


class TestCommandExecutionTool:

    def test_valid_command_is_queued(self, command_tool, store):
        """An allowed command becomes a pending entry and an approval request."""
        result = command_tool.run('{"command": "date", "description": "Get current date and time"}')

        assert result.tool is ToolName.COMMAND_EXECUTION
        assert result.data["type"] == "approval_request"
        assert result.data["commandId"] == "cmd_1"
        assert result.data["command"] == "date"
        assert [entry.id for entry in store.list()] == ["cmd_1"]
        store._runner.assert_not_called()

    def test_fenced_json_input(self, command_tool):
        request = command_tool.validate('```json\n{"command": "uptime", "description": "load"}\n```')
        assert request == CommandRequest(command="uptime", description="load")

    def test_missing_description_uses_command(self, command_tool):
        assert command_tool.validate('{"command": "whoami"}').description == "whoami"

    @pytest.mark.parametrize("tool_input", [
        "date",
        '["date"]',
        '{"description": "no command"}',
        '{"command": 5}',
    ])
    def test_malformed_input(self, command_tool, store, tool_input):
        with pytest.raises(ParseError) as exc_info:
            command_tool.run(tool_input)
        assert "Expected JSON with command and description" in str(exc_info.value)
        assert len(store) == 0

    def test_denied_command_never_reaches_store(self, command_tool, store):
        with pytest.raises(ValidationDenied) as exc_info:
            command_tool.run('{"command": "rm -rf /", "description": "cleanup"}')

        assert str(exc_info.value).startswith("Command rejected: ")
        assert exc_info.value.category == "destructive_delete"
        assert store.list() == []

    def test_unlisted_command_is_denied(self, command_tool, store):
        with pytest.raises(ValidationDenied) as exc_info:
            command_tool.run('{"command": "python -c 1", "description": "x"}')
        assert "not in allowed set" in str(exc_info.value)
        assert len(store) == 0


class TestToolResult:

    def test_execution_time_defaults_to_now(self):
        before = datetime.now()
        result = ToolResult(tool=ToolName.SQL_QUERY, data=[])
        assert before <= result.execution_time <= datetime.now()

    def test_explicit_execution_time_kept(self):
        stamp = datetime(2024, 1, 1)
        assert ToolResult(tool=ToolName.SQL_QUERY, data=[], execution_time=stamp).execution_time == stamp


class TestApprovalRequest:

    def test_message_names_the_id(self):
        payload = approval_request("cmd_7", CommandRequest("date", "Get current date and time"))
        assert payload["message"] == (
            "Command requires approval:\nGet current date and time\nCommand: date"
            "\n\nTo approve, use: approve cmd_7"
        )


class TestSqlQueryTool:

    def test_write_statement_denied_at_validation(self):
        database = MagicMock()
        tool = SqlQueryTool(database)

        with pytest.raises(ValidationDenied):
            tool.run("DROP TABLE Artist")
        database.execute.assert_not_called()

    def test_fenced_statement(self):
        database = MagicMock()
        database.execute.return_value = [{"count": 275}]
        tool = SqlQueryTool(database)

        result = tool.run("```\nSELECT COUNT(*) as count FROM Artist\n```")

        database.execute.assert_called_once_with("SELECT COUNT(*) as count FROM Artist")
        assert result.data == [{"count": 275}]


class TestDocumentSearchTool:

    def test_search(self, corpus_dir):
        tool = DocumentSearchTool(DocumentCorpus(corpus_dir))

        result = tool.run("labour")

        assert result.data["results"][0]["source"] == "wealth_of_nations.txt"
        assert result.data["results"][0]["relevance"] == 2

    def test_no_results_payload(self, corpus_dir):
        result = DocumentSearchTool(DocumentCorpus(corpus_dir)).run("blockchain")
        assert result.data["message"] == "No relevant documents found for your query."
        assert json.loads(result.to_json())["query"] == "blockchain"


class TestToolRegistry:

    def test_every_tool_name_resolves(self, command_tool, corpus_dir):
        registry = ToolRegistry([
            SqlQueryTool(MagicMock()),
            DocumentSearchTool(DocumentCorpus(corpus_dir)),
            command_tool,
        ])
        for tool_name in ToolName:
            assert registry.get(tool_name).name is tool_name
        assert set(registry.tool_menu()) == set(ToolName)

    def test_missing_implementation_is_rejected(self, command_tool):
        with pytest.raises(ValueError) as exc_info:
            ToolRegistry([SqlQueryTool(MagicMock()), command_tool])
        assert "document_search" in str(exc_info.value)

    def test_only_commands_require_approval(self, command_tool, corpus_dir):
        registry = ToolRegistry([
            SqlQueryTool(MagicMock()),
            DocumentSearchTool(DocumentCorpus(corpus_dir)),
            command_tool,
        ])
        tools = registry.list_available_tools()
        assert tools["bash_command"]["requires_approval"] is True
        assert tools["sqlite_database"]["requires_approval"] is False
