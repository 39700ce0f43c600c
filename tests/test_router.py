"""
Query routing tests - keyword fallback, classifier parsing and delegation.
"""

import json
from unittest.mock import MagicMock

import pytest

from src.agents.router import (
    COUNT_ARTISTS_SQL,
    DEFAULT_REASONING,
    DEFAULT_SQL,
    LIST_ALBUMS_SQL,
    LIST_ARTISTS_SQL,
    QueryRouter,
    ToolName,
    ToolSelection,
    fallback_route,
    fallback_tool_input,
    parse_tool_selection,
    strip_code_fence,
)
from src.core.errors import ParseError, UpstreamUnavailable


class TestFallbackRoute:
    """Keyword routing used whenever the classifier is off or unreachable."""

    @pytest.mark.parametrize("query,tool", [
        ("what time is it", ToolName.COMMAND_EXECUTION),
        ("how many artists", ToolName.SQL_QUERY),
        ("what is capitalism", ToolName.DOCUMENT_SEARCH),
        ("Tell me about economics", ToolName.DOCUMENT_SEARCH),
        ("Random question", ToolName.DOCUMENT_SEARCH),
    ])
    def test_routes(self, query, tool):
        assert fallback_route(query).tool_name is tool

    def test_default_reasoning(self):
        assert fallback_route("Random question").reasoning == DEFAULT_REASONING

    def test_portuguese_vocabulary(self):
        assert fallback_route("Que horas são?").tool_name is ToolName.COMMAND_EXECUTION
        assert fallback_route("Quantos artistas existem?").tool_name is ToolName.SQL_QUERY
        assert fallback_route("Fale sobre o livro").tool_name is ToolName.DOCUMENT_SEARCH

    def test_rule_order_first_match_wins(self):
        """Time keywords are checked before music keywords."""
        selection = fallback_route("what time does the album release")
        assert selection.tool_name is ToolName.COMMAND_EXECUTION

    def test_database_contains_time_keyword(self):
        """'database' contains 'data', so the time rule claims it first."""
        assert fallback_route("show the database").tool_name is ToolName.COMMAND_EXECUTION

    def test_case_insensitive(self):
        assert fallback_route("MUSIC stats").tool_name is ToolName.SQL_QUERY

    def test_deterministic(self):
        assert fallback_route("Random question") == fallback_route("Random question")


class TestFallbackToolInput:

    @pytest.mark.parametrize("query,expected", [
        ("How many artists are there?", COUNT_ARTISTS_SQL),
        ("quantos artistas", COUNT_ARTISTS_SQL),
        ("list the artists", LIST_ARTISTS_SQL),
        ("show me an album", LIST_ALBUMS_SQL),
        ("music sales", DEFAULT_SQL),
    ])
    def test_sql_input(self, query, expected):
        assert fallback_tool_input(query, ToolName.SQL_QUERY) == expected

    def test_command_input_is_date_request(self):
        data = json.loads(fallback_tool_input("what time is it", ToolName.COMMAND_EXECUTION))
        assert data == {"command": "date", "description": "Get current date and time"}

    def test_document_input_is_query(self):
        assert fallback_tool_input("tell me about economics", ToolName.DOCUMENT_SEARCH) == "tell me about economics"


class TestParseToolSelection:

    def test_plain_json(self):
        raw = '{"tool_name": "sqlite_database", "reasoning": "music question"}'
        assert parse_tool_selection(raw) == ToolSelection(ToolName.SQL_QUERY, "music question")

    def test_fenced_json(self):
        raw = '```json\n{"tool_name": "bash_command", "reasoning": "time"}\n```'
        assert parse_tool_selection(raw).tool_name is ToolName.COMMAND_EXECUTION

    def test_bare_fence(self):
        raw = '```\n{"tool_name": "document_search", "reasoning": "books"}\n```'
        assert parse_tool_selection(raw).tool_name is ToolName.DOCUMENT_SEARCH

    def test_missing_reasoning_defaults_to_empty(self):
        assert parse_tool_selection('{"tool_name": "document_search"}').reasoning == ""

    @pytest.mark.parametrize("raw", [
        "",
        "not json",
        "[1, 2, 3]",
        '{"reasoning": "no tool"}',
        '{"tool_name": "web_search", "reasoning": "x"}',
        '{"tool_name": 42}',
        '{"tool_name": "bash_command", "reasoning": ["x"]}',
    ])
    def test_malformed_output(self, raw):
        with pytest.raises(ParseError):
            parse_tool_selection(raw)

    def test_strip_code_fence_passthrough(self):
        assert strip_code_fence("  SELECT 1  ") == "SELECT 1"
        assert strip_code_fence("```sql\nSELECT 1\n```") == "sql\nSELECT 1"


class TestQueryRouter:

    def test_without_classifier_uses_fallback(self):
        router = QueryRouter()
        assert router.route("What is the current time?", classifier_available=True).tool_name is ToolName.COMMAND_EXECUTION

    def test_classifier_not_consulted_when_unavailable(self):
        classifier = MagicMock()
        router = QueryRouter(classifier=classifier)

        selection = router.route("Random question", classifier_available=False)

        classifier.classify.assert_not_called()
        assert selection.reasoning == DEFAULT_REASONING

    def test_classifier_decides_when_available(self):
        classifier = MagicMock()
        classifier.classify.return_value = '{"tool_name": "sqlite_database", "reasoning": "llm says music"}'
        router = QueryRouter(classifier=classifier)

        selection = router.route("Random question", classifier_available=True)

        assert selection == ToolSelection(ToolName.SQL_QUERY, "llm says music")
        query, menu = classifier.classify.call_args[0]
        assert query == "Random question"
        assert set(menu) == set(ToolName)

    def test_unreachable_classifier_falls_back(self):
        """Connectivity failures degrade to keyword routing."""
        classifier = MagicMock()
        classifier.classify.side_effect = UpstreamUnavailable("connection refused")
        router = QueryRouter(classifier=classifier)

        selection = router.route("How many artists?", classifier_available=True)

        assert selection.tool_name is ToolName.SQL_QUERY

    def test_malformed_classifier_output_is_an_error(self):
        classifier = MagicMock()
        classifier.classify.return_value = "I think you want the database"
        router = QueryRouter(classifier=classifier)

        with pytest.raises(ParseError):
            router.route("How many artists?", classifier_available=True)
