"""
Query routing - picks one of the data-access tools for a user query.

Routing uses the LLM classifier when it is available and falls back to an
ordered keyword match otherwise. The router only decides which tool to use
and what input to propose; it never validates or runs commands.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from ..core.errors import ParseError, UpstreamUnavailable
from util.logging import logger


class ToolName(str, Enum):
    SQL_QUERY = "sqlite_database"
    DOCUMENT_SEARCH = "document_search"
    COMMAND_EXECUTION = "bash_command"


@dataclass(frozen=True)
class ToolSelection:
    tool_name: ToolName
    reasoning: str


class Classifier(Protocol):
    def classify(self, query: str, tool_menu: Dict[ToolName, str]) -> str:
        ...


# Ordered fallback rules: first match wins. Vocabulary covers English and Portuguese.
FALLBACK_RULES: List[Tuple[Tuple[str, ...], ToolName, str]] = [
    (("hora", "time", "data", "date"),
     ToolName.COMMAND_EXECUTION,
     "Query about time/date - using bash command"),
    (("artist", "album", "música", "music", "track", "venda", "sale"),
     ToolName.SQL_QUERY,
     "Query about music data - using SQLite database"),
    (("economia", "economics", "livro", "book", "documento", "document"),
     ToolName.DOCUMENT_SEARCH,
     "Query about economics/documents - using document search"),
]
DEFAULT_REASONING = "Defaulting to document search"

DATE_COMMAND = {"command": "date", "description": "Get current date and time"}

COUNT_ARTISTS_SQL = "SELECT COUNT(*) as count FROM Artist"
LIST_ARTISTS_SQL = "SELECT * FROM Artist LIMIT 10"
LIST_ALBUMS_SQL = "SELECT * FROM Album LIMIT 10"
DEFAULT_SQL = "SELECT * FROM Artist LIMIT 5"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Return the body of a fenced code block if the text contains one."""
    text = (text or "").strip()
    fenced = _FENCED_BLOCK.search(text)
    return fenced.group(1).strip() if fenced else text


def fallback_route(query: str) -> ToolSelection:
    """Deterministic keyword routing over the lower-cased query."""
    lowered = query.lower()
    for keywords, tool_name, reasoning in FALLBACK_RULES:
        if any(keyword in lowered for keyword in keywords):
            return ToolSelection(tool_name=tool_name, reasoning=reasoning)
    return ToolSelection(tool_name=ToolName.DOCUMENT_SEARCH, reasoning=DEFAULT_REASONING)


def fallback_tool_input(query: str, tool_name: ToolName) -> str:
    """Propose tool input without the LLM."""
    lowered = query.lower()

    if tool_name is ToolName.SQL_QUERY:
        if "quantos" in lowered or "how many" in lowered:
            return COUNT_ARTISTS_SQL
        if "artista" in lowered or "artist" in lowered:
            return LIST_ARTISTS_SQL
        if "album" in lowered:
            return LIST_ALBUMS_SQL
        return DEFAULT_SQL

    if tool_name is ToolName.COMMAND_EXECUTION:
        return json.dumps(DATE_COMMAND)

    return query


def parse_tool_selection(raw: str) -> ToolSelection:
    """
    Parse classifier output of the form {"tool_name": ..., "reasoning": ...}.

    A single fenced code block around the JSON is tolerated. Anything else that
    is not a JSON object naming a known tool raises ParseError.
    """
    text = strip_code_fence(raw)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Classifier returned malformed JSON: {e}")

    if not isinstance(data, dict):
        raise ParseError("Classifier output must be a JSON object")

    tool_name = data.get("tool_name")
    if not isinstance(tool_name, str):
        raise ParseError("Classifier output is missing 'tool_name'")

    try:
        tool = ToolName(tool_name.strip())
    except ValueError:
        raise ParseError(f"Classifier selected unknown tool: {tool_name}")

    reasoning = data.get("reasoning", "")
    if not isinstance(reasoning, str):
        raise ParseError("Classifier 'reasoning' must be a string")

    return ToolSelection(tool_name=tool, reasoning=reasoning)


class QueryRouter:
    """Maps a user query to a ToolSelection."""

    def __init__(self, classifier: Optional[Classifier] = None,
                 tool_menu: Optional[Dict[ToolName, str]] = None):
        self.classifier = classifier
        self.tool_menu = tool_menu or {tool: tool.value for tool in ToolName}

    def route(self, query: str, classifier_available: bool) -> ToolSelection:
        """
        Select a tool for the query.

        Raises:
            ParseError: if the classifier answered with malformed output
        """
        if classifier_available and self.classifier is not None:
            try:
                raw = self.classifier.classify(query, self.tool_menu)
            except UpstreamUnavailable as e:
                logger.warning(f"Classifier unavailable, using keyword routing: {e}")
            else:
                selection = parse_tool_selection(raw)
                logger.log_tool_selection(selection.tool_name.value, selection.reasoning, "classifier")
                return selection

        selection = fallback_route(query)
        logger.log_tool_selection(selection.tool_name.value, selection.reasoning, "fallback")
        return selection
