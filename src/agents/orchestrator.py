"""
Query orchestration - classify, generate tool input, dispatch, respond.

The Orchestrator is the single entry point used by the HTTP API and the
terminal chat:

1. Route the query to a tool (LLM classifier or keyword fallback)
2. Generate the tool input (LLM or fallback synthesizer)
3. Dispatch through the ToolRegistry
4. Command tools stop here with an approval request for the user
5. Otherwise synthesize a natural-language answer

process_query() never raises: every failure becomes a user-facing message.
Approval decisions go through approve_command() / reject_command(), which
delegate to the shared PendingApprovalStore.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.approval import CommandRejection, CommandResult, PendingApprovalStore, PendingCommand
from ..core.command_validator import CommandValidator
from ..core.config import get_documents_path, get_music_db_path, llm_enabled
from ..core.documents import DocumentCorpus
from ..core.errors import AgentError, UpstreamUnavailable
from ..core.music_db import MusicDatabase
from .ollama_agent import OllamaClassifier
from .router import QueryRouter, ToolName, ToolSelection, fallback_tool_input
from .tools import (
    CommandExecutionTool,
    DocumentSearchTool,
    SqlQueryTool,
    ToolRegistry,
    ToolResult,
)
from util.logging import logger


@dataclass
class QueryResponse:
    """Answer to a single user query."""
    content: str
    tool_name: Optional[ToolName] = None
    reasoning: str = ""
    payload: Optional[Dict[str, Any]] = None
    error: bool = False

    @property
    def approval_request(self) -> Optional[Dict[str, Any]]:
        if isinstance(self.payload, dict) and self.payload.get("type") == "approval_request":
            return self.payload
        return None


class Orchestrator:
    """Sequences routing, tool dispatch and response synthesis for one query at a time."""

    def __init__(self, registry: ToolRegistry, store: PendingApprovalStore,
                 classifier: Optional[OllamaClassifier] = None, use_llm: Optional[bool] = None):
        self.registry = registry
        self.store = store
        self.classifier = classifier
        self.use_llm = (classifier is not None) if use_llm is None else (use_llm and classifier is not None)
        self.router = QueryRouter(classifier=classifier, tool_menu=registry.tool_menu())

    def process_query(self, query: str) -> QueryResponse:
        """Run the full pipeline for a query. Errors are returned, not raised."""
        selection: Optional[ToolSelection] = None
        try:
            selection = self.router.route(query, self.use_llm)
            tool_input = self._generate_tool_input(selection.tool_name, query)
            result = self.registry.dispatch(selection.tool_name, tool_input)
            payload = result.data if isinstance(result.data, dict) else None

            if payload and payload.get("type") == "approval_request":
                # The id must reach the user verbatim, so no LLM rewording here
                content = payload["message"]
            else:
                content = self._synthesize(query, result)

            return QueryResponse(
                content=content,
                tool_name=selection.tool_name,
                reasoning=selection.reasoning,
                payload=payload
            )

        except AgentError as e:
            logger.warning(f"Query failed ({e.code}): {e}")
            return self._error_response(e, selection)
        except Exception as e:
            logger.error(f"Unexpected error processing query: {e}")
            return self._error_response(e, selection)

    def approve_command(self, command_id: str) -> CommandResult:
        """Approve and run a pending command. Raises NotFound for unknown ids."""
        return self.store.approve(command_id)

    def reject_command(self, command_id: str) -> CommandRejection:
        """Reject a pending command. Raises NotFound for unknown ids."""
        return self.store.reject(command_id)

    def pending_commands(self) -> List[PendingCommand]:
        return self.store.list()

    def get_status(self) -> Dict[str, Any]:
        return {
            "llm_enabled": self.use_llm,
            "llm_healthy": self.classifier.health_check() if self.classifier else False,
            "tools": self.registry.list_available_tools(),
            "pending_commands": len(self.store),
        }

    def _generate_tool_input(self, tool_name: ToolName, query: str) -> str:
        if self.use_llm:
            try:
                return self.classifier.generate_tool_input(tool_name, query, previous_results="[]")
            except UpstreamUnavailable as e:
                logger.warning(f"Tool input generation unavailable, using fallback: {e}")
        return fallback_tool_input(query, tool_name)

    def _synthesize(self, query: str, result: ToolResult) -> str:
        if self.use_llm:
            try:
                return self.classifier.synthesize(query, result.tool, result.to_json())
            except UpstreamUnavailable as e:
                logger.warning(f"Response synthesis unavailable, using plain rendering: {e}")
        return render_simple_response(result)

    def _error_response(self, error: Exception, selection: Optional[ToolSelection]) -> QueryResponse:
        return QueryResponse(
            content=f"Error processing query: {error}",
            tool_name=selection.tool_name if selection else None,
            reasoning=selection.reasoning if selection else "",
            error=True
        )


def render_simple_response(result: ToolResult) -> str:
    """Format tool output without the LLM."""
    data = result.data

    if result.tool is ToolName.SQL_QUERY:
        if not data:
            return "I found no results for your query in the music database."
        return f"I found {len(data)} result(s) in the music database:\n\n{json.dumps(data, indent=2, default=str)}"

    if result.tool is ToolName.DOCUMENT_SEARCH:
        if "message" in data:
            return data["message"]
        sections = [
            f"📚 {match['source']} (relevance: {match['relevance']})\n{match['content']}\n"
            for match in data["results"]
        ]
        return f"I found {len(data['results'])} relevant document(s):\n\n" + "\n".join(sections)

    return f"Command result: {result.to_json()}"


def build_orchestrator(store: Optional[PendingApprovalStore] = None) -> Orchestrator:
    """Wire the orchestrator from configuration."""
    if store is None:
        store = PendingApprovalStore()
    registry = ToolRegistry([
        SqlQueryTool(MusicDatabase(get_music_db_path())),
        DocumentSearchTool(DocumentCorpus(get_documents_path())),
        CommandExecutionTool(CommandValidator(), store),
    ])

    classifier = None
    if llm_enabled():
        classifier = OllamaClassifier()
    else:
        logger.info("LLM disabled - using keyword fallback routing")

    return Orchestrator(registry=registry, store=store, classifier=classifier)
