"""
Ollama-backed language model client for query classification, tool input
generation and response synthesis.
"""

from datetime import datetime
from typing import Dict, Optional

import httpx
import ollama

from ..core.config import OLLAMA_MODEL, OLLAMA_HOST, LLM_TEMPERATURE, LLM_MAX_TOKENS
from ..core.errors import UpstreamUnavailable
from .router import ToolName
from util.logging import logger


ANALYZE_PROMPT = """You are a helpful AI assistant that analyzes user queries and determines which tool to use.

Available tools:
{tool_menu}

User query: {query}

Select the most appropriate tool and explain why.
Respond with a JSON object containing:
{{
  "tool_name": "one of: {tool_names}",
  "reasoning": "brief explanation of your choice"
}}"""

GENERATE_INPUT_PROMPT = """Generate appropriate input for the {tool_name} tool.

User query: {query}
Previous results: {previous_results}

Tool input requirements:
- sqlite_database: SQL query string
- document_search: Search terms string
- bash_command: JSON string with command and description

Generate the input only, no explanation needed."""

SYNTHESIZE_PROMPT = """Create a natural language response based on the tool results.

User query: {query}
Tool used: {tool_name}
Tool output: {tool_output}

Generate a clear and helpful response, explaining the results and suggesting follow-up queries if relevant."""


class OllamaClassifier:
    """
    LLM collaborator used by the orchestrator.

    Every call is a single-turn chat request. Transport failures are raised as
    UpstreamUnavailable so the caller can fall back to keyword routing.
    """

    def __init__(self, model_name: str = OLLAMA_MODEL, host: Optional[str] = OLLAMA_HOST,
                 temperature: float = LLM_TEMPERATURE, max_tokens: int = LLM_MAX_TOKENS,
                 client: Optional[ollama.Client] = None):
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or ollama.Client(host=host)

    def classify(self, query: str, tool_menu: Dict[ToolName, str]) -> str:
        menu = "\n".join(
            f"{index}. {tool.value} - {description}"
            for index, (tool, description) in enumerate(tool_menu.items(), start=1)
        )
        prompt = ANALYZE_PROMPT.format(
            tool_menu=menu,
            query=query,
            tool_names=", ".join(tool.value for tool in tool_menu)
        )
        return self._complete(prompt)

    def generate_tool_input(self, tool_name: ToolName, query: str, previous_results: str = "[]") -> str:
        prompt = GENERATE_INPUT_PROMPT.format(
            tool_name=tool_name.value,
            query=query,
            previous_results=previous_results
        )
        return self._complete(prompt).strip()

    def synthesize(self, query: str, tool_name: ToolName, tool_output: str) -> str:
        prompt = SYNTHESIZE_PROMPT.format(query=query, tool_name=tool_name.value, tool_output=tool_output)
        return self._complete(prompt)

    def _complete(self, prompt: str) -> str:
        start_time = datetime.now()
        try:
            response = self.client.chat(
                model=self.model_name,
                messages=[{'role': 'user', 'content': prompt}],
                options={
                    'temperature': self.temperature,
                    'num_predict': self.max_tokens
                }
            )
        except (ConnectionError, httpx.HTTPError, ollama.RequestError, ollama.ResponseError) as e:
            raise UpstreamUnavailable(f"Ollama request failed: {e}")

        processing_time = int((datetime.now() - start_time).total_seconds() * 1000)
        content = response['message']['content'] or ""
        logger.debug(f"Ollama {self.model_name} answered in {processing_time}ms ({len(content)} chars)")
        return content

    def health_check(self) -> bool:
        """Check if Ollama is reachable and the model is pulled."""
        try:
            models = self.client.list()
            model_names = [model['model'] for model in models.get('models', [])]
            return self.model_name in model_names or f"{self.model_name}:latest" in model_names
        except Exception:
            return False
