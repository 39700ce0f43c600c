"""
Keyword relevance search over a plain-text document corpus.

Scoring is a substring count: for each query term, every whitespace-delimited
token in the document that contains the term adds one point. Documents that
score zero never appear in results.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Union

from .config import MAX_SEARCH_RESULTS, MAX_EXCERPT_CHARS, MAX_EXCERPT_PARAGRAPHS
from .errors import ToolExecutionError
from util.logging import logger

TRUNCATION_MARKER = "..."
NO_RESULTS_MESSAGE = "No relevant documents found for your query."
NO_RESULTS_SUGGESTIONS = "Try using different keywords or broader terms."

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class Document:
    id: str
    content: str


@dataclass(frozen=True)
class DocumentMatch:
    source_id: str
    relevance_score: int
    excerpt: str

    def to_dict(self) -> Dict:
        return {"source": self.source_id, "relevance": self.relevance_score, "content": self.excerpt}


@dataclass
class SearchResults:
    """Ranked matches for a query (never empty when produced by search())."""
    query: str
    matches: List[DocumentMatch] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"query": self.query, "results": [match.to_dict() for match in self.matches]}


@dataclass
class NoResults:
    """Explicit signal that no document matched any query term."""
    query: str
    message: str = NO_RESULTS_MESSAGE
    suggestions: str = NO_RESULTS_SUGGESTIONS

    def to_dict(self) -> Dict:
        return {"message": self.message, "query": self.query, "suggestions": self.suggestions}


SearchOutcome = Union[SearchResults, NoResults]


def tokenize_query(query: str) -> List[str]:
    return query.lower().split()


def score_document(content: str, terms: Sequence[str]) -> int:
    """Sum over terms of the number of content tokens containing the term."""
    words = content.lower().split()
    return sum(1 for term in terms for word in words if term in word)


def extract_excerpt(content: str, terms: Sequence[str],
                    max_paragraphs: int = MAX_EXCERPT_PARAGRAPHS,
                    max_chars: int = MAX_EXCERPT_CHARS) -> str:
    """Join the first paragraphs mentioning any term, truncated to max_chars."""
    paragraphs = [
        paragraph for paragraph in _PARAGRAPH_BREAK.split(content)
        if any(term in paragraph.lower() for term in terms)
    ][:max_paragraphs]

    excerpt = "\n\n".join(paragraphs)
    if len(excerpt) > max_chars:
        return excerpt[:max_chars] + TRUNCATION_MARKER
    return excerpt


def search(query: str, corpus: Sequence[Document],
           limit: int = MAX_SEARCH_RESULTS) -> SearchOutcome:
    """
    Rank documents against a query.

    Args:
        query: Free-text query, split on whitespace into lower-case terms
        corpus: Documents in enumeration order (used to break score ties)
        limit: Maximum number of matches returned

    Returns:
        SearchResults with up to `limit` matches by descending score, or
        NoResults when nothing scored above zero
    """
    terms = tokenize_query(query)

    scored = []
    for document in corpus:
        score = score_document(document.content, terms) if terms else 0
        if score > 0:
            scored.append((score, document))

    # sorted() is stable, so equal scores keep corpus order
    ranked = sorted(scored, key=lambda item: item[0], reverse=True)[:limit]

    logger.log_document_search(query, len(corpus), len(ranked))

    if not ranked:
        return NoResults(query=query)

    return SearchResults(
        query=query,
        matches=[
            DocumentMatch(
                source_id=document.id,
                relevance_score=score,
                excerpt=extract_excerpt(document.content, terms)
            )
            for score, document in ranked
        ]
    )


class DocumentCorpus:
    """Enumerates .txt documents under a directory."""

    def __init__(self, documents_path: Union[str, Path]):
        self.documents_path = Path(documents_path).resolve()

    def load(self) -> List[Document]:
        if not self.documents_path.is_dir():
            raise ToolExecutionError(f"Error searching documents: directory not found: {self.documents_path}")

        documents = []
        for path in sorted(self.documents_path.glob("*.txt")):
            try:
                documents.append(Document(id=path.name, content=path.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read file {path}: {e}")
        return documents
