"""Table catalog matching for questions with no recognized intent.

The scoring heuristic sits behind :class:`TableMatchStrategy` so a learned or
embedding-based matcher can replace it without touching the orchestrator.
"""

import logging
import re
from typing import Optional, Protocol, Sequence

from orgquery.db.adapter import QueryAdapter

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"\W+")

EXACT_PHRASE_SCORE = 5   # "lab results" in question for table lab_results
RAW_NAME_SCORE = 2       # "lab_results" in question
TOKEN_SCORE = 1          # per shared token


def _tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT.split(text) if t]


def score_table(table_name: str, question: str) -> int:
    """Lexical overlap score between *table_name* and *question*."""
    q = question.lower()
    raw = table_name.lower()
    phrase = raw.replace("_", " ")

    score = 0
    if phrase in q:
        score += EXACT_PHRASE_SCORE
    if raw in q:
        score += RAW_NAME_SCORE

    question_tokens = set(_tokens(q))
    score += TOKEN_SCORE * sum(1 for token in _tokens(phrase) if token in question_tokens)
    return score


class TableMatchStrategy(Protocol):
    def find_best_table(self, question: str, tables: Sequence[str]) -> Optional[str]:
        ...


class LexicalTableMatcher:
    """Pick the highest-scoring table; first table wins ties. ``None`` if nothing scores."""

    def find_best_table(self, question: str, tables: Sequence[str]) -> Optional[str]:
        best_name: Optional[str] = None
        best_score = 0
        for name in tables:
            score = score_table(name, question)
            if score > best_score:
                best_name, best_score = name, score
        return best_name


class CatalogTableMatcher:
    """Lists a tenant's tables through the adapter and delegates the choice."""

    def __init__(self, adapter: QueryAdapter, strategy: Optional[TableMatchStrategy] = None):
        self.adapter = adapter
        self.strategy = strategy or LexicalTableMatcher()

    async def find_best_table(self, tenant_id: str, question: str) -> Optional[str]:
        tables = await self.adapter.list_tables(tenant_id)
        match = self.strategy.find_best_table(question, tables)
        logger.debug("[Matcher] tenant=%s tables=%d match=%s", tenant_id, len(tables), match)
        return match
