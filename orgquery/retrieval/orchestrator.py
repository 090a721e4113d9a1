"""RetrievalOrchestrator: database first, knowledge base as fallback.

Per request: Classify → Dispatch → Merge → Format.

1. Classify the question into a :class:`QueryIntent`.
2. Dispatch the relational query and the knowledge-base search concurrently.
   Each branch has its own deadline and swallows its own failure, resolving
   to ``None`` so the other branch still counts.
3. Merge: database rows win; otherwise knowledge-base text; otherwise none.
4. Format the winning source into a summary.

Both branches are awaited before merging. The priority rule needs both
outcomes, so this is never race-to-first.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from orgquery.db.adapter import QueryAdapter
from orgquery.knowledge.store import KnowledgeStore
from orgquery.retrieval.formatter import format_database_answer, format_kb_context, no_results_message
from orgquery.retrieval.intent import classify_intent
from orgquery.retrieval.interpreter import KnowledgeInterpreter
from orgquery.retrieval.matcher import CatalogTableMatcher
from orgquery.retrieval.queries import (
    ENTITY_TABLES,
    query_table,
    query_user_orders,
    query_user_tickets,
    search_records,
)
from orgquery.types import (
    AnswerMetadata,
    AnswerSource,
    QueryIntent,
    QueryResult,
    RetrievalAnswer,
    RetrievalQuestion,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def merge_results(
    intent: QueryIntent,
    db_result: Optional[QueryResult],
    kb_context: Optional[str],
) -> RetrievalAnswer:
    """Apply the source priority policy.

    * ``DATABASE``       iff the database returned at least one row
    * ``KNOWLEDGE_BASE`` iff the database returned nothing and the KB text is non-empty
    * ``NONE``           otherwise, with a fixed non-empty message
    """
    if db_result is not None and db_result.row_count > 0:
        return RetrievalAnswer(
            source=AnswerSource.DATABASE,
            summary=format_database_answer(intent, db_result),
            records=db_result.rows,
            metadata=AnswerMetadata(intent=intent, row_count=db_result.row_count),
        )

    if kb_context and kb_context.strip():
        return RetrievalAnswer(
            source=AnswerSource.KNOWLEDGE_BASE,
            summary=kb_context,
            metadata=AnswerMetadata(intent=intent, row_count=0),
        )

    return RetrievalAnswer(
        source=AnswerSource.NONE,
        summary=no_results_message(),
        metadata=AnswerMetadata(intent=intent, row_count=0),
    )


class RetrievalOrchestrator:
    """Answers tenant questions from the tenant database, then the knowledge base.

    Args:
        adapter: Tenant-aware query adapter.
        knowledge_store: Knowledge-base search collaborator.
        matcher: Table matcher for unclassified questions.
        interpreter: Grounds knowledge-base answers; pass-through when omitted.
        branch_timeout: Seconds each dispatch branch may take.
        kb_limit: Entries requested per knowledge-base search.
        global_namespace: Shared namespace searched when the tenant's is empty.
        max_page_size: Upper bound applied to ``RetrievalQuestion.page_size``.
    """

    def __init__(
        self,
        adapter: QueryAdapter,
        knowledge_store: KnowledgeStore,
        matcher: Optional[CatalogTableMatcher] = None,
        interpreter: Optional[KnowledgeInterpreter] = None,
        *,
        branch_timeout: float = 15.0,
        kb_limit: int = 5,
        global_namespace: str = "global",
        max_page_size: int = 100,
    ) -> None:
        self.adapter = adapter
        self.knowledge_store = knowledge_store
        self.matcher = matcher or CatalogTableMatcher(adapter)
        self.interpreter = interpreter or KnowledgeInterpreter()
        self.branch_timeout = branch_timeout
        self.kb_limit = kb_limit
        self.global_namespace = global_namespace
        self.max_page_size = max_page_size

    async def answer(self, question: RetrievalQuestion) -> RetrievalAnswer:
        """Run one retrieval. Never raises for backend or knowledge-base failures."""
        intent = classify_intent(question.text)
        page_size = min(question.page_size, self.max_page_size)
        offset = (question.page - 1) * page_size
        logger.info(
            "[Retrieval] tenant=%s intent=%s page=%d page_size=%d",
            question.tenant_id, intent.value, question.page, page_size,
        )

        db_result, kb_context = await asyncio.gather(
            self._bounded("database", question.tenant_id,
                          self._query_database(question, intent, page_size, offset)),
            self._bounded("knowledge_base", question.tenant_id,
                          self._search_knowledge(question)),
        )

        answer = merge_results(intent, db_result, kb_context)
        if answer.source == AnswerSource.KNOWLEDGE_BASE:
            summary = await self.interpreter.interpret(question.text, kb_context)
            answer = answer.model_copy(update={"summary": summary})

        logger.info(
            "[Retrieval] tenant=%s source=%s rows=%d",
            question.tenant_id, answer.source.value, answer.metadata.row_count,
        )
        return answer

    async def _bounded(self, branch: str, tenant_id: str, work: Awaitable[T]) -> Optional[T]:
        try:
            return await asyncio.wait_for(work, timeout=self.branch_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "[Retrieval] %s branch timed out after %.1fs for tenant %s",
                branch, self.branch_timeout, tenant_id,
            )
        except Exception as exc:
            logger.error("[Retrieval] %s branch failed for tenant %s: %s", branch, tenant_id, exc)
        return None

    async def _query_database(
        self,
        question: RetrievalQuestion,
        intent: QueryIntent,
        page_size: int,
        offset: int,
    ) -> QueryResult:
        tenant_id = question.tenant_id

        if intent == QueryIntent.TICKETS and question.user_id:
            return await query_user_tickets(self.adapter, tenant_id, question.user_id)
        if intent == QueryIntent.ORDERS and question.user_id:
            return await query_user_orders(self.adapter, tenant_id, question.user_id)

        table = ENTITY_TABLES.get(intent)
        if table is None and intent == QueryIntent.SEARCH:
            table = await self.matcher.find_best_table(tenant_id, question.text)
        if table is not None:
            return await query_table(self.adapter, tenant_id, table, page_size, offset)

        return await search_records(self.adapter, tenant_id, question.text, limit=page_size, offset=offset)

    async def _search_knowledge(self, question: RetrievalQuestion) -> Optional[str]:
        result = await self.knowledge_store.search(question.tenant_id, question.text, self.kb_limit)
        if not result.text.strip():
            result = await self.knowledge_store.search(self.global_namespace, question.text, self.kb_limit)
            if not result.text.strip():
                return None
        return format_kb_context(result)
