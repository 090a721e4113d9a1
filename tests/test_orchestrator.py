"""RetrievalOrchestrator: source priority, isolation, deadlines, failure handling.

Backends and the knowledge base are fakes from conftest; no network.
"""

import asyncio

import pytest

from conftest import CONN_A, FakeKnowledgeStore, MockLLMClient, configure_tenants
from orgquery.exceptions import QueryExecutionError
from orgquery.retrieval.interpreter import KnowledgeInterpreter
from orgquery.retrieval.orchestrator import RetrievalOrchestrator, merge_results
from orgquery.types import AnswerSource, QueryIntent, QueryResult, RetrievalQuestion

MEHTA = "Dr. Mehta is our lead cardiologist and sees patients on Tuesdays."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _ask(tenant_id: str, text: str = "who are the doctors", **kwargs) -> RetrievalQuestion:
    return RetrievalQuestion(tenant_id=tenant_id, text=text, **kwargs)


def _orchestrator(adapter, knowledge=None, **kwargs) -> RetrievalOrchestrator:
    return RetrievalOrchestrator(adapter, knowledge or FakeKnowledgeStore(), **kwargs)


# ── Merge policy ──────────────────────────────────────────────────────────────

class TestMergeResults:

    def test_rows_win_over_kb_text(self):
        answer = merge_results(QueryIntent.DOCTORS, QueryResult.from_rows([{"id": 1}]), "kb text")
        assert answer.source == AnswerSource.DATABASE
        assert answer.records == [{"id": 1}]
        assert answer.metadata.row_count == 1

    def test_rows_without_kb(self):
        answer = merge_results(QueryIntent.DOCTORS, QueryResult.from_rows([{"id": 1}]), None)
        assert answer.source == AnswerSource.DATABASE

    def test_empty_rows_fall_back_to_kb(self):
        answer = merge_results(QueryIntent.DOCTORS, QueryResult(), "kb text")
        assert answer.source == AnswerSource.KNOWLEDGE_BASE
        assert answer.summary == "kb text"
        assert answer.records == []
        assert answer.metadata.row_count == 0

    def test_failed_db_falls_back_to_kb(self):
        answer = merge_results(QueryIntent.SEARCH, None, "kb text")
        assert answer.source == AnswerSource.KNOWLEDGE_BASE

    @pytest.mark.parametrize("kb", [None, "", "   \n"])
    def test_nothing_found(self, kb):
        answer = merge_results(QueryIntent.SEARCH, QueryResult(), kb)
        assert answer.source == AnswerSource.NONE
        assert answer.summary
        assert answer.records == []


# ── End to end ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_three_tenants_same_question(secret_store, adapter):
    """org_A answers from its database, org_B from its knowledge base, org_none finds nothing."""
    await configure_tenants(secret_store)
    knowledge = FakeKnowledgeStore({"org_B": [("Staff handbook", MEHTA)]})
    orchestrator = _orchestrator(adapter, knowledge)

    a, b, none = await asyncio.gather(
        orchestrator.answer(_ask("org_A")),
        orchestrator.answer(_ask("org_B")),
        orchestrator.answer(_ask("org_none")),
    )

    assert a.source == AnswerSource.DATABASE
    assert a.metadata.row_count == 3
    assert a.metadata.intent == QueryIntent.DOCTORS
    assert "**Doctor 3**" in a.summary
    assert "Dr. Mehta" not in a.summary

    assert b.source == AnswerSource.KNOWLEDGE_BASE
    assert "Dr. Mehta" in b.summary
    assert b.records == []

    assert none.source == AnswerSource.NONE
    assert "couldn't find" in none.summary


@pytest.mark.asyncio
async def test_kb_searched_even_when_database_answers(secret_store, adapter):
    await configure_tenants(secret_store)
    knowledge = FakeKnowledgeStore()
    await _orchestrator(adapter, knowledge).answer(_ask("org_A"))
    assert "org_A" in knowledge.searched


@pytest.mark.asyncio
async def test_global_namespace_fallback(secret_store, adapter):
    await configure_tenants(secret_store)
    knowledge = FakeKnowledgeStore({"global": [("FAQ", "Clinic hours are 9 to 5.")]})

    answer = await _orchestrator(adapter, knowledge).answer(_ask("org_B", "what are the clinic hours"))

    assert answer.source == AnswerSource.KNOWLEDGE_BASE
    assert "9 to 5" in answer.summary
    assert knowledge.searched[:2] == ["org_B", "global"]


# ── Interpretation ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_kb_answer_is_interpreted(secret_store, adapter):
    await configure_tenants(secret_store)
    llm = MockLLMClient(reply="Dr. Mehta is the lead cardiologist.")
    orchestrator = _orchestrator(
        adapter,
        FakeKnowledgeStore({"org_B": [("Staff handbook", MEHTA)]}),
        interpreter=KnowledgeInterpreter(llm),
    )

    answer = await orchestrator.answer(_ask("org_B"))

    assert answer.summary == "Dr. Mehta is the lead cardiologist."
    user_prompt = llm.calls[0][-1]["content"]
    assert 'User asked: "who are the doctors"' in user_prompt
    assert MEHTA in user_prompt


@pytest.mark.asyncio
async def test_interpreter_failure_keeps_raw_context(secret_store, adapter):
    await configure_tenants(secret_store)
    orchestrator = _orchestrator(
        adapter,
        FakeKnowledgeStore({"org_B": [("Staff handbook", MEHTA)]}),
        interpreter=KnowledgeInterpreter(MockLLMClient(fail=True)),
    )
    answer = await orchestrator.answer(_ask("org_B"))
    assert answer.source == AnswerSource.KNOWLEDGE_BASE
    assert MEHTA in answer.summary


@pytest.mark.asyncio
async def test_database_answers_skip_the_llm(secret_store, adapter):
    await configure_tenants(secret_store)
    llm = MockLLMClient(reply="unused")
    await _orchestrator(adapter, interpreter=KnowledgeInterpreter(llm)).answer(_ask("org_A"))
    assert llm.calls == []


# ── Failures and deadlines ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_database_failure_is_absorbed(secret_store, adapter, backends):
    await configure_tenants(secret_store)
    backends.failures[CONN_A] = QueryExecutionError("boom")
    knowledge = FakeKnowledgeStore({"org_A": [("Handbook", "Doctors rotate weekly.")]})

    answer = await _orchestrator(adapter, knowledge).answer(_ask("org_A"))

    assert answer.source == AnswerSource.KNOWLEDGE_BASE


@pytest.mark.asyncio
async def test_knowledge_failure_is_absorbed(secret_store, adapter):
    await configure_tenants(secret_store)

    class _Broken(FakeKnowledgeStore):
        async def search(self, namespace, query, limit=5):
            raise RuntimeError("vector store offline")

    answer = await _orchestrator(adapter, _Broken()).answer(_ask("org_A"))
    assert answer.source == AnswerSource.DATABASE


@pytest.mark.asyncio
async def test_slow_knowledge_base_times_out(secret_store, adapter):
    await configure_tenants(secret_store)

    class _Slow(FakeKnowledgeStore):
        async def search(self, namespace, query, limit=5):
            await asyncio.sleep(5)
            return await super().search(namespace, query, limit)

    answer = await _orchestrator(adapter, _Slow(), branch_timeout=0.05).answer(_ask("org_A"))
    assert answer.source == AnswerSource.DATABASE


@pytest.mark.asyncio
async def test_slow_database_times_out():
    class _SlowAdapter:
        async def execute(self, tenant_id, sql, params=()):
            await asyncio.sleep(5)

        async def list_tables(self, tenant_id):
            return []

    knowledge = FakeKnowledgeStore({"org_A": [("Handbook", "Doctors rotate weekly.")]})
    orchestrator = RetrievalOrchestrator(_SlowAdapter(), knowledge, branch_timeout=0.05)

    answer = await orchestrator.answer(_ask("org_A"))

    assert answer.source == AnswerSource.KNOWLEDGE_BASE
    assert "rotate weekly" in answer.summary


# ── Dispatch routing ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_paging_and_page_size_clamp(secret_store, adapter, databases, backends):
    await configure_tenants(secret_store)
    databases[CONN_A]["patients"] = [{"id": i} for i in range(10)]

    answer = await _orchestrator(adapter).answer(_ask("org_A", "list patients", page=2, page_size=3))
    assert [r["id"] for r in answer.records] == [3, 4, 5]
    assert backends.calls[-1][2] == [3, 3]

    await _orchestrator(adapter, max_page_size=5).answer(_ask("org_A", "list patients", page_size=50))
    assert backends.calls[-1][2] == [5, 0]


@pytest.mark.asyncio
async def test_ticket_question_with_user_uses_user_query(secret_store, adapter, databases, backends):
    await configure_tenants(secret_store)
    databases[CONN_A]["tickets"] = [{"id": 1, "title": "Login broken", "status": "open"}]

    answer = await _orchestrator(adapter).answer(_ask("org_A", "my tickets", user_id="u1"))

    assert answer.source == AnswerSource.DATABASE
    assert "#1: Login broken (open)" in answer.summary
    assert backends.calls[-1][2] == ["u1", "org_A"]


@pytest.mark.asyncio
async def test_ticket_question_without_user_searches_records(secret_store, adapter, backends):
    await configure_tenants(secret_store)
    await _orchestrator(adapter).answer(_ask("org_A", "my tickets"))
    sql = backends.calls[-1][1]
    assert "UNION ALL" in sql


@pytest.mark.asyncio
async def test_unclassified_question_uses_matched_table(secret_store, adapter, databases):
    await configure_tenants(secret_store)
    databases[CONN_A]["insurance_claims"] = [{"claim_id": 7, "amount": 120}]

    answer = await _orchestrator(adapter).answer(_ask("org_A", "show insurance claims"))

    assert answer.source == AnswerSource.DATABASE
    assert answer.metadata.intent == QueryIntent.SEARCH
    assert "- **Claim Id:** 7" in answer.summary


@pytest.mark.asyncio
async def test_unmatched_question_falls_back_to_record_search(secret_store, adapter, databases):
    await configure_tenants(secret_store)
    databases[CONN_A]["_search"] = [{"record_type": "customer", "id": "c9", "title": "Acme Corp"}]

    answer = await _orchestrator(adapter).answer(_ask("org_A", "acme"))

    assert answer.source == AnswerSource.DATABASE
    assert "customer: Acme Corp" in answer.summary
