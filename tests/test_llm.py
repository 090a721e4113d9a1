"""LLM client wrapper and the knowledge-base interpreter."""

import asyncio
from types import SimpleNamespace

import pytest

from conftest import MockLLMClient
from orgquery.exceptions import LLMError
from orgquery.llm import client as llm_module
from orgquery.llm.client import LLMClient
from orgquery.llm.prompts import SEARCH_INTERPRETER
from orgquery.retrieval.interpreter import KnowledgeInterpreter


def _response(content: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=4),
    )


# ── LLMClient ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_complete_returns_content_and_usage(monkeypatch):
    seen = {}

    async def fake_acompletion(**kwargs):
        seen.update(kwargs)
        return _response("hello")

    monkeypatch.setattr(llm_module.litellm, "acompletion", fake_acompletion)
    result = await LLMClient(model="openai/test-model").complete([{"role": "user", "content": "hi"}], max_tokens=50)

    assert result == {"content": "hello", "usage": {"input_tokens": 12, "output_tokens": 4}}
    assert seen["model"] == "openai/test-model"
    assert seen["max_tokens"] == 50


@pytest.mark.asyncio
async def test_provider_error_becomes_llm_error(monkeypatch):
    async def fake_acompletion(**kwargs):
        raise RuntimeError("rate limited")

    monkeypatch.setattr(llm_module.litellm, "acompletion", fake_acompletion)
    with pytest.raises(LLMError, match="rate limited"):
        await LLMClient(model="openai/test-model").complete([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_timeout_becomes_llm_error(monkeypatch):
    async def fake_acompletion(**kwargs):
        await asyncio.sleep(5)

    monkeypatch.setattr(llm_module.litellm, "acompletion", fake_acompletion)
    with pytest.raises(LLMError):
        await LLMClient(model="openai/test-model", timeout=0.05).complete([{"role": "user", "content": "hi"}])


# ── KnowledgeInterpreter ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_interpreter_sends_grounding_prompt():
    llm = MockLLMClient(reply="  Short answer.  ")
    text = await KnowledgeInterpreter(llm).interpret("who is on call", "Dr. Rao is on call.")

    assert text == "Short answer."
    system, user = llm.calls[0]
    assert system == {"role": "system", "content": SEARCH_INTERPRETER}
    assert user["content"] == 'User asked: "who is on call"\n\nSearch results: Dr. Rao is on call.'


@pytest.mark.asyncio
async def test_interpreter_passthrough_without_client():
    assert await KnowledgeInterpreter().interpret("q", "raw context") == "raw context"


@pytest.mark.asyncio
async def test_interpreter_keeps_context_on_failure_or_blank_reply():
    assert await KnowledgeInterpreter(MockLLMClient(fail=True)).interpret("q", "raw") == "raw"
    assert await KnowledgeInterpreter(MockLLMClient(reply="   ")).interpret("q", "raw") == "raw"
