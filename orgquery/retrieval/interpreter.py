"""Turns retrieved knowledge-base text into a grounded natural-language answer."""

import logging
from typing import Optional

from orgquery.exceptions import LLMError
from orgquery.llm.client import LLMClient
from orgquery.llm.prompts import INTERPRETER_USER, SEARCH_INTERPRETER

logger = logging.getLogger(__name__)


class KnowledgeInterpreter:
    """Summarizes knowledge-base context with an LLM, strictly from that context.

    Without an LLM client, or when the call fails, the retrieved context is
    returned unchanged so the caller still gets a non-empty answer.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client

    async def interpret(self, question: str, context: str) -> str:
        if self.llm_client is None:
            return context
        messages = [
            {"role": "system", "content": SEARCH_INTERPRETER},
            {"role": "user", "content": INTERPRETER_USER.format(question=question, context=context)},
        ]
        try:
            response = await self.llm_client.complete(messages)
        except LLMError as exc:
            logger.warning("[Interpreter] Knowledge base interpretation failed: %s", exc)
            return context
        return response["content"].strip() or context
