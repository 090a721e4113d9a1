"""Thin wrapper around litellm for orgquery-specific usage.

litellm handles OpenAI, Anthropic, Ollama, and 100+ providers.
This wrapper adds: a per-call deadline, error normalization, usage extraction.
"""

import asyncio

import litellm
from orgquery.config import config
from orgquery.exceptions import LLMError


class LLMClient:
    """Thin wrapper around litellm for orgquery-specific usage."""

    def __init__(self, model: str = None, timeout: float = None):
        """
        Args:
            model:   litellm model string, e.g. "openai/gpt-4o-mini".
                     Defaults to ORGQUERY_INTERPRETER_MODEL.
            timeout: Seconds before the call is abandoned.
        """
        self.model = model or config.interpreter_model
        self.timeout = config.llm_timeout_seconds if timeout is None else timeout
        litellm.drop_params = True  # ignore unsupported params per provider

    async def complete(
        self,
        messages: list[dict],
        temperature: float = None,
        max_tokens: int = None,
    ) -> dict:
        """Call LLM via litellm.acompletion().

        Args:
            messages:    Chat messages [{"role": "user", "content": "..."}]
            temperature: Override config temperature
            max_tokens:  Override config max_tokens

        Returns:
            {"content": str, "usage": {"input_tokens": int, "output_tokens": int}}

        Raises:
            LLMError: On any LLM provider error or timeout
        """
        try:
            response = await asyncio.wait_for(
                litellm.acompletion(
                    model=self.model,
                    messages=messages,
                    temperature=config.llm_temperature if temperature is None else temperature,
                    max_tokens=config.llm_max_tokens if max_tokens is None else max_tokens,
                ),
                timeout=self.timeout,
            )
            choice = response.choices[0]
            usage = getattr(response, "usage", None)
            return {
                "content": choice.message.content or "",
                "usage": {
                    "input_tokens": getattr(usage, "prompt_tokens", 0) or 0,
                    "output_tokens": getattr(usage, "completion_tokens", 0) or 0,
                },
            }
        except Exception as e:
            raise LLMError(f"LLM call failed: {e}", details={"model": self.model}) from e
