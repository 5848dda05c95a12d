"""
Thin adapter layer over OpenAI-compatible chat-completion APIs
(OpenAI itself, OpenRouter, …).

Callers depend on ``BaseLLMProvider`` only, so tests can substitute a fake.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_OPENAI_BASE_URL = "https://api.openai.com/v1"


class BaseLLMProvider(ABC):
    """Common interface that every concrete provider implements."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        model: str | None = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None


class OpenAIProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        default_model: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        from openai import AsyncOpenAI

        kwargs: Dict[str, Any] = {"api_key": api_key or "missing-key"}
        if base_url:
            kwargs["base_url"] = base_url
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = AsyncOpenAI(**kwargs)
        self.default_model = default_model

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        model: str | None = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        model = model or self.default_model

        kwargs: Dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            **kwargs,
        )
        if not response.choices:
            raise ValueError(f"{model} returned no choices")

        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self.client.close()


def get_llm_provider(
    provider_name: str,
    *,
    api_key: str,
    default_model: str,
    base_url: str | None = None,
    timeout: float | None = None,
) -> BaseLLMProvider:
    """
    Build an LLM provider instance.

    Parameters
    ----------
    provider_name : "openrouter" | "openai"
    api_key       : key for the selected provider.
    default_model : model used when ``generate`` is not given one.
    base_url      : OpenRouter API root; ignored for "openai".
    """
    if provider_name == "openrouter":
        return OpenAIProvider(
            api_key=api_key,
            default_model=default_model,
            base_url=base_url,
            timeout=timeout,
        )
    if provider_name == "openai":
        return OpenAIProvider(
            api_key=api_key,
            default_model=default_model,
            base_url=_OPENAI_BASE_URL,
            timeout=timeout,
        )
    raise ValueError(f"Unsupported LLM provider: {provider_name}")
