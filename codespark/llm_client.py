"""LLM provider clients used by the explanation service."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_API_KEY_ENV = "GROQ_API_KEY"

Message = dict[str, str]


def build_messages(
    system_prompt: str, user_message: str, history: list[Message] | None = None
) -> list[Message]:
    """System prompt, prior turns, then the new user message."""
    return [
        {"role": "system", "content": system_prompt},
        *(history or []),
        {"role": "user", "content": user_message},
    ]


class LLMClient(ABC):
    """Abstract base for LLM API clients."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = 512,
        history: list[Message] | None = None,
        temperature: float = 0.7,
    ) -> str:
        """Send a prompt (and optional prior turns) and return the raw text response."""
        ...


class ClaudeLLMClient(LLMClient):
    """Wraps anthropic.Anthropic() with lazy import and DI."""

    _LAZY_IMPORT = object()

    def __init__(
        self, model: str = "claude-3-5-haiku-latest", client: Any = _LAZY_IMPORT
    ):
        if client is ClaudeLLMClient._LAZY_IMPORT:
            import anthropic

            self._client = anthropic.Anthropic()
        else:
            self._client = client
        self._model = model

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = 512,
        history: list[Message] | None = None,
        temperature: float = 0.7,
    ) -> str:
        logger.debug(
            "ClaudeLLMClient.complete: model=%s, max_tokens=%d", self._model, max_tokens
        )
        # Anthropic takes the system prompt separately from the turns.
        response = self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[*(history or []), {"role": "user", "content": user_message}],
        )
        return response.content[0].text


class _ChatCompletionsClient(LLMClient):
    """Shared body for providers speaking the OpenAI chat-completions API."""

    def __init__(self, model: str, client: Any):
        self._client = client
        self._model = model

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: int = 512,
        history: list[Message] | None = None,
        temperature: float = 0.7,
    ) -> str:
        logger.debug(
            "%s.complete: model=%s, max_tokens=%d",
            type(self).__name__,
            self._model,
            max_tokens,
        )
        response = self._client.chat.completions.create(
            model=self._model,
            messages=build_messages(system_prompt, user_message, history),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return response.choices[0].message.content or ""


class OpenAILLMClient(_ChatCompletionsClient):
    """Wraps openai.OpenAI() with lazy import and DI."""

    _LAZY_IMPORT = object()

    def __init__(self, model: str = "gpt-4o-mini", client: Any = _LAZY_IMPORT):
        if client is OpenAILLMClient._LAZY_IMPORT:
            import openai

            client = openai.OpenAI()
        super().__init__(model, client)


class GroqLLMClient(_ChatCompletionsClient):
    """Groq's OpenAI-compatible endpoint; the key comes from GROQ_API_KEY."""

    _LAZY_IMPORT = object()

    def __init__(
        self,
        model: str = "llama-3.3-70b-versatile",
        client: Any = _LAZY_IMPORT,
        base_url: str = GROQ_BASE_URL,
        api_key_env: str = GROQ_API_KEY_ENV,
    ):
        if client is GroqLLMClient._LAZY_IMPORT:
            import openai

            api_key = os.environ.get(api_key_env, "")
            if not api_key:
                raise ValueError(
                    f"Environment variable {api_key_env} is not set. "
                    "Set it to your Groq API key."
                )
            client = openai.OpenAI(base_url=base_url, api_key=api_key)
        super().__init__(model, client)


class OllamaLLMClient(_ChatCompletionsClient):
    """Wraps Ollama's OpenAI-compatible API at localhost:11434."""

    _LAZY_IMPORT = object()

    def __init__(
        self,
        model: str = "qwen2.5-coder:7b-instruct",
        client: Any = _LAZY_IMPORT,
        base_url: str = "http://localhost:11434/v1",
    ):
        if client is OllamaLLMClient._LAZY_IMPORT:
            import openai

            client = openai.OpenAI(base_url=base_url, api_key="ollama")
        super().__init__(model, client)


_PROVIDERS: dict[str, type[LLMClient]] = {
    "claude": ClaudeLLMClient,
    "openai": OpenAILLMClient,
    "groq": GroqLLMClient,
    "ollama": OllamaLLMClient,
}


def get_llm_client(
    provider: str = "groq",
    model: str = "",
    client: Any = None,
) -> LLMClient:
    """Factory for LLM clients.

    Args:
        provider: "claude", "openai", "groq", or "ollama"
        model: Model name override (empty string = use default)
        client: Pre-built API client for DI/testing
    """
    if provider not in _PROVIDERS:
        raise ValueError(f"Unknown LLM provider: {provider}")
    kwargs: dict[str, Any] = {}
    if model:
        kwargs["model"] = model
    if client is not None:
        kwargs["client"] = client
    return _PROVIDERS[provider](**kwargs)
