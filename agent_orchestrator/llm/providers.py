"""Completion providers — ABC, OpenAI-compatible implementation, and mocks."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from agent_orchestrator.config import ProviderConfig
from agent_orchestrator.engine.models import (
    CompletionRequest,
    CompletionResponse,
    ProviderCapabilities,
    ToolCallRequest,
)

logger = logging.getLogger(__name__)


class CompletionProvider(ABC):
    """Backend contract consumed by the completion manager."""

    @abstractmethod
    def get_provider_name(self) -> str: ...

    @abstractmethod
    def is_configured(self) -> bool: ...

    @abstractmethod
    def get_capabilities(self) -> ProviderCapabilities: ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse: ...

    @abstractmethod
    async def embeddings(self, texts: list[str]) -> list[list[float]]: ...

    @abstractmethod
    async def health_check(self) -> bool: ...


# ---------------------------------------------------------------------------
# OpenAI-compatible implementation
# ---------------------------------------------------------------------------

_FINISH_REASONS = {"stop", "length", "tool_calls", "content_filter"}


class OpenAIProvider(CompletionProvider):
    """Chat completions over the ``openai`` SDK.

    ``base_url`` points the client at any OpenAI-compatible endpoint, which
    is how non-OpenAI vendors are reached without a dedicated SDK.
    """

    SUPPORTED_MODELS = [
        "mistral-large-latest",
        "mistral-medium-latest",
        "mistral-small-latest",
        "gpt-4o",
        "gpt-4o-mini",
    ]

    def __init__(self, config: ProviderConfig, name: str = "openai") -> None:
        self._config = config
        self._name = name
        self._client = None
        if config.api_key:
            # Late import so the rest of the package works without openai installed
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
            )

    def get_provider_name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return bool(self._config.api_key) and self._client is not None

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_streaming=True,
            supports_tools=True,
            supports_vision=False,
            max_tokens=32000,
            supported_models=list(self.SUPPORTED_MODELS),
            default_model=self._config.default_model,
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        model = request.model or self._config.default_model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [m.model_dump() for m in request.messages],
            "temperature": request.temperature if request.temperature is not None else self._config.temperature,
            "max_tokens": request.max_tokens or self._config.max_tokens,
        }
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p
        if request.tools:
            kwargs["tools"] = list(request.tools)

        response = await self._client.chat.completions.create(**kwargs)
        choice = response.choices[0]
        content = choice.message.content or ""

        tool_calls = None
        if choice.message.tool_calls:
            tool_calls = [
                ToolCallRequest(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=json.loads(tc.function.arguments or "{}"),
                )
                for tc in choice.message.tool_calls
            ]

        if not content and not tool_calls:
            raise RuntimeError(f"Empty response from {self._name} (model={model})")

        finish = choice.finish_reason if choice.finish_reason in _FINISH_REASONS else "stop"
        return CompletionResponse(
            content=content,
            model=response.model or model,
            tokens_used=response.usage.total_tokens if response.usage else 0,
            finish_reason=finish,
            tool_calls=tool_calls,
        )

    async def embeddings(self, texts: list[str]) -> list[list[float]]:
        response = await self._client.embeddings.create(
            model=self._config.embedding_model,
            input=texts,
        )
        return [item.embedding for item in response.data]

    async def health_check(self) -> bool:
        await self._client.models.list()
        return True


# ---------------------------------------------------------------------------
# Test mock — deterministic, scripted outcomes
# ---------------------------------------------------------------------------

class MockProvider(CompletionProvider):
    """Returns pre-configured outcomes in order. Used in unit tests.

    Each scripted item is either a ``CompletionResponse`` or an exception
    instance, which is raised instead of returned. Once the script runs out
    the last item repeats.
    """

    def __init__(
        self,
        outcomes: list[CompletionResponse | Exception] | None = None,
        name: str = "mock",
        configured: bool = True,
        healthy: bool | Exception = True,
    ) -> None:
        self._outcomes = list(outcomes or [])
        self._name = name
        self._configured = configured
        self._healthy = healthy
        self.requests: list[CompletionRequest] = []
        self.embedding_calls: list[list[str]] = []

    def get_provider_name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return self._configured

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(default_model="mock-model", supported_models=["mock-model"])

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        if not self._outcomes:
            return CompletionResponse(content="[mock]", model=request.model or "mock-model")
        index = min(len(self.requests), len(self._outcomes)) - 1
        outcome = self._outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def embeddings(self, texts: list[str]) -> list[list[float]]:
        self.embedding_calls.append(list(texts))
        return [[float(len(t)), 0.0, 1.0] for t in texts]

    async def health_check(self) -> bool:
        if isinstance(self._healthy, Exception):
            raise self._healthy
        return self._healthy

    @property
    def call_count(self) -> int:
        return len(self.requests)


# ---------------------------------------------------------------------------
# Demo provider — offline, for running without an API key
# ---------------------------------------------------------------------------

class DemoProvider(CompletionProvider):
    """Exercises the whole agent cycle without a real model.

    Behaviour:
    1. If tool declarations are offered, ask for the first declared tool.
    2. Otherwise, return a JSON decision to stay idle.
    """

    def __init__(self, responder: Callable[[CompletionRequest], str] | None = None) -> None:
        self._responder = responder

    def get_provider_name(self) -> str:
        return "demo"

    def is_configured(self) -> bool:
        return True

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(supports_tools=True, default_model="demo", supported_models=["demo"])

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        if self._responder is not None:
            return CompletionResponse(content=self._responder(request), model="demo")

        if request.tools:
            tool_name = request.tools[0]["function"]["name"]
            content = json.dumps({
                "chosen_action": tool_name,
                "explanation": "demo provider picks the first available tool",
                "tool_calls": [{"name": tool_name, "arguments": {"user_id": "event.userId"}}],
            })
        else:
            content = json.dumps({
                "chosen_action": "IGNORE",
                "explanation": "This is a demo response. Set OPENAI_API_KEY for real model output.",
                "tool_calls": [],
            })
        return CompletionResponse(content=content, model="demo", tokens_used=len(content.split()))

    async def embeddings(self, texts: list[str]) -> list[list[float]]:
        return [[float(len(t))] for t in texts]

    async def health_check(self) -> bool:
        return True
