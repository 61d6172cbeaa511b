"""CompletionManager — provider resolution, caching, retry/backoff, and tracing."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from agent_orchestrator.config import CompletionManagerConfig
from agent_orchestrator.engine.models import (
    CompletionRequest,
    CompletionResponse,
    ProviderCapabilities,
)
from agent_orchestrator.errors import (
    CompletionExhausted,
    ProviderMisconfigured,
    ProviderNotFound,
)
from agent_orchestrator.llm.cache import CompletionCache, fingerprint
from agent_orchestrator.llm.providers import CompletionProvider
from agent_orchestrator.tracing.bus import TraceBus

logger = logging.getLogger(__name__)


class CompletionManager:
    """Owns the named providers and wraps their calls.

    Public API::

        response = await manager.complete(request)            # default provider
        vectors = await manager.embeddings(["a", "b"], "openai")
        healthy = await manager.check_health()
    """

    def __init__(
        self,
        config: CompletionManagerConfig | None = None,
        providers: list[CompletionProvider] | None = None,
        trace_bus: TraceBus | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config or CompletionManagerConfig()
        self._providers: dict[str, CompletionProvider] = {}
        self._trace = trace_bus
        self._sleep = sleep

        cache_cfg = self._config.cache
        cache_kwargs: dict[str, Any] = {"ttl": cache_cfg.ttl, "max_entries": cache_cfg.max_entries}
        if clock is not None:
            cache_kwargs["clock"] = clock
        self._cache = CompletionCache(**cache_kwargs)

        for provider in providers or []:
            self.register_provider(provider)

    # -- providers ----------------------------------------------------------

    def register_provider(self, provider: CompletionProvider) -> None:
        name = provider.get_provider_name()
        self._providers[name] = provider
        logger.info("Registered provider %s (configured=%s)", name, provider.is_configured())

    def available_providers(self) -> list[str]:
        return list(self._providers)

    @property
    def default_provider(self) -> str:
        return self._config.default_provider

    def _resolve(self, provider_name: str | None) -> CompletionProvider:
        name = provider_name or self._config.default_provider
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFound(name)
        if not provider.is_configured():
            raise ProviderMisconfigured(name)
        return provider

    # -- completion ---------------------------------------------------------

    async def complete(
        self,
        request: CompletionRequest,
        provider_name: str | None = None,
    ) -> CompletionResponse:
        provider = self._resolve(provider_name)

        cache_key = fingerprint(request)
        if self._config.cache.enabled:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache hit key=%s", cache_key[:12])
                return cached

        max_retries = self._config.retries.max_retries
        multiplier = self._config.retries.backoff_multiplier
        name = provider.get_provider_name()
        last_error: Exception | None = None

        for attempt in range(max_retries):
            span_id = None
            try:
                model = request.model or provider.get_capabilities().default_model
                span_id = self._span_start(request, name, model, attempt)
                response = await provider.complete(request)
            except Exception as exc:
                last_error = exc
                self._span_error(span_id, exc)
                logger.warning(
                    "provider=%s attempt=%d/%d failed: %s",
                    name, attempt + 1, max_retries, exc,
                )
                if attempt < max_retries - 1:
                    await self._sleep(multiplier ** attempt)
                continue

            self._span_end(span_id, response)
            if self._config.cache.enabled:
                self._cache.put(cache_key, response)
            logger.info(
                "Completion ok provider=%s model=%s tokens=%d attempt=%d",
                name, response.model, response.tokens_used, attempt + 1,
            )
            return response

        raise CompletionExhausted(max_retries, last_error)

    # -- pass-throughs ------------------------------------------------------

    async def embeddings(self, texts: list[str], provider_name: str | None = None) -> list[list[float]]:
        try:
            provider = self._resolve(provider_name)
            vectors = await provider.embeddings(texts)
        except Exception as exc:
            logger.error("Embeddings generation failed: %s", exc)
            raise
        logger.info("Generated %d embeddings provider=%s", len(vectors), provider.get_provider_name())
        return vectors

    def get_capabilities(self, provider_name: str | None = None) -> ProviderCapabilities:
        return self._resolve(provider_name).get_capabilities()

    async def check_health(self, provider_name: str | None = None) -> bool:
        try:
            provider = self._resolve(provider_name)
            healthy = await provider.health_check()
        except Exception as exc:
            logger.error("Health check error: %s", exc)
            return False

        if healthy:
            logger.info("Provider %s is healthy", provider.get_provider_name())
        else:
            logger.warning("Provider %s health check failed", provider.get_provider_name())
        return healthy

    # -- cache --------------------------------------------------------------

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Cache cleared")

    def cache_stats(self) -> dict[str, Any]:
        return {
            "enabled": self._config.cache.enabled,
            "size": len(self._cache),
            "ttl": self._config.cache.ttl,
            "max_entries": self._config.cache.max_entries,
        }

    # -- tracing ------------------------------------------------------------

    def _span_start(self, request: CompletionRequest, provider: str, model: str, attempt: int) -> str | None:
        if self._trace is None or not self._trace.enabled:
            return None
        return self._trace.start_span("llm_call", {
            "provider": provider,
            "model": model,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "top_p": request.top_p,
            "attempt": attempt + 1,
            "tags": request.metadata.get("tags", []),
            "messages": [m.model_dump() for m in request.messages],
        })

    def _span_end(self, span_id: str | None, response: CompletionResponse) -> None:
        if span_id is None:
            return
        self._trace.end_span(span_id, "llm_call", {
            "content": response.content,
            "model": response.model,
            "tokens_used": response.tokens_used,
            "finish_reason": response.finish_reason,
        })

    def _span_error(self, span_id: str | None, error: Exception) -> None:
        if span_id is None:
            return
        self._trace.error_span(span_id, "llm_call", error)
