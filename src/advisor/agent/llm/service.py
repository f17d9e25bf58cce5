"""
LLM Service with health probing and sequential failover.

Holds the ordered provider set, probes health concurrently, and sends each
request to one candidate at a time until one succeeds. The synthetic
fallback provider always closes the candidate list, so
``generate_response`` returns a usable response for any non-empty input.

Usage:
    service = LLMService(
        providers=[ollama, groq, FallbackProvider()],
        priority_order=["ollama", "groq"],
        per_provider_timeout=10.0,
    )

    statuses = await service.get_available_providers()
    response = await service.generate_response(
        None,
        [ChatMessage(role="user", content="Hello")],
        preferred_provider="groq",
    )
    print(response.provider, response.text)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from datetime import datetime
from typing import Any, Optional, Union

from ...core.exceptions import (
    AllProvidersExhaustedError,
    ConfigurationError,
    EmptyInputError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from ...core.resilience import gather_ordered, gather_with_errors, with_timeout
from ..domain.entities import (
    ChatMessage,
    LLMRequest,
    LLMResponse,
    ProviderStatus,
)
from ..providers.base import BaseProvider
from ..providers.fallback import FallbackProvider
from .token_budget import truncate_to_budget

logger = logging.getLogger(__name__)

# Weight of the newest sample in the latency moving average
LATENCY_SMOOTHING = 0.2


class LLMService:
    """Provider selection, failover and usage accounting.

    Args:
        providers: Provider adapters in registration order. A synthetic
            provider in the list becomes the fallback; otherwise one is
            created.
        priority_order: Provider ids in failover order (local first)
        preferred_provider: Default provider tried first when healthy
        per_provider_timeout: Seconds allowed for each health check or chat
        max_context_tokens: Token budget for one request

    Raises:
        ConfigurationError: No providers, or duplicate provider ids
    """

    def __init__(
        self,
        providers: list[BaseProvider],
        priority_order: Optional[list[str]] = None,
        preferred_provider: Optional[str] = None,
        per_provider_timeout: float = 30.0,
        max_context_tokens: int = 4000,
    ):
        if not providers:
            raise ConfigurationError("At least one LLM provider must be configured")

        self._providers, self._fallback = self._index(providers)

        self.priority_order = list(priority_order or [])
        self.preferred_provider = preferred_provider
        self.per_provider_timeout = per_provider_timeout
        self.max_context_tokens = max_context_tokens

        self._disabled: set[str] = set()
        self._status = self._initial_status(self._all_providers())
        self._usage: dict[str, Any] = {
            "total_requests": 0,
            "fallback_responses": 0,
            "total_latency_ms": 0.0,
            "last_provider": None,
            "by_provider": {},
        }

        logger.info(
            f"LLMService initialized with providers {list(self._providers)} "
            f"(fallback: {self._fallback.provider_id})"
        )

    # =========================================
    # Provider registry
    # =========================================

    @staticmethod
    def _index(
        providers: list[BaseProvider],
        fallback: Optional[BaseProvider] = None,
    ) -> tuple[dict[str, BaseProvider], BaseProvider]:
        """Split providers into real ones by id and the synthetic fallback.

        The first synthetic provider in the list wins; ``fallback`` is used
        when the list has none, and a new FallbackProvider after that.

        Raises:
            ConfigurationError: Duplicate provider ids
        """
        registered: dict[str, BaseProvider] = {}
        synthetic: Optional[BaseProvider] = None
        for provider in providers:
            if provider.is_synthetic:
                if synthetic is None:
                    synthetic = provider
                continue
            if provider.provider_id in registered:
                raise ConfigurationError(f"Duplicate provider id: {provider.provider_id}")
            registered[provider.provider_id] = provider
        return registered, synthetic or fallback or FallbackProvider()

    @staticmethod
    def _initial_status(providers: list[BaseProvider]) -> dict[str, ProviderStatus]:
        return {
            p.provider_id: ProviderStatus(provider_id=p.provider_id, kind=p.kind, model=p.model_name)
            for p in providers
        }

    def _all_providers(self) -> list[BaseProvider]:
        return [*self._providers.values(), self._fallback]

    def replace_providers(self, providers: list[BaseProvider]) -> list[BaseProvider]:
        """Swap in a new provider set, e.g. after a registry reload.

        The new set and its fresh (never probed) statuses are published
        together, with no await in between, so a request sees either the
        old set or the new one. The current fallback is kept unless the new
        list brings its own synthetic provider.

        Returns:
            Providers that are no longer in use; the caller closes them

        Raises:
            ConfigurationError: Duplicate provider ids (nothing is changed)
        """
        registered, fallback = self._index(providers, self._fallback)
        status = self._initial_status([*registered.values(), fallback])
        kept = {id(p) for p in [*registered.values(), fallback]}
        retired = [p for p in self._all_providers() if id(p) not in kept]

        self._providers, self._fallback, self._status = registered, fallback, status
        self._disabled &= set(registered)

        logger.info(
            f"Providers replaced: {list(registered)} (fallback: {fallback.provider_id}); "
            f"{len(retired)} retired"
        )
        return retired

    @property
    def provider_ids(self) -> list[str]:
        """Ids of real providers in registration order."""
        return list(self._providers)

    @property
    def fallback_provider(self) -> BaseProvider:
        return self._fallback

    def get_provider(self, provider_id: str) -> Optional[BaseProvider]:
        if self._fallback.provider_id == provider_id:
            return self._fallback
        return self._providers.get(provider_id)

    def disable_provider(self, provider_id: str) -> None:
        """Stop offering a provider as a candidate."""
        if provider_id in self._providers:
            self._disabled.add(provider_id)
            logger.info(f"Provider {provider_id} disabled")

    def enable_provider(self, provider_id: str) -> None:
        self._disabled.discard(provider_id)

    def get_provider_status(self) -> list[ProviderStatus]:
        """Return cached statuses without probing."""
        return [self._status[p.provider_id] for p in self._all_providers()]

    def _set_status(self, provider_id: str, **changes: Any) -> None:
        # Readers see either the old or the new object, never a partial update
        current = self._status.get(provider_id)
        if current is None:
            # Provider was retired by replace_providers while a call was in flight
            return
        self._status[provider_id] = dataclasses.replace(
            current, last_checked_at=datetime.utcnow(), **changes
        )

    def _record_success(self, provider_id: str, latency_ms: float) -> None:
        current = self._status.get(provider_id)
        if current is None:
            return
        if current.avg_latency_ms:
            avg = current.avg_latency_ms * (1 - LATENCY_SMOOTHING) + latency_ms * LATENCY_SMOOTHING
        else:
            avg = latency_ms
        self._set_status(provider_id, is_healthy=True, avg_latency_ms=avg, last_error=None)

    def _record_failure(self, provider_id: str, error: Exception) -> None:
        self._set_status(provider_id, is_healthy=False, last_error=str(error))
        stats = self._usage["by_provider"].setdefault(
            provider_id, {"requests": 0, "failures": 0, "total_latency_ms": 0.0}
        )
        stats["failures"] += 1

    # =========================================
    # Health checks
    # =========================================

    async def _probe(self, provider: BaseProvider) -> bool:
        return bool(
            await with_timeout(
                provider.health_check,
                self.per_provider_timeout,
                default=False,
                raise_on_timeout=False,
            )
        )

    async def get_available_providers(self) -> list[ProviderStatus]:
        """Probe every provider concurrently and refresh the status cache.

        Each probe is bounded by ``per_provider_timeout``; a hung provider is
        reported unhealthy without delaying the others.

        Returns:
            Fresh statuses for all providers, fallback last
        """
        providers = self._all_providers()
        outcomes = await gather_ordered(*(self._probe(p) for p in providers))

        for provider, outcome in zip(providers, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Health check for {provider.provider_id} raised: {outcome}")
                self._set_status(provider.provider_id, is_healthy=False, last_error=str(outcome))
            elif outcome:
                self._set_status(provider.provider_id, is_healthy=True)
            else:
                self._set_status(
                    provider.provider_id, is_healthy=False, last_error="health check failed"
                )

        healthy = [s.provider_id for s in self._status.values() if s.is_healthy]
        logger.info(f"Healthy providers: {healthy}")
        return self.get_provider_status()

    async def perform_health_check(self) -> dict[str, dict[str, Any]]:
        """Probe every provider and report availability with probe latency."""

        async def timed(provider: BaseProvider) -> tuple[bool, float]:
            started = time.perf_counter()
            ok = await self._probe(provider)
            return ok, (time.perf_counter() - started) * 1000

        providers = self._all_providers()
        outcomes = await gather_ordered(*(timed(p) for p in providers))
        report: dict[str, dict[str, Any]] = {}
        for provider, outcome in zip(providers, outcomes):
            if isinstance(outcome, Exception):
                ok, latency = False, 0.0
            else:
                ok, latency = outcome
            self._set_status(provider.provider_id, is_healthy=ok)
            report[provider.provider_id] = {"available": ok, "latency_ms": round(latency, 2)}
        return report

    async def test_connection(self, provider_id: str) -> dict[str, Any]:
        """Probe one provider and send it a minimal chat request."""
        provider = self.get_provider(provider_id)
        if provider is None:
            return {"success": False, "provider": provider_id, "error": "Unknown provider"}

        started = time.perf_counter()
        if not await self._probe(provider):
            return {
                "success": False,
                "provider": provider_id,
                "error": "Health check failed",
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            }

        request = LLMRequest(
            messages=[ChatMessage(role="user", content="Reply with OK.")],
            max_tokens=5,
            temperature=0.0,
        )
        try:
            await self._call(provider, request)
        except ProviderError as e:
            return {
                "success": False,
                "provider": provider_id,
                "error": e.message,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        return {
            "success": True,
            "provider": provider_id,
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        }

    # =========================================
    # Generation
    # =========================================

    def _candidate_order(self, preferred: Optional[str]) -> list[BaseProvider]:
        """Build the failover order for one request.

        Preferred provider first unless its cached status is unhealthy, then
        ``priority_order``, then any other registered providers. Providers
        known to be unhealthy move behind the rest. The fallback is last.
        """
        head: list[str] = []
        preferred = preferred or self.preferred_provider
        if (
            preferred in self._providers
            and preferred not in self._disabled
            and self._status[preferred].is_healthy is not False
        ):
            head.append(preferred)

        rest: list[str] = []
        for provider_id in [*self.priority_order, *self._providers]:
            if (
                provider_id in self._providers
                and provider_id not in self._disabled
                and provider_id not in head
                and provider_id not in rest
            ):
                rest.append(provider_id)

        # Stable sort keeps priority order within each health group
        rest.sort(key=lambda pid: self._status[pid].is_healthy is False)

        return [self._providers[pid] for pid in head + rest] + [self._fallback]

    async def _call(self, provider: BaseProvider, request: LLMRequest) -> LLMResponse:
        try:
            return await with_timeout(provider.chat, self.per_provider_timeout, request)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"{provider.provider_id} did not answer in {self.per_provider_timeout}s",
                provider=provider.provider_id,
                timeout_seconds=self.per_provider_timeout,
                cause=e,
            )

    async def generate_response(
        self,
        model_id: Optional[str],
        messages: list[Union[ChatMessage, dict[str, Any]]],
        preferred_provider: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        """Generate a completion, failing over across providers.

        Candidates are tried one at a time; the first success is returned
        and no later candidate is invoked. A failed provider is not retried
        within the same call. When every real provider fails, the synthetic
        fallback answers.

        Args:
            model_id: Model override, applied to the preferred provider only
            messages: Conversation turns, oldest first
            preferred_provider: Provider to try first when healthy
            system_prompt: System prompt sent with the messages
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            Response tagged with the provider that produced it

        Raises:
            EmptyInputError: If ``messages`` is empty
        """
        if not messages:
            raise EmptyInputError()

        chat_messages = [
            m if isinstance(m, ChatMessage) else ChatMessage(role=m["role"], content=m["content"])
            for m in messages
        ]
        chat_messages = truncate_to_budget(chat_messages, self.max_context_tokens, system_prompt)

        started = time.perf_counter()
        preferred = preferred_provider or self.preferred_provider
        attempted: list[str] = []
        response: Optional[LLMResponse] = None

        for provider in self._candidate_order(preferred_provider):
            if provider is self._fallback and attempted:
                exhausted = AllProvidersExhaustedError(attempted=list(attempted))
                logger.warning(f"{exhausted}; answering with {provider.provider_id}")
            request = LLMRequest(
                messages=chat_messages,
                system_prompt=system_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                model=model_id if model_id and provider.provider_id == preferred else None,
            )
            try:
                response = await self._call(provider, request)
            except ProviderError as e:
                logger.warning(f"Provider {provider.provider_id} failed: {e.message}")
                self._record_failure(provider.provider_id, e)
                attempted.append(provider.provider_id)
                continue
            except Exception as e:
                logger.error(f"Unexpected error from provider {provider.provider_id}: {e}")
                self._record_failure(provider.provider_id, ProviderUnavailableError(str(e), cause=e))
                attempted.append(provider.provider_id)
                continue

            self._record_success(provider.provider_id, response.processing_time_ms)
            break

        if response is None:
            # Only reachable when a custom synthetic provider breaks its contract
            response = await FallbackProvider().chat(LLMRequest(messages=chat_messages))

        total_ms = (time.perf_counter() - started) * 1000
        self._record_usage(response, total_ms)
        logger.info(
            f"Response from {response.provider} in {total_ms:.0f}ms "
            f"after {len(attempted)} failed attempt(s)"
        )
        return response

    def _record_usage(self, response: LLMResponse, total_ms: float) -> None:
        self._usage["total_requests"] += 1
        self._usage["total_latency_ms"] += total_ms
        self._usage["last_provider"] = response.provider
        if response.is_fallback:
            self._usage["fallback_responses"] += 1
        stats = self._usage["by_provider"].setdefault(
            response.provider, {"requests": 0, "failures": 0, "total_latency_ms": 0.0}
        )
        stats["requests"] += 1
        stats["total_latency_ms"] += total_ms

    def get_usage_stats(self) -> dict[str, Any]:
        """Return request counts, fallback usage and average latency."""
        total = self._usage["total_requests"]
        by_provider = {
            pid: {
                "requests": s["requests"],
                "failures": s["failures"],
                "avg_latency_ms": round(s["total_latency_ms"] / s["requests"], 2) if s["requests"] else 0.0,
            }
            for pid, s in self._usage["by_provider"].items()
        }
        return {
            "total_requests": total,
            "fallback_responses": self._usage["fallback_responses"],
            "avg_latency_ms": round(self._usage["total_latency_ms"] / total, 2) if total else 0.0,
            "last_provider": self._usage["last_provider"],
            "by_provider": by_provider,
        }

    async def aclose(self) -> None:
        """Close every provider's network client."""
        _, errors = await gather_with_errors(*(p.aclose() for p in self._all_providers()))
        for error in errors:
            logger.warning(f"Error closing provider: {error}")
