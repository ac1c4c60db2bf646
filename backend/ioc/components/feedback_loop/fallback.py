"""Ordered fallback cascade for generator and validator calls.

Tiers run in strict order: retry with backoff, fallback model, cached similar
response, degraded placeholder. The tier that produced the result is returned
alongside it so the loop can record it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Type

from .cache import ContentCache
from .errors import CollaboratorFailureError, FeedbackLoopError
from .model_fallback import is_model_not_found_error
from .schemas import FallbackTier, LoopConfig

logger = logging.getLogger("ioc.feedback_loop.fallback")

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass
class CollaboratorCall:
    name: str
    # Receives a model override (None for the collaborator's default model)
    invoke: Callable[[Optional[str]], Awaitable[Any]]
    timeout_error: Type[FeedbackLoopError]
    similar_key: Optional[str] = None
    fallback_models: Sequence[str] = field(default_factory=list)
    placeholder: Optional[Callable[[], Any]] = None


async def _call_with_deadline(call: CollaboratorCall, model: Optional[str], timeout: float) -> Any:
    try:
        return await asyncio.wait_for(call.invoke(model), timeout)
    except asyncio.TimeoutError as exc:
        raise call.timeout_error(f"{call.name} exceeded its {timeout:.1f}s deadline") from exc


class RetryWithBackoff:
    tier = FallbackTier.RETRY

    def __init__(self, attempts: int, backoff_seconds: float, call_timeout: float, sleep: SleepFn = asyncio.sleep):
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.call_timeout = call_timeout
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.backoff_seconds * 2 ** (attempt - 1)

    async def attempt(self, call: CollaboratorCall) -> Tuple[Any, FallbackTier]:
        last_exc: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                value = await _call_with_deadline(call, None, self.call_timeout)
                return value, (FallbackTier.PRIMARY if attempt == 1 else FallbackTier.RETRY)
            except Exception as exc:
                last_exc = exc
                logger.warning("%s attempt %d/%d failed: %s", call.name, attempt, self.attempts, exc)
                if is_model_not_found_error(exc):
                    break
                if attempt < self.attempts:
                    await self._sleep(self.delay_for(attempt))
        raise CollaboratorFailureError(f"{call.name} failed after retries: {last_exc}") from last_exc


class FallbackModel:
    tier = FallbackTier.FALLBACK_MODEL

    def __init__(self, call_timeout: float):
        self.call_timeout = call_timeout

    async def attempt(self, call: CollaboratorCall) -> Tuple[Any, FallbackTier]:
        last_exc: Exception | None = None
        for model in call.fallback_models:
            try:
                value = await _call_with_deadline(call, model, self.call_timeout)
                logger.info("%s served by fallback model %s", call.name, model)
                return value, self.tier
            except Exception as exc:
                last_exc = exc
                logger.warning("%s fallback model %s failed: %s", call.name, model, exc)
        raise CollaboratorFailureError(f"No fallback model succeeded for {call.name}") from last_exc


class CachedSimilarResponse:
    tier = FallbackTier.CACHED_SIMILAR

    def __init__(self, cache: ContentCache):
        self.cache = cache

    async def attempt(self, call: CollaboratorCall) -> Tuple[Any, FallbackTier]:
        value = self.cache.get(call.similar_key) if call.similar_key else None
        if value is None:
            raise CollaboratorFailureError(f"No cached response for {call.name}")
        return value, self.tier


class GracefulDegradation:
    tier = FallbackTier.DEGRADED

    async def attempt(self, call: CollaboratorCall) -> Tuple[Any, FallbackTier]:
        if call.placeholder is None:
            raise CollaboratorFailureError(f"No degraded placeholder for {call.name}")
        logger.error("%s degraded to placeholder output", call.name)
        return call.placeholder(), self.tier


class FallbackCascade:
    def __init__(self, strategies: Sequence[Any]):
        if not strategies:
            raise ValueError("At least one fallback strategy is required")
        self.strategies: List[Any] = list(strategies)

    @classmethod
    def default(
        cls,
        config: LoopConfig,
        cache: ContentCache | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> "FallbackCascade":
        strategies: List[Any] = [
            RetryWithBackoff(config.retry_attempts, config.retry_backoff_seconds, config.call_timeout_seconds, sleep),
            FallbackModel(config.call_timeout_seconds),
        ]
        if cache is not None:
            strategies.append(CachedSimilarResponse(cache))
        strategies.append(GracefulDegradation())
        return cls(strategies)

    @property
    def tiers(self) -> List[FallbackTier]:
        return [strategy.tier for strategy in self.strategies]

    async def run(self, call: CollaboratorCall) -> Tuple[Any, FallbackTier]:
        failures: List[str] = []
        for strategy in self.strategies:
            try:
                return await strategy.attempt(call)
            except CollaboratorFailureError as exc:
                failures.append(f"{strategy.tier.value}: {exc}")
                logger.warning("Fallback tier %s exhausted for %s", strategy.tier.value, call.name)
        raise CollaboratorFailureError(f"All fallback tiers failed for {call.name}: " + "; ".join(failures))
