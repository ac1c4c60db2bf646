"""Dual-AI feedback loop: bounded generate/validate refinement until convergence.

Iterations within one loop are strictly sequential. Independent loops share
nothing mutable except the optional content cache.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...platform.request_context import reset_loop_id, set_loop_id
from .cache import ContentCache
from .convergence import evaluate_stop
from .disagreement import detect_disagreement
from .errors import GenerationTimeoutError, LoopStateError, ValidationTimeoutError
from .fallback import CollaboratorCall, FallbackCascade, SleepFn
from .feedback import build_feedback
from .history import InMemoryLoopHistory
from .interfaces import DisagreementResolver, Generator, IterationRecorder, NodeValidator, Validator
from .model_fallback import fallback_models_for
from .schemas import (
    FallbackTier,
    FeedbackMessage,
    Generation,
    Issue,
    IssueCategory,
    IssueSeverity,
    Iteration,
    LoopConfig,
    LoopResult,
    LoopState,
    NodeValidation,
    QualityMetrics,
    ValidationResult,
    ValidationScores,
    ValidationStatus,
)

logger = logging.getLogger("ioc.feedback_loop")

DEGRADED_MODEL = "degraded-placeholder"

_CANCELLED = object()
_TIMED_OUT = object()


def _degraded_generation() -> Generation:
    return Generation(
        content={"degraded": True, "message": "Content generation is temporarily unavailable."},
        confidence=0.0,
        model=DEGRADED_MODEL,
        metadata={"degraded": True},
    )


def _degraded_validation() -> ValidationResult:
    return ValidationResult(
        status=ValidationStatus.REQUIRES_HUMAN_REVIEW,
        scores=ValidationScores(accuracy=0.0, clarity=0.0, bias=0.0, ethics=0.0, compliance=0.0, overall=0.0),
        issues=[
            Issue(
                category=IssueCategory.ACCURACY,
                severity=IssueSeverity.HIGH,
                description="Validator unavailable; content requires human review",
            )
        ],
    )


def _content_nodes(content: Any) -> Dict[str, Any]:
    if isinstance(content, dict) and isinstance(content.get("nodes"), dict):
        return {str(node_id): node for node_id, node in content["nodes"].items()}
    return {}


class FeedbackLoop:
    """One loop instance. Run it once; cancel it from any task."""

    def __init__(
        self,
        generator: Generator,
        validator: Validator,
        context: Dict[str, Any],
        config: LoopConfig | None = None,
        *,
        recorder: IterationRecorder | None = None,
        resolver: DisagreementResolver | None = None,
        cache: ContentCache | None = None,
        loop_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.loop_id = loop_id or str(uuid.uuid4())
        self.generator = generator
        self.validator = validator
        self.context = dict(context)
        self.config = config or LoopConfig.from_settings()
        self.recorder = recorder or InMemoryLoopHistory()
        self.resolver = resolver
        self.cache = cache if self.config.enable_caching else None
        self._clock = clock
        self._cascade = FallbackCascade.default(self.config, cache=self.cache, sleep=sleep)
        self._fallback_models = (
            list(self.config.fallback_models)
            if self.config.fallback_models is not None
            else fallback_models_for(self.config.generator_model)
        )
        self._state = LoopState.ACTIVE
        self._started = False
        self._cancel_requested = asyncio.Event()
        self._iterations: List[Iteration] = []
        self._latest_feedback: List[FeedbackMessage] = []
        self._approved_nodes: Dict[str, Tuple[str, NodeValidation]] = {}
        self._requires_human_review = False
        self._error: Optional[str] = None
        self._started_at: Optional[float] = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def iterations(self) -> Tuple[Iteration, ...]:
        return tuple(self._iterations)

    def cancel(self) -> None:
        """Request cancellation; the in-flight iteration is abandoned unrecorded."""
        if self._state.is_terminal:
            raise LoopStateError(f"Loop {self.loop_id} already finished as {self._state.value}")
        self._cancel_requested.set()

    async def run(self) -> LoopResult:
        if self._started:
            raise LoopStateError(f"Loop {self.loop_id} has already been run")
        self._started = True
        token = set_loop_id(self.loop_id)
        self._started_at = self._clock()
        try:
            try:
                await self.recorder.start_loop(self.loop_id, self.config, self.context)
                logger.info(
                    "Feedback loop started threshold=%.2f max_iterations=%d",
                    self.config.confidence_threshold,
                    self.config.max_iterations,
                )
                self._state = await self._drive()
            except asyncio.CancelledError:
                self._state = LoopState.CANCELLED
                await self._finish()
                raise
            except Exception as exc:
                logger.exception("Feedback loop failed")
                self._state = LoopState.ERROR
                self._error = f"{type(exc).__name__}: {exc}"
            return await self._finish()
        finally:
            reset_loop_id(token)

    async def _drive(self) -> LoopState:
        while True:
            if self._cancel_requested.is_set():
                return LoopState.CANCELLED
            remaining = self.config.timeout_seconds - (self._clock() - self._started_at)
            if remaining <= 0:
                return LoopState.TIMED_OUT

            number = len(self._iterations) + 1
            outcome = await self._race(self._run_iteration(number), remaining)
            if outcome is _CANCELLED:
                return LoopState.CANCELLED
            if outcome is _TIMED_OUT:
                return LoopState.TIMED_OUT

            iteration: Iteration = outcome
            await self.recorder.append_iteration(self.loop_id, iteration)
            self._iterations.append(iteration)
            self._latest_feedback = list(iteration.feedback)
            logger.info(
                "Iteration %d recorded confidence=%.3f status=%s",
                number,
                iteration.confidence,
                iteration.validation.status.value,
            )

            stop = evaluate_stop(
                iteration.validation,
                [it.confidence for it in self._iterations],
                len(self._iterations),
                self.config,
            )
            if stop is not None:
                return stop

    async def _race(self, coro, remaining: float):
        """Run one iteration, abandoning it on cancellation or loop deadline."""
        work = asyncio.ensure_future(coro)
        cancel_wait = asyncio.ensure_future(self._cancel_requested.wait())
        try:
            done, _ = await asyncio.wait(
                {work, cancel_wait},
                timeout=remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            work.cancel()
            cancel_wait.cancel()
            raise
        cancel_wait.cancel()
        if work in done:
            return work.result()
        work.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await work
        return _CANCELLED if cancel_wait in done else _TIMED_OUT

    async def _run_iteration(self, number: int) -> Iteration:
        started = self._clock()
        generation, generation_tier = await self._generate()
        validation, validation_tier = await self._validate(generation)

        node_results = await self._validate_nodes(generation)
        if node_results:
            validation = validation.model_copy(update={"node_validations": node_results})

        feedback = build_feedback(validation, self.config.confidence_threshold, self.config.max_feedback_messages)

        disagreement = detect_disagreement(
            self.loop_id,
            number,
            generation,
            validation,
            self.config.disagreement_gap,
            self.config.escalation_delta,
        )
        resolution = None
        if disagreement is not None:
            logger.warning(
                "Disagreement %s at iteration %d gap=%.2f severity=%s",
                disagreement.category,
                number,
                disagreement.gap,
                disagreement.severity.value,
            )
            if self.resolver is not None:
                resolution = await self.resolver.resolve(disagreement)
            if disagreement.requires_escalation or (resolution is not None and resolution.escalated):
                self._requires_human_review = True

        return Iteration(
            number=number,
            generation=generation,
            validation=validation,
            feedback=feedback,
            disagreement=disagreement,
            resolution=resolution,
            metadata={
                "generation_tier": generation_tier.value,
                "validation_tier": validation_tier.value,
                "elapsed_seconds": self._clock() - started,
                "nodes_carried_over": sum(1 for node in node_results if node.carried_over),
            },
        )

    async def _generate(self) -> Tuple[Generation, FallbackTier]:
        feedback = list(self._latest_feedback)
        similar_key = ContentCache.key_for({"kind": "generation", "context": self.context}) if self.cache is not None else None

        async def invoke(model: Optional[str]) -> Generation:
            if model is None:
                return await self.generator.generate(self.context, feedback)
            return await self.generator.generate(self.context, feedback, model=model)

        generation, tier = await self._cascade.run(
            CollaboratorCall(
                name="generation",
                invoke=invoke,
                timeout_error=GenerationTimeoutError,
                similar_key=similar_key,
                fallback_models=self._fallback_models,
                placeholder=_degraded_generation,
            )
        )
        if self.cache is not None and tier in (FallbackTier.PRIMARY, FallbackTier.RETRY, FallbackTier.FALLBACK_MODEL):
            self.cache.set(similar_key, generation)
        return generation, tier

    async def _validate(self, generation: Generation) -> Tuple[ValidationResult, FallbackTier]:
        exact_key = None
        if self.cache is not None:
            exact_key = ContentCache.key_for(
                {"kind": "validation", "content": generation.content, "context": self.context}
            )
            cached = self.cache.get(exact_key)
            if cached is not None:
                return cached, FallbackTier.CACHE

        async def invoke(model: Optional[str]) -> ValidationResult:
            return await self.validator.validate(generation.content, self.context)

        validation, tier = await self._cascade.run(
            CollaboratorCall(
                name="validation",
                invoke=invoke,
                timeout_error=ValidationTimeoutError,
                placeholder=_degraded_validation,
            )
        )
        if self.cache is not None and tier in (FallbackTier.PRIMARY, FallbackTier.RETRY):
            self.cache.set(exact_key, validation)
        return validation, tier

    async def _validate_nodes(self, generation: Generation) -> List[NodeValidation]:
        nodes = _content_nodes(generation.content)
        if not nodes or not isinstance(self.validator, NodeValidator):
            return []
        semaphore = asyncio.Semaphore(self.config.node_concurrency)

        async def check(node_id: str, node: Any) -> NodeValidation:
            node_hash = ContentCache.key_for(node)
            previous = self._approved_nodes.get(node_id)
            if previous is not None and previous[0] == node_hash:
                return previous[1].model_copy(update={"carried_over": True})
            try:
                async with semaphore:
                    result = await asyncio.wait_for(
                        self.validator.validate_node(node_id, node, self.context),
                        self.config.call_timeout_seconds,
                    )
            except Exception as exc:
                logger.warning("Node %s validation failed, flagging for review: %s", node_id, exc)
                result = NodeValidation(
                    node_id=node_id,
                    confidence=0.0,
                    status=ValidationStatus.REQUIRES_HUMAN_REVIEW,
                    issues=[
                        Issue(
                            category=IssueCategory.ACCURACY,
                            severity=IssueSeverity.HIGH,
                            description=f"Node validation unavailable: {type(exc).__name__}",
                            node_id=node_id,
                        )
                    ],
                )
            if result.status == ValidationStatus.APPROVED and result.confidence >= self.config.confidence_threshold:
                self._approved_nodes[node_id] = (node_hash, result)
            else:
                self._approved_nodes.pop(node_id, None)
            return result

        return list(await asyncio.gather(*(check(node_id, node) for node_id, node in nodes.items())))

    def _metrics(self) -> QualityMetrics:
        confidences = [it.confidence for it in self._iterations]
        tiers: Dict[str, int] = {}
        for it in self._iterations:
            for key in ("generation_tier", "validation_tier"):
                tier = it.metadata.get(key)
                if tier:
                    tiers[tier] = tiers.get(tier, 0) + 1
        return QualityMetrics(
            initial_confidence=confidences[0] if confidences else None,
            final_confidence=confidences[-1] if confidences else None,
            peak_confidence=max(confidences) if confidences else None,
            improvement=(confidences[-1] - confidences[0]) if confidences else 0.0,
            total_feedback_messages=sum(len(it.feedback) for it in self._iterations),
            disagreement_count=sum(1 for it in self._iterations if it.disagreement is not None),
            elapsed_seconds=self._clock() - self._started_at if self._started_at is not None else 0.0,
            fallback_tiers=tiers,
        )

    async def _finish(self) -> LoopResult:
        last = self._iterations[-1] if self._iterations else None
        best = max(self._iterations, key=lambda it: it.confidence) if self._iterations else None
        result = LoopResult(
            loop_id=self.loop_id,
            state=self._state,
            status=self._state.lifecycle_status,
            convergence_reason=self._state.convergence_reason,
            iterations=list(self._iterations),
            final_content=last.generation.content if last else None,
            final_confidence=last.confidence if last else None,
            best_iteration=best.number if best else None,
            provisional=self._state is not LoopState.CONVERGED,
            requires_human_review=self._requires_human_review,
            error=self._error,
            metrics=self._metrics(),
        )
        await self.recorder.finish_loop(result)
        log = logger.info if self._state is LoopState.CONVERGED else logger.warning
        log(
            "Feedback loop finished state=%s iterations=%d final_confidence=%s",
            self._state.value,
            len(self._iterations),
            result.final_confidence,
        )
        return result


class FeedbackLoopOrchestrator:
    """Creates loops over shared collaborators and tracks the ones still running."""

    def __init__(
        self,
        generator: Generator,
        validator: Validator,
        *,
        recorder: IterationRecorder | None = None,
        resolver: DisagreementResolver | None = None,
        cache: ContentCache | None = None,
        default_config: LoopConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.generator = generator
        self.validator = validator
        self.recorder = recorder or InMemoryLoopHistory()
        self.resolver = resolver
        self.default_config = default_config or LoopConfig.from_settings()
        # Loops created here share one cache sized from settings unless one is injected
        if cache is None and self.default_config.enable_caching:
            cache = ContentCache.from_settings()
        self.cache = cache
        self._clock = clock
        self._sleep = sleep
        self._active: Dict[str, FeedbackLoop] = {}

    def create_loop(self, context: Dict[str, Any], config: LoopConfig | None = None) -> FeedbackLoop:
        return FeedbackLoop(
            self.generator,
            self.validator,
            context,
            config or self.default_config,
            recorder=self.recorder,
            resolver=self.resolver,
            cache=self.cache,
            clock=self._clock,
            sleep=self._sleep,
        )

    async def run(self, loop: FeedbackLoop) -> LoopResult:
        self._active[loop.loop_id] = loop
        try:
            return await loop.run()
        finally:
            self._active.pop(loop.loop_id, None)

    async def submit(self, context: Dict[str, Any], config: LoopConfig | None = None) -> LoopResult:
        return await self.run(self.create_loop(context, config))

    def active_loop_ids(self) -> List[str]:
        return list(self._active)

    def cancel(self, loop_id: str) -> None:
        loop = self._active.get(loop_id)
        if loop is None:
            raise LoopStateError(f"No active loop {loop_id}")
        loop.cancel()
