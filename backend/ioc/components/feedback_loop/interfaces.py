"""Collaborator interfaces the feedback loop is driven through."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .schemas import (
    Disagreement,
    DisagreementResolution,
    FeedbackMessage,
    Generation,
    Iteration,
    LoopConfig,
    LoopResult,
    NodeValidation,
    ValidationResult,
)


@runtime_checkable
class Generator(Protocol):
    async def generate(
        self,
        context: Dict[str, Any],
        feedback: Sequence[FeedbackMessage],
        *,
        model: Optional[str] = None,
    ) -> Generation:
        """Produce content for ``context``, revising against ``feedback``.

        ``model`` overrides the generator's default model and is only passed
        by the fallback-model tier.
        """
        ...


@runtime_checkable
class Validator(Protocol):
    async def validate(self, content: Any, context: Dict[str, Any]) -> ValidationResult:
        ...


@runtime_checkable
class NodeValidator(Protocol):
    """Optional validator capability for validating content nodes one at a time."""

    async def validate_node(self, node_id: str, node_content: Any, context: Dict[str, Any]) -> NodeValidation:
        ...


@runtime_checkable
class DisagreementResolver(Protocol):
    async def resolve(self, disagreement: Disagreement) -> DisagreementResolution:
        ...


@runtime_checkable
class IterationRecorder(Protocol):
    async def start_loop(self, loop_id: str, config: LoopConfig, context: Dict[str, Any]) -> None:
        ...

    async def append_iteration(self, loop_id: str, iteration: Iteration) -> None:
        ...

    async def finish_loop(self, result: LoopResult) -> None:
        ...

    async def iterations(self, loop_id: str) -> List[Iteration]:
        ...
