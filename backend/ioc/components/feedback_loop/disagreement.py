"""Generator/validator disagreement detection and the built-in resolvers."""

from __future__ import annotations

import inspect
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .schemas import (
    Disagreement,
    DisagreementResolution,
    Generation,
    Issue,
    IssueCategory,
    IssueSeverity,
    ValidationResult,
    ValidationStatus,
)

logger = logging.getLogger("ioc.feedback_loop.disagreement")

DISPUTED_STATUSES = {ValidationStatus.REJECTED, ValidationStatus.REQUIRES_HUMAN_REVIEW}

# category -> action for disagreements that can be settled without a human
AUTOMATIC_ACTIONS: Dict[str, str] = {
    "style": "defer_to_validator",
    "content": "merge_suggestions",
    "accuracy": "request_evidence_revision",
    "bias": "regenerate_with_bias_guidance",
}


def classify_category(issues: Sequence[Issue]) -> str:
    categories = {issue.category for issue in issues}
    if IssueCategory.ETHICS in categories:
        return "ethics"
    if IssueCategory.BIAS in categories:
        return "bias"
    if categories & {IssueCategory.ACCURACY, IssueCategory.COMPLIANCE}:
        return "accuracy"
    if categories & {IssueCategory.CLARITY, IssueCategory.CONSISTENCY}:
        return "content"
    return "style"


def classify_severity(issues: Sequence[Issue]) -> IssueSeverity:
    if any(issue.severity == IssueSeverity.CRITICAL for issue in issues):
        return IssueSeverity.CRITICAL
    high = sum(1 for issue in issues if issue.severity == IssueSeverity.HIGH)
    if high > 1:
        return IssueSeverity.HIGH
    if high == 1:
        return IssueSeverity.MEDIUM
    return IssueSeverity.LOW


def detect_disagreement(
    loop_id: str,
    iteration: int,
    generation: Generation,
    validation: ValidationResult,
    gap_threshold: float,
    escalation_delta: float,
) -> Optional[Disagreement]:
    """A disputed verdict while the generator is confident beyond ``gap_threshold``."""
    if validation.status not in DISPUTED_STATUSES:
        return None
    gap = generation.confidence - validation.scores.overall
    if gap <= gap_threshold:
        return None

    category = classify_category(validation.issues)
    severity = classify_severity(validation.issues)
    requires_escalation = (
        severity == IssueSeverity.CRITICAL
        or (category == "ethics" and severity in (IssueSeverity.HIGH, IssueSeverity.CRITICAL))
        or gap > escalation_delta
    )
    return Disagreement(
        id=str(uuid.uuid4()),
        loop_id=loop_id,
        iteration=iteration,
        category=category,
        severity=severity,
        generator_confidence=generation.confidence,
        validator_confidence=validation.scores.overall,
        gap=gap,
        validation_status=validation.status,
        issues=list(validation.issues),
        requires_escalation=requires_escalation,
    )


EscalationHook = Callable[[Disagreement], Union[None, Awaitable[None]]]


class EscalateToHumanResolver:
    """Queues every disagreement for human review."""

    def __init__(self, on_escalate: EscalationHook | None = None):
        self.on_escalate = on_escalate
        self.pending: List[Disagreement] = []

    async def resolve(self, disagreement: Disagreement) -> DisagreementResolution:
        self.pending.append(disagreement)
        if self.on_escalate is not None:
            outcome = self.on_escalate(disagreement)
            if inspect.isawaitable(outcome):
                await outcome
        logger.warning(
            "Escalated disagreement %s (%s) to human review",
            disagreement.id,
            disagreement.strategy_key,
        )
        return DisagreementResolution(
            disagreement_id=disagreement.id,
            method="human_escalation",
            action="await_human_review",
            rationale=f"{disagreement.strategy_key} disagreement queued for review",
            escalated=True,
        )


class AutomaticHeuristicResolver:
    """Settles routine disagreements by rule and escalates the rest."""

    def __init__(self, escalation: EscalateToHumanResolver | None = None):
        self.escalation = escalation or EscalateToHumanResolver()

    async def resolve(self, disagreement: Disagreement) -> DisagreementResolution:
        action = AUTOMATIC_ACTIONS.get(disagreement.category)
        if disagreement.requires_escalation or action is None:
            return await self.escalation.resolve(disagreement)
        logger.info("Auto-resolved disagreement %s with %s", disagreement.id, action)
        return DisagreementResolution(
            disagreement_id=disagreement.id,
            method="automatic",
            action=action,
            rationale=(
                f"{disagreement.strategy_key} disagreement with confidence gap "
                f"{disagreement.gap:.2f} resolved by rule"
            ),
        )
