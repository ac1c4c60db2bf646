"""Turn a validation result into targeted feedback for the next generation."""

from __future__ import annotations

from typing import List, Sequence

from .schemas import (
    SEVERITY_ORDER,
    FeedbackMessage,
    Issue,
    IssueSeverity,
    LoopPriority,
    ValidationResult,
    ValidationStatus,
)

WHOLE_CONTENT_NODE = "content"
HIGH_URGENCY_BELOW = 0.5

_PRIORITY_FOR_SEVERITY = {
    IssueSeverity.CRITICAL: LoopPriority.URGENT,
    IssueSeverity.HIGH: LoopPriority.HIGH,
    IssueSeverity.MEDIUM: LoopPriority.MEDIUM,
    IssueSeverity.LOW: LoopPriority.LOW,
}

# Lower sorts first
PRIORITY_RANK = {
    LoopPriority.URGENT: 1,
    LoopPriority.HIGH: 2,
    LoopPriority.MEDIUM: 3,
    LoopPriority.LOW: 4,
}


def priority_for(issues: Sequence[Issue]) -> LoopPriority:
    if not issues:
        return LoopPriority.LOW
    worst = max((issue.severity for issue in issues), key=SEVERITY_ORDER.index)
    return _PRIORITY_FOR_SEVERITY[worst]


def _message(node_id, confidence, threshold, issues, suggestions) -> FeedbackMessage:
    return FeedbackMessage(
        node_id=node_id,
        current_confidence=confidence,
        target_confidence=threshold,
        issues=list(issues),
        suggested_improvements=list(suggestions),
        urgency="high" if confidence < HIGH_URGENCY_BELOW else "medium",
        priority=priority_for(issues),
    )


def build_feedback(validation: ValidationResult, threshold: float, max_messages: int) -> List[FeedbackMessage]:
    """One message per node still below target, most pressing first, capped."""
    messages: List[FeedbackMessage] = []
    for node in validation.node_validations:
        if node.status == ValidationStatus.APPROVED and node.confidence >= threshold:
            continue
        messages.append(_message(node.node_id, node.confidence, threshold, node.issues, node.suggestions))

    overall_ok = validation.status == ValidationStatus.APPROVED and validation.scores.overall >= threshold
    if not messages and not overall_ok:
        messages.append(
            _message(
                WHOLE_CONTENT_NODE,
                validation.scores.overall,
                threshold,
                validation.issues,
                validation.suggestions,
            )
        )

    messages.sort(key=lambda m: (PRIORITY_RANK[m.priority], m.current_confidence))
    return messages[:max_messages]
