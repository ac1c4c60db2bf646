"""Stopping rules evaluated after each recorded iteration."""

from __future__ import annotations

from typing import Optional, Sequence

from .schemas import LoopConfig, LoopState, ValidationResult, ValidationStatus


def is_converged(validation: ValidationResult, threshold: float) -> bool:
    # A high score with an unresolved non-approved status is not convergence.
    return validation.status == ValidationStatus.APPROVED and validation.scores.overall >= threshold


def detect_oscillation(confidences: Sequence[float], window: int, min_improvement: float) -> bool:
    """Confidence flips direction at every step of the window with no net gain."""
    if len(confidences) < window:
        return False
    recent = list(confidences[-window:])
    deltas = [after - before for before, after in zip(recent, recent[1:])]
    if any(delta == 0 for delta in deltas):
        return False
    alternating = all(a * b < 0 for a, b in zip(deltas, deltas[1:]))
    return alternating and (recent[-1] - recent[0]) <= min_improvement


def detect_minimal_improvement(confidences: Sequence[float], min_improvement: float, patience: int) -> bool:
    if len(confidences) < patience + 1:
        return False
    recent = list(confidences[-(patience + 1):])
    return all((after - before) < min_improvement for before, after in zip(recent, recent[1:]))


def evaluate_stop(
    validation: ValidationResult,
    confidences: Sequence[float],
    iteration_count: int,
    config: LoopConfig,
) -> Optional[LoopState]:
    """Terminal state reached after the latest iteration, or None to keep going.

    Checked in order: convergence, iteration cap, oscillation, minimal
    improvement. Timeout and cancellation are checked before each iteration.
    """
    if is_converged(validation, config.confidence_threshold):
        return LoopState.CONVERGED
    if iteration_count >= config.max_iterations:
        return LoopState.MAX_ITERATIONS_REACHED
    if config.enable_oscillation_detection and detect_oscillation(
        confidences, config.oscillation_window, config.min_improvement
    ):
        return LoopState.OSCILLATION_DETECTED
    if detect_minimal_improvement(confidences, config.min_improvement, config.min_improvement_patience):
        return LoopState.MINIMAL_IMPROVEMENT
    return None
