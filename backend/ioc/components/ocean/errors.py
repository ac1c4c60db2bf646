from __future__ import annotations

from typing import Iterable


class OceanScoringError(RuntimeError):
    """Base class for OCEAN scoring failures surfaced to callers."""


class InsufficientDataError(OceanScoringError):
    """Raised when a score is requested without enough responses to support it."""

    def __init__(self, message: str, traits: Iterable[str] = ()):
        super().__init__(message)
        self.traits = list(traits)


class UnmappedResponseError(OceanScoringError):
    """Raised when responses reference unknown questions under the reject policy."""

    def __init__(self, question_ids: Iterable[str]):
        self.question_ids = sorted(set(question_ids))
        super().__init__(
            "Responses reference unmapped questions: " + ", ".join(self.question_ids)
        )
