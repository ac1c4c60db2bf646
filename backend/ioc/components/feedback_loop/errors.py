from __future__ import annotations


class FeedbackLoopError(RuntimeError):
    """Base class for dual-AI feedback loop failures."""


class GenerationTimeoutError(FeedbackLoopError):
    """Raised when the generator misses its per-call deadline."""


class ValidationTimeoutError(FeedbackLoopError):
    """Raised when the validator misses its per-call deadline."""


class CollaboratorFailureError(FeedbackLoopError):
    """Raised when a fallback tier could not produce a result."""


class LoopStateError(FeedbackLoopError):
    """Raised when an operation is not valid for the loop's current state."""
