"""Pydantic models and enums for the dual-AI feedback loop."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...platform.config import settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoopState(str, enum.Enum):
    ACTIVE = "active"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    TIMED_OUT = "timed_out"
    OSCILLATION_DETECTED = "oscillation_detected"
    MINIMAL_IMPROVEMENT = "minimal_improvement"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LoopState.ACTIVE

    @property
    def lifecycle_status(self) -> str:
        return _LIFECYCLE_STATUS[self]

    @property
    def convergence_reason(self) -> Optional[str]:
        return _CONVERGENCE_REASON.get(self)


_LIFECYCLE_STATUS = {
    LoopState.ACTIVE: "active",
    LoopState.CONVERGED: "completed",
    LoopState.MAX_ITERATIONS_REACHED: "completed",
    LoopState.OSCILLATION_DETECTED: "completed",
    LoopState.MINIMAL_IMPROVEMENT: "completed",
    LoopState.TIMED_OUT: "timeout",
    LoopState.ERROR: "error",
    LoopState.CANCELLED: "cancelled",
}

_CONVERGENCE_REASON = {
    LoopState.CONVERGED: "threshold_met",
    LoopState.MAX_ITERATIONS_REACHED: "max_iterations",
    LoopState.TIMED_OUT: "timeout",
    LoopState.OSCILLATION_DETECTED: "oscillation",
    LoopState.MINIMAL_IMPROVEMENT: "minimal_improvement",
}


class ValidationStatus(str, enum.Enum):
    APPROVED = "approved"
    NEEDS_IMPROVEMENT = "needs_improvement"
    REJECTED = "rejected"
    REQUIRES_HUMAN_REVIEW = "requires_human_review"


class IssueCategory(str, enum.Enum):
    ACCURACY = "accuracy"
    CLARITY = "clarity"
    BIAS = "bias"
    ETHICS = "ethics"
    COMPLIANCE = "compliance"
    CONSISTENCY = "consistency"


class IssueSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_ORDER = [IssueSeverity.LOW, IssueSeverity.MEDIUM, IssueSeverity.HIGH, IssueSeverity.CRITICAL]


class LoopPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContentType(str, enum.Enum):
    ASSESSMENT = "assessment"
    REPORT = "report"
    COACHING = "coaching"
    INSIGHT = "insight"
    RECOMMENDATION = "recommendation"


class FallbackTier(str, enum.Enum):
    PRIMARY = "primary"
    RETRY = "retry"
    FALLBACK_MODEL = "fallback_model"
    CACHE = "cache"
    CACHED_SIMILAR = "cached_similar"
    DEGRADED = "degraded"


class LoopConfig(BaseModel):
    """Every recognized feedback-loop option. Unknown keys are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Literal["1"] = "1"
    confidence_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    max_iterations: int = Field(default=5, ge=1, le=50)
    timeout_seconds: float = Field(default=300.0, gt=0)
    priority: LoopPriority = LoopPriority.MEDIUM
    content_type: ContentType = ContentType.ASSESSMENT
    # Oscillation: confidence alternates direction over this many iterations without net gain
    enable_oscillation_detection: bool = True
    oscillation_window: int = Field(default=3, ge=3)
    # Minimal improvement: gain below min_improvement for patience consecutive iterations
    min_improvement: float = Field(default=0.01, ge=0.0)
    min_improvement_patience: int = Field(default=2, ge=1)
    disagreement_gap: float = Field(default=0.2, ge=0.0, le=1.0)
    escalation_delta: float = Field(default=0.4, ge=0.0, le=1.0)
    max_feedback_messages: int = Field(default=5, ge=1)
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0.0)
    call_timeout_seconds: float = Field(default=60.0, gt=0)
    node_concurrency: int = Field(default=5, ge=1)
    enable_caching: bool = True
    generator_model: str = "claude-3-5-sonnet-latest"
    # None derives the chain from generator_model
    fallback_models: Optional[List[str]] = None

    @classmethod
    def from_settings(cls, **overrides: Any) -> "LoopConfig":
        values: Dict[str, Any] = {
            "confidence_threshold": settings.FEEDBACK_LOOP_CONFIDENCE_THRESHOLD,
            "max_iterations": settings.FEEDBACK_LOOP_MAX_ITERATIONS,
            "timeout_seconds": settings.FEEDBACK_LOOP_TIMEOUT_SECONDS,
            "oscillation_window": settings.FEEDBACK_LOOP_OSCILLATION_WINDOW,
            "min_improvement": settings.FEEDBACK_LOOP_MIN_IMPROVEMENT,
            "min_improvement_patience": settings.FEEDBACK_LOOP_MIN_IMPROVEMENT_PATIENCE,
            "disagreement_gap": settings.FEEDBACK_LOOP_DISAGREEMENT_GAP,
            "escalation_delta": settings.FEEDBACK_LOOP_ESCALATION_DELTA,
            "max_feedback_messages": settings.FEEDBACK_LOOP_MAX_FEEDBACK_MESSAGES,
            "retry_attempts": settings.FEEDBACK_LOOP_RETRY_ATTEMPTS,
            "retry_backoff_seconds": settings.FEEDBACK_LOOP_RETRY_BACKOFF_SECONDS,
            "call_timeout_seconds": settings.FEEDBACK_LOOP_CALL_TIMEOUT_SECONDS,
            "node_concurrency": settings.FEEDBACK_LOOP_NODE_CONCURRENCY,
            "generator_model": settings.GENERATOR_MODEL,
        }
        values.update(overrides)
        return cls(**values)


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: IssueCategory
    severity: IssueSeverity
    description: str
    node_id: Optional[str] = None
    suggestion: Optional[str] = None


class Generation(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: Any
    confidence: float = Field(ge=0.0, le=1.0)
    model: str
    processing_time: float = 0.0
    metadata: Dict[str, Any] = {}


class ValidationScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    accuracy: float = Field(ge=0.0, le=1.0)
    clarity: float = Field(ge=0.0, le=1.0)
    bias: float = Field(ge=0.0, le=1.0)
    ethics: float = Field(ge=0.0, le=1.0)
    compliance: float = Field(ge=0.0, le=1.0)
    overall: float = Field(ge=0.0, le=1.0)


class NodeValidation(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    status: ValidationStatus
    issues: List[Issue] = []
    suggestions: List[str] = []
    carried_over: bool = False


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ValidationStatus
    scores: ValidationScores
    issues: List[Issue] = []
    suggestions: List[str] = []
    node_validations: List[NodeValidation] = []


class FeedbackMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_id: str
    current_confidence: float
    target_confidence: float
    issues: List[Issue] = []
    suggested_improvements: List[str] = []
    urgency: str
    priority: LoopPriority
    created_at: datetime = Field(default_factory=_utcnow)


class Disagreement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    loop_id: str
    iteration: int
    category: str
    severity: IssueSeverity
    generator_confidence: float
    validator_confidence: float
    gap: float
    validation_status: ValidationStatus
    issues: List[Issue] = []
    requires_escalation: bool = False

    @property
    def strategy_key(self) -> str:
        return f"{self.category}_{self.severity.value}"


class DisagreementResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    disagreement_id: str
    method: Literal["automatic", "human_escalation"]
    action: str
    rationale: str
    escalated: bool = False


class Iteration(BaseModel):
    """One recorded generate/validate round. Never modified after it is recorded."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    generation: Generation
    validation: ValidationResult
    feedback: List[FeedbackMessage] = []
    disagreement: Optional[Disagreement] = None
    resolution: Optional[DisagreementResolution] = None
    metadata: Dict[str, Any] = {}
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def confidence(self) -> float:
        return self.validation.scores.overall


class QualityMetrics(BaseModel):
    initial_confidence: Optional[float] = None
    final_confidence: Optional[float] = None
    peak_confidence: Optional[float] = None
    improvement: float = 0.0
    total_feedback_messages: int = 0
    disagreement_count: int = 0
    elapsed_seconds: float = 0.0
    fallback_tiers: Dict[str, int] = {}


class LoopResult(BaseModel):
    loop_id: str
    state: LoopState
    status: str
    convergence_reason: Optional[str] = None
    iterations: List[Iteration] = []
    final_content: Any = None
    final_confidence: Optional[float] = None
    best_iteration: Optional[int] = None
    # True for every outcome except convergence
    provisional: bool = True
    requires_human_review: bool = False
    error: Optional[str] = None
    metrics: QualityMetrics = Field(default_factory=QualityMetrics)
