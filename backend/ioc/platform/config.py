import json
from dataclasses import dataclass
from typing import Dict

from pydantic_settings import BaseSettings

RATER_ROLES = ("self", "manager", "peer", "direct_report", "external")
UNMAPPED_RESPONSE_POLICIES = ("ignore", "reject")


@dataclass(frozen=True)
class ScoringPolicy:
    scale_min: float = 1.0
    scale_max: float = 5.0
    secondary_weight_ratio: float = 0.5
    min_facet_items: int = 2
    unmapped_response_policy: str = "ignore"

    def __post_init__(self) -> None:
        if self.scale_max <= self.scale_min:
            raise ValueError("scale_max must be greater than scale_min")
        if not 0.0 <= self.secondary_weight_ratio <= 1.0:
            raise ValueError("secondary_weight_ratio must be within [0, 1]")
        if self.min_facet_items < 1:
            raise ValueError("min_facet_items must be at least 1")
        if self.unmapped_response_policy not in UNMAPPED_RESPONSE_POLICIES:
            raise ValueError(
                f"unmapped_response_policy must be one of {UNMAPPED_RESPONSE_POLICIES}"
            )

    @property
    def midpoint(self) -> float:
        return (self.scale_min + self.scale_max) / 2.0

    def reverse(self, score: float) -> float:
        return self.scale_max + self.scale_min - score


@dataclass(frozen=True)
class RaterPolicy:
    role_weights: Dict[str, float]
    completion_threshold: float = 0.8
    agreement_normalizer: float = 2.5
    single_observer_agreement: float = 1.0
    blind_spot_threshold: float = 0.5

    def __post_init__(self) -> None:
        unknown = set(self.role_weights) - set(RATER_ROLES)
        if unknown:
            raise ValueError(f"Unknown rater roles in weights: {sorted(unknown)}")
        if any(weight < 0 for weight in self.role_weights.values()):
            raise ValueError("Rater weights must be non-negative")
        if abs(sum(self.role_weights.values()) - 1.0) > 1e-6:
            raise ValueError("Rater weights must sum to 1.0")
        if not 0.0 < self.completion_threshold <= 1.0:
            raise ValueError("completion_threshold must be within (0, 1]")
        if self.agreement_normalizer <= 0:
            raise ValueError("agreement_normalizer must be positive")
        if not 0.0 <= self.single_observer_agreement <= 1.0:
            raise ValueError("single_observer_agreement must be within [0, 1]")
        if self.blind_spot_threshold <= 0:
            raise ValueError("blind_spot_threshold must be positive")


@dataclass(frozen=True)
class DarkSideThresholds:
    high_extreme: float = 4.5
    low_extreme: float = 1.5
    warning: float = 3.8

    def __post_init__(self) -> None:
        if self.low_extreme >= self.high_extreme:
            raise ValueError("low_extreme must be below high_extreme")
        if not self.low_extreme < self.warning <= self.high_extreme:
            raise ValueError("warning must sit between low_extreme and high_extreme")


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./ioc.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Questionnaire answer scale and trait scoring
    OCEAN_SCALE_MIN: float = 1.0
    OCEAN_SCALE_MAX: float = 5.0
    OCEAN_SECONDARY_WEIGHT_RATIO: float = 0.5
    OCEAN_MIN_FACET_ITEMS: int = 2
    # "ignore" drops responses to unknown questions (logged and reported);
    # "reject" raises UnmappedResponseError for the whole submission.
    OCEAN_UNMAPPED_RESPONSE_POLICY: str = "ignore"

    # 360 aggregation
    # Keys: self, manager, peer, direct_report, external
    RATER_WEIGHTS: str = '{"self":0.25,"manager":0.30,"peer":0.20,"direct_report":0.20,"external":0.05}'
    RATER_COMPLETION_THRESHOLD: float = 0.8
    RATER_AGREEMENT_NORMALIZER: float = 2.5
    # Agreement reported when fewer than two observers rated the subject.
    RATER_SINGLE_OBSERVER_AGREEMENT: float = 1.0
    BLIND_SPOT_THRESHOLD: float = 0.5

    # Dark-side derailment thresholds (raw scale)
    DARK_SIDE_HIGH_EXTREME: float = 4.5
    DARK_SIDE_LOW_EXTREME: float = 1.5
    DARK_SIDE_WARNING: float = 3.8

    # Dual-AI feedback loop defaults
    GENERATOR_MODEL: str = "claude-3-5-sonnet-latest"
    FEEDBACK_LOOP_CONFIDENCE_THRESHOLD: float = 0.85
    FEEDBACK_LOOP_MAX_ITERATIONS: int = 5
    FEEDBACK_LOOP_TIMEOUT_SECONDS: float = 300.0
    FEEDBACK_LOOP_OSCILLATION_WINDOW: int = 3
    FEEDBACK_LOOP_MIN_IMPROVEMENT: float = 0.01
    FEEDBACK_LOOP_MIN_IMPROVEMENT_PATIENCE: int = 2
    FEEDBACK_LOOP_DISAGREEMENT_GAP: float = 0.2
    FEEDBACK_LOOP_ESCALATION_DELTA: float = 0.4
    FEEDBACK_LOOP_MAX_FEEDBACK_MESSAGES: int = 5
    FEEDBACK_LOOP_RETRY_ATTEMPTS: int = 3
    FEEDBACK_LOOP_RETRY_BACKOFF_SECONDS: float = 1.0
    FEEDBACK_LOOP_CALL_TIMEOUT_SECONDS: float = 60.0
    FEEDBACK_LOOP_NODE_CONCURRENCY: int = 5
    FEEDBACK_CACHE_TTL_SECONDS: float = 3600.0
    FEEDBACK_CACHE_MAX_ENTRIES: int = 1024

    @property
    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            scale_min=self.OCEAN_SCALE_MIN,
            scale_max=self.OCEAN_SCALE_MAX,
            secondary_weight_ratio=self.OCEAN_SECONDARY_WEIGHT_RATIO,
            min_facet_items=self.OCEAN_MIN_FACET_ITEMS,
            unmapped_response_policy=(self.OCEAN_UNMAPPED_RESPONSE_POLICY or "ignore").strip().lower(),
        )

    @property
    def rater_weights(self) -> Dict[str, float]:
        raw = json.loads(self.RATER_WEIGHTS or "{}")
        return {str(role): float(weight) for role, weight in raw.items()}

    @property
    def rater_policy(self) -> RaterPolicy:
        return RaterPolicy(
            role_weights=self.rater_weights,
            completion_threshold=self.RATER_COMPLETION_THRESHOLD,
            agreement_normalizer=self.RATER_AGREEMENT_NORMALIZER,
            single_observer_agreement=self.RATER_SINGLE_OBSERVER_AGREEMENT,
            blind_spot_threshold=self.BLIND_SPOT_THRESHOLD,
        )

    @property
    def dark_side_thresholds(self) -> DarkSideThresholds:
        return DarkSideThresholds(
            high_extreme=self.DARK_SIDE_HIGH_EXTREME,
            low_extreme=self.DARK_SIDE_LOW_EXTREME,
            warning=self.DARK_SIDE_WARNING,
        )

    def model_post_init(self, __context) -> None:
        # Surface bad policy values at startup rather than on first use.
        self.scoring_policy
        self.rater_policy
        self.dark_side_thresholds

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
