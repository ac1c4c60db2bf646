"""Pydantic models describing OCEAN scoring inputs and result payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import InsufficientDataError
from .rules import FACETS, TRAIT_ALIASES, TRAITS


def resolve_trait(value: str) -> str:
    key = str(value or "").strip().lower()
    key = TRAIT_ALIASES.get(key, key)
    if key not in TRAITS:
        raise ValueError(f"Unknown OCEAN trait: {value!r}")
    return key


class TraitVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    openness: float
    conscientiousness: float
    extraversion: float
    agreeableness: float
    neuroticism: float

    @classmethod
    def from_mapping(cls, data: Dict[str, float]) -> "TraitVector":
        """Build a vector from a dict keyed by trait name or single-letter alias."""
        return cls(**{resolve_trait(k): float(v) for k, v in data.items()})

    def get(self, trait: str) -> float:
        return getattr(self, resolve_trait(trait))

    def as_dict(self) -> Dict[str, float]:
        return {trait: getattr(self, trait) for trait in TRAITS}


class QuestionTraitMapping(BaseModel):
    """Links one question to its primary (and optional secondary) trait.

    Mappings are authored with the assessment template and must not change for
    an assessment instance once responses exist.
    """

    model_config = ConfigDict(frozen=True)

    question_id: str
    primary_trait: str
    primary_weight: float = Field(default=1.0, gt=0)
    secondary_trait: Optional[str] = None
    # None means "use the policy ratio of the primary weight"
    secondary_weight: Optional[float] = Field(default=None, ge=0)
    reverse: bool = False
    facet: Optional[str] = None

    @field_validator("primary_trait")
    @classmethod
    def _primary(cls, value: str) -> str:
        return resolve_trait(value)

    @field_validator("secondary_trait")
    @classmethod
    def _secondary(cls, value: Optional[str]) -> Optional[str]:
        return resolve_trait(value) if value else None

    @model_validator(mode="after")
    def _check_consistency(self) -> "QuestionTraitMapping":
        if self.secondary_trait == self.primary_trait:
            raise ValueError("secondary_trait must differ from primary_trait")
        if self.facet is not None and self.facet not in FACETS[self.primary_trait]:
            raise ValueError(
                f"Facet {self.facet!r} does not belong to trait {self.primary_trait!r}"
            )
        return self


class ResponseItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: Any = None


class FacetScore(BaseModel):
    trait: str
    facet: str
    score: float
    item_count: int
    weight: float


class OceanScoreDetails(BaseModel):
    raw: Dict[str, float]
    percentile: Dict[str, int]
    stanine: Dict[str, int]
    facets: Dict[str, Dict[str, FacetScore]] = {}
    item_counts: Dict[str, int] = {}
    missing_traits: List[str] = []
    unmapped_question_ids: List[str] = []

    def trait_vector(self) -> TraitVector:
        if self.missing_traits:
            raise InsufficientDataError(
                "No responses mapped to: " + ", ".join(self.missing_traits),
                traits=self.missing_traits,
            )
        return TraitVector(**self.raw)


class ProfileInterpretation(BaseModel):
    strengths: List[str] = []
    challenges: List[str] = []
    recommendations: List[str] = []


# ---------------------------------------------------------------------------
# 360 aggregation
# ---------------------------------------------------------------------------


class BlindSpot(BaseModel):
    trait: str
    self_score: float
    others_score: float
    difference: float
    magnitude: float
    direction: str
    insight: str


class MultiRaterResult(BaseModel):
    weighted: TraitVector
    percentile: Dict[str, int]
    stanine: Dict[str, int]
    role_means: Dict[str, TraitVector]
    role_weights: Dict[str, float]
    rater_counts: Dict[str, int]
    self_scores: Optional[TraitVector] = None
    others: Optional[TraitVector] = None
    agreement: Dict[str, float]
    overall_agreement: float
    agreement_label: str
    agreement_basis: str
    observer_count: int
    blind_spots: List[BlindSpot] = []


# ---------------------------------------------------------------------------
# Dark side
# ---------------------------------------------------------------------------


class TraitRisk(BaseModel):
    trait: str
    score: float
    risk_level: str
    risk_score: float
    manifestation: str
    manifestation_name: Optional[str] = None
    in_warning_zone: bool = False
    concerns: List[str] = []
    impact_areas: List[str] = []
    compensatory_behaviors: List[str] = []


class StressResponseAssessment(BaseModel):
    adaptive_capacity: float
    team_impact: str
    likely_stressors: List[str] = []
    recovery_factors: List[str] = []
    maladaptive_patterns: List[str] = []


class ObservedBehavior(BaseModel):
    frequency: str
    severity: str
    examples: List[str] = []


class BehavioralIndicatorReport(BaseModel):
    observed_behaviors: Dict[str, ObservedBehavior] = {}
    # Mean absolute self-vs-observer difference; None without observer ratings
    self_awareness_gap: Optional[float] = None
    # team_morale, productivity, turnover_risk, stakeholder_confidence on 0-100
    impact_on_others: Dict[str, float] = {}


class ImmediateAction(BaseModel):
    action: str
    priority: str
    timeframe: str
    responsibility: List[str] = []


class DevelopmentGoal(BaseModel):
    trait: str
    target_behavior: str
    methods: List[str] = []
    timeline: str
    success_metrics: List[str] = []


class SupportStructures(BaseModel):
    coaching: List[str] = []
    mentoring: List[str] = []
    training: List[str] = []
    systemic_changes: List[str] = []


class MonitoringPlan(BaseModel):
    indicators: List[str] = []
    frequency: str
    reviewers: List[str] = []
    escalation_triggers: List[str] = []


class InterventionPlan(BaseModel):
    immediate_actions: List[ImmediateAction] = []
    development_goals: List[DevelopmentGoal] = []
    support_structures: SupportStructures = Field(default_factory=SupportStructures)
    monitoring_plan: MonitoringPlan


class DarkSideRiskProfile(BaseModel):
    overall_risk: str
    stress_level: int
    stress_amplification: float
    trait_risks: Dict[str, TraitRisk]
    primary_concerns: List[str] = []
    stress_response: StressResponseAssessment
    behavioral_indicators: BehavioralIndicatorReport
    intervention_plan: InterventionPlan
    requires_urgent_intervention: bool = False


# ---------------------------------------------------------------------------
# Executive and organizational profiles
# ---------------------------------------------------------------------------


class RoleContext(BaseModel):
    level: str = "executive"
    function: Optional[str] = None


class LeadershipStressProfile(BaseModel):
    resilience_score: float
    recovery_speed: str
    team_impact: str
    coping_strategies: List[str] = []


class ExecutiveProfile(BaseModel):
    traits: TraitVector
    role: RoleContext
    leadership_styles: Dict[str, float]
    primary_leadership_style: str
    influence_tactics: Dict[str, float]
    top_influence_tactics: List[str]
    team_outcomes: Dict[str, float]
    stress_response: LeadershipStressProfile


class OrganizationalProfile(BaseModel):
    member_count: int
    collective: TraitVector
    diversity: Dict[str, float]
    culture_type: str
    culture_affinity: Dict[str, float]
    health_metrics: Dict[str, float]
    emergent_properties: Dict[str, float]


class ComplementaryFit(BaseModel):
    gap_fill: float
    diversity_bonus: float
    balance_potential: float
    score: float


class ExecutiveOrgFit(BaseModel):
    alignment: Dict[str, float]
    overall_fit: float
    complementary: ComplementaryFit
    composite_fit: float
    recommendations: List[str] = []


class TeamComposition(BaseModel):
    role_fit: Dict[str, Dict[str, float]]
    best_role: Dict[str, str]
    dynamics: Dict[str, float]
    recommended_additions: List[str] = []
