"""OCEAN scoring facade.

Keeps a stable public API for callers while the individual computations live
in `trait_scorer.py`, `rater_aggregation.py`, `profiles.py` and `dark_side.py`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Sequence

from ...platform.config import DarkSideThresholds, RaterPolicy, ScoringPolicy, settings
from .dark_side import assess_dark_side
from .interpretation import interpret_profile
from .norms import DEFAULT_NORMS, NormTable
from .profiles import (
    analyze_team_composition,
    compose_executive_profile,
    compose_organizational_profile,
    executive_org_fit,
)
from .rater_aggregation import aggregate_raters, should_aggregate
from .schemas import (
    DarkSideRiskProfile,
    ExecutiveOrgFit,
    ExecutiveProfile,
    MultiRaterResult,
    OceanScoreDetails,
    OrganizationalProfile,
    ProfileInterpretation,
    QuestionTraitMapping,
    RoleContext,
    TeamComposition,
    TraitVector,
)
from .trait_scorer import TraitScorer


class OceanService:
    """Bundles the scoring policies so callers configure them once."""

    def __init__(
        self,
        scoring_policy: ScoringPolicy | None = None,
        rater_policy: RaterPolicy | None = None,
        dark_side_thresholds: DarkSideThresholds | None = None,
        norms: NormTable | None = None,
    ):
        self.scoring_policy = scoring_policy or settings.scoring_policy
        self.rater_policy = rater_policy or settings.rater_policy
        self.dark_side_thresholds = dark_side_thresholds or settings.dark_side_thresholds
        self.norms = norms or DEFAULT_NORMS

    def score_submission(
        self,
        responses: Iterable[Any],
        mappings: Iterable[QuestionTraitMapping],
    ) -> OceanScoreDetails:
        return TraitScorer(mappings, policy=self.scoring_policy, norms=self.norms).score(responses)

    def interpret(self, details: OceanScoreDetails) -> ProfileInterpretation:
        return interpret_profile(details.stanine)

    def aggregate_360(self, ratings: Mapping[str, Sequence[TraitVector]]) -> MultiRaterResult:
        return aggregate_raters(ratings, policy=self.rater_policy, norms=self.norms)

    def ready_for_360(self, completed: int, assigned: int) -> bool:
        return should_aggregate(completed, assigned, self.rater_policy.completion_threshold)

    def dark_side(
        self, traits: TraitVector, stress_level: int, observer: TraitVector | None = None
    ) -> DarkSideRiskProfile:
        return assess_dark_side(
            traits,
            stress_level,
            thresholds=self.dark_side_thresholds,
            policy=self.scoring_policy,
            observer=observer,
        )

    def executive_profile(self, traits: TraitVector, role: RoleContext | None = None) -> ExecutiveProfile:
        return compose_executive_profile(traits, role=role, policy=self.scoring_policy)

    def organizational_profile(
        self,
        members: Sequence[TraitVector],
        influence: Sequence[float] | None = None,
    ) -> OrganizationalProfile:
        return compose_organizational_profile(members, influence=influence, policy=self.scoring_policy)

    def executive_fit(self, executive: TraitVector, org: TraitVector) -> ExecutiveOrgFit:
        return executive_org_fit(executive, org, policy=self.scoring_policy)

    def team_composition(self, members: Mapping[str, TraitVector]) -> TeamComposition:
        return analyze_team_composition(members, policy=self.scoring_policy)

    def full_report(
        self,
        responses: Iterable[Any],
        mappings: Iterable[QuestionTraitMapping],
        stress_level: int | None = None,
        role: RoleContext | None = None,
    ) -> Dict[str, Any]:
        """Score one submission and attach every derived layer the vector supports.

        Derived layers need all five traits; a partial vector only gets scores
        and interpretation.
        """
        details = self.score_submission(responses, mappings)
        report: Dict[str, Any] = {
            "scores": details.model_dump(),
            "interpretation": self.interpret(details).model_dump(),
        }
        if details.missing_traits:
            return report
        traits = details.trait_vector()
        report["executive"] = self.executive_profile(traits, role).model_dump()
        if stress_level is not None:
            report["dark_side"] = self.dark_side(traits, stress_level).model_dump()
        return report
