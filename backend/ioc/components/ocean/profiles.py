"""Executive, organizational and team profile composition.

Every output here is a deterministic linear or threshold function of the five
trait scores. "emotional_stability" is the reversed neuroticism score.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from ...platform.config import ScoringPolicy, settings
from .rules import (
    COPING_STRATEGIES,
    COPING_TRAIT_THRESHOLD,
    CULTURE_PROFILES,
    FIT_ALIGNMENT_WARNING,
    FIT_COMPLEMENTARY_WEIGHT,
    INFLUENCE_TACTIC_WEIGHTS,
    LEADERSHIP_STYLE_WEIGHTS,
    ORG_HEALTH_WEIGHTS,
    RESILIENCE_WEIGHTS,
    TEAM_OUTCOME_WEIGHTS,
    TEAM_ROLE_PROFILES,
    TRAITS,
)
from .schemas import (
    ComplementaryFit,
    ExecutiveOrgFit,
    ExecutiveProfile,
    LeadershipStressProfile,
    OrganizationalProfile,
    RoleContext,
    TeamComposition,
    TraitVector,
)


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _trait_values(traits: TraitVector, policy: ScoringPolicy) -> Dict[str, float]:
    values = traits.as_dict()
    values["emotional_stability"] = policy.reverse(traits.neuroticism)
    return values


def _linear(values: Mapping[str, float], weights: Mapping[str, float]) -> float:
    return sum(values[name] * weight for name, weight in weights.items())


def _as_percent(value: float, policy: ScoringPolicy) -> float:
    return _clamp(value / policy.scale_max * 100.0)


def _std(values: Sequence[float]) -> float:
    mean = sum(values) / len(values)
    return (sum((v - mean) ** 2 for v in values) / len(values)) ** 0.5


def _argmax(scores: Mapping[str, float]) -> str:
    # Ties resolve to the lexically first name.
    return min(scores, key=lambda name: (-round(scores[name], 9), name))


# ---------------------------------------------------------------------------
# Executive
# ---------------------------------------------------------------------------


def leadership_styles(traits: TraitVector, policy: ScoringPolicy | None = None) -> Dict[str, float]:
    """Style mix as percentages summing to 100."""
    policy = policy or settings.scoring_policy
    values = _trait_values(traits, policy)
    raw = {style: _linear(values, weights) for style, weights in LEADERSHIP_STYLE_WEIGHTS.items()}
    total = sum(raw.values())
    return {style: score / total * 100.0 for style, score in raw.items()}


def influence_tactics(traits: TraitVector, policy: ScoringPolicy | None = None) -> Dict[str, float]:
    policy = policy or settings.scoring_policy
    values = _trait_values(traits, policy)
    scores: Dict[str, float] = {}
    for tactic, weights in INFLUENCE_TACTIC_WEIGHTS.items():
        total = 0.0
        for trait, weight in weights.items():
            value = values[trait] if weight >= 0 else policy.reverse(values[trait])
            total += abs(weight) * value
        scores[tactic] = _as_percent(total / sum(abs(w) for w in weights.values()), policy)
    return scores


def team_outcomes(traits: TraitVector, policy: ScoringPolicy | None = None) -> Dict[str, float]:
    policy = policy or settings.scoring_policy
    values = _trait_values(traits, policy)
    return {outcome: _as_percent(_linear(values, weights), policy) for outcome, weights in TEAM_OUTCOME_WEIGHTS.items()}


def leadership_stress_profile(traits: TraitVector, policy: ScoringPolicy | None = None) -> LeadershipStressProfile:
    policy = policy or settings.scoring_policy
    values = _trait_values(traits, policy)
    stability = values["emotional_stability"]
    resilience = _as_percent(_linear(values, RESILIENCE_WEIGHTS), policy)

    if resilience > 70:
        recovery = "rapid"
    elif resilience > 40:
        recovery = "moderate"
    else:
        recovery = "slow"

    if stability > 3.5 and traits.agreeableness > 3.5:
        impact = "stabilizing"
    elif traits.extraversion > 4.0 and stability > 3.0:
        impact = "energizing"
    elif traits.agreeableness > 4.0 and traits.conscientiousness > 3.5:
        impact = "calming"
    else:
        impact = "variable"

    coping = [strategy for trait, strategy in COPING_STRATEGIES.items() if values[trait] > COPING_TRAIT_THRESHOLD]
    return LeadershipStressProfile(
        resilience_score=resilience,
        recovery_speed=recovery,
        team_impact=impact,
        coping_strategies=coping,
    )


def compose_executive_profile(
    traits: TraitVector,
    role: RoleContext | None = None,
    policy: ScoringPolicy | None = None,
) -> ExecutiveProfile:
    policy = policy or settings.scoring_policy
    styles = leadership_styles(traits, policy)
    tactics = influence_tactics(traits, policy)
    ranked = sorted(tactics, key=lambda name: (-tactics[name], name))
    return ExecutiveProfile(
        traits=traits,
        role=role or RoleContext(),
        leadership_styles=styles,
        primary_leadership_style=_argmax(styles),
        influence_tactics=tactics,
        top_influence_tactics=ranked[:3],
        team_outcomes=team_outcomes(traits, policy),
        stress_response=leadership_stress_profile(traits, policy),
    )


# ---------------------------------------------------------------------------
# Organizational
# ---------------------------------------------------------------------------


def collective_traits(members: Sequence[TraitVector], influence: Sequence[float] | None = None) -> TraitVector:
    if not members:
        raise ValueError("At least one member profile is required")
    weights = list(influence) if influence is not None else [1.0] * len(members)
    if len(weights) != len(members):
        raise ValueError("influence must have one weight per member")
    total = sum(weights)
    if total <= 0 or any(w < 0 for w in weights):
        raise ValueError("influence weights must be non-negative with a positive sum")
    return TraitVector(
        **{trait: sum(m.get(trait) * w for m, w in zip(members, weights)) / total for trait in TRAITS}
    )


def culture_affinity(collective: TraitVector, policy: ScoringPolicy | None = None) -> Dict[str, float]:
    policy = policy or settings.scoring_policy
    span = policy.scale_max - policy.scale_min
    normalized = {trait: (collective.get(trait) - policy.scale_min) / span for trait in TRAITS}
    return {
        culture: 1.0 - sum(abs(normalized[t] - target) for t, target in profile.items()) / len(profile)
        for culture, profile in CULTURE_PROFILES.items()
    }


def compose_organizational_profile(
    members: Sequence[TraitVector],
    influence: Sequence[float] | None = None,
    policy: ScoringPolicy | None = None,
) -> OrganizationalProfile:
    policy = policy or settings.scoring_policy
    collective = collective_traits(members, influence)
    diversity = {trait: _std([m.get(trait) for m in members]) for trait in TRAITS}
    values = _trait_values(collective, policy)
    affinity = culture_affinity(collective, policy)
    top = policy.scale_max

    health = {metric: _as_percent(_linear(values, weights), policy) for metric, weights in ORG_HEALTH_WEIGHTS.items()}
    emergent = {
        "collective_intelligence": _as_percent(
            values["openness"] * 0.4 + diversity["openness"] * 0.3 + values["conscientiousness"] * 0.3, policy
        ),
        "team_cohesion": _as_percent(
            values["agreeableness"] * 0.5 + (top - diversity["agreeableness"]) * 0.3 + values["extraversion"] * 0.2,
            policy,
        ),
        "adaptive_capacity": _as_percent(
            values["openness"] * 0.4 + diversity["extraversion"] * 0.3 + values["emotional_stability"] * 0.3, policy
        ),
        "execution_capability": _as_percent(
            values["conscientiousness"] * 0.5
            + (top - diversity["conscientiousness"]) * 0.3
            + values["emotional_stability"] * 0.2,
            policy,
        ),
    }

    return OrganizationalProfile(
        member_count=len(members),
        collective=collective,
        diversity=diversity,
        culture_type=_argmax(affinity),
        culture_affinity=affinity,
        health_metrics=health,
        emergent_properties=emergent,
    )


# ---------------------------------------------------------------------------
# Executive-organization fit
# ---------------------------------------------------------------------------


def _balance(vector: TraitVector) -> float:
    return 1.0 - _std(list(vector.as_dict().values())) / 2.5


def complementary_fit(executive: TraitVector, org: TraitVector) -> ComplementaryFit:
    gap_fill = 0.0
    if org.openness < 3.0 and executive.openness > 4.0:
        gap_fill += 0.25
    if org.conscientiousness < 3.5 and executive.conscientiousness > 4.0:
        gap_fill += 0.25
    if org.extraversion < 3.0 and executive.extraversion > 4.0:
        gap_fill += 0.25
    if org.neuroticism > 3.5 and executive.neuroticism < 2.5:
        gap_fill += 0.25

    diversity_bonus = 0.0
    for trait in TRAITS:
        if 1.0 < abs(executive.get(trait) - org.get(trait)) < 2.5:
            diversity_bonus += 0.2
    diversity_bonus = min(1.0, diversity_bonus)

    balance_potential = 0.8 if _balance(executive) > _balance(org) else 0.5
    return ComplementaryFit(
        gap_fill=gap_fill,
        diversity_bonus=diversity_bonus,
        balance_potential=balance_potential,
        score=(gap_fill + diversity_bonus + balance_potential) / 3.0,
    )


def executive_org_fit(
    executive: TraitVector,
    org: TraitVector,
    policy: ScoringPolicy | None = None,
) -> ExecutiveOrgFit:
    policy = policy or settings.scoring_policy
    span = policy.scale_max - policy.scale_min
    alignment = {trait: 1.0 - abs(executive.get(trait) - org.get(trait)) / span for trait in TRAITS}
    overall = sum(alignment.values()) / len(alignment)
    complementary = complementary_fit(executive, org)

    recommendations: List[str] = []
    for trait in TRAITS:
        if alignment[trait] >= FIT_ALIGNMENT_WARNING:
            continue
        if executive.get(trait) > org.get(trait):
            recommendations.append(f"Executive's higher {trait} may clash with organizational norms")
        else:
            recommendations.append(f"Executive's lower {trait} may require adaptation to organizational culture")
    if complementary.gap_fill > 0.6:
        recommendations.append("Executive can fill critical capability gaps in the organization")
    if complementary.diversity_bonus > 0.7:
        recommendations.append("Executive brings valuable cognitive diversity")
    if complementary.balance_potential > 0.7:
        recommendations.append("Executive can provide stabilizing balance to the organization")

    return ExecutiveOrgFit(
        alignment=alignment,
        overall_fit=overall,
        complementary=complementary,
        composite_fit=overall * (1 - FIT_COMPLEMENTARY_WEIGHT) + complementary.score * FIT_COMPLEMENTARY_WEIGHT,
        recommendations=recommendations,
    )


# ---------------------------------------------------------------------------
# Team composition
# ---------------------------------------------------------------------------


def analyze_team_composition(
    members: Mapping[str, TraitVector],
    policy: ScoringPolicy | None = None,
) -> TeamComposition:
    policy = policy or settings.scoring_policy
    if not members:
        raise ValueError("At least one member profile is required")
    span = policy.scale_max - policy.scale_min

    role_fit: Dict[str, Dict[str, float]] = {}
    best_role: Dict[str, str] = {}
    for member_id, vector in members.items():
        fits = {
            role: 1.0 - sum(abs(vector.get(t) - target) for t, target in profile.items()) / len(profile) / span
            for role, profile in TEAM_ROLE_PROFILES.items()
        }
        role_fit[member_id] = fits
        best_role[member_id] = _argmax(fits)

    vectors = list(members.values())
    collective = collective_traits(vectors)
    diversity = {trait: _std([v.get(trait) for v in vectors]) for trait in TRAITS}

    def _norm(value: float) -> float:
        return _clamp((value - policy.scale_min) / span, 0.0, 1.0)

    dynamics = {
        "conflict_potential": _clamp(
            (1 - _norm(collective.agreeableness)) * 0.5 + _norm(collective.neuroticism) * 0.3
            + min(1.0, diversity["extraversion"] / 2.0) * 0.2,
            0.0,
            1.0,
        ),
        "decision_speed": _norm(
            collective.extraversion * 0.5 + collective.conscientiousness * 0.3
            + policy.reverse(collective.neuroticism) * 0.2
        ),
        "innovation_potential": _clamp(
            _norm(collective.openness) * 0.6 + min(1.0, diversity["openness"] / 2.0) * 0.4, 0.0, 1.0
        ),
    }

    additions: List[str] = []
    if collective.openness < 3.0:
        additions.append("Add a member with high openness to boost idea generation")
    if collective.conscientiousness < 3.0:
        additions.append("Add a member with high conscientiousness to strengthen execution")
    if collective.extraversion < 3.0:
        additions.append("Add a member with high extraversion to drive external communication")
    if collective.agreeableness < 3.0:
        additions.append("Add a member with high agreeableness to improve collaboration")
    if collective.neuroticism > 3.5:
        additions.append("Add an emotionally stable member to steady the team under pressure")
    if len(vectors) > 1 and all(value < 0.3 for value in diversity.values()):
        additions.append("Add cognitive diversity: current members have very similar profiles")

    return TeamComposition(
        role_fit=role_fit,
        best_role=best_role,
        dynamics=dynamics,
        recommended_additions=additions,
    )
