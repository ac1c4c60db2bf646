"""360 multi-rater aggregation: role weighting, observer agreement and blind spots."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from ...platform.config import RaterPolicy, settings
from .errors import InsufficientDataError
from .norms import DEFAULT_NORMS, NormTable
from .rules import AGREEMENT_LABELS, OBSERVER_ROLES, RATER_ROLES, TRAITS
from .schemas import BlindSpot, MultiRaterResult, TraitVector

logger = logging.getLogger("ioc.ocean.multi_rater")


def should_aggregate(completed: int, assigned: int, threshold: float | None = None) -> bool:
    """Whether enough assigned raters have submitted to (re)compute a 360 result.

    The check belongs to the caller that tracks rater completion; aggregation
    itself never enforces it.
    """
    if assigned <= 0:
        return False
    ratio = settings.RATER_COMPLETION_THRESHOLD if threshold is None else threshold
    return completed >= assigned * ratio


def renormalized_weights(role_weights: Mapping[str, float], present_roles: Sequence[str]) -> Dict[str, float]:
    """Restrict the role weight table to roles present and rescale to sum to 1.0."""
    subset = {role: float(role_weights.get(role, 0.0)) for role in present_roles}
    total = sum(subset.values())
    if total <= 0:
        raise InsufficientDataError(
            "Rater roles present carry no aggregation weight: " + ", ".join(present_roles)
        )
    return {role: weight / total for role, weight in subset.items()}


def _mean_vector(vectors: Sequence[TraitVector]) -> TraitVector:
    return TraitVector(
        **{trait: sum(v.get(trait) for v in vectors) / len(vectors) for trait in TRAITS}
    )


def _weighted_vector(means: Mapping[str, TraitVector], weights: Mapping[str, float]) -> TraitVector:
    return TraitVector(
        **{trait: sum(means[role].get(trait) * weights[role] for role in weights) for trait in TRAITS}
    )


def _population_variance(values: Sequence[float]) -> float:
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def agreement_label(value: float) -> str:
    for floor, label in AGREEMENT_LABELS:
        if value >= floor:
            return label
    return "low"


def detect_blind_spot(trait: str, self_score: float, others_score: float, threshold: float) -> BlindSpot | None:
    difference = self_score - others_score
    magnitude = abs(difference)
    if magnitude < threshold:
        return None
    if difference > 0:
        direction = "overestimated"
        insight = f"You rate yourself {magnitude:.1f} points higher on {trait} than others perceive you"
    else:
        direction = "underestimated"
        insight = f"Others see you as {magnitude:.1f} points stronger on {trait} than you rate yourself"
    return BlindSpot(
        trait=trait,
        self_score=self_score,
        others_score=others_score,
        difference=difference,
        magnitude=magnitude,
        direction=direction,
        insight=insight,
    )


def aggregate_raters(
    ratings: Mapping[str, Sequence[TraitVector]],
    policy: RaterPolicy | None = None,
    norms: NormTable | None = None,
) -> MultiRaterResult:
    """Combine per-role rater vectors for one subject into a weighted composite."""
    policy = policy or settings.rater_policy
    norms = norms or DEFAULT_NORMS

    unknown = set(ratings) - set(RATER_ROLES)
    if unknown:
        raise ValueError(f"Unknown rater roles: {sorted(unknown)}")

    present = [role for role in RATER_ROLES if ratings.get(role)]
    if not present:
        raise InsufficientDataError("No rater submissions to aggregate", traits=TRAITS)

    role_means = {role: _mean_vector(ratings[role]) for role in present}
    weights = renormalized_weights(policy.role_weights, present)
    weighted = _weighted_vector(role_means, weights)

    observer_roles = [role for role in OBSERVER_ROLES if role in present]
    observer_vectors: List[TraitVector] = [v for role in observer_roles for v in ratings[role]]

    if len(observer_vectors) < 2:
        agreement = {trait: policy.single_observer_agreement for trait in TRAITS}
        basis = "insufficient_observers"
    else:
        agreement = {
            trait: max(
                0.0,
                1.0 - _population_variance([v.get(trait) for v in observer_vectors]) / policy.agreement_normalizer,
            )
            for trait in TRAITS
        }
        basis = "observer_variance"
    overall_agreement = sum(agreement.values()) / len(agreement)

    others = None
    if observer_roles:
        others = _weighted_vector(role_means, renormalized_weights(policy.role_weights, observer_roles))

    blind_spots: List[BlindSpot] = []
    self_scores = role_means.get("self")
    if self_scores is not None and others is not None:
        for trait in TRAITS:
            spot = detect_blind_spot(trait, self_scores.get(trait), others.get(trait), policy.blind_spot_threshold)
            if spot is not None:
                blind_spots.append(spot)

    logger.info(
        "Aggregated 360 ratings roles=%s observers=%d blind_spots=%d",
        ",".join(present),
        len(observer_vectors),
        len(blind_spots),
    )

    raw = weighted.as_dict()
    return MultiRaterResult(
        weighted=weighted,
        percentile=norms.percentiles(raw),
        stanine=norms.stanines(raw),
        role_means=role_means,
        role_weights=weights,
        rater_counts={role: len(ratings[role]) for role in present},
        self_scores=self_scores,
        others=others,
        agreement=agreement,
        overall_agreement=overall_agreement,
        agreement_label=agreement_label(overall_agreement),
        agreement_basis=basis,
        observer_count=len(observer_vectors),
        blind_spots=blind_spots,
    )
