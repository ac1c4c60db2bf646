from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ...platform.config import ScoringPolicy, settings
from .rules import CHALLENGE_STANINE, STRENGTH_STANINE, TRAITS
from .schemas import ProfileInterpretation, TraitVector

# trait -> (high-score text, low-score text, recommendation when it is a challenge)
_TRAIT_TEXT: Dict[str, Tuple[str, str, str]] = {
    "openness": (
        "Creative and open to new ideas",
        "Prefers familiar approaches over novelty",
        "Practice brainstorming and seek out unfamiliar perspectives",
    ),
    "conscientiousness": (
        "Organized and dependable",
        "Flexible but can struggle with follow-through",
        "Adopt lightweight planning and tracking habits",
    ),
    "extraversion": (
        "Energetic and socially confident",
        "Reserved in group settings",
        "Prepare talking points ahead of key meetings",
    ),
    "agreeableness": (
        "Cooperative and trusting",
        "Direct and competitive",
        "Check in on how your directness lands with colleagues",
    ),
    "neuroticism": (
        "Sensitive to stress and setbacks",
        "Calm and emotionally steady",
        "Build stress-management routines and recovery time",
    ),
}


def interpret_profile(stanines: Dict[str, int]) -> ProfileInterpretation:
    """Turn stanines into strength/challenge statements.

    High neuroticism counts as a challenge and low neuroticism as a strength.
    """
    result = ProfileInterpretation()
    for trait in TRAITS:
        stanine = stanines.get(trait)
        if stanine is None:
            continue
        high_text, low_text, recommendation = _TRAIT_TEXT[trait]
        if trait == "neuroticism":
            if stanine >= STRENGTH_STANINE:
                result.challenges.append(high_text)
                result.recommendations.append(recommendation)
            elif stanine <= CHALLENGE_STANINE:
                result.strengths.append(low_text)
            continue
        if stanine >= STRENGTH_STANINE:
            result.strengths.append(high_text)
        elif stanine <= CHALLENGE_STANINE:
            result.challenges.append(low_text)
            result.recommendations.append(recommendation)
    return result


def aggregate_trait_vectors(weighted: Sequence[Tuple[TraitVector, float]]) -> TraitVector:
    """Weighted combination of several assessments of the same person."""
    total = sum(weight for _, weight in weighted)
    if not weighted or total <= 0:
        raise ValueError("At least one assessment with positive weight is required")
    return TraitVector(
        **{trait: sum(v.get(trait) * w for v, w in weighted) / total for trait in TRAITS}
    )


def validate_trait_vector(vector: TraitVector, policy: ScoringPolicy | None = None) -> List[str]:
    """Return a list of problems; empty when every trait sits on the answer scale."""
    policy = policy or settings.scoring_policy
    problems = []
    for trait, value in vector.as_dict().items():
        if not policy.scale_min <= value <= policy.scale_max:
            problems.append(f"{trait} score {value} is outside {policy.scale_min}-{policy.scale_max}")
    return problems
