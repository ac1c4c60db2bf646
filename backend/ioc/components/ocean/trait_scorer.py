"""Trait and facet scoring from questionnaire responses.

Scoring is a pure function of the responses, the question-trait mappings, the
scoring policy and the normative table.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ...platform.config import ScoringPolicy, settings
from .errors import InsufficientDataError, UnmappedResponseError
from .norms import DEFAULT_NORMS, NormTable
from .rules import FACETS, FREQUENCY_ANSWERS, LETTER_ANSWERS, LIKERT_ANSWERS, TRAITS
from .schemas import FacetScore, OceanScoreDetails, QuestionTraitMapping, ResponseItem

logger = logging.getLogger("ioc.ocean.scoring")


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def normalize_answer(answer: Any, policy: ScoringPolicy) -> float:
    """Map an answer onto the numeric scale.

    Accepts numbers, Likert/frequency words, letters a-e and ``{"value": ...}``
    or ``{"score": ...}`` objects. Anything unrecognized falls back to the scale
    midpoint.
    """
    if isinstance(answer, bool):
        return policy.midpoint
    if isinstance(answer, (int, float)):
        return _clamp(float(answer), policy.scale_min, policy.scale_max)
    if isinstance(answer, str):
        key = answer.strip().lower().replace(" ", "_").replace("-", "_")
        for vocabulary in (LIKERT_ANSWERS, FREQUENCY_ANSWERS, LETTER_ANSWERS):
            if key in vocabulary:
                return _clamp(float(vocabulary[key]), policy.scale_min, policy.scale_max)
        return policy.midpoint
    if isinstance(answer, Mapping):
        for field in ("value", "score"):
            inner = answer.get(field)
            if isinstance(inner, (int, float)) and not isinstance(inner, bool):
                return _clamp(float(inner), policy.scale_min, policy.scale_max)
        return policy.midpoint
    return policy.midpoint


def _coerce_responses(responses: Iterable[Any]) -> List[ResponseItem]:
    items: List[ResponseItem] = []
    for response in responses:
        if isinstance(response, ResponseItem):
            items.append(response)
        elif isinstance(response, Mapping):
            question_id = response.get("question_id") or response.get("questionId")
            answer = response.get("answer", response.get("value"))
            items.append(ResponseItem(question_id=str(question_id), answer=answer))
        else:
            question_id, answer = response
            items.append(ResponseItem(question_id=str(question_id), answer=answer))
    return items


def _weighted_mean(pairs: List[Tuple[float, float]]) -> float:
    total_weight = sum(weight for _, weight in pairs)
    return sum(score * weight for score, weight in pairs) / total_weight


def compose_trait_from_facets(facets: Dict[str, FacetScore]) -> float:
    """Recompose a parent trait score from its facet scores, weighted by item weight."""
    if not facets:
        raise InsufficientDataError("No facet scores to compose")
    return _weighted_mean([(facet.score, facet.weight) for facet in facets.values()])


class TraitScorer:
    def __init__(
        self,
        mappings: Iterable[QuestionTraitMapping],
        policy: ScoringPolicy | None = None,
        norms: NormTable | None = None,
    ):
        self.policy = policy or settings.scoring_policy
        self.norms = norms or DEFAULT_NORMS
        self.mappings: Dict[str, QuestionTraitMapping] = {}
        for mapping in mappings:
            if mapping.question_id in self.mappings:
                raise ValueError(f"Duplicate mapping for question {mapping.question_id!r}")
            self.mappings[mapping.question_id] = mapping

    def _secondary_weight(self, mapping: QuestionTraitMapping) -> float:
        if mapping.secondary_weight is not None:
            return mapping.secondary_weight
        return mapping.primary_weight * self.policy.secondary_weight_ratio

    def score(self, responses: Iterable[Any]) -> OceanScoreDetails:
        items = _coerce_responses(responses)
        if not items:
            raise InsufficientDataError("Response set is empty", traits=TRAITS)

        unmapped = [item.question_id for item in items if item.question_id not in self.mappings]
        if unmapped:
            if self.policy.unmapped_response_policy == "reject":
                raise UnmappedResponseError(unmapped)
            logger.warning(
                "Ignoring %d responses to unmapped questions: %s",
                len(unmapped),
                ", ".join(sorted(set(unmapped))),
            )

        trait_items: Dict[str, List[Tuple[float, float]]] = {trait: [] for trait in TRAITS}
        secondary_items: Dict[str, List[Tuple[float, float]]] = {trait: [] for trait in TRAITS}
        facet_items: Dict[Tuple[str, str], List[Tuple[float, float]]] = {}

        for item in items:
            mapping = self.mappings.get(item.question_id)
            if mapping is None:
                continue
            value = normalize_answer(item.answer, self.policy)
            if mapping.reverse:
                value = self.policy.reverse(value)

            trait_items[mapping.primary_trait].append((value, mapping.primary_weight))
            if mapping.secondary_trait:
                secondary_weight = self._secondary_weight(mapping)
                if secondary_weight > 0:
                    secondary_items[mapping.secondary_trait].append((value, secondary_weight))
            if mapping.facet:
                facet_items.setdefault((mapping.primary_trait, mapping.facet), []).append(
                    (value, mapping.primary_weight)
                )

        facets: Dict[str, Dict[str, FacetScore]] = {}
        for trait in TRAITS:
            for facet in FACETS[trait]:
                pairs = facet_items.get((trait, facet))
                # Under-sampled facets are omitted, never zero-filled.
                if not pairs or len(pairs) < self.policy.min_facet_items:
                    continue
                facets.setdefault(trait, {})[facet] = FacetScore(
                    trait=trait,
                    facet=facet,
                    score=_weighted_mean(pairs),
                    item_count=len(pairs),
                    weight=sum(weight for _, weight in pairs),
                )

        raw: Dict[str, float] = {}
        item_counts: Dict[str, int] = {}
        for trait in TRAITS:
            pairs = list(trait_items[trait])
            # A fully faceted trait is scored from its own items so the facets recompose it.
            if len(facets.get(trait, {})) < len(FACETS[trait]):
                pairs.extend(secondary_items[trait])
            elif secondary_items[trait]:
                logger.debug(
                    "Excluding %d secondary loadings from fully faceted trait %s",
                    len(secondary_items[trait]),
                    trait,
                )
            item_counts[trait] = len(pairs)
            if pairs:
                raw[trait] = _weighted_mean(pairs)

        missing = [trait for trait in TRAITS if trait not in raw]
        if not raw:
            raise InsufficientDataError("No responses mapped to any trait", traits=TRAITS)

        return OceanScoreDetails(
            raw=raw,
            percentile=self.norms.percentiles(raw),
            stanine=self.norms.stanines(raw),
            facets=facets,
            item_counts=item_counts,
            missing_traits=missing,
            unmapped_question_ids=sorted(set(unmapped)),
        )


def score_responses(
    responses: Iterable[Any],
    mappings: Iterable[QuestionTraitMapping],
    policy: ScoringPolicy | None = None,
    norms: NormTable | None = None,
) -> OceanScoreDetails:
    return TraitScorer(mappings, policy=policy, norms=norms).score(responses)
