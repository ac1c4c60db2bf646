"""Trait and facet scoring from questionnaire responses."""

import pytest

from ioc.platform.config import ScoringPolicy
from ioc.components.ocean.errors import InsufficientDataError, UnmappedResponseError
from ioc.components.ocean.rules import FACETS, TRAITS
from ioc.components.ocean.trait_scorer import (
    TraitScorer,
    compose_trait_from_facets,
    normalize_answer,
    score_responses,
)
from tests.conftest import mapping

POLICY = ScoringPolicy()


def _full_mappings():
    """Two items per trait so every trait has data."""
    out = []
    for trait in TRAITS:
        out.append(mapping(f"{trait}-1", trait))
        out.append(mapping(f"{trait}-2", trait))
    return out


# ===================================================================
# ANSWER NORMALIZATION
# ===================================================================

class TestNormalizeAnswer:
    def test_numeric_answers_are_used_directly(self):
        assert normalize_answer(4, POLICY) == 4.0
        assert normalize_answer(2.5, POLICY) == 2.5

    def test_numeric_answers_are_clamped_to_scale(self):
        assert normalize_answer(9, POLICY) == 5.0
        assert normalize_answer(-3, POLICY) == 1.0

    def test_letter_answers(self):
        assert normalize_answer("a", POLICY) == 1.0
        assert normalize_answer("E", POLICY) == 5.0

    def test_likert_and_frequency_words(self):
        assert normalize_answer("strongly_agree", POLICY) == 5.0
        assert normalize_answer("Strongly Disagree", POLICY) == 1.0
        assert normalize_answer("often", POLICY) == 4.0

    def test_structured_answers(self):
        assert normalize_answer({"value": 2}, POLICY) == 2.0
        assert normalize_answer({"score": 4}, POLICY) == 4.0

    def test_unrecognized_answers_fall_back_to_midpoint(self):
        assert normalize_answer("maybe", POLICY) == 3.0
        assert normalize_answer(None, POLICY) == 3.0
        assert normalize_answer(True, POLICY) == 3.0
        assert normalize_answer({"label": "x"}, POLICY) == 3.0


# ===================================================================
# TRAIT SCORING
# ===================================================================

class TestTraitScoring:
    def test_reverse_keyed_item_end_to_end(self):
        details = score_responses(
            [{"question_id": "q1", "answer": 5}, {"question_id": "q2", "answer": 1}],
            [mapping("q1", "O", primary_weight=1), mapping("q2", "O", primary_weight=1, reverse=True)],
            policy=POLICY,
        )
        assert details.raw["openness"] == 5.0
        assert details.percentile["openness"] == 95
        assert details.stanine["openness"] == 8

    def test_weighted_mean_uses_primary_weights(self):
        details = score_responses(
            [("q1", 5), ("q2", 2)],
            [mapping("q1", "openness", primary_weight=3), mapping("q2", "openness", primary_weight=1)],
            policy=POLICY,
        )
        assert details.raw["openness"] == pytest.approx((5 * 3 + 2 * 1) / 4)

    def test_secondary_trait_defaults_to_half_primary_weight(self):
        details = score_responses(
            [("q1", 5), ("q2", 1)],
            [
                mapping("q1", "extraversion", secondary_trait="agreeableness", primary_weight=2),
                mapping("q2", "agreeableness"),
            ],
            policy=POLICY,
        )
        # agreeableness: q1 contributes 5 with weight 1.0 (0.5 x 2), q2 contributes 1 with weight 1.0
        assert details.raw["agreeableness"] == pytest.approx(3.0)
        assert details.raw["extraversion"] == 5.0

    def test_secondary_weight_ratio_is_configurable(self):
        policy = ScoringPolicy(secondary_weight_ratio=0.25)
        details = score_responses(
            [("q1", 5), ("q2", 1)],
            [mapping("q1", "extraversion", secondary_trait="agreeableness"), mapping("q2", "agreeableness")],
            policy=policy,
        )
        assert details.raw["agreeableness"] == pytest.approx((5 * 0.25 + 1 * 1.0) / 1.25)

    def test_missing_traits_are_reported_not_zero_filled(self):
        details = score_responses([("q1", 4)], [mapping("q1", "openness")], policy=POLICY)
        assert set(details.raw) == {"openness"}
        assert details.missing_traits == ["conscientiousness", "extraversion", "agreeableness", "neuroticism"]
        with pytest.raises(InsufficientDataError) as exc:
            details.trait_vector()
        assert "neuroticism" in exc.value.traits

    def test_complete_responses_yield_trait_vector(self):
        responses = [(m.question_id, 4) for m in _full_mappings()]
        vector = score_responses(responses, _full_mappings(), policy=POLICY).trait_vector()
        assert vector.as_dict() == {trait: 4.0 for trait in TRAITS}

    def test_empty_response_set_raises_insufficient_data(self):
        with pytest.raises(InsufficientDataError) as exc:
            score_responses([], _full_mappings(), policy=POLICY)
        assert exc.value.traits == list(TRAITS)

    def test_duplicate_mappings_are_rejected(self):
        with pytest.raises(ValueError):
            TraitScorer([mapping("q1", "openness"), mapping("q1", "neuroticism")], policy=POLICY)

    def test_scoring_is_referentially_transparent(self):
        scorer = TraitScorer(_full_mappings(), policy=POLICY)
        responses = [(m.question_id, 2) for m in _full_mappings()]
        assert scorer.score(responses) == scorer.score(responses)


# ===================================================================
# UNMAPPED RESPONSES
# ===================================================================

class TestUnmappedResponses:
    def test_ignore_policy_drops_and_reports(self):
        details = score_responses([("q1", 4), ("ghost", 1)], [mapping("q1", "openness")], policy=POLICY)
        assert details.raw["openness"] == 4.0
        assert details.unmapped_question_ids == ["ghost"]

    def test_ignore_policy_with_only_unmapped_responses_is_insufficient(self):
        with pytest.raises(InsufficientDataError):
            score_responses([("ghost", 1)], [mapping("q1", "openness")], policy=POLICY)

    def test_reject_policy_raises(self):
        policy = ScoringPolicy(unmapped_response_policy="reject")
        with pytest.raises(UnmappedResponseError) as exc:
            score_responses([("q1", 4), ("ghost", 1)], [mapping("q1", "openness")], policy=policy)
        assert exc.value.question_ids == ["ghost"]


# ===================================================================
# FACETS
# ===================================================================

class TestFacets:
    def test_facets_below_minimum_items_are_omitted(self):
        details = score_responses(
            [("q1", 4), ("q2", 2), ("q3", 5)],
            [
                mapping("q1", "openness", facet="fantasy"),
                mapping("q2", "openness", facet="fantasy"),
                mapping("q3", "openness", facet="ideas"),
            ],
            policy=POLICY,
        )
        facets = details.facets["openness"]
        assert facets["fantasy"].score == pytest.approx(3.0)
        assert facets["fantasy"].item_count == 2
        assert "ideas" not in facets

    def test_facet_must_belong_to_primary_trait(self):
        with pytest.raises(ValueError):
            mapping("q1", "openness", facet="anxiety")

    def test_facets_recompose_parent_trait_within_tolerance(self):
        mappings = []
        responses = []
        answers = [1, 2, 3, 4, 5, 4]
        for index, facet in enumerate(FACETS["conscientiousness"]):
            for item in range(3):
                qid = f"c-{facet}-{item}"
                mappings.append(mapping(qid, "conscientiousness", facet=facet, reverse=(item == 2)))
                responses.append((qid, answers[(index + item) % len(answers)]))
        details = score_responses(responses, mappings, policy=POLICY)
        facets = details.facets["conscientiousness"]
        assert len(facets) == 6
        assert abs(compose_trait_from_facets(facets) - details.raw["conscientiousness"]) <= 0.01

    def test_secondary_loadings_do_not_skew_fully_faceted_trait(self):
        mappings = [mapping("c1", "conscientiousness", secondary_trait="openness")]
        responses = [("c1", 1)]
        for facet in FACETS["openness"]:
            for item in range(2):
                qid = f"o-{facet}-{item}"
                mappings.append(mapping(qid, "openness", facet=facet))
                responses.append((qid, 4))
        details = score_responses(responses, mappings, policy=POLICY)
        assert details.raw["openness"] == pytest.approx(4.0)
        assert compose_trait_from_facets(details.facets["openness"]) == pytest.approx(details.raw["openness"], abs=0.01)
        assert details.item_counts["openness"] == 12
        assert details.raw["conscientiousness"] == pytest.approx(1.0)

    def test_secondary_loadings_count_when_facets_are_incomplete(self):
        details = score_responses(
            [("c1", 1), ("o1", 4), ("o2", 4)],
            [
                mapping("c1", "conscientiousness", secondary_trait="openness"),
                mapping("o1", "openness", facet="fantasy"),
                mapping("o2", "openness", facet="fantasy"),
            ],
            policy=POLICY,
        )
        assert details.raw["openness"] == pytest.approx((4 + 4 + 0.5) / 2.5)
        assert details.item_counts["openness"] == 3

    def test_compose_without_facets_raises(self):
        with pytest.raises(InsufficientDataError):
            compose_trait_from_facets({})
