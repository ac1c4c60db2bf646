"""OceanService facade, catalog payload, interpretation and 360 snapshot persistence."""

import pytest

from ioc.platform.config import RaterPolicy, ScoringPolicy
from ioc.components.ocean.interpretation import (
    aggregate_trait_vectors,
    interpret_profile,
    validate_trait_vector,
)
from ioc.components.ocean.metadata import ocean_metadata_payload
from ioc.components.ocean.repository import current_snapshot, save_snapshot, snapshot_history
from ioc.components.ocean.rules import FACETS, RATER_ROLES, TRAITS
from ioc.components.ocean.service import OceanService
from tests.conftest import make_vector, mapping

WEIGHTS = {"self": 0.25, "manager": 0.30, "peer": 0.20, "direct_report": 0.20, "external": 0.05}


def _service():
    return OceanService(scoring_policy=ScoringPolicy(), rater_policy=RaterPolicy(role_weights=WEIGHTS))


def _full_mappings():
    return [mapping(f"{trait}-{i}", trait) for trait in TRAITS for i in range(2)]


# ===================================================================
# FACADE
# ===================================================================

class TestOceanService:
    def test_full_report_includes_derived_layers(self):
        responses = [(m.question_id, 4) for m in _full_mappings()]
        report = _service().full_report(responses, _full_mappings(), stress_level=6)
        assert report["scores"]["raw"]["openness"] == 4.0
        assert "strengths" in report["interpretation"]
        assert sum(report["executive"]["leadership_styles"].values()) == pytest.approx(100.0)
        assert report["dark_side"]["stress_level"] == 6

    def test_partial_vector_report_skips_derived_layers(self):
        report = _service().full_report([("q1", 4)], [mapping("q1", "openness")], stress_level=6)
        assert "executive" not in report
        assert "dark_side" not in report
        assert report["scores"]["missing_traits"]

    def test_dark_side_omitted_without_stress_level(self):
        responses = [(m.question_id, 3) for m in _full_mappings()]
        report = _service().full_report(responses, _full_mappings())
        assert "executive" in report
        assert "dark_side" not in report

    def test_ready_for_360_uses_policy_threshold(self):
        service = OceanService(rater_policy=RaterPolicy(role_weights=WEIGHTS, completion_threshold=0.5))
        assert service.ready_for_360(2, 4) is True
        assert service.ready_for_360(1, 4) is False

    def test_aggregate_and_profile_passthroughs(self):
        service = _service()
        result = service.aggregate_360({"self": [make_vector(o=4.0)], "peer": [make_vector(o=3.0)]})
        assert result.weighted.openness == pytest.approx((4.0 * 0.25 + 3.0 * 0.2) / 0.45)
        org = service.organizational_profile([make_vector(), make_vector(o=4.0)])
        assert org.member_count == 2
        fit = service.executive_fit(make_vector(), org.collective)
        assert 0.0 <= fit.overall_fit <= 1.0
        team = service.team_composition({"a": make_vector()})
        assert set(team.best_role) == {"a"}

    def test_dark_side_passes_observer_ratings_through(self):
        service = _service()
        observer = make_vector(o=4.5, c=4.5, e=4.5, a=4.5, n=4.5)
        assert service.dark_side(make_vector(), 5).behavioral_indicators.self_awareness_gap is None
        profile = service.dark_side(make_vector(), 5, observer=observer)
        assert profile.behavioral_indicators.self_awareness_gap == pytest.approx(1.5)


# ===================================================================
# INTERPRETATION
# ===================================================================

class TestInterpretation:
    def test_high_and_low_stanines(self):
        result = interpret_profile({"openness": 8, "conscientiousness": 2, "extraversion": 5})
        assert result.strengths == ["Creative and open to new ideas"]
        assert result.challenges == ["Flexible but can struggle with follow-through"]
        assert len(result.recommendations) == 1

    def test_neuroticism_is_inverted(self):
        high = interpret_profile({"neuroticism": 9})
        low = interpret_profile({"neuroticism": 1})
        assert high.challenges == ["Sensitive to stress and setbacks"]
        assert low.strengths == ["Calm and emotionally steady"]
        assert low.recommendations == []

    def test_weighted_vector_combination(self):
        combined = aggregate_trait_vectors([(make_vector(o=2.0), 1.0), (make_vector(o=5.0), 2.0)])
        assert combined.openness == pytest.approx(4.0)
        with pytest.raises(ValueError):
            aggregate_trait_vectors([])

    def test_validate_trait_vector(self):
        assert validate_trait_vector(make_vector(), ScoringPolicy()) == []
        problems = validate_trait_vector(make_vector(o=6.0), ScoringPolicy())
        assert len(problems) == 1
        assert problems[0].startswith("openness")


# ===================================================================
# METADATA
# ===================================================================

class TestMetadataPayload:
    def test_catalog_lists_traits_facets_and_roles(self):
        payload = ocean_metadata_payload()
        assert list(payload["traits"]) == list(TRAITS)
        for trait in TRAITS:
            assert list(payload["traits"][trait]["facets"]) == list(FACETS[trait])
            assert payload["traits"][trait]["norm"]["sd"] > 0
        assert list(payload["rater_roles"]) == list(RATER_ROLES)
        assert sum(role["weight"] for role in payload["rater_roles"].values()) == pytest.approx(1.0)
        assert payload["risk_levels"] == ["low", "moderate", "high", "critical"]
        assert payload["policies"]["unmapped_response_policy"] == "ignore"


# ===================================================================
# SNAPSHOT PERSISTENCE
# ===================================================================

class TestSnapshotRepository:
    def test_recomputation_supersedes_previous_snapshot(self, db):
        service = _service()
        first = service.aggregate_360({"self": [make_vector()], "manager": [make_vector(c=4.0)]})
        second = service.aggregate_360(
            {"self": [make_vector()], "manager": [make_vector(c=4.0)], "peer": [make_vector(c=2.0)]}
        )

        save_snapshot(db, "subject-1", first, completed_raters=2, assigned_raters=3)
        latest = save_snapshot(db, "subject-1", second, completed_raters=3, assigned_raters=3)

        assert latest.version == 2
        history = snapshot_history(db, "subject-1")
        assert [s.version for s in history] == [1, 2]
        assert [s.is_current for s in history] == [False, True]
        assert current_snapshot(db, "subject-1").id == latest.id
        assert history[0].weighted_scores["conscientiousness"] == pytest.approx(first.weighted.conscientiousness)

    def test_subjects_are_versioned_independently(self, db):
        result = _service().aggregate_360({"self": [make_vector()]})
        save_snapshot(db, "a", result, completed_raters=1, assigned_raters=1)
        snapshot = save_snapshot(db, "b", result, completed_raters=1, assigned_raters=1)
        assert snapshot.version == 1
        assert current_snapshot(db, "missing") is None
