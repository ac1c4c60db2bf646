"""Executive, organizational and team profile composition."""

import pytest

from ioc.platform.config import ScoringPolicy
from ioc.components.ocean.profiles import (
    analyze_team_composition,
    collective_traits,
    compose_executive_profile,
    compose_organizational_profile,
    culture_affinity,
    executive_org_fit,
    influence_tactics,
    leadership_styles,
    leadership_stress_profile,
)
from ioc.components.ocean.rules import CULTURE_PROFILES
from ioc.components.ocean.schemas import RoleContext
from tests.conftest import make_vector

POLICY = ScoringPolicy()


# ===================================================================
# EXECUTIVE
# ===================================================================

class TestExecutiveProfile:
    @pytest.mark.parametrize(
        "vector",
        [make_vector(), make_vector(o=5, c=1, e=4, a=2, n=5), make_vector(o=1, c=5, e=1, a=5, n=1)],
    )
    def test_leadership_styles_sum_to_one_hundred(self, vector):
        assert sum(leadership_styles(vector, POLICY).values()) == pytest.approx(100.0)

    def test_pressure_uses_reversed_agreeableness(self):
        harsh = influence_tactics(make_vector(a=1.0), POLICY)["pressure"]
        kind = influence_tactics(make_vector(a=5.0), POLICY)["pressure"]
        assert harsh > kind
        # (0.7*3 + 0.4*(6-1) + 0.65*3) / 1.75 on a 5-point scale
        assert harsh == pytest.approx((2.1 + 2.0 + 1.95) / 1.75 / 5 * 100)

    def test_influence_tactics_are_percentages(self):
        for value in influence_tactics(make_vector(o=5, c=5, e=5, a=5, n=1), POLICY).values():
            assert 0.0 <= value <= 100.0

    def test_compose_ranks_top_three_tactics(self):
        profile = compose_executive_profile(make_vector(e=5.0, a=4.5), RoleContext(level="vp"), POLICY)
        ranked = [profile.influence_tactics[name] for name in profile.top_influence_tactics]
        assert len(ranked) == 3
        assert ranked == sorted(ranked, reverse=True)
        assert max(profile.influence_tactics.values()) == ranked[0]
        assert profile.role.level == "vp"
        assert profile.primary_leadership_style in profile.leadership_styles

    def test_default_role_context(self):
        assert compose_executive_profile(make_vector(), policy=POLICY).role.level == "executive"

    def test_stress_profile_recovery_and_coping(self):
        steady = leadership_stress_profile(make_vector(o=4.5, c=4.5, e=4.0, a=4.0, n=1.5), POLICY)
        assert steady.recovery_speed == "rapid"
        assert steady.team_impact == "stabilizing"
        assert "Emotional regulation" in steady.coping_strategies

        fragile = leadership_stress_profile(make_vector(o=1.5, c=1.5, e=1.5, a=2.0, n=4.8), POLICY)
        assert fragile.recovery_speed == "slow"
        assert fragile.team_impact == "variable"
        assert fragile.coping_strategies == []


# ===================================================================
# ORGANIZATIONAL
# ===================================================================

class TestOrganizationalProfile:
    def test_influence_weighted_collective(self):
        collective = collective_traits([make_vector(o=2.0), make_vector(o=4.0)], [3.0, 1.0])
        assert collective.openness == pytest.approx(2.5)

    def test_collective_rejects_bad_input(self):
        with pytest.raises(ValueError):
            collective_traits([])
        with pytest.raises(ValueError):
            collective_traits([make_vector()], [1.0, 2.0])
        with pytest.raises(ValueError):
            collective_traits([make_vector()], [0.0])

    def test_diversity_is_population_standard_deviation(self):
        profile = compose_organizational_profile([make_vector(o=2.0), make_vector(o=4.0)], policy=POLICY)
        assert profile.diversity["openness"] == pytest.approx(1.0)
        assert profile.diversity["neuroticism"] == pytest.approx(0.0)
        assert profile.member_count == 2

    def test_culture_type_is_closest_profile(self):
        # raw scores that normalize exactly onto the performance profile
        members = [make_vector(o=3.0, c=4.6, e=3.4, a=3.0, n=2.2)]
        profile = compose_organizational_profile(members, policy=POLICY)
        assert profile.culture_type == "performance"
        assert profile.culture_affinity["performance"] == pytest.approx(1.0)

    def test_culture_affinity_covers_every_profile(self):
        affinity = culture_affinity(make_vector(), POLICY)
        assert set(affinity) == set(CULTURE_PROFILES)
        assert all(0.0 <= value <= 1.0 for value in affinity.values())

    def test_culture_ties_break_lexically(self):
        # O=.7 C=.6 E=.7 A=.8 N=.3 sits equally close to "adaptive" and "collaborative"
        members = [make_vector(o=3.8, c=3.4, e=3.8, a=4.2, n=2.2)]
        profile = compose_organizational_profile(members, policy=POLICY)
        assert profile.culture_affinity["adaptive"] == pytest.approx(profile.culture_affinity["collaborative"])
        assert profile.culture_type == "adaptive"

    def test_health_and_emergent_metrics_are_percentages(self):
        profile = compose_organizational_profile(
            [make_vector(o=5, c=5, e=5, a=5, n=1), make_vector(o=1, c=1, e=1, a=1, n=5)], policy=POLICY
        )
        for value in list(profile.health_metrics.values()) + list(profile.emergent_properties.values()):
            assert 0.0 <= value <= 100.0


# ===================================================================
# FIT
# ===================================================================

class TestExecutiveOrgFit:
    def test_identical_profiles_align_fully(self):
        fit = executive_org_fit(make_vector(), make_vector(), POLICY)
        assert all(value == pytest.approx(1.0) for value in fit.alignment.values())
        assert fit.overall_fit == pytest.approx(1.0)
        assert fit.recommendations == []
        assert fit.complementary.balance_potential == 0.5
        assert fit.composite_fit == pytest.approx(0.6 + 0.4 * (0.5 / 3))

    def test_large_gap_produces_recommendation(self):
        fit = executive_org_fit(make_vector(o=5.0), make_vector(o=2.0), POLICY)
        assert fit.alignment["openness"] == pytest.approx(0.25)
        assert fit.overall_fit == pytest.approx((0.25 + 4) / 5)
        assert "Executive's higher openness may clash with organizational norms" in fit.recommendations

    def test_lower_executive_score_recommendation(self):
        fit = executive_org_fit(make_vector(c=1.0), make_vector(c=4.5), POLICY)
        assert "Executive's lower conscientiousness may require adaptation to organizational culture" in fit.recommendations

    def test_complementary_gap_fill(self):
        fit = executive_org_fit(make_vector(o=4.5), make_vector(o=2.5), POLICY)
        assert fit.complementary.gap_fill == pytest.approx(0.25)
        assert fit.complementary.diversity_bonus == pytest.approx(0.2)


# ===================================================================
# TEAM
# ===================================================================

class TestTeamComposition:
    def test_best_role_per_member(self):
        team = analyze_team_composition(
            {
                "ana": make_vector(o=3.5, c=4.0, e=4.0, n=2.0),
                "ben": make_vector(o=4.0, c=4.5, e=2.5),
            },
            POLICY,
        )
        assert team.best_role == {"ana": "leader", "ben": "analyst"}
        assert team.role_fit["ana"]["leader"] == pytest.approx(1.0)
        assert set(team.dynamics) == {"conflict_potential", "decision_speed", "innovation_potential"}
        for value in team.dynamics.values():
            assert 0.0 <= value <= 1.0

    def test_homogeneous_low_team_gets_additions(self):
        team = analyze_team_composition({"x": make_vector(2, 2, 2, 2, 2), "y": make_vector(2, 2, 2, 2, 2)}, POLICY)
        assert len(team.recommended_additions) == 5
        assert team.recommended_additions[-1].startswith("Add cognitive diversity")

    def test_empty_team_rejected(self):
        with pytest.raises(ValueError):
            analyze_team_composition({}, POLICY)

    def test_outputs_cover_every_member(self):
        members = {f"m{i}": make_vector(o=1 + i) for i in range(4)}
        team = analyze_team_composition(members, POLICY)
        assert set(team.role_fit) == set(members)
        assert all(len(fits) == 3 for fits in team.role_fit.values())
