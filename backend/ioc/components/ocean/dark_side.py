"""Dark-side (derailment) risk assessment from trait extremity under stress."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from ...platform.config import DarkSideThresholds, ScoringPolicy, settings
from .rules import (
    AWARENESS_GAP_SUPPORT,
    MALADAPTIVE_STRESS_LEVEL,
    RISK_BANDS,
    RISK_LEVELS,
    SIGNIFICANT_EXTREMITY,
    STRESS_MAX,
    STRESS_MIN,
    SUPPORT_STRESS_LEVEL,
    TRAITS,
)
from .schemas import (
    BehavioralIndicatorReport,
    DarkSideRiskProfile,
    DevelopmentGoal,
    ImmediateAction,
    InterventionPlan,
    MonitoringPlan,
    ObservedBehavior,
    StressResponseAssessment,
    SupportStructures,
    TraitRisk,
    TraitVector,
)

logger = logging.getLogger("ioc.ocean.dark_side")

MANIFESTATIONS: Dict[str, Dict[str, Dict[str, Any]]] = {
    "openness": {
        "high": {
            "name": "Chaotic Visionary",
            "behaviors": [
                "Chases new ideas before finishing current work",
                "Dismisses proven processes as boring",
                "Changes direction frequently",
            ],
            "impact": ["Team confusion about priorities", "Unfinished initiatives", "Execution fatigue"],
            "compensatory": ["Pair with a strong executor", "Commit to a fixed roadmap cadence"],
        },
        "low": {
            "name": "Rigid Traditionalist",
            "behaviors": [
                "Resists change even when evidence supports it",
                "Dismisses unconventional ideas",
                "Over-relies on past solutions",
            ],
            "impact": ["Stifled innovation", "Talent attrition among creatives", "Slow adaptation"],
            "compensatory": ["Schedule structured idea reviews", "Seek input from diverse perspectives"],
        },
    },
    "conscientiousness": {
        "high": {
            "name": "Perfectionist Controller",
            "behaviors": [
                "Micromanages details",
                "Delays delivery chasing perfection",
                "Struggles to delegate",
            ],
            "impact": ["Team disempowerment", "Bottlenecked decisions", "Burnout from excessive standards"],
            "compensatory": ["Define good-enough criteria up front", "Delegate with clear outcomes"],
        },
        "low": {
            "name": "Chaotic Underperformer",
            "behaviors": [
                "Misses deadlines and commitments",
                "Works without a plan",
                "Overlooks important details",
            ],
            "impact": ["Eroded trust", "Rework for colleagues", "Unpredictable delivery"],
            "compensatory": ["Use checklists and reminders", "Agree on explicit milestones"],
        },
    },
    "extraversion": {
        "high": {
            "name": "Attention-Seeking Dominator",
            "behaviors": [
                "Dominates discussions",
                "Acts before listening",
                "Seeks the spotlight for shared work",
            ],
            "impact": ["Quieter voices go unheard", "Reduced team ownership", "Impulsive commitments"],
            "compensatory": ["Speak last in meetings", "Credit contributors explicitly"],
        },
        "low": {
            "name": "Withdrawn Avoider",
            "behaviors": [
                "Avoids visible leadership moments",
                "Under-communicates decisions",
                "Withdraws under pressure",
            ],
            "impact": ["Low team visibility", "Missed stakeholder alignment", "Perceived disengagement"],
            "compensatory": ["Schedule regular updates", "Use written channels deliberately"],
        },
    },
    "agreeableness": {
        "high": {
            "name": "Conflict-Avoidant Pushover",
            "behaviors": [
                "Avoids necessary conflict",
                "Agrees to unrealistic requests",
                "Withholds critical feedback",
            ],
            "impact": ["Unaddressed performance issues", "Overcommitted teams", "Unclear standards"],
            "compensatory": ["Prepare difficult conversations in advance", "Anchor decisions on criteria"],
        },
        "low": {
            "name": "Ruthless Competitor",
            "behaviors": [
                "Treats colleagues as rivals",
                "Dismisses others' concerns",
                "Uses blunt or harsh feedback",
            ],
            "impact": ["Damaged relationships", "Low psychological safety", "Siloed teams"],
            "compensatory": ["Ask before advising", "Acknowledge others' contributions"],
        },
    },
    "neuroticism": {
        "high": {
            "name": "Anxious Overwhelmer",
            "behaviors": [
                "Catastrophizes setbacks",
                "Transmits anxiety to the team",
                "Second-guesses decisions",
            ],
            "impact": ["Team stress contagion", "Decision paralysis", "Reactive firefighting"],
            "compensatory": ["Build recovery routines", "Use a trusted sounding board"],
        },
        "low": {
            "name": "Complacent Risk-Taker",
            "behaviors": [
                "Underestimates real threats",
                "Ignores warning signals",
                "Appears indifferent to others' concerns",
            ],
            "impact": ["Unmanaged risks", "Team feels unheard", "Late crisis response"],
            "compensatory": ["Run pre-mortems", "Invite dissenting risk assessments"],
        },
    },
}

# pattern "high" applies when the trait score is at or above STRESS_PATTERN_CUTOFF
STRESS_PATTERN_CUTOFF = 3.5
STRESS_PATTERNS: Dict[str, Dict[str, Dict[str, List[str]]]] = {
    "openness": {
        "high": {"triggers": ["Routine, repetitive work"], "recovery": ["Creative outlets"], "maladaptive": ["Scattered focus"]},
        "low": {"triggers": ["Ambiguous, fast-changing priorities"], "recovery": ["Clear structure"], "maladaptive": ["Rigid resistance"]},
    },
    "conscientiousness": {
        "high": {"triggers": ["Loss of control over quality"], "recovery": ["Completing a plan"], "maladaptive": ["Over-control"]},
        "low": {"triggers": ["Tight deadlines"], "recovery": ["Flexible scheduling"], "maladaptive": ["Procrastination"]},
    },
    "extraversion": {
        "high": {"triggers": ["Isolation"], "recovery": ["Social connection"], "maladaptive": ["Impulsive reactions"]},
        "low": {"triggers": ["Constant visibility"], "recovery": ["Quiet time alone"], "maladaptive": ["Withdrawal"]},
    },
    "agreeableness": {
        "high": {"triggers": ["Interpersonal conflict"], "recovery": ["Repairing relationships"], "maladaptive": ["Appeasement"]},
        "low": {"triggers": ["Being second-guessed"], "recovery": ["Winning on merit"], "maladaptive": ["Hostility"]},
    },
    "neuroticism": {
        "high": {"triggers": ["Uncertainty and criticism"], "recovery": ["Reassurance and rest"], "maladaptive": ["Rumination"]},
        "low": {"triggers": ["Others' emotional demands"], "recovery": ["Problem-focused action"], "maladaptive": ["Dismissiveness"]},
    },
}


DEVELOPMENT_METHODS: Dict[str, Dict[str, List[str]]] = {
    "openness": {
        "high_extreme": [
            "Project completion accountability",
            "Structured innovation processes",
            "Focus and prioritization coaching",
        ],
        "low_extreme": ["Change management training", "Innovation workshops", "Cross-functional assignments"],
    },
    "conscientiousness": {
        "high_extreme": ["Delegation training", "Good-enough decision making", "Stress management techniques"],
        "low_extreme": ["Project management training", "Accountability partnerships", "Follow-through coaching"],
    },
    "extraversion": {
        "high_extreme": ["Active listening training", "Meeting facilitation skills", "Communication balance coaching"],
        "low_extreme": ["Public speaking training", "Relationship building skills", "Network development coaching"],
    },
    "agreeableness": {
        "high_extreme": ["Difficult conversations training", "Assertiveness coaching", "Performance management training"],
        "low_extreme": ["Empathy development", "Collaborative leadership training", "Emotional intelligence coaching"],
    },
    "neuroticism": {
        "high_extreme": ["Stress management training", "Cognitive behavioral coaching", "Resilience building programs"],
        "low_extreme": ["Risk assessment training", "Crisis management skills", "Empathy and sensitivity training"],
    },
}

MONITORING_PLAN = MonitoringPlan(
    indicators=[
        "Team engagement scores",
        "Stress level assessments",
        "Behavioral observation reports",
        "360-degree feedback scores",
    ],
    frequency="Monthly for 6 months, then quarterly",
    reviewers=["Executive coach", "HR Director", "Direct supervisor"],
    escalation_triggers=[
        "Team engagement drops below 60%",
        "Stress level exceeds 8/10",
        "Multiple behavioral concerns reported",
        "Turnover in direct reports",
    ],
)


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def stress_multiplier(stress_level: int) -> float:
    """Factor applied to trait extremity; 0.2 at stress 1, 2.0 at stress 10."""
    return stress_level / 5.0


def risk_level_for(risk_score: float) -> str:
    for floor, level in RISK_BANDS:
        if risk_score >= floor:
            return level
    return "low"


def max_risk_level(levels: List[str]) -> str:
    return max(levels, key=RISK_LEVELS.index, default="low")


def assess_trait(
    trait: str,
    score: float,
    stress_level: int,
    thresholds: DarkSideThresholds,
    policy: ScoringPolicy,
) -> TraitRisk:
    extremity = abs(score - policy.midpoint)
    risk_score = extremity * stress_multiplier(stress_level)

    if score >= thresholds.high_extreme:
        manifestation, pole = "high_extreme", "high"
    elif score <= thresholds.low_extreme:
        manifestation, pole = "low_extreme", "low"
    else:
        manifestation, pole = "none", None

    in_warning_zone = pole is None and score >= thresholds.warning
    if pole is None:
        concerns = [f"Watch for overuse of {trait} strengths"] if in_warning_zone else []
        return TraitRisk(
            trait=trait,
            score=score,
            risk_level="low",
            risk_score=risk_score,
            manifestation=manifestation,
            in_warning_zone=in_warning_zone,
            concerns=concerns,
        )

    catalog = MANIFESTATIONS[trait][pole]
    return TraitRisk(
        trait=trait,
        score=score,
        risk_level=risk_level_for(risk_score),
        risk_score=risk_score,
        manifestation=manifestation,
        manifestation_name=catalog["name"],
        concerns=list(catalog["behaviors"][:3]),
        impact_areas=list(catalog["impact"][:3]),
        compensatory_behaviors=list(catalog["compensatory"]),
    )


def assess_stress_response(traits: TraitVector, stress_level: int, policy: ScoringPolicy) -> StressResponseAssessment:
    stability = policy.reverse(traits.neuroticism)
    span = policy.scale_max - policy.scale_min
    weighted = stability * 0.40 + traits.conscientiousness * 0.35 + traits.openness * 0.25
    adaptive_capacity = _clamp((weighted - policy.scale_min) / span * 100.0)

    if stress_level >= 8 and traits.neuroticism >= 4.0:
        team_impact = "toxic"
    elif stress_level >= 6 and (traits.neuroticism >= 3.5 or traits.agreeableness <= 2.5):
        team_impact = "negative"
    elif stability >= 4.0 and traits.agreeableness >= 3.5:
        team_impact = "positive"
    else:
        team_impact = "neutral"

    stressors: List[str] = []
    recovery: List[str] = []
    maladaptive: List[str] = []
    for trait in TRAITS:
        pattern = "high" if traits.get(trait) >= STRESS_PATTERN_CUTOFF else "low"
        entry = STRESS_PATTERNS[trait][pattern]
        stressors.extend(entry["triggers"])
        recovery.extend(entry["recovery"])
        if stress_level >= MALADAPTIVE_STRESS_LEVEL:
            maladaptive.extend(entry["maladaptive"])

    return StressResponseAssessment(
        adaptive_capacity=adaptive_capacity,
        team_impact=team_impact,
        likely_stressors=stressors,
        recovery_factors=recovery,
        maladaptive_patterns=maladaptive,
    )


def self_awareness_gap(traits: TraitVector, observer: TraitVector | None) -> float | None:
    if observer is None:
        return None
    return sum(abs(traits.get(trait) - observer.get(trait)) for trait in TRAITS) / len(TRAITS)


def estimate_impact_on_others(
    traits: TraitVector,
    thresholds: DarkSideThresholds,
    policy: ScoringPolicy,
) -> Dict[str, float]:
    """Rough 0-100 estimates of how the profile lands on the people around it."""
    scale = policy.scale_max
    n, a, e, c = traits.neuroticism, traits.agreeableness, traits.extraversion, traits.conscientiousness

    team_morale = (policy.reverse(n) * 0.4 + a * 0.6) / scale * 100.0

    # Extreme conscientiousness turns into over-control and slows the team down
    productivity_base = scale + 0.5 - c if c >= thresholds.high_extreme else c
    productivity_base -= (n - 2.5) * 0.3
    productivity = productivity_base / scale * 100.0

    turnover_risk = 0.0
    if n >= 4.0:
        turnover_risk += (n - 3.0) * 30.0
    if a <= 2.5:
        turnover_risk += (3.0 - a) * 25.0
    if e >= thresholds.high_extreme:
        turnover_risk += (e - 4.0) * 20.0

    extremes = sum(
        1 for trait in TRAITS
        if traits.get(trait) >= thresholds.high_extreme or traits.get(trait) <= thresholds.low_extreme
    )
    stakeholder_confidence = 80.0 - extremes * 15.0

    return {
        "team_morale": round(_clamp(team_morale), 2),
        "productivity": round(_clamp(productivity), 2),
        "turnover_risk": round(_clamp(turnover_risk), 2),
        "stakeholder_confidence": round(_clamp(stakeholder_confidence), 2),
    }


def analyze_behavioral_indicators(
    traits: TraitVector,
    observer: TraitVector | None,
    thresholds: DarkSideThresholds,
    policy: ScoringPolicy,
) -> BehavioralIndicatorReport:
    observed: Dict[str, ObservedBehavior] = {}
    for trait in TRAITS:
        score = traits.get(trait)
        if score >= thresholds.high_extreme:
            pole, significant = "high", score >= thresholds.high_extreme + SIGNIFICANT_EXTREMITY
        elif score <= thresholds.low_extreme:
            pole, significant = "low", score <= thresholds.low_extreme - SIGNIFICANT_EXTREMITY
        else:
            continue
        observed[trait] = ObservedBehavior(
            frequency="frequent",
            severity="significant" if significant else "moderate",
            examples=list(MANIFESTATIONS[trait][pole]["behaviors"]),
        )

    return BehavioralIndicatorReport(
        observed_behaviors=observed,
        self_awareness_gap=self_awareness_gap(traits, observer),
        impact_on_others=estimate_impact_on_others(traits, thresholds, policy),
    )


def build_intervention_plan(
    overall: str,
    trait_risks: Dict[str, TraitRisk],
    stress_response: StressResponseAssessment,
    stress_level: int,
    indicators: BehavioralIndicatorReport,
) -> InterventionPlan:
    actions: List[ImmediateAction] = []
    if overall == "critical" or stress_response.team_impact == "toxic":
        actions.append(ImmediateAction(
            action="Emergency leadership coaching and stress management intervention",
            priority="urgent",
            timeframe="Within 48 hours",
            responsibility=["Executive coach", "HR Director", "CEO"],
        ))
    if overall == "high":
        actions.append(ImmediateAction(
            action="360-degree feedback and leadership assessment",
            priority="high",
            timeframe="Within 2 weeks",
            responsibility=["HR Director", "Direct reports"],
        ))

    goals = [
        DevelopmentGoal(
            trait=trait,
            target_behavior=f"Manage {trait} extremes and reduce negative impact",
            methods=list(DEVELOPMENT_METHODS[trait][risk.manifestation]),
            timeline="3-6 months",
            success_metrics=["Reduced behavioral indicators", "Improved team feedback", "Better stress management"],
        )
        for trait, risk in trait_risks.items()
        if risk.risk_level in ("high", "critical") and risk.manifestation in DEVELOPMENT_METHODS[trait]
    ]

    support = SupportStructures()
    if stress_level >= SUPPORT_STRESS_LEVEL:
        support.coaching.extend(["Stress management coaching", "Executive wellness program"])
    gap = indicators.self_awareness_gap
    if gap is not None and gap > AWARENESS_GAP_SUPPORT:
        support.training.extend(["Self-awareness development", "360-degree feedback training"])

    return InterventionPlan(
        immediate_actions=actions,
        development_goals=goals,
        support_structures=support,
        monitoring_plan=MONITORING_PLAN.model_copy(deep=True),
    )


def assess_dark_side(
    traits: TraitVector,
    stress_level: int,
    thresholds: DarkSideThresholds | None = None,
    policy: ScoringPolicy | None = None,
    observer: TraitVector | None = None,
) -> DarkSideRiskProfile:
    """Per-trait derailment risk plus an overall level equal to the worst trait.

    ``observer`` is the mean of other raters' scores; when given, the report
    includes the self-awareness gap and the plan may add awareness training.
    """
    if isinstance(stress_level, bool) or not isinstance(stress_level, int):
        raise ValueError("stress_level must be an integer")
    if not STRESS_MIN <= stress_level <= STRESS_MAX:
        raise ValueError(f"stress_level must be within {STRESS_MIN}-{STRESS_MAX}")
    thresholds = thresholds or settings.dark_side_thresholds
    policy = policy or settings.scoring_policy

    trait_risks = {
        trait: assess_trait(trait, traits.get(trait), stress_level, thresholds, policy) for trait in TRAITS
    }
    overall = max_risk_level([risk.risk_level for risk in trait_risks.values()])
    stress_response = assess_stress_response(traits, stress_level, policy)

    primary_concerns: List[str] = []
    for risk in sorted(trait_risks.values(), key=lambda r: (-RISK_LEVELS.index(r.risk_level), -r.risk_score)):
        if risk.manifestation != "none":
            primary_concerns.extend(risk.concerns[:1])

    urgent = overall == "critical" or stress_response.team_impact == "toxic"
    if urgent:
        logger.warning("Dark-side assessment flagged urgent intervention overall=%s stress=%d", overall, stress_level)

    indicators = analyze_behavioral_indicators(traits, observer, thresholds, policy)
    plan = build_intervention_plan(overall, trait_risks, stress_response, stress_level, indicators)

    return DarkSideRiskProfile(
        overall_risk=overall,
        stress_level=stress_level,
        stress_amplification=stress_multiplier(stress_level),
        trait_risks=trait_risks,
        primary_concerns=primary_concerns,
        stress_response=stress_response,
        behavioral_indicators=indicators,
        intervention_plan=plan,
        requires_urgent_intervention=urgent,
    )
