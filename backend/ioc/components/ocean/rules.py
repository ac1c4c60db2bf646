"""OCEAN scoring constants: norms, bands, answer vocabularies and fixed weights.

Linear-combination weights below are placeholder constants pending
psychometric validation. They are still part of the output contract: changing
any of them changes what a score means.
"""

from typing import Dict, List, Tuple

from ...platform.config import RATER_ROLES as PLATFORM_RATER_ROLES

TRAITS: Tuple[str, ...] = (
    "openness",
    "conscientiousness",
    "extraversion",
    "agreeableness",
    "neuroticism",
)

TRAIT_ALIASES: Dict[str, str] = {
    "o": "openness",
    "c": "conscientiousness",
    "e": "extraversion",
    "a": "agreeableness",
    "n": "neuroticism",
}

FACETS: Dict[str, Tuple[str, ...]] = {
    "openness": ("fantasy", "aesthetics", "feelings", "actions", "ideas", "values"),
    "conscientiousness": (
        "competence",
        "order",
        "dutifulness",
        "achievement_striving",
        "self_discipline",
        "deliberation",
    ),
    "extraversion": (
        "warmth",
        "gregariousness",
        "assertiveness",
        "activity",
        "excitement_seeking",
        "positive_emotions",
    ),
    "agreeableness": (
        "trust",
        "straightforwardness",
        "altruism",
        "compliance",
        "modesty",
        "tender_mindedness",
    ),
    "neuroticism": (
        "anxiety",
        "hostility",
        "depression",
        "self_consciousness",
        "impulsiveness",
        "vulnerability",
    ),
}

# General-population norms on the 1-5 raw scale: (mean, standard deviation)
OCEAN_NORMS: Dict[str, Tuple[float, float]] = {
    "openness": (3.92, 0.66),
    "conscientiousness": (3.81, 0.69),
    "extraversion": (3.39, 0.86),
    "agreeableness": (3.94, 0.63),
    "neuroticism": (2.96, 0.87),
}

PERCENTILE_FLOOR = 1
PERCENTILE_CEILING = 99

# Exclusive upper percentile bound for stanines 1..8; anything above is 9.
STANINE_UPPER_BOUNDS: List[int] = [4, 11, 23, 40, 60, 77, 89, 96]

LIKERT_ANSWERS: Dict[str, int] = {
    "strongly_disagree": 1,
    "disagree": 2,
    "neutral": 3,
    "agree": 4,
    "strongly_agree": 5,
}

FREQUENCY_ANSWERS: Dict[str, int] = {
    "never": 1,
    "rarely": 2,
    "sometimes": 3,
    "often": 4,
    "always": 5,
}

LETTER_ANSWERS: Dict[str, int] = {"a": 1, "b": 2, "c": 3, "d": 4, "e": 5}

STRENGTH_STANINE = 7
CHALLENGE_STANINE = 3

# 360 rater roles, in reporting order
RATER_ROLES: Tuple[str, ...] = PLATFORM_RATER_ROLES
OBSERVER_ROLES: Tuple[str, ...] = ("manager", "peer", "direct_report", "external")

AGREEMENT_LABELS: List[Tuple[float, str]] = [
    (0.8, "excellent"),
    (0.6, "good"),
    (0.4, "moderate"),
    (0.0, "low"),
]

# Dark side
RISK_LEVELS: Tuple[str, ...] = ("low", "moderate", "high", "critical")
# Minimum extremity x stress-multiplier product for each band above "low"
RISK_BANDS: List[Tuple[float, str]] = [
    (2.0, "critical"),
    (1.5, "high"),
    (1.0, "moderate"),
]
STRESS_MIN = 1
STRESS_MAX = 10
MALADAPTIVE_STRESS_LEVEL = 7
# Stress level from which stress-management coaching joins the support structures
SUPPORT_STRESS_LEVEL = 7
# Mean self-vs-observer gap above which self-awareness training is recommended
AWARENESS_GAP_SUPPORT = 1.0
# Distance past an extreme threshold at which observed behavior counts as significant
SIGNIFICANT_EXTREMITY = 0.2

# Executive profile. Keys "emotional_stability" means the reversed neuroticism score.
LEADERSHIP_STYLE_WEIGHTS: Dict[str, Dict[str, float]] = {
    "transformational": {"openness": 0.35, "extraversion": 0.35, "emotional_stability": 0.30},
    "transactional": {"conscientiousness": 0.50, "agreeableness": 0.30, "extraversion": 0.20},
    "servant": {"agreeableness": 0.45, "conscientiousness": 0.30, "emotional_stability": 0.25},
    "authentic": {"openness": 0.30, "agreeableness": 0.35, "emotional_stability": 0.35},
    "adaptive": {"openness": 0.40, "extraversion": 0.30, "emotional_stability": 0.30},
}

# Negative weights apply to the reversed trait score.
INFLUENCE_TACTIC_WEIGHTS: Dict[str, Dict[str, float]] = {
    "inspirational_appeals": {"extraversion": 0.9, "openness": 0.7, "agreeableness": 0.55},
    "rational_persuasion": {"conscientiousness": 0.85, "openness": 0.55},
    "consultation": {"agreeableness": 0.9, "extraversion": 0.65},
    "ingratiation": {"agreeableness": 0.75, "extraversion": 0.6},
    "exchange": {"conscientiousness": 0.6, "extraversion": 0.5},
    "personal_appeals": {"agreeableness": 0.7, "extraversion": 0.8},
    "coalition": {"extraversion": 0.75, "agreeableness": 0.85},
    "legitimating": {"conscientiousness": 0.8, "agreeableness": 0.4},
    "pressure": {"extraversion": 0.7, "agreeableness": -0.4, "conscientiousness": 0.65},
}

TEAM_OUTCOME_WEIGHTS: Dict[str, Dict[str, float]] = {
    "engagement": {"extraversion": 0.30, "agreeableness": 0.35, "emotional_stability": 0.35},
    "innovation": {"openness": 0.50, "extraversion": 0.25, "emotional_stability": 0.25},
    "performance": {"conscientiousness": 0.45, "extraversion": 0.30, "emotional_stability": 0.25},
    "cohesion": {"agreeableness": 0.40, "emotional_stability": 0.35, "extraversion": 0.25},
}

RESILIENCE_WEIGHTS: Dict[str, float] = {
    "emotional_stability": 0.45,
    "conscientiousness": 0.30,
    "openness": 0.15,
    "extraversion": 0.10,
}

COPING_STRATEGIES: Dict[str, str] = {
    "conscientiousness": "Structured problem-solving",
    "extraversion": "Social support seeking",
    "openness": "Creative reframing",
    "emotional_stability": "Emotional regulation",
    "agreeableness": "Collaborative solutions",
}
COPING_TRAIT_THRESHOLD = 3.5

# Organizational culture profiles on a 0-1 normalized trait scale
CULTURE_PROFILES: Dict[str, Dict[str, float]] = {
    "adaptive": {
        "openness": 0.8,
        "conscientiousness": 0.6,
        "extraversion": 0.7,
        "agreeableness": 0.7,
        "neuroticism": 0.3,
    },
    "collaborative": {
        "openness": 0.6,
        "conscientiousness": 0.6,
        "extraversion": 0.7,
        "agreeableness": 0.9,
        "neuroticism": 0.3,
    },
    "innovation": {
        "openness": 0.9,
        "conscientiousness": 0.5,
        "extraversion": 0.7,
        "agreeableness": 0.6,
        "neuroticism": 0.4,
    },
    "performance": {
        "openness": 0.5,
        "conscientiousness": 0.9,
        "extraversion": 0.6,
        "agreeableness": 0.5,
        "neuroticism": 0.3,
    },
}

ORG_HEALTH_WEIGHTS: Dict[str, Dict[str, float]] = {
    "psychological_safety": {"agreeableness": 0.40, "emotional_stability": 0.35, "openness": 0.25},
    "innovation_climate": {"openness": 0.50, "extraversion": 0.30, "agreeableness": 0.20},
    "resilience": {"emotional_stability": 0.45, "openness": 0.30, "conscientiousness": 0.25},
    "performance_culture": {"conscientiousness": 0.45, "extraversion": 0.30, "emotional_stability": 0.25},
}

# Team composition role archetypes (raw scale targets)
TEAM_ROLE_PROFILES: Dict[str, Dict[str, float]] = {
    "leader": {"extraversion": 4.0, "conscientiousness": 4.0, "openness": 3.5, "neuroticism": 2.0},
    "analyst": {"conscientiousness": 4.5, "openness": 4.0, "extraversion": 2.5},
    "creative": {"openness": 4.5, "extraversion": 3.5, "conscientiousness": 3.0},
}

FIT_ALIGNMENT_WARNING = 0.6
FIT_COMPLEMENTARY_WEIGHT = 0.4
