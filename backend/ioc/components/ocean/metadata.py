"""Single source of truth for OCEAN trait, facet and rater catalog payloads."""

from __future__ import annotations

from typing import Any, Dict

from ...platform.config import settings
from .rules import FACETS, OCEAN_NORMS, RATER_ROLES, RISK_LEVELS

OCEAN_TRAITS: Dict[str, Dict[str, str]] = {
    "openness": {
        "label": "Openness",
        "description": "Curiosity, imagination and receptiveness to new ideas and experiences.",
    },
    "conscientiousness": {
        "label": "Conscientiousness",
        "description": "Organization, dependability and goal-directed self-discipline.",
    },
    "extraversion": {
        "label": "Extraversion",
        "description": "Sociability, assertiveness and energy drawn from interaction.",
    },
    "agreeableness": {
        "label": "Agreeableness",
        "description": "Cooperation, trust and concern for others.",
    },
    "neuroticism": {
        "label": "Neuroticism",
        "description": "Tendency toward negative emotion and sensitivity to stress. Reversed as emotional stability.",
    },
}

RATER_ROLE_LABELS: Dict[str, str] = {
    "self": "Self",
    "manager": "Manager",
    "peer": "Peer",
    "direct_report": "Direct Report",
    "external": "External Stakeholder",
}


def _facet_label(name: str) -> str:
    return name.replace("_", " ").title()


def ocean_metadata_payload() -> Dict[str, Any]:
    policy = settings.scoring_policy
    rater_policy = settings.rater_policy
    thresholds = settings.dark_side_thresholds
    return {
        "traits": {
            trait: {
                **info,
                "facets": {facet: _facet_label(facet) for facet in FACETS[trait]},
                "norm": {"mean": OCEAN_NORMS[trait][0], "sd": OCEAN_NORMS[trait][1]},
            }
            for trait, info in OCEAN_TRAITS.items()
        },
        "rater_roles": {
            role: {"label": RATER_ROLE_LABELS[role], "weight": rater_policy.role_weights.get(role, 0.0)}
            for role in RATER_ROLES
        },
        "risk_levels": list(RISK_LEVELS),
        "policies": {
            "scale": {"min": policy.scale_min, "max": policy.scale_max},
            "secondary_weight_ratio": policy.secondary_weight_ratio,
            "min_facet_items": policy.min_facet_items,
            "unmapped_response_policy": policy.unmapped_response_policy,
            "rater_completion_threshold": rater_policy.completion_threshold,
            "single_observer_agreement": rater_policy.single_observer_agreement,
            "blind_spot_threshold": rater_policy.blind_spot_threshold,
            "dark_side": {
                "high_extreme": thresholds.high_extreme,
                "low_extreme": thresholds.low_extreme,
                "warning": thresholds.warning,
            },
        },
    }
