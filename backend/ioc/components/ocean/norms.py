"""Raw score <-> percentile/stanine conversion against a fixed normative table."""

from __future__ import annotations

from statistics import NormalDist
from typing import Dict, Tuple

from .rules import (
    OCEAN_NORMS,
    PERCENTILE_CEILING,
    PERCENTILE_FLOOR,
    STANINE_UPPER_BOUNDS,
    TRAITS,
)
from .schemas import TraitVector, resolve_trait


class NormTable:
    """Parametric normal approximation of the population score distribution."""

    def __init__(self, norms: Dict[str, Tuple[float, float]] | None = None):
        table = dict(norms or OCEAN_NORMS)
        missing = [trait for trait in TRAITS if trait not in table]
        if missing:
            raise ValueError(f"Normative table is missing traits: {missing}")
        self._dists: Dict[str, NormalDist] = {}
        for trait, (mean, sd) in table.items():
            if sd <= 0:
                raise ValueError(f"Standard deviation for {trait} must be positive")
            self._dists[resolve_trait(trait)] = NormalDist(mu=float(mean), sigma=float(sd))

    def percentile(self, trait: str, raw: float) -> int:
        value = round(self._dists[resolve_trait(trait)].cdf(raw) * 100)
        return int(min(PERCENTILE_CEILING, max(PERCENTILE_FLOOR, value)))

    def raw_for_percentile(self, trait: str, percentile: float) -> float:
        clamped = min(PERCENTILE_CEILING, max(PERCENTILE_FLOOR, percentile))
        return self._dists[resolve_trait(trait)].inv_cdf(clamped / 100.0)

    def percentiles(self, raw: Dict[str, float]) -> Dict[str, int]:
        return {trait: self.percentile(trait, score) for trait, score in raw.items()}

    def stanines(self, raw: Dict[str, float]) -> Dict[str, int]:
        return {trait: stanine_for_percentile(self.percentile(trait, score)) for trait, score in raw.items()}

    def from_percentiles(self, percentiles: Dict[str, float]) -> TraitVector:
        return TraitVector(
            **{resolve_trait(trait): self.raw_for_percentile(trait, pct) for trait, pct in percentiles.items()}
        )


def stanine_for_percentile(percentile: float) -> int:
    for index, upper in enumerate(STANINE_UPPER_BOUNDS):
        if percentile < upper:
            return index + 1
    return 9


DEFAULT_NORMS = NormTable()
