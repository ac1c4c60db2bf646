from __future__ import annotations


PRIMARY_SONNET_MODEL = "claude-3-5-sonnet-latest"
SNAPSHOT_SONNET_MODEL = "claude-3-5-sonnet-20241022"
LEGACY_SONNET_MODEL = "claude-3-5-sonnet-20240620"

PRIMARY_HAIKU_MODEL = "claude-3-5-haiku-latest"
SNAPSHOT_HAIKU_MODEL = "claude-3-5-haiku-20241022"
LEGACY_HAIKU_MODEL = "claude-3-haiku-20240307"

MODEL_FAMILIES: tuple[tuple[str, ...], ...] = (
    (PRIMARY_SONNET_MODEL, SNAPSHOT_SONNET_MODEL, LEGACY_SONNET_MODEL),
    (PRIMARY_HAIKU_MODEL, SNAPSHOT_HAIKU_MODEL, LEGACY_HAIKU_MODEL),
)


def candidate_models_for(model: str | None) -> list[str]:
    """Return a deterministic fallback chain for known model aliases, requested model first."""
    resolved = (model or "").strip()
    if not resolved:
        resolved = PRIMARY_SONNET_MODEL

    candidates: list[str] = []

    def _add(value: str) -> None:
        cleaned = (value or "").strip()
        if cleaned and cleaned not in candidates:
            candidates.append(cleaned)

    _add(resolved)

    lower = resolved.lower()
    for family in MODEL_FAMILIES:
        if lower in family:
            for member in family:
                _add(member)

    return candidates


def fallback_models_for(model: str | None) -> list[str]:
    return candidate_models_for(model)[1:]


def is_model_not_found_error(exc: Exception) -> bool:
    text = str(exc or "").lower()
    if not text:
        return False
    return (
        "not_found_error" in text
        or ("model" in text and "not found" in text)
        or ("error code: 404" in text and "model" in text)
    )
