# src/allocprep/rules/prioritization.py
from __future__ import annotations

from allocprep.errors import ConfigError
from allocprep.schemas.models import Config, PrioritizationWeights

CRITERIA: tuple[str, ...] = tuple(PrioritizationWeights.model_fields)

PRESETS: dict[str, PrioritizationWeights] = {
    "maximize_fulfillment": PrioritizationWeights(
        priority_level=0.4, fulfillment=0.3, fairness=0.2, workload=0.1, efficiency=0.0, cost=0.0
    ),
    "fair_distribution": PrioritizationWeights(
        priority_level=0.2, fulfillment=0.2, fairness=0.4, workload=0.2, efficiency=0.0, cost=0.0
    ),
    "optimize_efficiency": PrioritizationWeights(
        priority_level=0.1, fulfillment=0.1, fairness=0.1, workload=0.1, efficiency=0.6, cost=0.0
    ),
}


def equal_weights() -> PrioritizationWeights:
    share = 1.0 / len(CRITERIA)
    return PrioritizationWeights(**{name: share for name in CRITERIA})


def normalize_weights(weights: PrioritizationWeights) -> PrioritizationWeights:
    """
    @brief
    Scale weights so they sum to 1.

    @details
    An all-zero profile is returned unchanged (nothing to scale).
    """
    values = weights.model_dump()
    total = sum(values.values())
    if total <= 0:
        return weights.model_copy()
    return PrioritizationWeights(**{name: value / total for name, value in values.items()})


def update_weight(
    weights: PrioritizationWeights, criterion: str, value: float
) -> PrioritizationWeights:
    """Set one criterion, then renormalize the whole profile."""
    if criterion not in CRITERIA:
        raise ConfigError(
            message=f"Unknown prioritization criterion: {criterion}",
            source="prioritization.update_weight",
            suggested_action=f"Use one of: {', '.join(CRITERIA)}",
        )
    values = weights.model_dump()
    values[criterion] = value
    return normalize_weights(PrioritizationWeights(**values))


def resolve_weights(cfg: Config) -> PrioritizationWeights:
    """
    @brief
    Effective prioritization profile for a run.

    @details
    Explicit `weights` win over `weights_preset`; with neither, every
    criterion gets an equal share. The result is always normalized.

    @raises
        ConfigError
            Unknown preset name.
    """
    if cfg.weights is not None:
        return normalize_weights(cfg.weights)
    if cfg.weights_preset is not None:
        preset = PRESETS.get(cfg.weights_preset)
        if preset is None:
            raise ConfigError(
                message=f"Unknown weights preset: {cfg.weights_preset}",
                source="prioritization.resolve_weights",
                suggested_action=f"Use one of: {', '.join(PRESETS)}",
            )
        return normalize_weights(preset)
    return equal_weights()


__all__ = [
    "CRITERIA",
    "PRESETS",
    "equal_weights",
    "normalize_weights",
    "update_weight",
    "resolve_weights",
]
