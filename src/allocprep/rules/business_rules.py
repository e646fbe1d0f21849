# src/allocprep/rules/business_rules.py
"""
@brief
Helpers for the user-defined business rules carried into the export bundle.

@details
Rules are not evaluated here; they are kept, ordered and handed to the
downstream allocator as-is.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from allocprep.schemas.models import BusinessRule, RuleType

RULE_TYPES: dict[str, dict[str, str]] = {
    "coRun": {"label": "Co-Run", "description": "Tasks that must run together"},
    "slotRestriction": {"label": "Slot Restriction", "description": "Restrict slots for groups"},
    "loadLimit": {"label": "Load Limit", "description": "Limit load per phase for groups"},
    "phaseWindow": {"label": "Phase Window", "description": "Restrict tasks to specific phases"},
    "patternMatch": {"label": "Pattern Match", "description": "Apply rules based on patterns"},
    "precedenceOverride": {
        "label": "Precedence Override",
        "description": "Override default precedence",
    },
}


def _rule_number(rule_id: str) -> int:
    digits = rule_id[1:] if rule_id[:1] in ("R", "r") else ""
    return int(digits) if digits.isdigit() else 0


def new_rule(
    existing: Sequence[BusinessRule],
    rule_type: RuleType,
    name: str,
    *,
    description: str = "",
    config: dict[str, Any] | None = None,
) -> BusinessRule:
    """
    @brief
    Create a rule appended after the existing ones.

    @details
    The id is "R<n>" with n one above the highest numeric id in use; the
    priority is one above the current maximum, so the new rule applies last.
    """
    next_id = max((_rule_number(r.id) for r in existing), default=0) + 1
    next_priority = max((r.priority for r in existing), default=0) + 1
    return BusinessRule(
        id=f"R{next_id}",
        type=rule_type,
        name=name,
        description=description or RULE_TYPES[rule_type]["description"],
        config=dict(config or {}),
        priority=next_priority,
    )


def active_rules(rules: Iterable[BusinessRule]) -> list[BusinessRule]:
    """Enabled rules ordered by priority (ties by id)."""
    return sorted((r for r in rules if r.enabled), key=lambda r: (r.priority, r.id))


__all__ = ["RULE_TYPES", "new_rule", "active_rules"]
