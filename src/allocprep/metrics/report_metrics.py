# src/allocprep/metrics/report_metrics.py
from __future__ import annotations

import json
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from allocprep.errors import DataError
from allocprep.schemas.models import Client, Task, ValidationSummary, Worker

_ISSUE_COLUMNS = ["severity", "entity", "entity_id", "field", "row"]
SEVERITIES = ("error", "warning", "info")
ENTITIES = ("client", "worker", "task")


def collect_report_metrics(
    summary: ValidationSummary,
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
) -> dict[str, Any]:
    """
    @brief
    Builds a JSON-serializable overview of a validation run.

    @details
    Aggregates the report entries by severity, by entity kind × severity and
    by field, counts distinct affected records, and records whether the
    bundle is export-blocked (any error). Counts are zero-filled so every
    severity/entity key is always present.
    """
    if not isinstance(summary, ValidationSummary):
        raise DataError(
            "summary must be a ValidationSummary",
            source="metrics.collect_report_metrics",
            suggested_action="Pass the value returned by ValidationEngine.validate_all().",
        )

    # (1) Flatten the three buckets into one frame
    df = _issues_dataframe(summary)

    # (2) Record counts per sheet
    records = {"client": len(clients), "worker": len(workers), "task": len(tasks)}

    # (3) Aggregations
    metrics = {
        "timestamp": _utc_now_iso(),
        "records": records,
        "total_records": int(sum(records.values())),
        "issues_by_severity": _count_by_severity(df),
        "issues_by_entity": _count_by_entity(df),
        "issues_by_field": _count_by_field(df),
        "affected_records": _affected_records(df),
        "export_blocked": bool(summary.total_errors > 0),
    }

    # (4) Integrity of the payload
    _assert_no_nans(metrics)
    json.dumps(metrics, ensure_ascii=False)
    return metrics


# ----------------- internal -----------------


def _issues_dataframe(summary: ValidationSummary) -> pd.DataFrame:
    rows = [
        issue.model_dump(include=set(_ISSUE_COLUMNS))
        for issue in (*summary.errors, *summary.warnings, *summary.info)
    ]
    return pd.DataFrame(rows, columns=_ISSUE_COLUMNS)


def _count_by_severity(df: pd.DataFrame) -> dict[str, int]:
    counts = df["severity"].value_counts()
    return {sev: int(counts.get(sev, 0)) for sev in SEVERITIES}


def _count_by_entity(df: pd.DataFrame) -> dict[str, dict[str, int]]:
    """entity → severity → count, zero-filled."""
    if df.empty:
        return {entity: {sev: 0 for sev in SEVERITIES} for entity in ENTITIES}
    table = (
        pd.crosstab(df["entity"], df["severity"])
        .reindex(index=list(ENTITIES), columns=list(SEVERITIES), fill_value=0)
        .fillna(0)
    )
    return {
        entity: {sev: int(table.at[entity, sev]) for sev in SEVERITIES} for entity in ENTITIES
    }


def _count_by_field(df: pd.DataFrame) -> dict[str, int]:
    """Issue count per column name, most frequent first (ties alphabetical)."""
    fields = df["field"].dropna()
    if fields.empty:
        return {}
    counts = fields.value_counts()
    ordered = sorted(counts.items(), key=lambda kv: (-int(kv[1]), str(kv[0])))
    return {str(name): int(n) for name, n in ordered}


def _affected_records(df: pd.DataFrame) -> dict[str, int]:
    """Distinct entity ids with at least one entry, per entity kind."""
    if df.empty:
        return {entity: 0 for entity in ENTITIES}
    distinct = df.groupby("entity")["entity_id"].nunique()
    return {entity: int(distinct.get(entity, 0)) for entity in ENTITIES}


def _assert_no_nans(obj: Any) -> None:
    """
    @brief
    Recursively ensures no NaN or Inf values are present.

    @raises
        DataError if invalid numeric values are found.
    """
    if isinstance(obj, dict):
        for v in obj.values():
            _assert_no_nans(v)
    elif isinstance(obj, (list, tuple)):
        for v in obj:
            _assert_no_nans(v)
    elif isinstance(obj, float) and not math.isfinite(obj):
        raise DataError(
            "metrics contain NaN/Inf",
            source="metrics.collect_report_metrics",
            suggested_action="Check aggregation inputs for missing values.",
        )


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


__all__ = ["collect_report_metrics"]
