from __future__ import annotations

import csv
import io
import json
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from allocprep.errors import AllocprepError, ExportError
from allocprep.metrics.logger import atomic_write_text
from allocprep.parsers.fields import (
    normalize_preferred_phases,
    parse_json_array_of_positive_ints,
)
from allocprep.rules.business_rules import active_rules
from allocprep.schemas.models import (
    BusinessRule,
    Client,
    PrioritizationWeights,
    Task,
    ValidationSummary,
    Worker,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportStatus:
    """Readiness of a dataset for export, as shown next to the export button."""

    status: str  # no_data | has_errors | has_warnings | ready
    title: str
    description: str

    @property
    def exportable(self) -> bool:
        return self.status in ("has_warnings", "ready")


def export_status(summary: ValidationSummary, total_records: int) -> ExportStatus:
    """
    @brief
    Classify export readiness.

    @details
    No records → no_data; any error → has_errors (blocking); warnings only →
    has_warnings (exportable); otherwise ready.
    """
    if total_records <= 0:
        return ExportStatus("no_data", "No Data to Export", "Upload some data first before exporting.")
    if summary.total_errors > 0:
        return ExportStatus(
            "has_errors", "Validation Errors Found", "Fix validation errors before exporting."
        )
    if summary.total_warnings > 0:
        return ExportStatus(
            "has_warnings",
            "Ready to Export (with warnings)",
            "Data can be exported, but consider reviewing warnings.",
        )
    return ExportStatus("ready", "Ready to Export", "All data is validated and ready for export.")


# ----------------------------
# Cleaning
# ----------------------------
def _strip_strings(values: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.strip() if isinstance(v, str) else v) for k, v in values.items()}


def _phases_json(phases: list[int | float]) -> str:
    # non-finite values have no JSON literal; written as null
    values = [p if math.isfinite(p) else None for p in phases]
    return json.dumps(values, separators=(",", ":"))


def clean_client(client: Client) -> Client:
    values = _strip_strings(client.model_dump())
    values["requested_task_ids"] = ",".join(
        t.strip() for t in client.requested_task_ids.split(",") if t.strip()
    )
    return Client(**values)


def clean_worker(worker: Worker) -> Worker:
    """
    @brief
    Trimmed copy with AvailableSlots in canonical JSON form.

    @details
    Uses the lenient parse: elements that are not phase numbers are dropped.
    Unparseable slot text is kept verbatim.
    """
    values = _strip_strings(worker.model_dump())
    slots = parse_json_array_of_positive_ints(worker.available_slots)
    if slots is not None:
        values["available_slots"] = _phases_json(slots)
    values["skills"] = ",".join(s.strip() for s in worker.skills.split(",") if s.strip())
    return Worker(**values)


def clean_task(task: Task) -> Task:
    """Trimmed copy with PreferredPhases expanded to a JSON array."""
    values = _strip_strings(task.model_dump())
    values["preferred_phases"] = _phases_json(normalize_preferred_phases(task.preferred_phases))
    values["required_skills"] = ",".join(
        s.strip() for s in task.required_skills.split(",") if s.strip()
    )
    return Task(**values)


# ----------------------------
# Writers
# ----------------------------
def _entities_csv(rows: Sequence[Client | Worker | Task], model: type[Any]) -> str:
    header = [f.alias or name for name, f in model.model_fields.items()]
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=header, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row.model_dump(by_alias=True))
    return buf.getvalue()


def _json_text(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def write_bundle(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    rules: Sequence[BusinessRule],
    weights: PrioritizationWeights,
    summary: ValidationSummary,
    out_dir: Path,
    *,
    block_on_errors: bool = True,
) -> dict[str, Path]:
    """
    @brief
    Export the cleaned dataset together with rules, weights and the report.

    @details
    Files written (all atomically, UTF-8):
        clients.csv, workers.csv, tasks.csv  spreadsheet column headers
        rules.json                           enabled rules by priority
        weights.json                         prioritization profile
        validation_summary.json              report, camelCase keys

    @returns
        Mapping artifact name → written path.

    @raises
        ExportError
            No records, or report errors while `block_on_errors` is set,
            or a write failure.
    """
    total = len(clients) + len(workers) + len(tasks)
    status = export_status(summary, total)

    # (1) Gate on readiness
    if status.status == "no_data":
        raise ExportError(
            status.description,
            source="export.write_bundle",
            suggested_action="Load at least one sheet before exporting.",
        )
    if status.status == "has_errors" and block_on_errors:
        raise ExportError(
            f"Export blocked: {summary.total_errors} validation error(s)",
            source="export.write_bundle",
            suggested_action="Fix the errors listed in validation_report.json, or export with force.",
        )
    if status.status == "has_errors":
        logger.warning("Exporting despite %d validation error(s)", summary.total_errors)

    # (2) Build payloads
    payloads = {
        "clients": ("clients.csv", _entities_csv([clean_client(c) for c in clients], Client)),
        "workers": ("workers.csv", _entities_csv([clean_worker(w) for w in workers], Worker)),
        "tasks": ("tasks.csv", _entities_csv([clean_task(t) for t in tasks], Task)),
        "rules": (
            "rules.json",
            _json_text([r.model_dump(mode="json") for r in active_rules(rules)]),
        ),
        "weights": ("weights.json", _json_text(weights.model_dump(by_alias=True))),
        "validation_summary": (
            "validation_summary.json",
            _json_text(summary.model_dump(by_alias=True)),
        ),
    }

    # (3) Write
    out_dir = Path(out_dir)
    written: dict[str, Path] = {}
    for name, (filename, text) in payloads.items():
        target = out_dir / filename
        try:
            atomic_write_text(target, text)
        except AllocprepError as e:
            raise ExportError(
                f"Failed to write {filename}: {e.args[0]}",
                source="export.write_bundle",
                suggested_action="Check output directory permissions and disk space.",
            ) from e
        written[name] = target

    logger.info("Bundle exported to %s (%s)", out_dir, status.status)
    return written


__all__ = ["ExportStatus", "export_status", "clean_client", "clean_worker", "clean_task", "write_bundle"]
