# src/allocprep/validator/engine.py
from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

from allocprep.errors import ValidationError
from allocprep.parsers.fields import (
    is_valid_json_text,
    matches_phase_range,
    parse_strict_positive_int_array,
    split_tokens,
)
from allocprep.schemas.models import (
    Client,
    EntityKind,
    Severity,
    Task,
    ValidationIssue,
    ValidationSummary,
    Worker,
)

logger = logging.getLogger(__name__)

PRIORITY_MIN = 1
PRIORITY_MAX = 5
HIGH_PRIORITY = 4
MANY_REQUESTED_TASKS = 5
MANY_SKILLS = 5
LONG_DURATION = 5


# ----------------------------
# AUXILIARY FUNCTIONS
# ----------------------------
def _issue(
    severity: Severity,
    message: str,
    entity: EntityKind,
    entity_id: str,
    field: str | None = None,
    row: int | None = None,
    suggestion: str | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        severity=severity,
        message=message,
        entity=entity,
        entity_id=entity_id,
        field=field,
        row=row,
        suggestion=suggestion,
    )


def _duplicate_occurrences(ids: Sequence[str]) -> Iterator[tuple[int, str]]:
    """
    @brief
    Yield (row, id) for every occurrence of an id already seen earlier.

    @details
    The first occurrence is considered canonical; each later one is a
    duplicate. Rows are 1-based input positions.
    """
    seen: set[str] = set()
    for row, entity_id in enumerate(ids, start=1):
        if entity_id in seen:
            yield row, entity_id
        seen.add(entity_id)


# ---------------------------
# ENGINE
# ----------------------------
class ValidationEngine:
    """
    @brief
    Multi-entity validator for client, worker and task sheets.

    @details
    Runs a fixed catalog of checks over an immutable snapshot of the three
    collections and returns a severity-tiered ValidationSummary:
      - errors: hard invariant violations (block export)
      - warnings: usable but suspicious data
      - info: advisory observations

    Data problems never raise; they become report entries. The only
    exception is ValidationError for a missing collection, which is a
    programming error. The engine holds no mutable state, so validate_all()
    returns an identical report on every call.
    """

    def __init__(
        self,
        clients: Sequence[Client],
        workers: Sequence[Worker],
        tasks: Sequence[Task],
    ) -> None:
        """
        @brief
        Snapshot the three entity collections.

        @details
        Input order is preserved and defines the 1-based row numbers used in
        the report.

        @raises
            ValidationError
                If any collection is None.
        """
        missing = [
            name
            for name, value in (("clients", clients), ("workers", workers), ("tasks", tasks))
            if value is None
        ]
        if missing:
            raise ValidationError(
                message=f"ValidationEngine requires all collections; missing: {', '.join(missing)}",
                source="ValidationEngine.__init__",
                suggested_action="Pass an empty list for sheets that were not uploaded.",
            )

        self.clients: tuple[Client, ...] = tuple(clients)
        self.workers: tuple[Worker, ...] = tuple(workers)
        self.tasks: tuple[Task, ...] = tuple(tasks)

    # ---------- Public API ----------
    def validate_all(self) -> ValidationSummary:
        """
        @brief
        Run every check and assemble the report.

        @details
        Order is fixed: four error passes, four warning passes, three info
        passes. Every check runs to completion; there is no short-circuit.

        @returns
            A new immutable ValidationSummary.
        """
        # (1) Hard invariant violations
        errors = [
            *self._client_errors(),
            *self._worker_errors(),
            *self._task_errors(),
            *self._cross_reference_errors(),
        ]

        # (2) Soft quality issues
        warnings = [
            *self._client_warnings(),
            *self._worker_warnings(),
            *self._task_warnings(),
            *self._cross_reference_warnings(),
        ]
        logger.debug("Warning passes: %d issue(s)", len(warnings))

        # (3) Advisory observations
        info = [
            *self._client_info(),
            *self._worker_info(),
            *self._task_info(),
        ]
        logger.debug("Info passes: %d issue(s)", len(info))

        summary = ValidationSummary(errors=errors, warnings=warnings, info=info)
        logger.info(
            "Validation finished: %d client(s), %d worker(s), %d task(s) → "
            "errors=%d, warnings=%d, info=%d",
            len(self.clients),
            len(self.workers),
            len(self.tasks),
            summary.total_errors,
            summary.total_warnings,
            summary.total_info,
        )
        return summary

    # ---------- Error passes ----------
    def _client_errors(self) -> list[ValidationIssue]:
        """Duplicate ClientID, PriorityLevel outside 1..5, invalid AttributesJSON."""
        out: list[ValidationIssue] = []

        for row, cid in _duplicate_occurrences([c.client_id for c in self.clients]):
            out.append(
                _issue(
                    "error",
                    f"Duplicate ClientID: {cid}",
                    "client",
                    cid,
                    field="ClientID",
                    row=row,
                    suggestion="Use unique ClientID",
                )
            )

        for row, c in enumerate(self.clients, start=1):
            if not PRIORITY_MIN <= c.priority_level <= PRIORITY_MAX:
                out.append(
                    _issue(
                        "error",
                        f"PriorityLevel must be {PRIORITY_MIN}-{PRIORITY_MAX} "
                        f"(got {c.priority_level})",
                        "client",
                        c.client_id,
                        field="PriorityLevel",
                        row=row,
                        suggestion=f"Set PriorityLevel between {PRIORITY_MIN} and {PRIORITY_MAX}",
                    )
                )
            if not is_valid_json_text(c.attributes_json):
                out.append(
                    _issue(
                        "error",
                        f"Invalid AttributesJSON: {c.attributes_json!r}",
                        "client",
                        c.client_id,
                        field="AttributesJSON",
                        row=row,
                        suggestion="Fix JSON format",
                    )
                )

        logger.debug("Client error pass: %d issue(s)", len(out))
        return out

    def _worker_errors(self) -> list[ValidationIssue]:
        """Duplicate WorkerID, malformed AvailableSlots, MaxLoadPerPhase < 1."""
        out: list[ValidationIssue] = []

        for row, wid in _duplicate_occurrences([w.worker_id for w in self.workers]):
            out.append(
                _issue(
                    "error",
                    f"Duplicate WorkerID: {wid}",
                    "worker",
                    wid,
                    field="WorkerID",
                    row=row,
                    suggestion="Use unique WorkerID",
                )
            )

        for row, w in enumerate(self.workers, start=1):
            # Strict parse: any non-phase element invalidates the whole field
            if parse_strict_positive_int_array(w.available_slots) is None:
                out.append(
                    _issue(
                        "error",
                        f"Invalid AvailableSlots: {w.available_slots!r}",
                        "worker",
                        w.worker_id,
                        field="AvailableSlots",
                        row=row,
                        suggestion="Use valid JSON array of phase numbers >= 1, e.g. [1,2,3]",
                    )
                )
            if w.max_load_per_phase < 1:
                out.append(
                    _issue(
                        "error",
                        f"MaxLoadPerPhase must be >= 1 (got {w.max_load_per_phase})",
                        "worker",
                        w.worker_id,
                        field="MaxLoadPerPhase",
                        row=row,
                        suggestion="Set MaxLoadPerPhase >= 1",
                    )
                )

        logger.debug("Worker error pass: %d issue(s)", len(out))
        return out

    def _task_errors(self) -> list[ValidationIssue]:
        """Duplicate TaskID, Duration < 1, MaxConcurrent < 1."""
        out: list[ValidationIssue] = []

        for row, tid in _duplicate_occurrences([t.task_id for t in self.tasks]):
            out.append(
                _issue(
                    "error",
                    f"Duplicate TaskID: {tid}",
                    "task",
                    tid,
                    field="TaskID",
                    row=row,
                    suggestion="Use unique TaskID",
                )
            )

        for row, t in enumerate(self.tasks, start=1):
            if t.duration < 1:
                out.append(
                    _issue(
                        "error",
                        f"Duration must be >= 1 (got {t.duration})",
                        "task",
                        t.task_id,
                        field="Duration",
                        row=row,
                        suggestion="Increase Duration",
                    )
                )
            if t.max_concurrent < 1:
                out.append(
                    _issue(
                        "error",
                        f"MaxConcurrent must be >= 1 (got {t.max_concurrent})",
                        "task",
                        t.task_id,
                        field="MaxConcurrent",
                        row=row,
                        suggestion="Increase MaxConcurrent",
                    )
                )

        logger.debug("Task error pass: %d issue(s)", len(out))
        return out

    def _cross_reference_errors(self) -> list[ValidationIssue]:
        """
        @brief
        Referential integrity between sheets.

        @details
        Every requested task id must name an existing TaskID (one error per
        unresolved reference, on the client row). Every required skill must
        be offered by at least one worker (one error per missing skill, on
        the task row).
        """
        out: list[ValidationIssue] = []
        task_ids = {t.task_id for t in self.tasks}
        worker_skills = {skill for w in self.workers for skill in split_tokens(w.skills)}

        # (1) Client → Task references
        for row, c in enumerate(self.clients, start=1):
            for tid in split_tokens(c.requested_task_ids):
                if tid not in task_ids:
                    out.append(
                        _issue(
                            "error",
                            f"Requested TaskID {tid} not found",
                            "client",
                            c.client_id,
                            field="RequestedTaskIDs",
                            row=row,
                            suggestion=f"Check task ID: {tid}",
                        )
                    )

        # (2) Task → Worker skill coverage
        for row, t in enumerate(self.tasks, start=1):
            for skill in split_tokens(t.required_skills):
                if skill not in worker_skills:
                    out.append(
                        _issue(
                            "error",
                            f"Skill {skill} missing in workers",
                            "task",
                            t.task_id,
                            field="RequiredSkills",
                            row=row,
                            suggestion=f"Add worker with skill: {skill}",
                        )
                    )

        logger.debug("Cross-reference error pass: %d issue(s)", len(out))
        return out

    # ---------- Warning passes ----------
    def _client_warnings(self) -> list[ValidationIssue]:
        return [
            _issue(
                "warning",
                "ClientName is empty",
                "client",
                c.client_id,
                field="ClientName",
                row=row,
                suggestion="Provide a client name",
            )
            for row, c in enumerate(self.clients, start=1)
            if not c.client_name.strip()
        ]

    def _worker_warnings(self) -> list[ValidationIssue]:
        """Fewer available slots than MaxLoadPerPhase (valid slot lists only)."""
        out: list[ValidationIssue] = []
        for row, w in enumerate(self.workers, start=1):
            slots = parse_strict_positive_int_array(w.available_slots)
            if slots is None:
                continue  # already reported by the error pass
            if len(slots) < w.max_load_per_phase:
                out.append(
                    _issue(
                        "warning",
                        f"Worker has fewer slots ({len(slots)}) than "
                        f"MaxLoadPerPhase ({w.max_load_per_phase})",
                        "worker",
                        w.worker_id,
                        field="MaxLoadPerPhase",
                        row=row,
                        suggestion="Adjust slot count or MaxLoadPerPhase",
                    )
                )
        return out

    def _task_warnings(self) -> list[ValidationIssue]:
        """
        @brief
        Flag PreferredPhases text that is neither JSON nor a "start-end" range.

        @details
        Comma lists ("1,2,3") are flagged too even though the normalizer
        accepts them.
        """
        out: list[ValidationIssue] = []
        for row, t in enumerate(self.tasks, start=1):
            raw = t.preferred_phases
            if not raw:
                continue
            if is_valid_json_text(raw) or matches_phase_range(raw):
                continue
            out.append(
                _issue(
                    "warning",
                    f"PreferredPhases format may be invalid: {raw!r}",
                    "task",
                    t.task_id,
                    field="PreferredPhases",
                    row=row,
                    suggestion='Use [1,2,3] or range "1-3"',
                )
            )
        return out

    def _cross_reference_warnings(self) -> list[ValidationIssue]:
        """
        @brief
        MaxConcurrent above the number of workers able to do the task.

        @details
        A worker qualifies when any required skill of the task occurs as a
        substring of the worker's Skills text. Blank segments are kept as
        empty tokens, which every worker matches: an empty RequiredSkills or
        a list such as "x,,y" counts every worker as qualified.
        """
        out: list[ValidationIssue] = []
        for row, t in enumerate(self.tasks, start=1):
            required = [skill.strip() for skill in t.required_skills.split(",")]
            qualified = sum(
                1 for w in self.workers if any(skill in w.skills for skill in required)
            )
            if t.max_concurrent > qualified:
                out.append(
                    _issue(
                        "warning",
                        f"MaxConcurrent {t.max_concurrent} > qualified workers ({qualified})",
                        "task",
                        t.task_id,
                        field="MaxConcurrent",
                        row=row,
                        suggestion="Reduce concurrency or hire more qualified workers",
                    )
                )
        return out

    # ---------- Info passes ----------
    def _client_info(self) -> list[ValidationIssue]:
        out: list[ValidationIssue] = []
        for row, c in enumerate(self.clients, start=1):
            count = len(split_tokens(c.requested_task_ids))
            if c.priority_level >= HIGH_PRIORITY and count > MANY_REQUESTED_TASKS:
                out.append(
                    _issue(
                        "info",
                        f"High-priority client with {count} tasks",
                        "client",
                        c.client_id,
                        field="RequestedTaskIDs",
                        row=row,
                        suggestion="Consider prioritizing tasks",
                    )
                )
        return out

    def _worker_info(self) -> list[ValidationIssue]:
        out: list[ValidationIssue] = []
        for row, w in enumerate(self.workers, start=1):
            count = len(split_tokens(w.skills))
            if count > MANY_SKILLS:
                out.append(
                    _issue(
                        "info",
                        f"Worker has {count} skills",
                        "worker",
                        w.worker_id,
                        field="Skills",
                        row=row,
                        suggestion="Consider specialization",
                    )
                )
        return out

    def _task_info(self) -> list[ValidationIssue]:
        return [
            _issue(
                "info",
                f"Long-duration task ({t.duration})",
                "task",
                t.task_id,
                field="Duration",
                row=row,
                suggestion="Break down long task if needed",
            )
            for row, t in enumerate(self.tasks, start=1)
            if t.duration > LONG_DURATION
        ]


# ----------------------------
# THIN FACADE
# ----------------------------
def save_report(
    summary: ValidationSummary,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> Path:
    """
    Writes the report atomically to disk (camelCase keys, as consumed by the UI).

    Args:
        summary: Validation report.
        out_dir: Target directory (defaults to 'data/output').
        filename: Target filename (default 'validation_report.json').

    Returns:
        Path to the written JSON file.
    """
    target_dir = out_dir or Path("data/output")
    final_path = target_dir / filename

    tmp_path = final_path.with_suffix(".tmp")

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(summary.model_dump(by_alias=True), f, indent=2, ensure_ascii=False)
        tmp_path.replace(final_path)
    except OSError as e:
        raise ValidationError(
            f"Failed to write validation report: {e}",
            source="validator.save_report",
            suggested_action="Check disk permissions and free space.",
        ) from e

    logger.info("Validation report saved: %s", final_path)
    return final_path


def validate_entities(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    *,
    write_report: bool = False,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> ValidationSummary:
    """
    @brief
    High-level convenience wrapper around ValidationEngine.

    @details
    Builds an engine over the given collections, runs the full catalog and
    optionally persists the report as JSON. Always returns the in-memory
    summary regardless of write mode.
    """
    summary = ValidationEngine(clients, workers, tasks).validate_all()
    if write_report:
        save_report(summary, out_dir=out_dir, filename=filename)
    return summary


__all__ = ["ValidationEngine", "save_report", "validate_entities"]
