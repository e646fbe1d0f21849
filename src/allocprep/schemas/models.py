"""
@brief
Pydantic data models for the allocprep project.

@details
Defines the canonical model types:
    - Client, Worker, Task: typed spreadsheet records (one per input row)
    - ValidationIssue, ValidationSummary: the severity-tiered validation report
    - BusinessRule, PrioritizationWeights: user-defined data carried into export
    - Config: runtime configuration (from config.yaml)

Entity attributes are snake_case; every field is aliased to its spreadsheet
column name (ClientID, PriorityLevel, ...) and can be populated by either.
Entity models carry no range validators: out-of-range values must reach the
validation engine and be reported there, not rejected at construction.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

Severity = Literal["error", "warning", "info"]
EntityKind = Literal["client", "worker", "task"]
RuleType = Literal[
    "coRun",
    "slotRestriction",
    "loadLimit",
    "phaseWindow",
    "patternMatch",
    "precedenceOverride",
]


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration and data contracts.

    @details
    Forbids unknown fields and allows population by attribute name as well as
    by column alias. Foundation for all other allocprep models.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,  # Allow population by field name
        "use_enum_values": True,
    }


class _FrozenModel(_StrictBaseModel):
    """Immutable variant used for entity snapshots and report values."""

    model_config = {**_StrictBaseModel.model_config, "frozen": True}


# ------------------------------------------------------------
# Entities
# ------------------------------------------------------------
class Client(_FrozenModel):
    """
    @brief
    One client record from the clients sheet.

    @details
    RequestedTaskIDs is a comma-separated list of TaskID references;
    AttributesJSON is free-form JSON text kept as a string.
    """

    client_id: str = Field(..., alias="ClientID", description="Unique identifier")
    client_name: str = Field("", alias="ClientName", description="Display name")
    priority_level: int = Field(1, alias="PriorityLevel", description="Priority 1 (low) .. 5 (high)")
    requested_task_ids: str = Field(
        "", alias="RequestedTaskIDs", description="Comma-separated TaskID references"
    )
    group_tag: str = Field("", alias="GroupTag")
    attributes_json: str = Field("{}", alias="AttributesJSON", description="JSON text")


class Worker(_FrozenModel):
    """
    @brief
    One worker record from the workers sheet.

    @details
    AvailableSlots encodes the phases in which the worker is available,
    as a JSON array of positive integers (e.g. "[1,2,4]").
    """

    worker_id: str = Field(..., alias="WorkerID", description="Unique identifier")
    worker_name: str = Field("", alias="WorkerName")
    skills: str = Field("", alias="Skills", description="Comma-separated skill tags")
    available_slots: str = Field("[]", alias="AvailableSlots", description="JSON array of phases")
    max_load_per_phase: int = Field(1, alias="MaxLoadPerPhase", description="Tasks per phase (>=1)")
    worker_group: str = Field("", alias="WorkerGroup")
    qualification_level: int = Field(1, alias="QualificationLevel")


class Task(_FrozenModel):
    """
    @brief
    One task record from the tasks sheet.

    @details
    PreferredPhases is either a JSON array ("[1,2,3]") or a range ("1-3").
    Duration is measured in phases.
    """

    task_id: str = Field(..., alias="TaskID", description="Unique identifier")
    task_name: str = Field("", alias="TaskName")
    category: str = Field("", alias="Category")
    duration: int = Field(1, alias="Duration", description="Number of phases (>=1)")
    required_skills: str = Field(
        "", alias="RequiredSkills", description="Comma-separated skill tags"
    )
    preferred_phases: str = Field("[]", alias="PreferredPhases")
    max_concurrent: int = Field(
        1, alias="MaxConcurrent", description="Max workers assignable concurrently (>=1)"
    )


# ------------------------------------------------------------
# Validation report
# ------------------------------------------------------------
class ValidationIssue(_FrozenModel):
    """
    @brief
    Single entry of the validation report.

    @details
    `field` holds the spreadsheet column name (e.g. "PriorityLevel"),
    `row` the 1-based position of the record in its input collection.
    Duplicate-ID issues carry the duplicated value as entity_id.
    """

    severity: Severity
    message: str
    entity: EntityKind
    entity_id: str = Field(..., alias="entityId")
    field: str | None = None
    row: int | None = None
    suggestion: str | None = None


class ValidationSummary(_FrozenModel):
    """
    @brief
    Immutable, severity-bucketed validation report.

    @details
    Each bucket preserves the order in which checks emitted their entries.
    Totals are derived from the buckets, so they cannot drift from them.
    """

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    info: tuple[ValidationIssue, ...] = ()

    @computed_field(alias="totalErrors")
    @property
    def total_errors(self) -> int:
        return len(self.errors)

    @computed_field(alias="totalWarnings")
    @property
    def total_warnings(self) -> int:
        return len(self.warnings)

    @computed_field(alias="totalInfo")
    @property
    def total_info(self) -> int:
        return len(self.info)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def issues_for(self, entity: EntityKind, entity_id: str | None = None) -> list[ValidationIssue]:
        """All entries for one entity kind (optionally one id), errors first."""
        return [
            issue
            for issue in (*self.errors, *self.warnings, *self.info)
            if issue.entity == entity and (entity_id is None or issue.entity_id == entity_id)
        ]


# ------------------------------------------------------------
# Business rules and prioritization
# ------------------------------------------------------------
class BusinessRule(_StrictBaseModel):
    """
    @brief
    User-defined business rule carried alongside the data.

    @details
    Rules are stored and exported for the downstream allocator; they are not
    executed here. `config` is rule-type specific and kept free-form.
    """

    id: str = Field(..., description="Rule identifier (R1, R2, ...)")
    type: RuleType = Field(..., description="Rule kind")
    name: str = Field(..., description="Short human-readable name")
    description: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    priority: int = Field(1, ge=1, description="Lower value = applied first")
    enabled: bool = True


class PrioritizationWeights(_StrictBaseModel):
    """Relative importance of allocation criteria (normalized to sum 1)."""

    priority_level: float = Field(1 / 6, ge=0.0, alias="priorityLevel")
    fulfillment: float = Field(1 / 6, ge=0.0)
    fairness: float = Field(1 / 6, ge=0.0)
    workload: float = Field(1 / 6, ge=0.0)
    efficiency: float = Field(1 / 6, ge=0.0)
    cost: float = Field(1 / 6, ge=0.0)


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class InputsConfig(_StrictBaseModel):
    """Paths of the three entity sheets (UTF-8 CSV)."""

    clients: str | None = None
    workers: str | None = None
    tasks: str | None = None


class ExportConfig(_StrictBaseModel):
    """
    @brief
    Controls the export step.

    @details
    `block_on_errors` refuses to export a bundle whose report contains
    errors; warnings and info never block.
    """

    block_on_errors: bool = True
    write_report: bool = True
    write_metrics: bool = True


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.

    @details
    Combines input locations, export policy, business rules and the
    prioritization profile. `weights` takes precedence over `weights_preset`.
    """

    inputs: InputsConfig = Field(default_factory=InputsConfig)
    output_dir: str | None = "data/output"
    export: ExportConfig = Field(default_factory=ExportConfig)
    weights: PrioritizationWeights | None = None
    weights_preset: str | None = Field(
        None, description="maximize_fulfillment | fair_distribution | optimize_efficiency"
    )
    rules: list[BusinessRule] = Field(default_factory=list)


__all__ = [
    "Client",
    "Worker",
    "Task",
    "ValidationIssue",
    "ValidationSummary",
    "BusinessRule",
    "PrioritizationWeights",
    "Config",
]
