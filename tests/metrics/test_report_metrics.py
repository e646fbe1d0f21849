from __future__ import annotations

import json

import pytest

from allocprep.errors import DataError
from allocprep.metrics.report_metrics import collect_report_metrics
from allocprep.schemas.models import Client, Task, ValidationIssue, ValidationSummary, Worker


def _issue(severity, entity, entity_id, field):
    return ValidationIssue(
        severity=severity, message="m", entity=entity, entity_id=entity_id, field=field, row=1
    )


@pytest.fixture()
def records():
    clients = [Client(ClientID="C1"), Client(ClientID="C2")]
    workers = [Worker(WorkerID="W1")]
    tasks = [Task(TaskID="T1"), Task(TaskID="T2"), Task(TaskID="T3")]
    return clients, workers, tasks


def test_empty_report_metrics_are_zero_filled(records):
    """
    @brief
    A clean run still reports every severity and entity key.
    """
    # --- Act ---
    m = collect_report_metrics(ValidationSummary(), *records)

    # --- Assert ---
    assert m["records"] == {"client": 2, "worker": 1, "task": 3}
    assert m["total_records"] == 6
    assert m["issues_by_severity"] == {"error": 0, "warning": 0, "info": 0}
    assert m["issues_by_entity"]["worker"] == {"error": 0, "warning": 0, "info": 0}
    assert m["issues_by_field"] == {}
    assert m["affected_records"] == {"client": 0, "worker": 0, "task": 0}
    assert m["export_blocked"] is False
    assert isinstance(m["timestamp"], str)


def test_metrics_aggregate_report_entries(records):
    # --- Arrange ---
    summary = ValidationSummary(
        errors=[
            _issue("error", "client", "C1", "PriorityLevel"),
            _issue("error", "client", "C1", "AttributesJSON"),
            _issue("error", "task", "T2", "Duration"),
        ],
        warnings=[_issue("warning", "task", "T3", "PreferredPhases")],
        info=[_issue("info", "task", "T2", "Duration")],
    )

    # --- Act ---
    m = collect_report_metrics(summary, *records)

    # --- Assert ---
    assert m["issues_by_severity"] == {"error": 3, "warning": 1, "info": 1}
    assert m["issues_by_entity"] == {
        "client": {"error": 2, "warning": 0, "info": 0},
        "worker": {"error": 0, "warning": 0, "info": 0},
        "task": {"error": 1, "warning": 1, "info": 1},
    }
    assert list(m["issues_by_field"].items()) == [
        ("Duration", 2),
        ("AttributesJSON", 1),
        ("PreferredPhases", 1),
        ("PriorityLevel", 1),
    ]
    assert m["affected_records"] == {"client": 1, "worker": 0, "task": 2}
    assert m["export_blocked"] is True
    json.dumps(m)


def test_metrics_values_are_plain_python_types(records):
    summary = ValidationSummary(warnings=[_issue("warning", "worker", "W1", "MaxLoadPerPhase")])

    m = collect_report_metrics(summary, *records)

    assert type(m["issues_by_severity"]["warning"]) is int
    assert type(m["affected_records"]["worker"]) is int
    assert type(m["issues_by_entity"]["worker"]["warning"]) is int


def test_non_summary_input_raises(records):
    with pytest.raises(DataError) as e:
        collect_report_metrics({"errors": []}, *records)
    assert "ValidationSummary" in str(e.value)
