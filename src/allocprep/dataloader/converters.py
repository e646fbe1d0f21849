# src/allocprep/dataloader/converters.py
"""
@brief
Raw sheet rows → typed Client / Worker / Task records.

@details
Explicit parse-or-default step between spreadsheet decoding and the
validation engine. Header names are normalized through alias maps
("client id", "Client ID" → ClientID); each cell is then parsed according
to its column kind or replaced by a default:

    id    missing → "<prefix><row>"           (C1, W2, T3, ...)
    text  missing → "" (or the column's own default, e.g. "{}" / "[]")
    int   missing or unparseable → 1; parseable values are kept as-is,
          including 0 and negatives, so the engine can report them

Every substituted ID or integer produces a note; notes are informational
and never stop conversion.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from allocprep.dataloader.types import ConversionResult
from allocprep.parsers.fields import parse_leading_int
from allocprep.schemas.models import Client, Task, Worker

CLIENT_ALIASES: dict[str, str] = {
    "client id": "ClientID",
    "client name": "ClientName",
    "priority level": "PriorityLevel",
    "requested task ids": "RequestedTaskIDs",
    "group tag": "GroupTag",
    "attributes json": "AttributesJSON",
}

WORKER_ALIASES: dict[str, str] = {
    "worker id": "WorkerID",
    "worker name": "WorkerName",
    "skills": "Skills",
    "available slots": "AvailableSlots",
    "max load per phase": "MaxLoadPerPhase",
    "worker group": "WorkerGroup",
    "qualification level": "QualificationLevel",
}

TASK_ALIASES: dict[str, str] = {
    "task id": "TaskID",
    "task name": "TaskName",
    "category": "Category",
    "duration": "Duration",
    "required skills": "RequiredSkills",
    "preferred phases": "PreferredPhases",
    "max concurrent": "MaxConcurrent",
}

# column → (kind, default)
_CLIENT_COLUMNS: dict[str, tuple[str, Any]] = {
    "ClientID": ("id", "C"),
    "ClientName": ("text", ""),
    "PriorityLevel": ("int", 1),
    "RequestedTaskIDs": ("text", ""),
    "GroupTag": ("text", ""),
    "AttributesJSON": ("text", "{}"),
}

_WORKER_COLUMNS: dict[str, tuple[str, Any]] = {
    "WorkerID": ("id", "W"),
    "WorkerName": ("text", ""),
    "Skills": ("text", ""),
    "AvailableSlots": ("text", "[]"),
    "MaxLoadPerPhase": ("int", 1),
    "WorkerGroup": ("text", ""),
    "QualificationLevel": ("int", 1),
}

_TASK_COLUMNS: dict[str, tuple[str, Any]] = {
    "TaskID": ("id", "T"),
    "TaskName": ("text", ""),
    "Category": ("text", ""),
    "Duration": ("int", 1),
    "RequiredSkills": ("text", ""),
    "PreferredPhases": ("text", "[]"),
    "MaxConcurrent": ("int", 1),
}


def _alias_key(header: str) -> str:
    # "Client_ID", "client-id", " CLIENT ID " all become "client id"
    return " ".join(header.replace("_", " ").replace("-", " ").lower().split())


def remap_headers(row: Mapping[str, Any], alias_map: Mapping[str, str]) -> dict[str, Any]:
    """
    @brief
    Rename row keys to canonical column names.

    @details
    Keys already in canonical form (e.g. "ClientID") map to themselves;
    keys matching no alias are kept unchanged.
    """
    canonical = {_alias_key(c): c for c in alias_map.values()}
    canonical.update({_alias_key(k): v for k, v in alias_map.items()})
    # "ClientID" has no separator, so also match it with spaces removed
    compact = {key.replace(" ", ""): col for key, col in canonical.items()}

    remapped: dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue  # csv.DictReader puts overflow cells under None
        norm = _alias_key(str(key))
        remapped[canonical.get(norm) or compact.get(norm.replace(" ", ""), key)] = value
    return remapped


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _convert_rows(
    rows: Iterable[Mapping[str, Any]],
    alias_map: Mapping[str, str],
    columns: Mapping[str, tuple[str, Any]],
    model: type[Any],
    entity: str,
) -> ConversionResult[Any]:
    result: ConversionResult[Any] = ConversionResult()

    for row_no, raw in enumerate(rows, start=1):
        row = remap_headers(raw, alias_map)
        values: dict[str, Any] = {}

        for column, (kind, default) in columns.items():
            cell = row.get(column)

            if kind == "id":
                if _is_blank(cell):
                    values[column] = f"{default}{row_no}"
                    result.notes.append(
                        {
                            "kind": "missing_id",
                            "entity": entity,
                            "row": row_no,
                            "field": column,
                            "message": f"Missing {column}; assigned {values[column]}",
                            "value": cell,
                        }
                    )
                else:
                    values[column] = str(cell).strip()

            elif kind == "int":
                parsed = None if _is_blank(cell) else parse_leading_int(cell)
                if parsed is None:
                    values[column] = default
                    result.notes.append(
                        {
                            "kind": "defaulted_int",
                            "entity": entity,
                            "row": row_no,
                            "field": column,
                            "message": f"{column} missing or not an integer; defaulted to {default}",
                            "value": cell,
                        }
                    )
                else:
                    values[column] = parsed

            else:
                values[column] = default if _is_blank(cell) else str(cell)

        result.entities.append(model(**values))

    return result


def convert_clients(rows: Iterable[Mapping[str, Any]]) -> ConversionResult[Client]:
    return _convert_rows(rows, CLIENT_ALIASES, _CLIENT_COLUMNS, Client, "client")


def convert_workers(rows: Iterable[Mapping[str, Any]]) -> ConversionResult[Worker]:
    return _convert_rows(rows, WORKER_ALIASES, _WORKER_COLUMNS, Worker, "worker")


def convert_tasks(rows: Iterable[Mapping[str, Any]]) -> ConversionResult[Task]:
    return _convert_rows(rows, TASK_ALIASES, _TASK_COLUMNS, Task, "task")


__all__ = [
    "CLIENT_ALIASES",
    "WORKER_ALIASES",
    "TASK_ALIASES",
    "remap_headers",
    "convert_clients",
    "convert_workers",
    "convert_tasks",
]
