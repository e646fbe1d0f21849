from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from allocprep.schemas.models import Client, Task, Worker

EntityT = TypeVar("EntityT", Client, Worker, Task)


@dataclass
class ConversionResult(Generic[EntityT]):
    """
    Typed entities produced from raw sheet rows.

    Fields:
        entities: One entity per input row, in input order.
        notes: Per-row remarks about defaulted fields. Each item contains
               kind, row (1-based), field, message and the raw value.
    """

    entities: list[EntityT] = field(default_factory=list)
    notes: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class LoadResult(Generic[EntityT]):
    """
    Structured result of loading one entity sheet.

    Fields:
        entity: "client" | "worker" | "task".
        entities: Typed records ready for the validation engine.
        notes: Row-level conversion remarks (defaults applied); never fatal.
        total_rows: Number of data rows observed in the CSV (excludes header).
    """

    entity: str
    entities: list[EntityT] = field(default_factory=list)
    notes: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
