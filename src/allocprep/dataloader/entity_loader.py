from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from allocprep.dataloader.converters import (
    CLIENT_ALIASES,
    TASK_ALIASES,
    WORKER_ALIASES,
    convert_clients,
    convert_tasks,
    convert_workers,
    remap_headers,
)
from allocprep.dataloader.types import ConversionResult, LoadResult
from allocprep.errors import DataError
from allocprep.schemas.models import Client, Task, Worker

logger = logging.getLogger(__name__)


class EntityLoader:
    """
    CSV → LoadResult[Client | Worker | Task].

    Rules:
      - Format: UTF-8 CSV (BOM tolerated), delimiter=','
      - Headers are matched through the alias maps ("Client ID" → ClientID);
        the ID column is mandatory, every other column is optional
      - Cells are stripped of outer whitespace
      - Row-level problems (missing ID, non-integer number) are defaulted
        and reported as notes; they never stop the load. Data-quality
        checks belong to the validation engine, not to the loader.

    Fatal errors (raise DataError immediately):
      - file missing / unreadable
      - no header row
      - ID column absent
    """

    def load_clients(self, path: Path) -> LoadResult[Client]:
        return self._load(path, "client", "ClientID", CLIENT_ALIASES, convert_clients)

    def load_workers(self, path: Path) -> LoadResult[Worker]:
        return self._load(path, "worker", "WorkerID", WORKER_ALIASES, convert_workers)

    def load_tasks(self, path: Path) -> LoadResult[Task]:
        return self._load(path, "task", "TaskID", TASK_ALIASES, convert_tasks)

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _load(
        self,
        path: Path,
        entity: str,
        id_column: str,
        aliases: Mapping[str, str],
        convert: Callable[[Iterable[Mapping[str, Any]]], ConversionResult[Any]],
    ) -> LoadResult[Any]:
        rows = self._read_csv(path, id_column, aliases)
        converted = convert(rows)
        result = LoadResult(
            entity=entity,
            entities=converted.entities,
            notes=converted.notes,
            total_rows=len(rows),
        )
        self._report_summary(path, result)
        return result

    def _read_csv(
        self, path: Path, id_column: str, aliases: Mapping[str, str]
    ) -> list[dict[str, str]]:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="EntityLoader._read_csv",
                suggested_action="Pass a pathlib.Path pointing to the sheet CSV",
            )
        if not path.exists():
            raise DataError(
                message=f"Input CSV not found: {path}",
                source="EntityLoader._read_csv",
                suggested_action="Verify file path and ensure the CSV is present.",
            )

        try:
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f, delimiter=",")
                if reader.fieldnames is None:
                    raise DataError(
                        message=f"CSV has no header row: {path}",
                        source="EntityLoader._read_csv",
                        suggested_action="Ensure the first line contains column names.",
                    )
                header = remap_headers({name: None for name in reader.fieldnames}, aliases)
                self._validate_header(header, id_column)
                return [self._strip_row(r) for r in reader]
        except OSError as e:
            raise DataError(
                message=f"Unable to read CSV: {e}",
                source="EntityLoader._read_csv",
                suggested_action="Check file permissions and that the file is not locked.",
            ) from e
        except UnicodeDecodeError as e:
            raise DataError(
                message=f"CSV is not valid UTF-8: {path}",
                source="EntityLoader._read_csv",
                suggested_action="Re-save the sheet as UTF-8 CSV.",
            ) from e

    def _validate_header(self, header: Iterable[str], id_column: str) -> None:
        if id_column not in header:
            raise DataError(
                message=f"Invalid CSV header: missing required column: {id_column}",
                source="EntityLoader._validate_header",
                suggested_action=f"Add a {id_column} column to the sheet.",
            )

    def _strip_row(self, row: dict[str, str]) -> dict[str, str]:
        return {k: (v.strip() if isinstance(v, str) else v) for k, v in row.items()}

    def _report_summary(self, path: Path, result: LoadResult[Any]) -> None:
        if not result.notes:
            logger.info(
                "EntityLoader OK: %d %s row(s) from %s",
                len(result.entities),
                result.entity,
                path,
            )
            return

        # aggregate by kind
        counts: dict[str, int] = {}
        for note in result.notes:
            counts[note["kind"]] = counts.get(note["kind"], 0) + 1
        summary = ", ".join(f"{k}={v}" for k, v in counts.items())
        logger.warning(
            "EntityLoader: %d %s row(s) from %s with %d defaulted value(s) [%s]",
            len(result.entities),
            result.entity,
            path,
            len(result.notes),
            summary,
        )
