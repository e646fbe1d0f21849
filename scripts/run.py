# scripts/run.py
from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from allocprep.dataloader.config_loader import ConfigLoader
from allocprep.dataloader.entity_loader import EntityLoader
from allocprep.errors import AllocprepError, ConfigError, ExportError
from allocprep.export.bundle_export import export_status, write_bundle
from allocprep.metrics.logger import write_metrics
from allocprep.metrics.report_metrics import collect_report_metrics
from allocprep.rules.prioritization import resolve_weights
from allocprep.schemas.models import Config
from allocprep.validator import save_report, validate_entities


def _setup_logging() -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    INFO level with a simple console format, shared by every pipeline step.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="allocprep-run",
        description="Prepare allocator inputs: load → validate → metrics → export",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to config YAML (default: config/config.yaml)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: output_dir from config)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Export even when the validation report contains errors",
    )
    return parser.parse_args()


def _relative_to_config(config_path: Path, raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else config_path.parent / path


def _resolve_input(cfg: Config, config_path: Path, name: str) -> Path | None:
    """Input path relative to the config file's directory, or None if not configured."""
    raw = getattr(cfg.inputs, name)
    if not raw:
        return None
    return _relative_to_config(config_path, raw)


def run_pipeline(
    config_path: Path, output_dir: Path | None = None, *, force: bool = False
) -> dict[str, Any]:
    """
    @brief
    Executes the full preparation pipeline.

    @details
    Performs sequential steps:
    (1) Load configuration and the configured entity sheets.
    (2) Validate the three collections and persist the report.
    (3) Collect report metrics.
    (4) Export the cleaned bundle when the report allows it.
    Sheets absent from the configuration are treated as empty. Relative
    input and output paths in the configuration resolve against the
    directory of the config file; an explicit `output_dir` argument is
    used as given.

    @returns
        Dictionary with the export status, report totals, and artifact paths.

    @raises
        AllocprepError
            On configuration or data failures. A blocked export is not an
            exception here; it is reported through `exported=False`.
    """
    t0 = time.perf_counter()

    # (1) Configuration and inputs
    logging.info("Loading config: %s", config_path)
    cfg = ConfigLoader().load(config_path)
    out_dir = output_dir or _relative_to_config(config_path, cfg.output_dir or "data/output")
    out_dir.mkdir(parents=True, exist_ok=True)

    loader = EntityLoader()
    sheets = {
        "clients": loader.load_clients,
        "workers": loader.load_workers,
        "tasks": loader.load_tasks,
    }
    loaded: dict[str, list[Any]] = {}
    for name, load in sheets.items():
        path = _resolve_input(cfg, config_path, name)
        if path is None:
            logging.warning("No %s sheet configured; treating as empty", name)
            loaded[name] = []
            continue
        logging.info("Loading %s: %s", name, path)
        loaded[name] = load(path).entities

    if not any(loaded.values()):
        raise ConfigError(
            message="No input sheets configured or all sheets are empty",
            source="scripts.run",
            suggested_action="Set inputs.clients / inputs.workers / inputs.tasks in config.yaml.",
        )

    clients, workers, tasks = loaded["clients"], loaded["workers"], loaded["tasks"]

    # (2) Validation
    logging.info("Validating…")
    summary = validate_entities(clients, workers, tasks)
    report_path: Path | None = None
    if cfg.export.write_report:
        report_path = save_report(summary, out_dir=out_dir)

    # (3) Metrics
    metrics_path: Path | None = None
    if cfg.export.write_metrics:
        metrics = collect_report_metrics(summary, clients, workers, tasks)
        metrics_path = write_metrics(metrics, out_dir=out_dir)

    # (4) Export
    weights = resolve_weights(cfg)
    status = export_status(summary, len(clients) + len(workers) + len(tasks))
    bundle: dict[str, Path] = {}
    try:
        bundle = write_bundle(
            clients,
            workers,
            tasks,
            cfg.rules,
            weights,
            summary,
            out_dir / "bundle",
            block_on_errors=cfg.export.block_on_errors and not force,
        )
    except ExportError as e:
        logging.warning(str(e))

    logging.info("Pipeline finished in %.2f s", time.perf_counter() - t0)

    return {
        "exported": bool(bundle),
        "status": status.status,
        "total_errors": summary.total_errors,
        "total_warnings": summary.total_warnings,
        "total_info": summary.total_info,
        "artifacts": {
            "validation_report": report_path,
            "metrics": metrics_path,
            **bundle,
        },
    }


def main() -> int:
    """
    @brief
    CLI entry point.

    @details
    Exit codes:
      0 – bundle exported
      1 – controlled failure (config/data) or export blocked by errors
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args()

    config_path = Path(args.config)
    output_dir = Path(args.output) if args.output else None

    try:
        result = run_pipeline(config_path, output_dir, force=args.force)
        logging.info(
            "Report: errors=%d, warnings=%d, info=%d (status=%s)",
            result["total_errors"],
            result["total_warnings"],
            result["total_info"],
            result["status"],
        )
        return 0 if result["exported"] else 1

    except AllocprepError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
