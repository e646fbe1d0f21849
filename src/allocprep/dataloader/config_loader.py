# src/allocprep/dataloader/config_loader.py
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from allocprep.errors import ConfigError
from allocprep.schemas.models import Config


class ConfigLoader:
    """
    @brief
    Reads and validates the runtime configuration (config.yaml).

    @details
    YAML is parsed with `yaml.safe_load`, checked for a top-level mapping,
    validated against the pydantic `Config` schema, and finally checked for
    cross-field consistency (unique business-rule ids). Every failure mode
    surfaces as a `ConfigError` with source and suggested action.
    """

    def load(self, path: Path) -> Config:
        """
        @brief
        Load and validate configuration from a YAML file.

        @returns
            Validated Config instance with defaults applied.

        @raises
            ConfigError
                File missing, malformed, or failing schema validation.
        """
        data = self._read_yaml(path)
        cfg = self._validate(data)
        self._check_rules(cfg)
        return cfg

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        # (1) Path type and existence
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to config.yaml.",
            )

        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure config.yaml exists and the path is correct.",
            )

        if path.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use .yaml or .yml extension for configuration files.",
            )

        # (2) Parse
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax/indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        # (3) Structure
        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source="ConfigLoader._read_yaml",
                suggested_action="Populate config.yaml with at least the inputs section.",
            )

        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure top-level YAML structure uses key: value mappings.",
            )

        return dict(data)

    def _validate(self, data: dict[str, Any]) -> Config:
        try:
            return Config(**data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check field names, types, and bounds in config.yaml. "
                    "Remove unknown keys (extra fields are forbidden)."
                ),
            ) from e

    def _check_rules(self, cfg: Config) -> None:
        seen: set[str] = set()
        for rule in cfg.rules:
            if rule.id in seen:
                raise ConfigError(
                    message=f"Duplicate business rule id: {rule.id}",
                    source="ConfigLoader._check_rules",
                    suggested_action="Give every rule in `rules` a unique id.",
                )
            seen.add(rule.id)


__all__ = ["ConfigLoader"]
