# src/allocprep/errors.py
from __future__ import annotations

from datetime import datetime, timezone


class AllocprepError(Exception):
    """Base class for all structured allocprep exceptions."""

    def __init__(
        self, message: str, source: str | None = None, suggested_action: str | None = None
    ):
        super().__init__(message)
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_type = self.__class__.__name__
        self.source = source or "unknown"
        self.suggested_action = suggested_action

    def __str__(self) -> str:
        base = f"[{self.error_type}] {self.args[0]}"
        if self.source:
            base += f" (source={self.source})"
        if self.suggested_action:
            base += f" | action: {self.suggested_action}"
        return base


class ConfigError(AllocprepError):
    """Invalid or missing configuration (config.yaml)"""


class DataError(AllocprepError):
    """Malformed or unreadable input files"""


class ValidationError(AllocprepError):
    """Validation engine misuse or report persistence failure"""


class ExportError(AllocprepError):
    """Bundle export refused or failed"""
