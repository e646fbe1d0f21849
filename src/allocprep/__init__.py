"""Validation and export of client/worker/task sheets for resource allocation."""

__version__ = "0.1.0"
