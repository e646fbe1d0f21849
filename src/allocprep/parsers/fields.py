# src/allocprep/parsers/fields.py
"""
@brief
Pure parsers and normalizers for encoded spreadsheet fields.

@details
All helpers return a value instead of raising: JSON decoding failures are
contained here and surface as `None` / `False` / `[]`, so the validation
engine branches on results only.

JSON decoding is strict (equivalent to JSON.parse): the non-standard
constants NaN, Infinity and -Infinity accepted by `json.loads` are rejected.
Overflowing literals such as 1e400 still decode, to float infinity.

A "phase number" is any number (never a bool) with value >= 1, fractional
and infinite values included; integral floats are returned as int.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

_INVALID = object()

_PHASE_RANGE = re.compile(r"\d+-\d+", re.ASCII)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _decode(raw: Any) -> Any:
    """Decoded JSON value of `raw`, or the _INVALID sentinel."""
    if not isinstance(raw, str):
        return _INVALID
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        # json.JSONDecodeError is a ValueError
        return _INVALID


def _as_number(value: Any) -> int | float | None:
    """Numeric JSON value with integral floats narrowed to int; None otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _as_phase(value: Any) -> int | float | None:
    """Phase number >= 1, or None when `value` does not qualify."""
    number = _as_number(value)
    if number is None or not number >= 1:
        return None
    return number


def is_valid_json_text(raw: Any) -> bool:
    """True when `raw` is a string holding strict JSON text of any shape."""
    return _decode(raw) is not _INVALID


def parse_json_array_of_positive_ints(raw: Any) -> list[int | float] | None:
    """
    @brief
    Lenient JSON-array parse: bad elements are dropped, not reported.

    @returns
        None if `raw` is not JSON or not an array; otherwise the phase
        numbers of the array in order.
    """
    decoded = _decode(raw)
    if not isinstance(decoded, list):
        return None
    phases = (_as_phase(v) for v in decoded)
    return [p for p in phases if p is not None]


def parse_strict_positive_int_array(raw: Any) -> list[int | float] | None:
    """
    @brief
    Strict JSON-array parse: one bad element invalidates the whole field.

    @returns
        None if `raw` is not JSON, not an array, or contains any element
        that is not a phase number; otherwise the parsed phases.
    """
    decoded = _decode(raw)
    if not isinstance(decoded, list):
        return None
    phases: list[int | float] = []
    for value in decoded:
        phase = _as_phase(value)
        if phase is None:
            return None
        phases.append(phase)
    return phases


def matches_phase_range(raw: Any) -> bool:
    """True for exact "<digits>-<digits>" text (no surrounding whitespace)."""
    return isinstance(raw, str) and _PHASE_RANGE.fullmatch(raw) is not None


def parse_leading_int(raw: Any) -> int | None:
    """
    @brief
    Integer prefix of a cell value ("3", " 3 ", "3.7" -> 3; "abc" -> None).

    @details
    Real ints pass through; integral floats (as produced by spreadsheet
    readers) are truncated. Bools are not numbers here.
    """
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else None


def split_tokens(raw: Any) -> list[str]:
    """Comma-separated list -> trimmed, non-empty tokens in order."""
    if not isinstance(raw, str):
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def normalize_preferred_phases(raw: Any) -> list[int | float]:
    """
    @brief
    Normalize a PreferredPhases cell to a list of phase numbers.

    @details
    Accepted forms, in priority order:
      (1) JSON text -> an array keeps its numeric elements ("[1,3]" -> [1, 3]);
          any other JSON value ("5", "{}") yields []
      (2) "<start>-<end>" exactly, no surrounding whitespace -> inclusive
          expansion ("2-4" -> [2, 3, 4]; start > end yields [])
      (3) comma-separated values -> leading integer of each token,
          tokens without one dropped (" 2-4 " -> [2])
    Advisory only: the validation engine applies its own, narrower format
    check.
    """
    decoded = _decode(raw)
    if decoded is not _INVALID:
        if not isinstance(decoded, list):
            return []
        numbers = (_as_number(v) for v in decoded)
        return [n for n in numbers if n is not None]

    if not isinstance(raw, str):
        return []

    if matches_phase_range(raw):
        start, end = (int(part) for part in raw.split("-"))
        return list(range(start, end + 1))

    phases: list[int | float] = []
    for token in raw.split(","):
        value = parse_leading_int(token)
        if value is not None:
            phases.append(value)
    return phases


__all__ = [
    "is_valid_json_text",
    "parse_json_array_of_positive_ints",
    "parse_strict_positive_int_array",
    "matches_phase_range",
    "parse_leading_int",
    "split_tokens",
    "normalize_preferred_phases",
]
