# src/sources/parsing.py — v1
"""Lenient coercion of stringly-typed registry fields.

Registries send numbers as strings ("6", "3.2", "") and sometimes as text
("Class 2E: 6,001 - 7,000 lb"). Parsing reads the leading number only.
"""

from __future__ import annotations

import re
from typing import Any

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_int(value: Any) -> int | None:
    """Leading integer of value; None if there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_float(value: Any) -> float | None:
    """Leading decimal number of value; None if there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT.match(str(value))
    return float(match.group(1)) if match else None


def clean_text(value: Any) -> str | None:
    """Strip a text field; empty and "Not Applicable" become None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "not applicable":
        return None
    return text


def contains_yes(value: Any) -> bool | None:
    """Case-insensitive "yes" substring test; None when the field is absent."""
    text = clean_text(value)
    if text is None:
        return None
    return "yes" in text.lower()
