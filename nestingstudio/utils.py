"""Utility helpers shared across the nesting pipeline."""
from __future__ import annotations

import math
import numbers
from typing import Any


def is_blank(value: Any) -> bool:
    """Return True for empty cells (``None``, NaN or whitespace-only text)."""

    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def cell_to_text(value: Any) -> str:
    """Return the trimmed textual form of a spreadsheet cell.

    Integral floats are rendered without the trailing ``.0`` so that values
    read as ``7.0`` from a workbook compare equal to the label ``"7"``.
    """

    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        numeric = float(value)
        if math.isfinite(numeric) and numeric.is_integer():
            return str(int(numeric))
        return str(numeric)
    return str(value).strip()


def format_quantity(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{float(value):g}"


__all__ = ["cell_to_text", "format_quantity", "is_blank"]
