"""Order selection parsing, validation and autocomplete."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Union

from .models import Dataset

_SEPARATORS = re.compile(r"[,;\s]+")


class SelectionError(ValueError):
    """Raised when a selection contains duplicate or unknown order numbers."""

    def __init__(self, message: str, duplicates: Sequence[str] = (), unknown: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.duplicates = list(duplicates)
        self.unknown = list(unknown)


def parse_order_input(value: Union[str, Iterable[str]]) -> List[str]:
    """Split free text (or a list of entries) into trimmed order numbers."""

    chunks = [value] if isinstance(value, str) else list(value)
    orders: List[str] = []
    for chunk in chunks:
        if chunk is None:
            continue
        orders.extend(part for part in _SEPARATORS.split(str(chunk)) if part)
    return orders


def validate_selection(selected: Iterable[str], dataset: Dataset) -> List[str]:
    """Return the cleaned selection or raise :class:`SelectionError`."""

    cleaned = [str(order).strip() for order in selected if str(order).strip()]
    if not cleaned:
        raise SelectionError("Select at least one order number")

    seen: set = set()
    duplicates: List[str] = []
    for order in cleaned:
        if order in seen and order not in duplicates:
            duplicates.append(order)
        seen.add(order)

    known = set(dataset.so_numbers)
    unknown = [order for order in dict.fromkeys(cleaned) if order not in known]

    problems = []
    if duplicates:
        problems.append("duplicate order numbers: " + ", ".join(duplicates))
    if unknown:
        problems.append("order numbers not found in dataset: " + ", ".join(unknown))
    if problems:
        raise SelectionError("; ".join(problems), duplicates=duplicates, unknown=unknown)
    return cleaned


def suggest_orders(prefix: str, dataset: Dataset, limit: int = 10) -> List[str]:
    """Autocomplete order numbers, prefix matches ahead of substring matches."""

    needle = (prefix or "").strip().casefold()
    if not needle:
        return list(dataset.so_numbers[:limit])
    starts = [order for order in dataset.so_numbers if order.casefold().startswith(needle)]
    contains = [
        order
        for order in dataset.so_numbers
        if needle in order.casefold() and order not in starts
    ]
    return (starts + contains)[:limit]


__all__ = ["SelectionError", "parse_order_input", "suggest_orders", "validate_selection"]
