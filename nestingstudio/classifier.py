"""Heuristic classification of order-sheet headers.

Everything in this module produces *suggestions*. The caller confirms the
final size and info columns before a dataset is aggregated, so none of the
rules below are treated as authoritative.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import ClassifierConfig
from .utils import cell_to_text

logger = logging.getLogger(__name__)

ORDER_NUMBER_PATTERN = re.compile(r"Order\s*NO", flags=re.IGNORECASE)
CJK_PATTERN = re.compile(r"[\u4e00-\u9fff]")
NUMERIC_SIZE_PATTERN = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)")


@dataclass
class RoleHeaders:
    """Headers detected as carrying article, model and color information."""

    article: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"article": self.article, "model": self.model, "color": self.color}


@dataclass
class ColumnClassification:
    """Result of :func:`classify_columns`."""

    headers: List[str]
    order_column: Optional[str]
    size_columns: List[str] = field(default_factory=list)
    roles: RoleHeaders = field(default_factory=RoleHeaders)

    @property
    def info_candidates(self) -> List[str]:
        excluded = set(self.size_columns)
        if self.order_column:
            excluded.add(self.order_column)
        return [header for header in self.headers if header not in excluded]


def is_order_header(text: Any) -> bool:
    return bool(ORDER_NUMBER_PATTERN.search(cell_to_text(text)))


def locate_header_row(grid: Sequence[Sequence[Any]], max_rows: int = 20) -> int:
    """Return the index of the first row holding an order-number header cell.

    Falls back to row 0 when nothing matches inside the first ``max_rows``.
    """

    for row_idx, row in enumerate(grid[:max_rows]):
        if row and any(is_order_header(cell) for cell in row):
            return row_idx
    logger.warning("No 'Order No' header found in the first %s rows; using row 0", max_rows)
    return 0


def clean_headers(
    cells: Iterable[Any],
    order_column: str = "SO_Number",
    placeholder: str = "Col",
) -> List[str]:
    """Trim header cells, canonicalise the order column and make names unique."""

    used: set = set()
    cleaned: List[str] = []
    for cell in cells:
        base = cell_to_text(cell) or placeholder
        if is_order_header(base):
            base = order_column
        unique = base
        counter = 1
        while unique in used:
            unique = f"{base}_{counter}"
            counter += 1
        used.add(unique)
        cleaned.append(unique)
    return cleaned


def is_size_header(header: str, config: Optional[ClassifierConfig] = None) -> bool:
    """Return True when ``header`` looks like a quantity-per-size column."""

    config = config or ClassifierConfig()
    text = (header or "").strip()
    if not text:
        return False

    lowered = text.lower()
    excluded = [keyword.lower() for keyword in config.excluded_keywords]
    excluded.append(config.order_column.lower())
    if any(keyword in lowered for keyword in excluded):
        return False

    if any(suffix.lower() in lowered for suffix in config.size_suffixes):
        return True

    if CJK_PATTERN.search(text):
        return False

    return bool(NUMERIC_SIZE_PATTERN.fullmatch(text))


def suggest_size_columns(
    headers: Sequence[str], config: Optional[ClassifierConfig] = None
) -> List[str]:
    suggestions = [header for header in headers if is_size_header(header, config)]
    logger.debug("Suggested size columns: %s", suggestions)
    return suggestions


def detect_role_headers(
    headers: Sequence[str], keywords: Mapping[str, Sequence[str]]
) -> RoleHeaders:
    """Pick at most one header per role, first header matching a keyword wins."""

    detected: Dict[str, Optional[str]] = {}
    for role in ("article", "model", "color"):
        hints = [hint.lower() for hint in keywords.get(role, []) if hint]
        detected[role] = next(
            (header for header in headers if any(hint in header.lower() for hint in hints)),
            None,
        )
        if detected[role] is not None:
            logger.debug("Detected %s column '%s'", role, detected[role])
    return RoleHeaders(**detected)


def classify_columns(
    header_cells: Iterable[Any], config: Optional[ClassifierConfig] = None
) -> ColumnClassification:
    config = config or ClassifierConfig()
    headers = clean_headers(
        header_cells,
        order_column=config.order_column,
        placeholder=config.placeholder_header,
    )
    order_column = config.order_column if config.order_column in headers else None
    if order_column is None:
        logger.warning("Order number column not found among headers")

    return ColumnClassification(
        headers=headers,
        order_column=order_column,
        size_columns=suggest_size_columns(headers, config),
        roles=detect_role_headers(headers, config.role_keywords()),
    )


__all__ = [
    "CJK_PATTERN",
    "ColumnClassification",
    "ORDER_NUMBER_PATTERN",
    "RoleHeaders",
    "classify_columns",
    "clean_headers",
    "detect_role_headers",
    "is_order_header",
    "is_size_header",
    "locate_header_row",
    "suggest_size_columns",
]
