"""Aggregation engine turning selected order rows into a nesting result."""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import AggregationConfig
from .models import (
    Dataset,
    NestingResult,
    OrderBreakdownItem,
    OrderTotal,
    RawRow,
    SizeSummary,
)
from .utils import cell_to_text, is_blank

logger = logging.getLogger(__name__)

QUANTITY_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def coerce_quantity(value: Any) -> Optional[float]:
    """Coerce a size cell to a number, ``None`` when it is not interpretable.

    Native numbers pass through, strings are parsed with ``.`` as the decimal
    separator and anything else is rejected.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        numeric = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not QUANTITY_PATTERN.fullmatch(text):
            return None
        numeric = float(text)
    else:
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


@dataclass
class _OrderEntry:
    qty: float = 0.0
    extra_info: Dict[str, str] = field(default_factory=dict)


@dataclass
class _SizeEntry:
    total: float = 0.0
    orders: Dict[str, _OrderEntry] = field(default_factory=dict)
    articles: Dict[str, None] = field(default_factory=dict)
    models: Dict[str, None] = field(default_factory=dict)
    colors: Dict[str, None] = field(default_factory=dict)


class _Accumulator:
    """Running totals scoped to a single :func:`aggregate` call."""

    def __init__(self, size_columns: Sequence[str], extra_info_policy: str) -> None:
        self.sizes: Dict[str, _SizeEntry] = {size: _SizeEntry() for size in size_columns}
        self.order_totals: Dict[str, float] = {}
        self.articles: Dict[str, None] = {}
        self.models: Dict[str, None] = {}
        self.colors: Dict[str, None] = {}
        self._keep_first = extra_info_policy == "first"

    def add(
        self,
        size: str,
        order_no: str,
        qty: float,
        extras: Dict[str, str],
        article: str,
        model: str,
        color: str,
    ) -> None:
        entry = self.sizes[size]
        entry.total += qty

        order = entry.orders.setdefault(order_no, _OrderEntry())
        order.qty += qty
        if self._keep_first:
            for key, value in extras.items():
                order.extra_info.setdefault(key, value)
        else:
            order.extra_info.update(extras)

        for value, per_size, overall in (
            (article, entry.articles, self.articles),
            (model, entry.models, self.models),
            (color, entry.colors, self.colors),
        ):
            if value:
                per_size.setdefault(value, None)
                overall.setdefault(value, None)

        self.order_totals[order_no] = self.order_totals.get(order_no, 0.0) + qty

    def result(self, info_columns: List[str], selected: List[str]) -> NestingResult:
        breakdown: List[SizeSummary] = []
        for size, entry in self.sizes.items():
            if entry.total <= 0:
                continue
            items = [
                OrderBreakdownItem(order_no=order_no, qty=order.qty, extra_info=dict(order.extra_info))
                for order_no, order in entry.orders.items()
            ]
            breakdown.append(
                SizeSummary(
                    size=size,
                    qty=entry.total,
                    order_breakdown=sorted(items, key=lambda item: -item.qty),
                    articles=list(entry.articles),
                    models=list(entry.models),
                    colors=list(entry.colors),
                )
            )

        order_totals = sorted(
            (OrderTotal(order_no=order_no, qty=qty) for order_no, qty in self.order_totals.items()),
            key=lambda total: -total.qty,
        )

        return NestingResult(
            total_qty=sum(summary.qty for summary in breakdown),
            breakdown=breakdown,
            order_totals=order_totals,
            summary_articles=list(self.articles),
            summary_models=list(self.models),
            summary_colors=list(self.colors),
            info_columns=info_columns,
            selected_orders=selected,
        )


def aggregate(
    dataset: Dataset,
    selected_orders: Iterable[str],
    config: Optional[AggregationConfig] = None,
) -> NestingResult:
    """Compute per-size and per-order totals for the selected orders.

    Unknown order identifiers and cells that are not positive numbers simply
    contribute nothing; no error is raised for either.
    """

    config = config or AggregationConfig()
    selected = list(dict.fromkeys(cell_to_text(order) for order in selected_orders))
    selected = [order for order in selected if order]
    wanted = set(selected)

    accumulator = _Accumulator(dataset.size_columns, config.extra_info_policy)
    included = 0
    for row in dataset.rows:
        order_no = _row_order(row, dataset.order_column, config)
        if order_no is None or order_no not in wanted:
            continue
        included += 1

        extras = _row_extras(row, dataset.info_columns)
        article = _role_value(row, dataset.article_header)
        model = _role_value(row, dataset.model_header)
        color = _role_value(row, dataset.color_header)

        for size in dataset.size_columns:
            qty = coerce_quantity(row.get(size))
            if qty is None or qty <= 0:
                continue
            accumulator.add(size, order_no, qty, extras, article, model, color)

    result = accumulator.result(list(dataset.info_columns), selected)
    logger.debug(
        "Aggregated %s rows for %s selected orders: %s sizes, total %s",
        included,
        len(selected),
        len(result.breakdown),
        result.total_qty,
    )
    return result


def _row_order(row: RawRow, order_column: str, config: AggregationConfig) -> Optional[str]:
    value = row.get(order_column)
    if is_blank(value):
        if config.missing_order_policy == "exclude":
            return None
        return config.unknown_order_label
    return cell_to_text(value)


def _row_extras(row: RawRow, info_columns: Sequence[str]) -> Dict[str, str]:
    extras: Dict[str, str] = {}
    for column in info_columns:
        value = row.get(column)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            continue
        extras[column] = cell_to_text(value)
    return extras


def _role_value(row: RawRow, header: Optional[str]) -> str:
    if not header:
        return ""
    return cell_to_text(row.get(header))


__all__ = ["aggregate", "coerce_quantity"]
