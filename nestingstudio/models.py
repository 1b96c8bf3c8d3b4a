"""Data model shared by the classifier, the aggregation engine and the exporters."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

Cell = Union[str, int, float, None]
RawRow = Dict[str, Cell]

DEFAULT_ORDER_COLUMN = "SO_Number"


def utc_now_iso() -> str:
    return datetime.utcnow().replace(microsecond=0).isoformat() + "Z"


class DatasetConfigurationError(ValueError):
    """Raised when the chosen size/info columns are inconsistent with the headers."""


@dataclass
class Dataset:
    """A parsed order sheet together with the user's column choices."""

    name: str
    headers: List[str]
    rows: List[RawRow]
    size_columns: List[str]
    info_columns: List[str] = field(default_factory=list)
    so_numbers: List[str] = field(default_factory=list)
    order_column: str = DEFAULT_ORDER_COLUMN
    article_header: Optional[str] = None
    model_header: Optional[str] = None
    color_header: Optional[str] = None
    header_row: int = 0
    source_path: Optional[str] = None
    dataset_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        self._check_columns(self.size_columns, self.info_columns)
        for role in (self.article_header, self.model_header, self.color_header):
            if role is not None and role not in self.headers:
                raise DatasetConfigurationError(f"Role header '{role}' is not a dataset header")

    def configure(
        self,
        size_columns: Optional[Sequence[str]] = None,
        info_columns: Optional[Sequence[str]] = None,
    ) -> "Dataset":
        """Return a copy with the user's size/info column selection applied."""

        sizes = list(self.size_columns if size_columns is None else size_columns)
        infos = list(self.info_columns if info_columns is None else info_columns)
        # sizes follow sheet order
        sizes = [header for header in self.headers if header in set(sizes)] + [
            header for header in sizes if header not in self.headers
        ]
        return replace(self, size_columns=sizes, info_columns=infos)

    def _check_columns(self, sizes: Sequence[str], infos: Sequence[str]) -> None:
        known = set(self.headers)
        unknown = [column for column in [*sizes, *infos] if column not in known]
        if unknown:
            raise DatasetConfigurationError(
                "Columns not present in dataset headers: " + ", ".join(unknown)
            )
        duplicates = [column for column in dict.fromkeys(sizes) if list(sizes).count(column) > 1]
        duplicates += [column for column in dict.fromkeys(infos) if list(infos).count(column) > 1]
        if duplicates:
            raise DatasetConfigurationError(
                "Columns selected more than once: " + ", ".join(duplicates)
            )
        overlap = [column for column in sizes if column in set(infos)]
        if overlap:
            raise DatasetConfigurationError(
                "Columns cannot be both size and info columns: " + ", ".join(overlap)
            )

    @property
    def role_headers(self) -> Dict[str, Optional[str]]:
        return {
            "article": self.article_header,
            "model": self.model_header,
            "color": self.color_header,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        return cls(
            name=str(data.get("name", "")),
            headers=[str(header) for header in data.get("headers", [])],
            rows=[dict(row) for row in data.get("rows", [])],
            size_columns=list(data.get("size_columns", [])),
            info_columns=list(data.get("info_columns", [])),
            so_numbers=[str(value) for value in data.get("so_numbers", [])],
            order_column=str(data.get("order_column", DEFAULT_ORDER_COLUMN)),
            article_header=data.get("article_header"),
            model_header=data.get("model_header"),
            color_header=data.get("color_header"),
            header_row=int(data.get("header_row", 0)),
            source_path=data.get("source_path"),
            dataset_id=str(data.get("dataset_id") or uuid.uuid4().hex),
            created_at=str(data.get("created_at", utc_now_iso())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset_id": self.dataset_id,
            "name": self.name,
            "created_at": self.created_at,
            "headers": list(self.headers),
            "rows": [dict(row) for row in self.rows],
            "size_columns": list(self.size_columns),
            "info_columns": list(self.info_columns),
            "so_numbers": list(self.so_numbers),
            "order_column": self.order_column,
            "article_header": self.article_header,
            "model_header": self.model_header,
            "color_header": self.color_header,
            "header_row": self.header_row,
            "source_path": self.source_path,
        }


@dataclass
class OrderBreakdownItem:
    """Contribution of one order to one size."""

    order_no: str
    qty: float
    extra_info: Dict[str, str] = field(default_factory=dict)


@dataclass
class SizeSummary:
    """Aggregated quantity for a single size column."""

    size: str
    qty: float
    order_breakdown: List[OrderBreakdownItem] = field(default_factory=list)
    articles: List[str] = field(default_factory=list)
    models: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)


@dataclass
class OrderTotal:
    order_no: str
    qty: float


@dataclass
class NestingResult:
    """Structured output from :func:`nestingstudio.aggregation.aggregate`."""

    total_qty: float
    breakdown: List[SizeSummary] = field(default_factory=list)
    order_totals: List[OrderTotal] = field(default_factory=list)
    summary_articles: List[str] = field(default_factory=list)
    summary_models: List[str] = field(default_factory=list)
    summary_colors: List[str] = field(default_factory=list)
    info_columns: List[str] = field(default_factory=list)
    selected_orders: List[str] = field(default_factory=list)

    @property
    def order_count(self) -> int:
        return len(self.order_totals)

    @property
    def is_empty(self) -> bool:
        return not self.breakdown


__all__ = [
    "Cell",
    "Dataset",
    "DatasetConfigurationError",
    "NestingResult",
    "OrderBreakdownItem",
    "OrderTotal",
    "RawRow",
    "SizeSummary",
]
