"""IO helpers turning order spreadsheets into :class:`Dataset` objects."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from .classifier import classify_columns, locate_header_row
from .config import ClassifierConfig
from .models import Dataset, RawRow
from .utils import cell_to_text, is_blank

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = {".xlsx", ".xlsm", ".xls"}
CSV_EXTENSIONS = {".csv", ".txt"}


class EmptySheetError(ValueError):
    """Raised when the input sheet contains no rows at all."""


def read_sheet_grid(path: Path, sheet_name: Optional[str] = None) -> List[List[Any]]:
    """Read a sheet as a raw grid of cells without interpreting any header."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset '{path}' does not exist")

    ext = path.suffix.lower()
    if ext in EXCEL_EXTENSIONS:
        logger.debug("Reading Excel %s (sheet %s)", path, sheet_name or "first")
        frame = pd.read_excel(path, sheet_name=sheet_name or 0, header=None, dtype=object)
    elif ext in CSV_EXTENSIONS:
        logger.debug("Reading CSV %s", path)
        try:
            frame = pd.read_csv(path, header=None, dtype=object, skip_blank_lines=False)
        except pd.errors.EmptyDataError:
            frame = pd.DataFrame()
    else:
        raise ValueError(f"Unsupported file extension '{ext}' for dataset '{path}'")

    return frame_to_grid(frame)


def frame_to_grid(frame: pd.DataFrame) -> List[List[Any]]:
    return [
        [None if _is_missing(value) else value for value in row]
        for row in frame.itertuples(index=False, name=None)
    ]


def normalize_rows(body: Iterable[Sequence[Any]], headers: Sequence[str]) -> List[RawRow]:
    """Zip positional rows onto ``headers``.

    Short rows are padded with ``None``, surplus cells are ignored and rows
    without any value are dropped. Values are not validated or coerced.
    """

    rows: List[RawRow] = []
    for raw in body:
        cells = list(raw or [])
        if all(is_blank(cell) for cell in cells):
            continue
        row: RawRow = {}
        for index, header in enumerate(headers):
            value = cells[index] if index < len(cells) else None
            row[header] = None if _is_missing(value) else value
        rows.append(row)
    return rows


def extract_order_numbers(rows: Iterable[RawRow], order_column: str) -> List[str]:
    """Return distinct non-empty order identifiers in first-seen order."""

    seen = {}
    for row in rows:
        value = cell_to_text(row.get(order_column))
        if value:
            seen.setdefault(value, None)
    return list(seen)


def build_dataset(
    grid: Sequence[Sequence[Any]],
    name: str,
    config: Optional[ClassifierConfig] = None,
    source_path: Optional[str] = None,
) -> Dataset:
    """Classify the header row of ``grid`` and build a :class:`Dataset`."""

    config = config or ClassifierConfig()
    if not grid or all(all(is_blank(cell) for cell in (row or [])) for row in grid):
        raise EmptySheetError("Sheet is empty")

    header_row = locate_header_row(grid, max_rows=config.header_scan_rows)
    classification = classify_columns(grid[header_row] or [], config)
    rows = normalize_rows(grid[header_row + 1 :], classification.headers)
    order_column = classification.order_column or config.order_column

    dataset = Dataset(
        name=name,
        headers=classification.headers,
        rows=rows,
        size_columns=classification.size_columns,
        info_columns=[],
        so_numbers=extract_order_numbers(rows, order_column),
        order_column=order_column,
        article_header=classification.roles.article,
        model_header=classification.roles.model,
        color_header=classification.roles.color,
        header_row=header_row,
        source_path=source_path,
    )
    logger.info(
        "Dataset '%s': %s rows, %s size columns, %s orders (header row %s)",
        name,
        len(rows),
        len(dataset.size_columns),
        len(dataset.so_numbers),
        header_row,
    )
    return dataset


def load_dataset(
    path: Path,
    name: Optional[str] = None,
    sheet_name: Optional[str] = None,
    config: Optional[ClassifierConfig] = None,
) -> Dataset:
    """Load and classify an order spreadsheet from disk."""

    path = Path(path)
    logger.info("Loading order sheet from %s", path)
    grid = read_sheet_grid(path, sheet_name=sheet_name)
    return build_dataset(grid, name or path.stem, config=config, source_path=str(path))


def load_uploaded_dataset(
    content: bytes,
    filename: str,
    config: Optional[ClassifierConfig] = None,
) -> Dataset:
    """Load an uploaded spreadsheet through a temporary file that is always removed."""

    suffix = Path(filename).suffix
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp.write(content)
        temp_path = Path(tmp.name)
    try:
        dataset = load_dataset(temp_path, name=Path(filename).stem, config=config)
    finally:
        temp_path.unlink(missing_ok=True)
    dataset.source_path = filename
    return dataset


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


__all__ = [
    "EmptySheetError",
    "build_dataset",
    "extract_order_numbers",
    "frame_to_grid",
    "load_dataset",
    "load_uploaded_dataset",
    "normalize_rows",
    "read_sheet_grid",
]
