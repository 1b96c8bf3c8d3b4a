"""Export helpers turning a :class:`NestingResult` into report sheets."""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd
from openpyxl.utils import get_column_letter

from .config import OutputConfig
from .models import Dataset, NestingResult, SizeSummary
from .utils import format_quantity

logger = logging.getLogger(__name__)

SIZE_SHEET = "Nesting Summary"
ORDER_SHEET = "Order Summary"
TOTAL_LABEL = "Total"

_ROLE_COLUMNS = (("article", "Article", "articles"), ("model", "Model", "models"), ("color", "Color", "colors"))


def format_order_details(summary: SizeSummary) -> str:
    """Render per-order contributions as ``ORDER:QTY (extra/extra)`` entries."""

    parts: List[str] = []
    for item in summary.order_breakdown:
        text = f"{item.order_no}:{format_quantity(item.qty)}"
        if item.extra_info:
            text += f" ({'/'.join(item.extra_info.values())})"
        parts.append(text)
    return ", ".join(parts)


def build_size_sheet(result: NestingResult, dataset: Dataset) -> pd.DataFrame:
    roles = [
        (label, attribute)
        for role, label, attribute in _ROLE_COLUMNS
        if dataset.role_headers.get(role)
    ]
    columns = ["Size", "Total Qty", *[label for label, _ in roles], "Order Details"]

    records: List[Dict[str, object]] = []
    for summary in result.breakdown:
        record: Dict[str, object] = {"Size": summary.size, "Total Qty": _quantity(summary.qty)}
        for label, attribute in roles:
            record[label] = ", ".join(getattr(summary, attribute))
        record["Order Details"] = format_order_details(summary)
        records.append(record)

    total: Dict[str, object] = {column: "" for column in columns}
    total.update({"Size": TOTAL_LABEL, "Total Qty": _quantity(result.total_qty)})
    records.append(total)
    return pd.DataFrame(records, columns=columns)


def build_order_sheet(result: NestingResult) -> pd.DataFrame:
    records = [
        {"Order No": total.order_no, "Total Qty": _quantity(total.qty)}
        for total in result.order_totals
    ]
    records.append({"Order No": TOTAL_LABEL, "Total Qty": _quantity(result.total_qty)})
    return pd.DataFrame(records, columns=["Order No", "Total Qty"])


def write_nesting_workbook(
    result: NestingResult, dataset: Dataset, target: Union[str, Path, io.BytesIO]
) -> None:
    sheets = {
        SIZE_SHEET: build_size_sheet(result, dataset),
        ORDER_SHEET: build_order_sheet(result),
    }
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, index=False, sheet_name=sheet_name)
            _autosize_columns(writer.book[sheet_name], frame)


def nesting_to_excel_bytes(result: NestingResult, dataset: Dataset) -> bytes:
    """Serialize both report sheets to XLSX bytes."""

    buffer = io.BytesIO()
    write_nesting_workbook(result, dataset, buffer)
    buffer.seek(0)
    return buffer.getvalue()


def export_nesting(result: NestingResult, dataset: Dataset, output: OutputConfig) -> Dict[str, Path]:
    """Persist the nesting workbook and an audit file to the output directory."""

    output_dir = Path(output.directory)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Writing nesting report to %s", output_dir)

    paths: Dict[str, Path] = {}
    workbook_path = output_dir / output.workbook
    write_nesting_workbook(result, dataset, workbook_path)
    paths["workbook"] = workbook_path

    audit_payload = {
        "generated_at": datetime.utcnow().replace(microsecond=0).isoformat() + "Z",
        "dataset": dataset.name,
        "dataset_id": dataset.dataset_id,
        "selected_orders": list(result.selected_orders),
        "total_qty": result.total_qty,
        "order_count": result.order_count,
        "sizes": {summary.size: summary.qty for summary in result.breakdown},
        "order_totals": {total.order_no: total.qty for total in result.order_totals},
    }
    audit_path = output_dir / output.audit_log
    with audit_path.open("w", encoding="utf-8") as handle:
        json.dump(audit_payload, handle, ensure_ascii=False, indent=2)
    paths["audit"] = audit_path

    return paths


def _quantity(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else float(value)


def _autosize_columns(worksheet, frame: pd.DataFrame) -> None:
    for index, column in enumerate(frame.columns, start=1):
        values = [str(column), *(str(value) for value in frame[column].tolist())]
        width = min(max(len(value) for value in values) + 2, 100)
        worksheet.column_dimensions[get_column_letter(index)].width = max(width, 10)


__all__ = [
    "build_order_sheet",
    "build_size_sheet",
    "export_nesting",
    "format_order_details",
    "nesting_to_excel_bytes",
    "write_nesting_workbook",
]
