"""Nesting Studio core package.

This package turns purchase-order spreadsheets (one row per order line, one
column per size) into nesting reports: total quantity per size for a chosen
set of orders, broken down by contributing order. It powers both the command
line interface and the Streamlit front-end shipped with this repository.
"""

from .aggregation import aggregate, coerce_quantity
from .classifier import (
    ColumnClassification,
    RoleHeaders,
    classify_columns,
    clean_headers,
    detect_role_headers,
    locate_header_row,
    suggest_size_columns,
)
from .config import (
    AggregationConfig,
    AppConfig,
    ClassifierConfig,
    OutputConfig,
    StorageConfig,
    TelemetryConfig,
    load_config,
)
from .io import (
    EmptySheetError,
    build_dataset,
    load_dataset,
    load_uploaded_dataset,
    normalize_rows,
    read_sheet_grid,
)
from .models import (
    Dataset,
    DatasetConfigurationError,
    NestingResult,
    OrderBreakdownItem,
    OrderTotal,
    SizeSummary,
)
from .reporting import build_order_sheet, build_size_sheet, export_nesting, nesting_to_excel_bytes
from .selection import SelectionError, parse_order_input, suggest_orders, validate_selection
from .storage import DatasetStore
from .telemetry import UsageLog

__all__ = [
    "AggregationConfig",
    "AppConfig",
    "ClassifierConfig",
    "ColumnClassification",
    "Dataset",
    "DatasetConfigurationError",
    "DatasetStore",
    "EmptySheetError",
    "NestingResult",
    "OrderBreakdownItem",
    "OrderTotal",
    "OutputConfig",
    "RoleHeaders",
    "SelectionError",
    "SizeSummary",
    "StorageConfig",
    "TelemetryConfig",
    "UsageLog",
    "aggregate",
    "build_dataset",
    "build_order_sheet",
    "build_size_sheet",
    "classify_columns",
    "clean_headers",
    "coerce_quantity",
    "detect_role_headers",
    "export_nesting",
    "load_config",
    "load_dataset",
    "load_uploaded_dataset",
    "locate_header_row",
    "nesting_to_excel_bytes",
    "normalize_rows",
    "parse_order_input",
    "read_sheet_grid",
    "suggest_orders",
    "suggest_size_columns",
    "validate_selection",
]
