"""Command line interface for the nesting report pipeline."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from tabulate import tabulate

from .aggregation import aggregate
from .config import AppConfig, load_config
from .io import load_dataset
from .models import Dataset, NestingResult
from .reporting import export_nesting, format_order_details
from .selection import SelectionError, parse_order_input, suggest_orders, validate_selection
from .storage import DatasetStore
from .telemetry import UsageLog
from .utils import format_quantity

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aggregate order quantities per size into a nesting report")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument("--input", type=Path, help="Order spreadsheet (xlsx/xls/csv)")
    parser.add_argument("--sheet", help="Sheet name to read instead of the first sheet")
    parser.add_argument("--dataset", help="Use a saved dataset (id or name)")
    parser.add_argument("--save-as", help="Save the loaded dataset under this name")
    parser.add_argument("--list-datasets", action="store_true", help="List saved datasets and exit")
    parser.add_argument("--delete-dataset", help="Delete a saved dataset (id or name) and exit")
    parser.add_argument("--export-usage", type=Path, help="Write the usage audit log as CSV and exit")
    parser.add_argument("--list-orders", action="store_true", help="List order numbers in the dataset and exit")
    parser.add_argument("--find-order", help="List order numbers matching a prefix or substring and exit")
    parser.add_argument(
        "--orders",
        action="append",
        help="Order numbers to include (repeatable, comma separated)",
    )
    parser.add_argument("--size-columns", help="Comma separated size columns overriding the suggestion")
    parser.add_argument("--info-columns", help="Comma separated info columns shown per order")
    parser.add_argument("--output-dir", type=Path, help="Directory for generated reports")
    parser.add_argument("--export", action="store_true", help="Write the XLSX report")
    parser.add_argument("--no-validate", action="store_true", help="Skip duplicate/unknown order checks")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument("--quiet", action="store_true", help="Suppress console summary output")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = _load_app_config(args.config)
    except Exception as exc:  # pragma: no cover - CLI validation
        logger.error("Failed to load configuration: %s", exc)
        return 1

    if args.output_dir:
        config.output.directory = _resolve_override_path(args.output_dir)

    if args.list_datasets:
        _print_datasets(DatasetStore(config.storage).list_datasets())
        return 0

    if args.delete_dataset:
        store = DatasetStore(config.storage)
        dataset = store.resolve(args.delete_dataset)
        if dataset is None or not store.delete(dataset.dataset_id):
            logger.error("Saved dataset '%s' not found", args.delete_dataset)
            return 1
        return 0

    if args.export_usage:
        try:
            path = UsageLog(config.telemetry).export_csv(_resolve_override_path(args.export_usage))
        except OSError as exc:
            logger.error("Failed to export usage log: %s", exc)
            return 1
        logger.info("Exported usage log to %s", path)
        return 0

    try:
        dataset = _obtain_dataset(args, config)
        dataset = dataset.configure(
            size_columns=_split_columns(args.size_columns),
            info_columns=_split_columns(args.info_columns),
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load dataset: %s", exc)
        return 1

    if args.save_as is not None:
        dataset.name = args.save_as
        DatasetStore(config.storage).save(dataset)

    if args.list_orders:
        for order in dataset.so_numbers:
            print(order)
        return 0

    if args.find_order is not None:
        for order in suggest_orders(args.find_order, dataset, limit=len(dataset.so_numbers)):
            print(order)
        return 0

    selected = parse_order_input(args.orders or [])
    if not selected:
        if args.save_as is not None:
            return 0
        logger.error("No order numbers given; use --orders")
        return 1

    if not args.no_validate:
        try:
            selected = validate_selection(selected, dataset)
        except SelectionError as exc:
            logger.error("Invalid selection: %s", exc)
            return 1

    usage = UsageLog(config.telemetry)
    result = aggregate(dataset, selected, config.aggregation)
    usage.record(
        "GENERATE_NESTING",
        selected_orders=result.selected_orders,
        total_qty=result.total_qty,
        order_count=result.order_count,
    )

    if args.export or args.output_dir:
        try:
            paths = export_nesting(result, dataset, config.output)
        except Exception as exc:
            logger.exception("Failed to export nesting report: %s", exc)
            return 1
        usage.record(
            "EXPORT_EXCEL",
            selected_orders=result.selected_orders,
            total_qty=result.total_qty,
            order_count=result.order_count,
        )
        logger.info("Exported report to %s", paths["workbook"])

    if not args.quiet:
        _print_summary(result)

    return 0


def _load_app_config(path: Optional[Path]) -> AppConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return load_config(None)


def _obtain_dataset(args: argparse.Namespace, config: AppConfig) -> Dataset:
    if args.input:
        return load_dataset(
            _resolve_override_path(args.input),
            sheet_name=args.sheet,
            config=config.classifier,
        )
    if args.dataset:
        dataset = DatasetStore(config.storage).resolve(args.dataset)
        if dataset is None:
            raise ValueError(f"Saved dataset '{args.dataset}' not found")
        return dataset
    raise ValueError("Provide --input or --dataset")


def _split_columns(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def _resolve_override_path(path: Path) -> Path:
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def _print_datasets(datasets: List[Dataset]) -> None:
    if not datasets:
        print("No saved datasets.")
        return
    rows = [
        [dataset.dataset_id, dataset.name, dataset.created_at, len(dataset.rows), len(dataset.so_numbers)]
        for dataset in datasets
    ]
    print(tabulate(rows, headers=["ID", "Name", "Created", "Rows", "Orders"], tablefmt="github"))


def _print_summary(result: NestingResult) -> None:
    if result.is_empty:
        print("No quantities found for the selected orders.")
        return

    rows = [
        [summary.size, format_quantity(summary.qty), format_order_details(summary)]
        for summary in result.breakdown
    ]
    rows.append(["Total", format_quantity(result.total_qty), ""])
    print("Nesting summary:")
    print(tabulate(rows, headers=["Size", "Qty", "Order details"], tablefmt="github"))
    print(f"Orders: {result.order_count}")
    if result.info_columns:
        print("Info columns: " + ", ".join(result.info_columns))


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
