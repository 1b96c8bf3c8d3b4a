import json

import pandas as pd
import pytest

from nestingstudio.cli import main


@pytest.fixture
def workspace(tmp_path, order_grid):
    input_path = tmp_path / "orders.xlsx"
    pd.DataFrame(order_grid).to_excel(input_path, header=False, index=False)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "storage:\n  directory: store\n"
        "output:\n  directory: reports\n"
        "telemetry:\n  path: usage.json\n",
        encoding="utf-8",
    )
    return tmp_path, config_path, input_path


def test_cli_creates_expected_reports(workspace):
    tmp_path, config_path, input_path = workspace
    exit_code = main([
        "--config",
        str(config_path),
        "--input",
        str(input_path),
        "--orders",
        "A1,B2",
        "--export",
        "--quiet",
    ])

    assert exit_code == 0
    workbook = tmp_path / "reports" / "PMA_Nesting_Summary.xlsx"
    assert workbook.exists()
    summary = pd.read_excel(workbook, sheet_name="Nesting Summary")
    assert summary["Total Qty"].tolist() == [10, 2, 1, 13]

    audit = json.loads((tmp_path / "reports" / "nesting_audit.json").read_text(encoding="utf-8"))
    assert audit["selected_orders"] == ["A1", "B2"]

    usage = json.loads((tmp_path / "usage.json").read_text(encoding="utf-8"))
    assert [entry["event"] for entry in usage] == ["EXPORT_EXCEL", "GENERATE_NESTING"]


def test_cli_prints_summary(workspace, capsys):
    _, config_path, input_path = workspace
    exit_code = main([
        "--config", str(config_path),
        "--input", str(input_path),
        "--orders", "A1",
        "--orders", "B2",
        "--size-columns", "3.5,4",
    ])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Nesting summary:" in out
    assert "A1:5, B2:5" in out
    assert "4.5 UK" not in out
    assert "Orders: 2" in out


def test_cli_rejects_unknown_orders(workspace):
    _, config_path, input_path = workspace
    args = ["--config", str(config_path), "--input", str(input_path), "--orders", "A1,Z9", "--quiet"]
    assert main(args) == 1
    assert main([*args, "--no-validate"]) == 0


def test_cli_requires_orders_and_input(workspace):
    _, config_path, input_path = workspace
    assert main(["--config", str(config_path), "--input", str(input_path), "--quiet"]) == 1
    assert main(["--config", str(config_path), "--orders", "A1", "--quiet"]) == 1


def test_cli_list_orders(workspace, capsys):
    _, config_path, input_path = workspace
    assert main(["--config", str(config_path), "--input", str(input_path), "--list-orders"]) == 0
    assert capsys.readouterr().out.split() == ["A1", "B2", "C3"]


def test_cli_saved_dataset_lifecycle(workspace, capsys):
    tmp_path, config_path, input_path = workspace
    base = ["--config", str(config_path)]

    assert main([*base, "--input", str(input_path), "--info-columns", "Color", "--save-as", "week-42"]) == 0
    assert main([*base, "--dataset", "week-42", "--orders", "A1", "--quiet", "--export"]) == 0
    sheet = pd.read_excel(tmp_path / "reports" / "PMA_Nesting_Summary.xlsx", sheet_name="Nesting Summary")
    assert sheet.loc[0, "Order Details"] == "A1:5 (Blue)"

    capsys.readouterr()
    assert main([*base, "--list-datasets"]) == 0
    assert "week-42" in capsys.readouterr().out

    assert main([*base, "--delete-dataset", "week-42"]) == 0
    assert main([*base, "--delete-dataset", "week-42"]) == 1
    assert main([*base, "--dataset", "week-42", "--orders", "A1"]) == 1


def test_cli_rejects_overlapping_columns(workspace):
    _, config_path, input_path = workspace
    assert main([
        "--config", str(config_path),
        "--input", str(input_path),
        "--size-columns", "3.5",
        "--info-columns", "3.5",
        "--orders", "A1",
    ]) == 1


def test_cli_find_order(workspace, capsys):
    _, config_path, input_path = workspace
    assert main(["--config", str(config_path), "--input", str(input_path), "--find-order", "b"]) == 0
    assert capsys.readouterr().out.split() == ["B2"]


def test_cli_prints_info_columns(workspace, capsys):
    _, config_path, input_path = workspace
    assert main([
        "--config", str(config_path),
        "--input", str(input_path),
        "--orders", "A1",
        "--info-columns", "Color",
    ]) == 0
    assert "Info columns: Color" in capsys.readouterr().out


def test_cli_export_usage(workspace):
    tmp_path, config_path, input_path = workspace
    assert main(["--config", str(config_path), "--input", str(input_path), "--orders", "A1", "--quiet"]) == 0
    assert main(["--config", str(config_path), "--export-usage", str(tmp_path / "usage.csv")]) == 0

    frame = pd.read_csv(tmp_path / "usage.csv")
    assert frame["Event"].tolist() == ["GENERATE_NESTING"]
    assert frame.loc[0, "SO_List"] == "A1"
