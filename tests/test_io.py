import tempfile
from pathlib import Path

import pandas as pd
import pytest

from nestingstudio.io import (
    EmptySheetError,
    build_dataset,
    extract_order_numbers,
    load_dataset,
    load_uploaded_dataset,
    normalize_rows,
    read_sheet_grid,
)


def test_build_dataset_classifies_sample_grid(sample_dataset):
    assert sample_dataset.header_row == 1
    assert sample_dataset.headers[0] == "SO_Number"
    assert sample_dataset.size_columns == ["3.5", "4", "4.5 UK"]
    assert sample_dataset.info_columns == []
    assert sample_dataset.so_numbers == ["A1", "B2", "C3"]
    assert sample_dataset.article_header == "Article"
    assert sample_dataset.model_header == "Model Name"
    assert sample_dataset.color_header == "Color"
    assert len(sample_dataset.rows) == 5


def test_normalize_rows_pads_and_drops_blank_rows():
    rows = normalize_rows([["A1", 3], [None, None], [], ["B2", 1, "x", "surplus"]], ["SO_Number", "7", "Color"])
    assert rows == [
        {"SO_Number": "A1", "7": 3, "Color": None},
        {"SO_Number": "B2", "7": 1, "Color": "x"},
    ]


def test_normalize_rows_converts_nan_to_none():
    rows = normalize_rows([["A1", float("nan")]], ["SO_Number", "7"])
    assert rows[0]["7"] is None


def test_extract_order_numbers_trims_and_deduplicates():
    rows = [
        {"SO_Number": " A1 "},
        {"SO_Number": "A1"},
        {"SO_Number": None},
        {"SO_Number": ""},
        {"SO_Number": 12345},
        {"SO_Number": 12345.0},
    ]
    assert extract_order_numbers(rows, "SO_Number") == ["A1", "12345"]


def test_build_dataset_rejects_empty_sheet():
    with pytest.raises(EmptySheetError):
        build_dataset([], "empty")
    with pytest.raises(EmptySheetError):
        build_dataset([[None, None], []], "blank")


def test_build_dataset_without_header_uses_first_row():
    dataset = build_dataset([["Style", "7", "8"], ["S1", 1, 2]], "no-header")
    assert dataset.header_row == 0
    assert dataset.size_columns == ["7", "8"]
    assert dataset.so_numbers == []


def test_load_dataset_from_excel(tmp_path, order_grid):
    path = tmp_path / "orders.xlsx"
    pd.DataFrame(order_grid).to_excel(path, header=False, index=False)

    dataset = load_dataset(path)

    assert dataset.name == "orders"
    assert dataset.source_path == str(path)
    assert dataset.size_columns == ["3.5", "4", "4.5 UK"]
    assert dataset.so_numbers == ["A1", "B2", "C3"]
    assert dataset.rows[0]["3.5"] == 3
    assert dataset.rows[3]["SO_Number"] is None


def test_load_dataset_from_csv_keeps_text_cells(tmp_path, order_grid):
    path = tmp_path / "orders.csv"
    pd.DataFrame(order_grid).to_csv(path, header=False, index=False)

    dataset = load_dataset(path, name="csv orders")

    assert dataset.name == "csv orders"
    assert dataset.rows[0]["3.5"] == "3"
    assert dataset.so_numbers == ["A1", "B2", "C3"]


def test_read_sheet_grid_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_sheet_grid(tmp_path / "missing.xlsx")

    unsupported = tmp_path / "orders.pdf"
    unsupported.write_text("x")
    with pytest.raises(ValueError):
        read_sheet_grid(unsupported)


def test_empty_csv_is_fatal(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(EmptySheetError):
        load_dataset(Path(path))


def test_load_uploaded_dataset_removes_temporary_file(tmp_path, order_grid, monkeypatch):
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(upload_dir))
    content = pd.DataFrame(order_grid).to_csv(header=False, index=False).encode("utf-8")

    dataset = load_uploaded_dataset(content, "week 42.csv")

    assert dataset.name == "week 42"
    assert dataset.source_path == "week 42.csv"
    assert dataset.so_numbers == ["A1", "B2", "C3"]
    assert list(upload_dir.iterdir()) == []

    with pytest.raises(EmptySheetError):
        load_uploaded_dataset(b"", "empty.csv")
    assert list(upload_dir.iterdir()) == []
