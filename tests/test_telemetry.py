import json

import pandas as pd
import pytest

from nestingstudio.config import TelemetryConfig
from nestingstudio.telemetry import CSV_COLUMNS, UsageLog


def test_usage_log_records_newest_first(tmp_path):
    log = UsageLog(TelemetryConfig(path=tmp_path / "usage.json"))
    log.record("APP_OPEN", dataset_name="DS-01")
    log.record("GENERATE_NESTING", selected_orders=["A1", "B2"], total_qty=13, order_count=2)

    entries = log.entries()
    assert [entry.event for entry in entries] == ["GENERATE_NESTING", "APP_OPEN"]
    assert entries[0].so_list == "A1;B2"
    assert entries[0].total_pairs == 13
    assert entries[1].so_list == "DS-01"


def test_usage_log_is_capped(tmp_path):
    log = UsageLog(TelemetryConfig(path=tmp_path / "usage.json", max_entries=3))
    for _ in range(5):
        log.record("APP_OPEN")
    assert len(log.entries()) == 3


def test_usage_log_disabled_and_unknown_event(tmp_path):
    disabled = UsageLog(TelemetryConfig(enabled=False, path=tmp_path / "usage.json"))
    assert disabled.record("APP_OPEN") is None
    assert not (tmp_path / "usage.json").exists()

    with pytest.raises(ValueError):
        UsageLog(TelemetryConfig(path=tmp_path / "usage.json")).record("SOMETHING")


def test_usage_log_write_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    log = UsageLog(TelemetryConfig(path=blocker / "usage.json"))
    assert log.record("APP_OPEN") is None


def test_usage_log_export_csv(tmp_path):
    log = UsageLog(TelemetryConfig(path=tmp_path / "usage.json"))
    log.record("EXPORT_EXCEL", selected_orders=["A1"], total_qty=7, order_count=1)

    path = log.export_csv(tmp_path / "audit.csv")
    frame = pd.read_csv(path)
    assert list(frame.columns) == CSV_COLUMNS
    assert frame.loc[0, "Event"] == "EXPORT_EXCEL"
    assert frame.loc[0, "Total_Pairs"] == 7


def test_usage_log_tolerates_malformed_numbers(tmp_path):
    path = tmp_path / "usage.json"
    path.write_text(
        json.dumps([
            {"event": "APP_OPEN", "order_count": "n/a", "total_pairs": None},
            {"event": "EXPORT_EXCEL", "order_count": "3", "total_pairs": "NaN"},
        ]),
        encoding="utf-8",
    )
    log = UsageLog(TelemetryConfig(path=path))

    entries = log.entries()
    assert [(entry.order_count, entry.total_pairs) for entry in entries] == [(0, 0), (3, 0)]
    assert log.record("GENERATE_NESTING", selected_orders=["A1"], total_qty=5, order_count=1) is not None
    assert [entry.event for entry in log.entries()] == ["GENERATE_NESTING", "APP_OPEN", "EXPORT_EXCEL"]
