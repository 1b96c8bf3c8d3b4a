import pytest

from nestingstudio.aggregation import aggregate
from nestingstudio.models import Dataset, DatasetConfigurationError


def test_dataset_rejects_repeated_size_column():
    with pytest.raises(DatasetConfigurationError, match="more than once: 7"):
        Dataset(
            name="dup",
            headers=["SO_Number", "7"],
            rows=[{"SO_Number": "A1", "7": 3}],
            size_columns=["7", "7"],
        )


def test_dataset_rejects_repeated_info_column(sample_dataset):
    with pytest.raises(DatasetConfigurationError):
        sample_dataset.configure(info_columns=["Color", "Color"])


def test_saved_dataset_with_repeated_columns_is_rejected(sample_dataset):
    data = sample_dataset.to_dict()
    data["size_columns"] = ["3.5", "3.5"]
    with pytest.raises(DatasetConfigurationError):
        Dataset.from_dict(data)


def test_configure_collapses_repeated_size_columns(sample_dataset):
    configured = sample_dataset.configure(size_columns=["3.5", "3.5"])
    assert configured.size_columns == ["3.5"]


def test_repeated_order_selection_counts_once(sample_dataset):
    once = aggregate(sample_dataset, ["A1"])
    twice = aggregate(sample_dataset, ["A1", "A1", " A1 "])

    assert twice.total_qty == once.total_qty
    assert twice.breakdown == once.breakdown
    assert twice.order_totals == once.order_totals
    assert twice.selected_orders == ["A1"]
