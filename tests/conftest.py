from __future__ import annotations

from pathlib import Path
from typing import Any, List
import sys

import pytest

# Ensure project root is on sys.path for absolute imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from nestingstudio.io import build_dataset
from nestingstudio.models import Dataset

HEADER = ["订单号 Order NO", "Article", "Model Name", "Color", "Remark 备注", "3.5", "4", "4.5 UK", "Total Qty"]


@pytest.fixture
def order_grid() -> List[List[Any]]:
    return [
        ["PO Nesting Report", None, None, None, None, None, None, None, None],
        list(HEADER),
        ["A1", "ART-1", "Runner", "Red", "first", 3, "2", None, 5],
        ["A1", "ART-1", "Runner", "Blue", "revised", 2, None, "abc", 4],
        ["B2", "ART-2", "Walker", "Black", None, 5, "-5", 1, 11],
        [None, "ART-3", "Loose", "White", None, 7, None, None, 7],
        ["C3", "ART-1", "Runner", "Red", None, 0, 0, 0, 0],
    ]


@pytest.fixture
def sample_dataset(order_grid) -> Dataset:
    return build_dataset(order_grid, "sample")
