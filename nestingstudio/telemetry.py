"""Local usage audit log.

Events are kept newest first in a JSON file and can be exported as CSV.
Recording is best-effort: a failure to read or write the log is logged and
never interrupts report generation.
"""

from __future__ import annotations

import getpass
import json
import logging
import math
import platform
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config import TelemetryConfig

logger = logging.getLogger(__name__)

EVENTS = ("APP_OPEN", "GENERATE_NESTING", "EXPORT_EXCEL")
CSV_COLUMNS = ["Timestamp", "User", "Host", "Event", "SO_List", "Total_Pairs", "Order_Count"]


@dataclass
class UsageEntry:
    timestamp: str
    user: str
    host: str
    event: str
    so_list: str = ""
    total_pairs: float = 0
    order_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageEntry":
        return cls(
            timestamp=str(data.get("timestamp", "")),
            user=str(data.get("user", "")),
            host=str(data.get("host", "")),
            event=str(data.get("event", "")),
            so_list=str(data.get("so_list", "")),
            total_pairs=_safe_number(data.get("total_pairs")),
            order_count=int(_safe_number(data.get("order_count"))),
        )


class UsageLog:
    """JSON-backed audit trail of app usage."""

    def __init__(self, config: Optional[TelemetryConfig] = None) -> None:
        self.config = config or TelemetryConfig()
        self.path = Path(self.config.path).expanduser()

    def entries(self) -> List[UsageEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read usage log %s: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            return []
        return [UsageEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    def record(
        self,
        event: str,
        selected_orders: Optional[Sequence[str]] = None,
        dataset_name: str = "",
        total_qty: float = 0,
        order_count: int = 0,
    ) -> Optional[UsageEntry]:
        """Append an event; returns ``None`` when logging is disabled or fails."""

        if not self.config.enabled:
            return None
        if event not in EVENTS:
            raise ValueError(f"Unknown usage event '{event}'")

        entry = UsageEntry(
            timestamp=datetime.now().replace(microsecond=0).isoformat(sep=" "),
            user=_current_user(),
            host=platform.node(),
            event=event,
            so_list=";".join(selected_orders) if selected_orders else dataset_name,
            total_pairs=total_qty,
            order_count=order_count,
        )
        try:
            entries = self.entries()
            entries.insert(0, entry)
            del entries[self.config.max_entries :]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps([asdict(item) for item in entries], ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Usage logging error: %s", exc)
            return None
        return entry

    def export_csv(self, path: Path) -> Path:
        frame = pd.DataFrame(
            [
                [e.timestamp, e.user, e.host, e.event, e.so_list, e.total_pairs, e.order_count]
                for e in self.entries()
            ],
            columns=CSV_COLUMNS,
        )
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(path, index=False)
        return path


def _safe_number(value: object) -> float:
    if isinstance(value, bool):
        return 0
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(numeric) or math.isinf(numeric):
        return 0
    return numeric


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):  # pragma: no cover - depends on the environment
        return "unknown"


__all__ = ["EVENTS", "UsageEntry", "UsageLog"]
