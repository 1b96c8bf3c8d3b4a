"""JSON-backed store for saved datasets."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import StorageConfig
from .models import Dataset

logger = logging.getLogger(__name__)


def default_dataset_name(existing_count: int) -> str:
    return f"DS-{existing_count + 1:02d}"


class DatasetStore:
    """Simple JSON-backed list of datasets, newest first."""

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        config = config or StorageConfig()
        self.base_dir = Path(config.directory).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / config.filename
        self._datasets: List[Dataset] = self._load()

    # ------------ Persistence helpers ------------
    def _load(self) -> List[Dataset]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read dataset store %s: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed dataset store %s", self.path)
            return []
        datasets: List[Dataset] = []
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping unreadable saved dataset entry of type %s", type(item).__name__)
                continue
            try:
                datasets.append(Dataset.from_dict(item))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable saved dataset: %s", exc)
        return datasets

    def _save(self) -> None:
        data = [dataset.to_dict() for dataset in self._datasets]
        self.path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2, default=str), encoding="utf-8"
        )

    # ------------ Dataset helpers ------------
    def list_datasets(self) -> List[Dataset]:
        return list(self._datasets)

    def get(self, dataset_id: str) -> Optional[Dataset]:
        for dataset in self._datasets:
            if dataset.dataset_id == dataset_id:
                return dataset
        return None

    def find_by_name(self, name: str) -> Optional[Dataset]:
        for dataset in self._datasets:
            if dataset.name == name:
                return dataset
        return None

    def resolve(self, key: str) -> Optional[Dataset]:
        """Look a dataset up by id, falling back to its name."""

        return self.get(key) or self.find_by_name(key)

    def save(self, dataset: Dataset) -> Dataset:
        if not dataset.name.strip():
            dataset.name = default_dataset_name(len(self._datasets))
        self._datasets = [item for item in self._datasets if item.dataset_id != dataset.dataset_id]
        self._datasets.insert(0, dataset)
        self._save()
        logger.info("Saved dataset '%s' (%s)", dataset.name, dataset.dataset_id)
        return dataset

    def delete(self, dataset_id: str) -> bool:
        remaining = [item for item in self._datasets if item.dataset_id != dataset_id]
        if len(remaining) == len(self._datasets):
            return False
        self._datasets = remaining
        self._save()
        logger.info("Deleted dataset %s", dataset_id)
        return True


__all__ = ["DatasetStore", "default_dataset_name"]
