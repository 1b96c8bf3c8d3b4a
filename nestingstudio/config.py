"""Configuration loading utilities for Nesting Studio."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

EXTRA_INFO_POLICIES = ("last", "first")
MISSING_ORDER_POLICIES = ("unknown", "exclude")


@dataclass
class ClassifierConfig:
    """Keyword rules driving header detection and column suggestions."""

    header_scan_rows: int = 20
    order_column: str = "SO_Number"
    placeholder_header: str = "Col"
    excluded_keywords: List[str] = field(
        default_factory=lambda: ["total", "qty", "order", "po", "article"]
    )
    size_suffixes: List[str] = field(default_factory=lambda: ["uk", "us"])
    article_keywords: List[str] = field(default_factory=lambda: ["article", "style"])
    model_keywords: List[str] = field(default_factory=lambda: ["model"])
    color_keywords: List[str] = field(default_factory=lambda: ["color", "colour"])

    def role_keywords(self) -> Dict[str, List[str]]:
        return {
            "article": list(self.article_keywords),
            "model": list(self.model_keywords),
            "color": list(self.color_keywords),
        }


@dataclass
class AggregationConfig:
    """Policy switches for the aggregation engine."""

    extra_info_policy: str = "last"
    missing_order_policy: str = "unknown"
    unknown_order_label: str = "Unknown"


@dataclass
class StorageConfig:
    """Location of the saved dataset store."""

    directory: Path = Path.home() / ".nesting_studio"
    filename: str = "datasets.json"

    def resolved(self, base_path: Path) -> "StorageConfig":
        return StorageConfig(
            directory=_resolve_path(self.directory, base_path),
            filename=self.filename,
        )


@dataclass
class OutputConfig:
    """Paths describing where reports should be written."""

    directory: Path = Path("output")
    workbook: str = "PMA_Nesting_Summary.xlsx"
    audit_log: str = "nesting_audit.json"

    def resolved(self, base_path: Path) -> "OutputConfig":
        return OutputConfig(
            directory=_resolve_path(self.directory, base_path),
            workbook=self.workbook,
            audit_log=self.audit_log,
        )


@dataclass
class TelemetryConfig:
    """Settings for the local usage audit log."""

    enabled: bool = True
    path: Path = Path.home() / ".nesting_studio" / "usage_audit.json"
    max_entries: int = 1000

    def resolved(self, base_path: Path) -> "TelemetryConfig":
        return TelemetryConfig(
            enabled=self.enabled,
            path=_resolve_path(self.path, base_path),
            max_entries=self.max_entries,
        )


@dataclass
class AppConfig:
    """Container for all configuration used by the CLI and the UI."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    def resolved(self, base_path: Path) -> "AppConfig":
        return AppConfig(
            classifier=self.classifier,
            aggregation=self.aggregation,
            storage=self.storage.resolved(base_path),
            output=self.output.resolved(base_path),
            telemetry=self.telemetry.resolved(base_path),
        )


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load :class:`AppConfig` from a YAML file.

    When ``path`` is ``None`` the built-in defaults are returned.
    """

    if path is None:
        return AppConfig()

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_path}' does not exist")

    with config_path.open("r", encoding="utf-8") as stream:
        raw_config = yaml.safe_load(stream) or {}

    if not isinstance(raw_config, Mapping):
        raise ValueError("Configuration root must be a mapping")

    classifier = _build(ClassifierConfig, _section(raw_config, "classifier"), "classifier")
    aggregation = _build(AggregationConfig, _section(raw_config, "aggregation"), "aggregation")
    _validate_aggregation(aggregation)

    storage = _build(
        StorageConfig, _parse_paths(_section(raw_config, "storage"), ("directory",)), "storage"
    )
    output = _build(
        OutputConfig, _parse_paths(_section(raw_config, "output"), ("directory",)), "output"
    )
    telemetry = _build(
        TelemetryConfig, _parse_paths(_section(raw_config, "telemetry"), ("path",)), "telemetry"
    )

    config = AppConfig(
        classifier=classifier,
        aggregation=aggregation,
        storage=storage,
        output=output,
        telemetry=telemetry,
    )
    return config.resolved(config_path.parent)


def _build(factory: Any, section: Dict[str, Any], name: str) -> Any:
    known = {field_info.name for field_info in fields(factory)}
    unknown = sorted(str(key) for key in section if key not in known)
    if unknown:
        raise ValueError(
            f"Unknown keys in configuration section '{name}': " + ", ".join(unknown)
        )
    return factory(**section)


def _section(raw_config: Mapping[str, Any], name: str) -> Dict[str, Any]:
    section = raw_config.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Configuration section '{name}' must be a mapping")
    return dict(section)


def _parse_paths(section: Dict[str, Any], keys: tuple) -> Dict[str, Any]:
    for key in keys:
        if key in section and section[key] is not None:
            section[key] = Path(section[key])
    return section


def _validate_aggregation(aggregation: AggregationConfig) -> None:
    if aggregation.extra_info_policy not in EXTRA_INFO_POLICIES:
        raise ValueError(
            "aggregation.extra_info_policy must be one of: " + ", ".join(EXTRA_INFO_POLICIES)
        )
    if aggregation.missing_order_policy not in MISSING_ORDER_POLICIES:
        raise ValueError(
            "aggregation.missing_order_policy must be one of: "
            + ", ".join(MISSING_ORDER_POLICIES)
        )


def _resolve_path(path: Path, base_path: Path) -> Path:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return expanded
    return (base_path / expanded).resolve()
