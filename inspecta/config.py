"""Configuration loading for inspecta (.inspecta.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".inspecta.yml"

DEFAULT_CATALOG_PATHS = ("gradle/libs.versions.toml", "libs.versions.toml")
DEFAULT_ACCESSORS = ("libs", "truLibs")
REPORT_FORMATS = ("text", "json")


@dataclass
class CatalogConfig:
    """Version catalog locations and accessor names used in build scripts."""

    paths: List[str] = field(default_factory=lambda: list(DEFAULT_CATALOG_PATHS))
    accessors: List[str] = field(default_factory=lambda: list(DEFAULT_ACCESSORS))


@dataclass
class ArtifactConfig:
    """Where built packages are looked up, relative to the app module."""

    output_dir: str = "build/outputs"


@dataclass
class ReportConfig:
    """Report rendering options."""

    format: str = "text"
    top_native_files: int = 10
    top_libraries: int = 15


@dataclass
class ThresholdConfig:
    """Limits that trigger optimisation suggestions."""

    unused_images: int = 5
    png_count_for_webp: int = 20
    jpg_count_for_webp: int = 10
    native_libs_bytes: int = 5 * 1024 * 1024
    animation_bytes: int = 100 * 1024


@dataclass
class InspectaConfig:
    """Represents the settings defined in .inspecta.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    analyzers: List[str] = field(default_factory=list)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    artifacts: ArtifactConfig = field(default_factory=ArtifactConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)


def load_config(config_path: Path, *, environ: Mapping[str, str] | None = None) -> InspectaConfig:
    """Load configuration from disk and apply environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    if not config_file.exists():
        return _apply_env(InspectaConfig(root=root), env)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = InspectaConfig(root=root)
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    config.analyzers = _as_str_list(data.get("analyzers"))

    modules_data = _as_dict(data.get("modules"))
    config.modules = _as_str_list(modules_data.get("include"))

    catalog_data = _as_dict(data.get("catalog"))
    if catalog_data:
        paths = _as_str_list(catalog_data.get("paths"))
        accessors = _as_str_list(catalog_data.get("accessors"))
        if paths:
            config.catalog.paths = paths
        if accessors:
            config.catalog.accessors = accessors

    artifact_data = _as_dict(data.get("artifacts"))
    output_dir = _as_str(artifact_data.get("output_dir"))
    if output_dir:
        config.artifacts.output_dir = output_dir

    report_data = _as_dict(data.get("report"))
    if report_data:
        fmt = _as_str(report_data.get("format"))
        if fmt:
            config.report.format = _validate_format(fmt)
        config.report.top_native_files = _as_int(
            report_data.get("top_native_files"), config.report.top_native_files
        )
        config.report.top_libraries = _as_int(
            report_data.get("top_libraries"), config.report.top_libraries
        )

    threshold_data = _as_dict(data.get("thresholds"))
    thresholds = config.thresholds
    for name in (
        "unused_images",
        "png_count_for_webp",
        "jpg_count_for_webp",
        "native_libs_bytes",
        "animation_bytes",
    ):
        setattr(thresholds, name, _as_int(threshold_data.get(name), getattr(thresholds, name)))

    return _apply_env(config, env)


def _apply_env(config: InspectaConfig, env: Mapping[str, str]) -> InspectaConfig:
    fmt = env.get("INSPECTA_REPORT_FORMAT")
    if fmt:
        config.report.format = _validate_format(fmt)
    accessors = env.get("INSPECTA_CATALOG_ACCESSORS")
    if accessors:
        parsed = [item.strip() for item in accessors.split(",") if item.strip()]
        if parsed:
            config.catalog.accessors = parsed
    return config


def _validate_format(value: str) -> str:
    lowered = value.strip().lower()
    if lowered not in REPORT_FORMATS:
        raise ConfigError(
            f"Unsupported report format '{value}'. Expected one of: {', '.join(REPORT_FORMATS)}"
        )
    return lowered


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ArtifactConfig",
    "CatalogConfig",
    "ConfigError",
    "InspectaConfig",
    "ReportConfig",
    "ThresholdConfig",
    "load_config",
]
