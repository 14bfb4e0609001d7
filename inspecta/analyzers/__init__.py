"""Analysis stages and the registry that discovers them.

Built-in stages run in a fixed order; third-party stages registered under the
``inspecta.analyzers`` entry point group are appended after them.
"""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Sequence

from .artifacts import ArtifactAnalyzer
from .base import Analyzer
from .catalog import CatalogAnalyzer
from .native import NativeLibraryAnalyzer
from .references import ReferenceAnalyzer
from .resources import ResourceAnalyzer

ENTRY_POINT_GROUP = "inspecta.analyzers"

AnalyzerFactory = Callable[[], Analyzer]

BUILTIN_ANALYZERS: Dict[str, AnalyzerFactory] = {
    "resources": ResourceAnalyzer,
    "native": NativeLibraryAnalyzer,
    "references": ReferenceAnalyzer,
    "artifact": ArtifactAnalyzer,
    "catalog": CatalogAnalyzer,
}


def analyzer_registry() -> Dict[str, AnalyzerFactory]:
    """Map lower-cased stage names to factories; built-ins shadow plugins."""
    registry: Dict[str, AnalyzerFactory] = dict(BUILTIN_ANALYZERS)
    for entry in _iter_entry_points():
        key = entry.name.lower()
        if key in registry:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load analyzer plugin '{entry.name}': {exc}") from exc
        registry[key] = _plugin_factory(loaded)
    return registry


def discover_analyzers(enabled: Sequence[str] | None = None) -> List[Analyzer]:
    """Instantiate every registered stage, or only those named in ``enabled``.

    Raises ValueError when ``enabled`` names a stage nobody registered.
    """
    registry = analyzer_registry()
    if enabled is None:
        selected = list(registry)
    else:
        wanted = {name.lower() for name in enabled}
        unknown = sorted(wanted - set(registry))
        if unknown:
            raise ValueError(f"Unknown analyzers requested: {', '.join(unknown)}")
        selected = [name for name in registry if name in wanted]

    analyzers: List[Analyzer] = []
    for name in selected:
        instance = registry[name]()
        if not isinstance(instance, Analyzer):
            raise TypeError(f"Analyzer factory for '{name}' did not return an Analyzer instance")
        if not instance.name:
            instance.name = name
        analyzers.append(instance)
    return analyzers


def _plugin_factory(obj: object) -> AnalyzerFactory:
    if isinstance(obj, Analyzer):
        return lambda: obj
    if callable(obj):
        return obj  # type: ignore[return-value]
    raise TypeError("Analyzer plugin must be an Analyzer instance, subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)


__all__ = [
    "Analyzer",
    "ArtifactAnalyzer",
    "BUILTIN_ANALYZERS",
    "CatalogAnalyzer",
    "ENTRY_POINT_GROUP",
    "NativeLibraryAnalyzer",
    "ReferenceAnalyzer",
    "ResourceAnalyzer",
    "analyzer_registry",
    "discover_analyzers",
]
