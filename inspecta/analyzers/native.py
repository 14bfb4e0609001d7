"""Native library collector for module jniLibs directories."""

from __future__ import annotations

from collections import OrderedDict
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Iterator, List, Tuple

from .base import Analyzer
from .utils import iter_module_files, relative_parts
from ..config import InspectaConfig
from ..logging import get_logger
from ..models import ModuleInfo, NativeLibraryEntry, NativeLibraryInventory, ProjectLayout, StageResult

SHARED_LIBRARY_SUFFIX = "so"
NATIVE_ROOT = "jniLibs"
KNOWN_ARCHITECTURES = ("arm64-v8a", "armeabi-v7a", "x86_64", "x86")
UNKNOWN_ARCHITECTURE = "unknown"

logger = get_logger("analyzers.native")


def iter_native_libraries(layout: ProjectLayout, modules: Iterable[ModuleInfo]) -> Iterator[NativeLibraryEntry]:
    for module in modules:
        for path in iter_module_files(module, NATIVE_ROOT, suffixes=[SHARED_LIBRARY_SUFFIX]):
            try:
                size = path.stat().st_size
            except OSError as exc:
                logger.debug("Skipping unreadable native library %s: %s", path, exc)
                continue
            parts = relative_parts(path, module)
            # jniLibs/<abi>/libfoo.so
            architecture = parts[1] if len(parts) >= 3 else UNKNOWN_ARCHITECTURE
            yield NativeLibraryEntry(
                name=path.name,
                path=_display_path(path, layout.root),
                architecture=architecture,
                size=size,
            )


def collect_native_libraries(
    layout: ProjectLayout, modules: Iterable[ModuleInfo] | None = None
) -> NativeLibraryInventory:
    targets = layout.modules if modules is None else modules
    return NativeLibraryInventory(entries=tuple(iter_native_libraries(layout, targets)))


def group_by_library_name(entries: Iterable[NativeLibraryEntry]) -> List[Tuple[str, int, int]]:
    """Return ``(name, architecture variants, total size)`` sorted by size, then name."""
    grouped: Dict[str, List[NativeLibraryEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.name, []).append(entry)
    rows = [
        (name, len(instances), sum(item.size for item in instances))
        for name, instances in grouped.items()
    ]
    rows.sort(key=lambda row: (-row[2], row[0]))
    return rows


def group_by_architecture(entries: Iterable[NativeLibraryEntry]) -> "OrderedDict[str, Tuple[int, int]]":
    """Return ``architecture -> (file count, total size)``.

    Well-known ABIs come first in a fixed order; any other segment follows
    alphabetically.
    """
    totals: Dict[str, List[int]] = {}
    for entry in entries:
        bucket = totals.setdefault(entry.architecture, [0, 0])
        bucket[0] += 1
        bucket[1] += entry.size
    ordered: "OrderedDict[str, Tuple[int, int]]" = OrderedDict()
    for arch in KNOWN_ARCHITECTURES:
        if arch in totals:
            ordered[arch] = (totals[arch][0], totals[arch][1])
    for arch in sorted(set(totals) - set(KNOWN_ARCHITECTURES)):
        ordered[arch] = (totals[arch][0], totals[arch][1])
    return ordered


def architecture_from_entry(path: str) -> str:
    """Derive the ABI from an artifact path such as ``lib/arm64-v8a/libfoo.so``."""
    parts = PurePosixPath(path).parts
    if len(parts) >= 3 and parts[0] == "lib":
        return parts[1]
    return UNKNOWN_ARCHITECTURE


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


class NativeLibraryAnalyzer(Analyzer):
    """Lists shared libraries vendored into module source trees."""

    name = "native"

    def supports(self, layout: ProjectLayout) -> bool:
        return bool(layout.modules)

    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        inventory = collect_native_libraries(layout)
        logger.debug("Collected %d native libraries", len(inventory.entries))
        return StageResult.success(inventory)
