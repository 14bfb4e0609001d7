"""Resource collector: classifies files under res/ and assets/."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional

from .base import Analyzer
from .utils import DENSITY_BUCKETS, density_bucket, iter_module_files, parent_segments_contain, read_text, relative_parts
from ..config import InspectaConfig
from ..logging import get_logger
from ..models import ModuleInfo, ProjectLayout, ResourceCategory, ResourceFile, ResourceInventory, StageResult

RASTER_EXTENSIONS = {"png", "jpg", "jpeg", "webp"}
FONT_EXTENSIONS = {"ttf", "otf"}
RESOURCE_ROOTS = ("res", "assets")

_VECTOR_MARKERS = ("<vector", "android:pathData")

logger = get_logger("analyzers.resources")


def is_vector_drawable(path: Path) -> bool:
    """Sniff the file text for vector markers; unreadable files are not vectors."""
    try:
        content = read_text(path)
    except OSError as exc:
        logger.debug("Skipping vector sniff for %s: %s", path, exc)
        return False
    return any(marker in content for marker in _VECTOR_MARKERS)


def classify_resource(path: Path, parts: tuple[str, ...]) -> ResourceCategory:
    """Return the category for a file given its segments below ``src/main``."""
    ext = path.suffix.lower().lstrip(".")
    if ext in RASTER_EXTENSIONS:
        return ResourceCategory.IMAGE_RASTER
    if ext == "xml" and parent_segments_contain(parts, "drawable"):
        if is_vector_drawable(path):
            return ResourceCategory.IMAGE_VECTOR
        return ResourceCategory.OTHER
    if ext == "xml" and parent_segments_contain(parts, "layout"):
        return ResourceCategory.LAYOUT
    if ext == "json" and parent_segments_contain(parts, "raw", "assets"):
        return ResourceCategory.ANIMATION
    if ext in FONT_EXTENSIONS:
        return ResourceCategory.FONT
    return ResourceCategory.OTHER


def make_resource(path: Path, module: ModuleInfo, source_root: str) -> Optional[ResourceFile]:
    """Classify ``path``; ``source_root`` names the ``src/main`` root it was found under."""
    parts = relative_parts(path, module)
    try:
        size = path.stat().st_size
    except OSError as exc:
        logger.debug("Skipping unreadable resource %s: %s", path, exc)
        return None
    category = classify_resource(path, parts)
    density = density_bucket(parts) if category == ResourceCategory.IMAGE_RASTER else None
    return ResourceFile(
        path=path,
        module=module.name,
        category=category,
        size=size,
        density=density,
        source_root=source_root,
    )


def iter_resources(
    modules: Iterable[ModuleInfo],
    roots: Iterable[str] = RESOURCE_ROOTS,
) -> Iterator[ResourceFile]:
    """Walk resource roots of every module, yielding classified records."""
    root_names = tuple(roots)
    for module in modules:
        for root_name in root_names:
            for path in iter_module_files(module, root_name):
                record = make_resource(path, module, root_name)
                if record is not None:
                    yield record


def collect_resources(layout: ProjectLayout, modules: Iterable[ModuleInfo] | None = None) -> ResourceInventory:
    """Fold every classified resource across ``modules`` into an inventory."""
    targets = layout.modules if modules is None else modules
    return ResourceInventory(files=tuple(iter_resources(targets)))


def density_variants(files: Iterable[ResourceFile]) -> dict[str, int]:
    """Count raster images per density bucket, in bucket order."""
    counts = {bucket: 0 for bucket in DENSITY_BUCKETS}
    for item in files:
        if item.density:
            counts[item.density] += 1
    return {bucket: count for bucket, count in counts.items() if count > 0}


class ResourceAnalyzer(Analyzer):
    """Inventories images, vectors, animations, fonts and layouts."""

    name = "resources"

    def supports(self, layout: ProjectLayout) -> bool:
        return bool(layout.modules)

    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        inventory = collect_resources(layout)
        logger.debug(
            "Collected %d resource files (%d bytes)",
            len(inventory.files),
            inventory.total_size,
        )
        return StageResult.success(inventory)
