"""Artifact selection and package decomposition."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

from .base import Analyzer
from .native import SHARED_LIBRARY_SUFFIX, architecture_from_entry
from ..config import InspectaConfig
from ..errors import ContainerError
from ..logging import get_logger
from ..models import (
    ContainerEntry,
    NativeLibraryEntry,
    PackageAnalysis,
    PackageArtifact,
    ProjectLayout,
    SizeBreakdown,
    StageResult,
)
from ..project_scanner import walk_files

CONTAINER_EXTENSIONS = ("apk", "aab")
EXCLUDED_NAME_MARKERS = ("unaligned", "androidtest", "test-")
RELEASE_SCORE = 1000
DEBUG_SCORE = 500

CODE_SUFFIX = ".dex"
MANIFEST_NAMES = {"AndroidManifest.xml", "manifest/AndroidManifest.xml", "BundleConfig.pb"}
METADATA_PREFIXES = ("META-INF/", "BUNDLE-METADATA/")
_BUNDLE_MODULE_DIRS = {"dex", "res", "lib", "assets", "manifest", "root"}

logger = get_logger("analyzers.artifacts")


@dataclass(frozen=True)
class ArtifactCandidate:
    """A package file found under the build output directory."""

    path: Path
    size: int
    score: Tuple[int, int]


def is_candidate_name(name: str) -> bool:
    lowered = name.lower()
    if PurePosixPath(lowered).suffix.lstrip(".") not in CONTAINER_EXTENSIONS:
        return False
    return not any(marker in lowered for marker in EXCLUDED_NAME_MARKERS)


def score_artifact(name: str, size: int) -> Tuple[int, int]:
    """Return ``(tier, size)``: release outranks debug at any size and the
    larger file wins within a tier."""
    lowered = name.lower()
    if "release" in lowered:
        base = RELEASE_SCORE
    elif "debug" in lowered:
        base = DEBUG_SCORE
    else:
        base = 0
    return base, size


def find_candidates(output_root: Path) -> List[ArtifactCandidate]:
    candidates: List[ArtifactCandidate] = []
    for path in walk_files(output_root, suffixes=CONTAINER_EXTENSIONS):
        if not is_candidate_name(path.name):
            continue
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.debug("Skipping unreadable artifact %s: %s", path, exc)
            continue
        candidates.append(ArtifactCandidate(path=path, size=size, score=score_artifact(path.name, size)))
    return candidates


def select_artifact(output_root: Path) -> Optional[ArtifactCandidate]:
    """Return the highest-scoring candidate; the first one found wins ties."""
    best: Optional[ArtifactCandidate] = None
    for candidate in find_candidates(output_root):
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def read_entries(path: Path) -> Tuple[ContainerEntry, ...]:
    """Read raw zip entries; raises ContainerError for unreadable containers."""
    try:
        with zipfile.ZipFile(path) as archive:
            return tuple(
                ContainerEntry(
                    path=info.filename,
                    compressed_size=info.compress_size,
                    size=info.file_size,
                    is_dir=info.is_dir(),
                )
                for info in archive.infolist()
            )
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
        raise ContainerError(f"Could not open {path.name} as a zip container: {exc}") from exc


def normalise_entry_path(path: str, *, bundle: bool) -> str:
    """Strip the bundle module segment (``base/``) from App Bundle entries."""
    if not bundle:
        return path
    parts = path.split("/", 2)
    if len(parts) >= 2 and parts[1] in _BUNDLE_MODULE_DIRS:
        return "/".join(parts[1:])
    return path


def classify_entry(path: str) -> str:
    if path.endswith(CODE_SUFFIX):
        return "code"
    if path.startswith("res/"):
        return "resources"
    if path.startswith("lib/"):
        return "native_libs"
    if path.startswith("assets/"):
        return "assets"
    if path.startswith(METADATA_PREFIXES) or path in MANIFEST_NAMES:
        return "metadata"
    return "other"


def decompose_entries(
    entries: Iterable[ContainerEntry], total_size: int, *, bundle: bool = False
) -> Tuple[SizeBreakdown, Tuple[NativeLibraryEntry, ...]]:
    """Attribute entry sizes to categories; overhead is the remainder of ``total_size``."""
    sizes: Dict[str, int] = {
        "code": 0,
        "resources": 0,
        "native_libs": 0,
        "assets": 0,
        "metadata": 0,
        "other": 0,
    }
    libraries: List[NativeLibraryEntry] = []
    for entry in entries:
        if entry.is_dir:
            continue
        size = entry.attributable_size
        path = normalise_entry_path(entry.path, bundle=bundle)
        category = classify_entry(path)
        sizes[category] += size
        if category == "native_libs" and path.endswith(f".{SHARED_LIBRARY_SUFFIX}"):
            libraries.append(
                NativeLibraryEntry(
                    name=PurePosixPath(path).name,
                    path=entry.path,
                    architecture=architecture_from_entry(path),
                    size=size,
                )
            )

    overhead = total_size - sum(sizes.values())
    breakdown = SizeBreakdown(
        code=sizes["code"],
        resources=sizes["resources"],
        native_libs=sizes["native_libs"],
        assets=sizes["assets"],
        metadata=sizes["metadata"],
        other=sizes["other"] + overhead,
        overhead=overhead,
    )
    return breakdown, tuple(libraries)


def decompose(path: Path) -> PackageAnalysis:
    """Open ``path`` and reconcile its entries against the on-disk size."""
    try:
        total_size = path.stat().st_size
    except OSError as exc:
        raise ContainerError(f"Could not stat {path.name}: {exc}") from exc
    entries = read_entries(path)
    breakdown, libraries = decompose_entries(
        entries, total_size, bundle=path.suffix.lower() == ".aab"
    )
    warnings: Tuple[str, ...] = ()
    if breakdown.overhead < 0:
        warnings = (
            f"Entries of {path.name} add up to {total_size - breakdown.overhead} bytes, "
            f"more than the file size of {total_size} bytes; the container sizes are inconsistent",
        )
    artifact = PackageArtifact(name=path.name, path=path, total_size=total_size, entries=entries)
    return PackageAnalysis(
        artifact=artifact,
        breakdown=breakdown,
        native_libraries=libraries,
        warnings=warnings,
    )


class ArtifactAnalyzer(Analyzer):
    """Selects the built package of the app module and decomposes it."""

    name = "artifact"

    def supports(self, layout: ProjectLayout) -> bool:
        return True

    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        app_dir = layout.app.module.path
        output_root = app_dir / config.artifacts.output_dir
        if not output_root.is_dir():
            return StageResult.skipped(
                f"No build output directory at {_display(output_root, layout.root)}; "
                "build the app for package size analysis"
            )

        candidate = select_artifact(output_root)
        if candidate is None:
            return StageResult.skipped(
                f"No APK or AAB found under {_display(output_root, layout.root)}; "
                "build the app for package size analysis"
            )

        logger.debug("Selected artifact %s (score %s)", candidate.path, candidate.score)
        try:
            analysis = decompose(candidate.path)
        except ContainerError as exc:
            return StageResult.skipped(str(exc))
        return StageResult.success(analysis, warnings=analysis.warnings)


def _display(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
