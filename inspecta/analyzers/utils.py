"""Shared helper utilities for analyzer implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from ..models import ModuleInfo
from ..project_scanner import walk_files

DENSITY_BUCKETS = ("ldpi", "mdpi", "hdpi", "xhdpi", "xxhdpi", "xxxhdpi", "nodpi", "anydpi")


def iter_module_files(module: ModuleInfo, subdir: str, suffixes: Iterable[str] | None = None) -> Iterator[Path]:
    """Yield every file under ``<module>/src/main/<subdir>``."""
    yield from walk_files(module.main_dir / subdir, suffixes=suffixes)


def relative_parts(path: Path, module: ModuleInfo) -> Tuple[str, ...]:
    """Return the path segments below ``src/main`` (``res/drawable/x.png``)."""
    try:
        return path.relative_to(module.main_dir).parts
    except ValueError:
        return path.parts


def parent_segments_contain(parts: Sequence[str], *needles: str) -> bool:
    """True when any directory segment contains one of ``needles``."""
    for segment in parts[:-1]:
        lowered = segment.lower()
        if any(needle in lowered for needle in needles):
            return True
    return False


def density_bucket(parts: Sequence[str]) -> Optional[str]:
    """Extract a density qualifier such as ``xxhdpi`` from ``drawable-xxhdpi``."""
    for segment in parts[:-1]:
        for qualifier in segment.lower().split("-")[1:]:
            if qualifier in DENSITY_BUCKETS:
                return qualifier
    return None


def read_text(path: Path) -> str:
    """Read a text file, raising OSError for unreadable files."""
    return path.read_text(encoding="utf-8", errors="replace")


__all__ = [
    "DENSITY_BUCKETS",
    "density_bucket",
    "iter_module_files",
    "parent_segments_contain",
    "read_text",
    "relative_parts",
]
