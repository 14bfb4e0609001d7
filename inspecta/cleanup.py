"""Unused image cleanup with dry-run by default."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .analyzers.corpus import build_corpus
from .analyzers.references import find_unused
from .analyzers.resources import iter_resources
from .logging import get_logger
from .models import ProjectLayout, ResourceCategory, ResourceFile

logger = get_logger("cleanup")


class CleanupType(str, Enum):
    """Resource selector accepted by the cleanup command."""

    PNG = "png"
    JPG = "jpg"
    JPEG = "jpeg"
    WEBP = "webp"
    SVG = "svg"
    ALL = "all"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["CleanupType"]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def choices(cls) -> List[str]:
        return [member.value for member in cls]

    def matches(self, item: ResourceFile) -> bool:
        ext = item.extension
        if self is CleanupType.PNG:
            return ext == "png"
        if self in (CleanupType.JPG, CleanupType.JPEG):
            return ext in {"jpg", "jpeg"}
        if self is CleanupType.WEBP:
            return ext == "webp"
        if self is CleanupType.SVG:
            return item.category == ResourceCategory.IMAGE_VECTOR
        return item.category in (ResourceCategory.IMAGE_RASTER, ResourceCategory.IMAGE_VECTOR)


_TYPE_LABELS = (
    ("png", "PNG"),
    ("jpg", "JPG"),
    ("webp", "WebP"),
    ("svg", "SVG (Vector)"),
)


def type_label(item: ResourceFile) -> str:
    if item.category == ResourceCategory.IMAGE_VECTOR:
        return "svg"
    if item.extension in {"jpg", "jpeg"}:
        return "jpg"
    return item.extension


@dataclass(frozen=True)
class CleanupPlan:
    """Unreferenced files selected for removal."""

    root: Path
    resource_type: CleanupType
    candidates: Tuple[ResourceFile, ...] = ()

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.candidates)

    def by_type(self) -> "OrderedDict[str, Tuple[int, int]]":
        grouped: "OrderedDict[str, Tuple[int, int]]" = OrderedDict()
        for key, label in _TYPE_LABELS:
            files = [item for item in self.candidates if type_label(item) == key]
            if files:
                grouped[label] = (len(files), sum(item.size for item in files))
        return grouped

    def by_module(self) -> Dict[str, Tuple[int, int]]:
        grouped: Dict[str, List[int]] = {}
        for item in self.candidates:
            bucket = grouped.setdefault(item.module, [0, 0])
            bucket[0] += 1
            bucket[1] += item.size
        return {name: (count, size) for name, (count, size) in sorted(grouped.items())}


@dataclass
class CleanupOutcome:
    """What a cleanup invocation did, or why it did nothing."""

    plan: Optional[CleanupPlan] = None
    dry_run: bool = True
    deleted: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)
    error: Optional[str] = None
    invalid_type: bool = False

    @property
    def deleted_size(self) -> int:
        if self.plan is None:
            return 0
        removed = set(self.deleted)
        return sum(item.size for item in self.plan.candidates if item.path in removed)


def plan_cleanup(layout: ProjectLayout, resource_type: CleanupType) -> CleanupPlan:
    """Collect unreferenced images of ``resource_type`` from Android modules' res/."""
    modules = layout.android_modules
    corpus = build_corpus(layout, modules)
    selected = [
        item
        for item in iter_resources(modules, roots=("res",))
        if resource_type.matches(item)
    ]
    analysis = find_unused(selected, corpus)
    return CleanupPlan(root=layout.root, resource_type=resource_type, candidates=analysis.unused)


def _unlink(path: Path) -> None:
    path.unlink()


def execute_cleanup(
    plan: CleanupPlan,
    *,
    confirm: bool = False,
    remove: Callable[[Path], None] = _unlink,
) -> CleanupOutcome:
    """Delete the planned files when ``confirm`` is set; otherwise only report them."""
    outcome = CleanupOutcome(plan=plan, dry_run=not confirm)
    if not confirm:
        logger.info("Dry run: %d files would be removed", len(plan.candidates))
        return outcome

    for item in plan.candidates:
        try:
            remove(item.path)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", item.path, exc)
            outcome.failed.append((item.path, str(exc)))
            continue
        outcome.deleted.append(item.path)
    logger.info("Deleted %d files, %d failures", len(outcome.deleted), len(outcome.failed))
    return outcome


__all__ = ["CleanupOutcome", "CleanupPlan", "CleanupType", "execute_cleanup", "plan_cleanup"]
