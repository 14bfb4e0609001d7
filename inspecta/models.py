"""Core data models shared across inspecta components."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class ResourceCategory(str, Enum):
    """Semantic bucket assigned to a file found under res/ or assets/."""

    IMAGE_RASTER = "image-raster"
    IMAGE_VECTOR = "image-vector"
    ANIMATION = "animation"
    FONT = "font"
    LAYOUT = "layout"
    OTHER = "other"


@dataclass(frozen=True)
class ModuleInfo:
    """A Gradle module discovered under the project root."""

    name: str
    path: Path
    kind: str
    build_script: Optional[Path] = None

    @property
    def display_name(self) -> str:
        if self.name == ":":
            return self.path.name or ":"
        return self.name.rsplit(":", 1)[-1]

    @property
    def is_android(self) -> bool:
        return self.kind in {"application", "library"}

    @property
    def main_dir(self) -> Path:
        return self.path / "src" / "main"


@dataclass(frozen=True)
class AppModuleLookup:
    """Resolved application module plus the fallback rule that produced it."""

    module: ModuleInfo
    rule: str


@dataclass(frozen=True)
class ProjectLayout:
    """Normalized view of a Gradle project for analyzers."""

    root: Path
    modules: Tuple[ModuleInfo, ...]
    app: AppModuleLookup

    @property
    def android_modules(self) -> Tuple[ModuleInfo, ...]:
        return tuple(module for module in self.modules if module.is_android)

    def module_for(self, path: Path) -> Optional[ModuleInfo]:
        """Return the most specific module owning ``path``."""
        best: Optional[ModuleInfo] = None
        for module in self.modules:
            try:
                path.relative_to(module.path)
            except ValueError:
                continue
            if best is None or len(module.path.parts) > len(best.path.parts):
                best = module
        return best


@dataclass(frozen=True)
class ResourceFile:
    """A classified file found in a module's resource or asset roots."""

    path: Path
    module: str
    category: ResourceCategory
    size: int
    density: Optional[str] = None
    source_root: str = "res"

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix.lower().lstrip(".")

    @property
    def in_res(self) -> bool:
        return self.source_root == "res"


@dataclass(frozen=True)
class ResourceInventory:
    """Category-partitioned view over collected resource files."""

    files: Tuple[ResourceFile, ...] = ()

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.files)

    def by_category(self, category: ResourceCategory) -> List[ResourceFile]:
        return [item for item in self.files if item.category == category]

    def by_extension(self, *extensions: str) -> List[ResourceFile]:
        wanted = {ext.lower() for ext in extensions}
        return [item for item in self.files if item.extension in wanted]


@dataclass(frozen=True)
class NativeLibraryEntry:
    """A shared library found on disk or inside a package artifact."""

    name: str
    path: str
    architecture: str
    size: int


@dataclass(frozen=True)
class NativeLibraryInventory:
    """Native libraries shipped from module source trees."""

    entries: Tuple[NativeLibraryEntry, ...] = ()

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)


@dataclass(frozen=True)
class ContainerEntry:
    """A raw entry read from a zip-format package artifact."""

    path: str
    compressed_size: int
    size: int
    is_dir: bool = False

    @property
    def attributable_size(self) -> int:
        if self.compressed_size >= 0:
            return self.compressed_size
        return self.size


@dataclass(frozen=True)
class PackageArtifact:
    """The built container chosen for decomposition."""

    name: str
    path: Path
    total_size: int
    entries: Tuple[ContainerEntry, ...] = ()


@dataclass(frozen=True)
class SizeBreakdown:
    """Byte attribution of a package artifact.

    ``other`` already includes ``overhead`` so the six categories always add up
    to ``total``; ``overhead`` is kept alongside for display.
    """

    code: int = 0
    resources: int = 0
    native_libs: int = 0
    assets: int = 0
    metadata: int = 0
    other: int = 0
    overhead: int = 0

    @property
    def total(self) -> int:
        return self.code + self.resources + self.native_libs + self.assets + self.metadata + self.other

    def categories(self) -> Dict[str, int]:
        return {
            "code": self.code,
            "resources": self.resources,
            "native_libs": self.native_libs,
            "assets": self.assets,
            "metadata": self.metadata,
            "other": self.other,
        }


@dataclass(frozen=True)
class PackageAnalysis:
    """Decomposition result for the selected artifact."""

    artifact: PackageArtifact
    breakdown: SizeBreakdown
    native_libraries: Tuple[NativeLibraryEntry, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DependencyDeclaration:
    """A library entry declared in a version catalog."""

    alias: str
    coordinate: str
    declared_in: str


@dataclass(frozen=True)
class CatalogAnalysis:
    """Version catalog declarations and those with no build-script usage."""

    catalog_path: Path
    declarations: Tuple[DependencyDeclaration, ...] = ()
    unused: Tuple[DependencyDeclaration, ...] = ()


@dataclass(frozen=True)
class ReferenceAnalysis:
    """Image resources checked against the usage corpus."""

    checked: Tuple[ResourceFile, ...] = ()
    unused: Tuple[ResourceFile, ...] = ()
    corpus_size: int = 0

    @property
    def unused_size(self) -> int:
        return sum(item.size for item in self.unused)


@dataclass(frozen=True)
class Suggestion:
    """Derived optimisation hint."""

    kind: str
    message: str
    details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one analysis stage: either data or the reason it was skipped."""

    ok: bool
    data: Optional[T] = None
    reason: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @classmethod
    def success(cls, data: T, warnings: Tuple[str, ...] = ()) -> "StageResult[T]":
        return cls(ok=True, data=data, warnings=tuple(warnings))

    @classmethod
    def skipped(cls, reason: str, warnings: Tuple[str, ...] = ()) -> "StageResult[T]":
        return cls(ok=False, reason=reason, warnings=tuple(warnings))


@dataclass
class InspectionReport:
    """Everything one inspect run found, ready for rendering."""

    root: Path
    layout: ProjectLayout
    stages: Dict[str, StageResult] = field(default_factory=dict)
    suggestions: List[Suggestion] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def stage(self, name: str) -> StageResult:
        return self.stages.get(name) or StageResult.skipped(f"{name} analyzer did not run")

    def data(self, name: str):
        result = self.stage(name)
        return result.data if result.ok else None

    @property
    def warnings(self) -> List[str]:
        collected: List[str] = list(self.notes)
        for name in sorted(self.stages):
            result = self.stages[name]
            collected.extend(result.warnings)
            if not result.ok and result.reason:
                collected.append(result.reason)
        return collected
