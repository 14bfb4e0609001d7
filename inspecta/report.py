"""Report synthesis: suggestions plus text and JSON rendering."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from .analyzers.native import group_by_architecture, group_by_library_name
from .analyzers.resources import density_variants
from .cleanup import CleanupOutcome, CleanupType
from .config import InspectaConfig, ReportConfig, ThresholdConfig
from .models import (
    CatalogAnalysis,
    InspectionReport,
    NativeLibraryInventory,
    PackageAnalysis,
    ReferenceAnalysis,
    ResourceCategory,
    ResourceInventory,
    Suggestion,
)

_UNITS = ("B", "KB", "MB", "GB")
_TEMPLATES_DIR = Path(__file__).with_name("templates")
_BREAKDOWN_LABELS = (
    ("code", "Code (DEX)"),
    ("native_libs", "Native Libs"),
    ("resources", "Resources"),
    ("assets", "Assets"),
    ("metadata", "Metadata (Manifest, Signatures)"),
    ("other", "Other entries"),
)
WEBP_SAVING_RATIO = 0.3


def format_size(size: int | float) -> str:
    """Render ``size`` bytes with 1024-based units, e.g. ``1,023 B`` or ``1.5 KB``."""
    if size <= 0:
        return "0 B"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_UNITS) - 1:
        value /= 1024
        index += 1
    text = f"{value:,.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text} {_UNITS[index]}"


def percent(part: int, whole: int) -> str:
    if whole <= 0:
        return "0.0"
    return f"{part * 100.0 / whole:.1f}"


def build_suggestions(
    report: InspectionReport, thresholds: ThresholdConfig
) -> List[Suggestion]:
    """Derive optimisation hints from the stage results."""
    suggestions: List[Suggestion] = []
    inventory: Optional[ResourceInventory] = report.data("resources")
    references: Optional[ReferenceAnalysis] = report.data("references")
    native: Optional[NativeLibraryInventory] = report.data("native")
    package: Optional[PackageAnalysis] = report.data("artifact")
    catalog: Optional[CatalogAnalysis] = report.data("catalog")

    if references is not None and len(references.unused) > thresholds.unused_images:
        suggestions.append(
            Suggestion(
                kind="unused-images",
                message=(
                    f"Remove {len(references.unused)} unused images to save "
                    f"{format_size(references.unused_size)}"
                ),
                details=("Preview with `inspecta cleanup --type all` before deleting.",),
            )
        )

    if inventory is not None:
        pngs = inventory.by_extension("png")
        webps = inventory.by_extension("webp")
        jpgs = inventory.by_extension("jpg", "jpeg")
        if len(pngs) > thresholds.png_count_for_webp and len(webps) < len(pngs) / 2:
            saving = int(sum(item.size for item in pngs) * WEBP_SAVING_RATIO)
            suggestions.append(
                Suggestion(
                    kind="png-to-webp",
                    message=f"Convert PNGs to WebP to save about {format_size(saving)}",
                )
            )
        if len(jpgs) > thresholds.jpg_count_for_webp:
            suggestions.append(
                Suggestion(
                    kind="jpg-to-webp",
                    message="Convert JPEGs to WebP for better compression at the same quality",
                )
            )
        large_animations = [
            item
            for item in inventory.by_category(ResourceCategory.ANIMATION)
            if item.size > thresholds.animation_bytes
        ]
        if large_animations:
            suggestions.append(
                Suggestion(
                    kind="large-animations",
                    message=(
                        f"{len(large_animations)} large animation file(s) detected; "
                        "simplify or re-export them"
                    ),
                )
            )

    if native is not None and native.total_size > thresholds.native_libs_bytes:
        suggestions.append(
            Suggestion(
                kind="native-libs",
                message=(
                    f"Native libs are large ({format_size(native.total_size)}); "
                    "ship an App Bundle or ABI splits"
                ),
            )
        )

    if package is None:
        app_name = report.layout.app.module.name
        task = f"{app_name}:assembleRelease" if app_name != ":" else "assembleRelease"
        suggestions.append(
            Suggestion(
                kind="build-artifact",
                message="Build the app for accurate package size analysis",
                details=(f"./gradlew {task}",),
            )
        )

    if catalog is not None and catalog.unused:
        suggestions.append(
            Suggestion(
                kind="unused-dependencies",
                message=(
                    f"Remove {len(catalog.unused)} unused dependencies from "
                    f"{catalog.catalog_path.name}"
                ),
            )
        )

    return suggestions


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _breakdown_rows(package: PackageAnalysis) -> List[Dict[str, Any]]:
    breakdown = package.breakdown
    total = package.artifact.total_size
    values = breakdown.categories()
    values["other"] = breakdown.other - breakdown.overhead
    rows = [
        {"key": key, "label": label, "size": values[key]}
        for key, label in _BREAKDOWN_LABELS
        if values[key] != 0
    ]
    rows.sort(key=lambda row: (-row["size"], row["label"]))
    if breakdown.overhead != 0:
        rows.append({"key": "overhead", "label": "Container overhead", "size": breakdown.overhead})
    for row in rows:
        row["size_text"] = format_size(row["size"]) if row["size"] >= 0 else f"-{format_size(-row['size'])}"
        row["percent"] = percent(row["size"], total)
    return rows


def _artifact_native_view(package: PackageAnalysis, top: int) -> Optional[Dict[str, Any]]:
    entries = package.native_libraries
    if not entries:
        return None
    total = sum(entry.size for entry in entries)
    libraries = group_by_library_name(entries)
    shown = [
        {
            "name": name,
            "variants": variants,
            "size_text": format_size(size),
            "percent": percent(size, total),
        }
        for name, variants, size in libraries[:top]
    ]
    remainder = None
    if len(libraries) > top:
        rest = sum(size for _, _, size in libraries[top:])
        remainder = {
            "count": len(libraries) - top,
            "size_text": format_size(rest),
            "percent": percent(rest, total),
        }
    architectures = [
        {
            "name": arch,
            "files": files,
            "size_text": format_size(size),
            "percent": percent(size, total),
        }
        for arch, (files, size) in group_by_architecture(entries).items()
    ]
    return {
        "count": len(entries),
        "total_text": format_size(total),
        "libraries": shown,
        "remainder": remainder,
        "architectures": architectures,
    }


def _image_rows(inventory: ResourceInventory, references: Optional[ReferenceAnalysis]) -> List[Dict[str, Any]]:
    unused = set(references.unused) if references is not None else set()
    groups: Sequence[Tuple[str, List[Any]]] = (
        ("PNG", inventory.by_extension("png")),
        ("JPG", inventory.by_extension("jpg", "jpeg")),
        ("WebP", inventory.by_extension("webp")),
        ("Vector Drawables", inventory.by_category(ResourceCategory.IMAGE_VECTOR)),
        ("Animations", inventory.by_category(ResourceCategory.ANIMATION)),
        ("Fonts", inventory.by_category(ResourceCategory.FONT)),
        ("Layouts", inventory.by_category(ResourceCategory.LAYOUT)),
    )
    rows = []
    for label, files in groups:
        stale = [item for item in files if item in unused]
        rows.append(
            {
                "label": label,
                "count": len(files),
                "size_text": format_size(sum(item.size for item in files)),
                "unused_count": len(stale),
                "unused_size_text": format_size(sum(item.size for item in stale)),
            }
        )
    return rows


def build_context(report: InspectionReport, options: ReportConfig) -> Dict[str, Any]:
    """Flatten an inspection report into template-ready values."""
    root = report.root
    layout = report.layout
    inventory: Optional[ResourceInventory] = report.data("resources")
    references: Optional[ReferenceAnalysis] = report.data("references")
    native: Optional[NativeLibraryInventory] = report.data("native")
    package: Optional[PackageAnalysis] = report.data("artifact")
    catalog: Optional[CatalogAnalysis] = report.data("catalog")

    context: Dict[str, Any] = {
        "project": root.name or str(root),
        "modules": [module.display_name for module in layout.modules],
        "app_module": layout.app.module.display_name,
        "app_rule": layout.app.rule,
        "artifact": None,
        "images": None,
        "density": [],
        "source_native": None,
        "artifact_native": None,
        "unused_resources": [],
        "catalog": None,
        "warnings": report.warnings,
        "suggestions": report.suggestions,
    }

    if package is not None:
        artifact = package.artifact
        context["artifact"] = {
            "name": artifact.name,
            "total_text": format_size(artifact.total_size),
            "total_bytes": f"{artifact.total_size:,}",
            "overhead": package.breakdown.overhead,
            "overhead_text": format_size(package.breakdown.overhead),
            "rows": _breakdown_rows(package),
        }
        context["artifact_native"] = _artifact_native_view(package, options.top_libraries)

    if inventory is not None:
        context["images"] = {
            "rows": _image_rows(inventory, references),
            "total_text": format_size(inventory.total_size),
            "file_count": len(inventory.files),
        }
        context["density"] = list(
            density_variants(inventory.by_category(ResourceCategory.IMAGE_RASTER)).items()
        )

    if native is not None and native.entries:
        ranked = sorted(native.entries, key=lambda entry: (-entry.size, entry.path))
        context["source_native"] = {
            "count": len(native.entries),
            "total_text": format_size(native.total_size),
            "top": [
                {"name": entry.name, "architecture": entry.architecture, "size_text": format_size(entry.size)}
                for entry in ranked[: options.top_native_files]
            ],
            "more": max(len(ranked) - options.top_native_files, 0),
        }

    if references is not None:
        context["unused_resources"] = [
            {"path": _relative(item.path, root), "size_text": format_size(item.size)}
            for item in sorted(references.unused, key=lambda item: item.path)
        ]

    if catalog is not None:
        context["catalog"] = {
            "file": catalog.catalog_path.name,
            "declared": len(catalog.declarations),
            "unused": [
                {"alias": dep.alias, "coordinate": dep.coordinate, "declared_in": dep.declared_in}
                for dep in catalog.unused
            ],
        }

    return context


def _create_env(templates_dir: Path | None = None) -> Environment:
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(_TEMPLATES_DIR))
    loader = FileSystemLoader(directories)
    env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
    env.filters["ljust"] = lambda value, width: str(value).ljust(width)
    env.filters["rjust"] = lambda value, width: str(value).rjust(width)
    return env


def render_text(report: InspectionReport, options: ReportConfig | None = None) -> str:
    options = options or ReportConfig()
    template = _create_env().get_template("report.txt.j2")
    return template.render(**build_context(report, options))


def report_to_dict(report: InspectionReport) -> Dict[str, Any]:
    """Return a JSON-ready dictionary with raw byte counts and relative paths."""
    root = report.root
    layout = report.layout
    payload: Dict[str, Any] = {
        "project": str(root),
        "modules": [
            {"name": module.name, "kind": module.kind, "path": _relative(module.path, root) or "."}
            for module in layout.modules
        ],
        "app_module": {"name": layout.app.module.name, "rule": layout.app.rule},
        "stages": {},
        "warnings": report.warnings,
        "suggestions": [
            {"kind": item.kind, "message": item.message, "details": list(item.details)}
            for item in report.suggestions
        ],
    }
    for name in sorted(report.stages):
        result = report.stages[name]
        payload["stages"][name] = {
            "status": "ok" if result.ok else "skipped",
            "reason": result.reason,
            "warnings": list(result.warnings),
        }

    package: Optional[PackageAnalysis] = report.data("artifact")
    if package is not None:
        payload["artifact"] = {
            "name": package.artifact.name,
            "total_size": package.artifact.total_size,
            "breakdown": package.breakdown.categories(),
            "overhead": package.breakdown.overhead,
            "native_libraries": [
                {"path": lib.path, "name": lib.name, "architecture": lib.architecture, "size": lib.size}
                for lib in package.native_libraries
            ],
        }

    inventory: Optional[ResourceInventory] = report.data("resources")
    if inventory is not None:
        payload["resources"] = {
            "total_size": inventory.total_size,
            "files": [
                {
                    "path": _relative(item.path, root),
                    "module": item.module,
                    "category": item.category.value,
                    "size": item.size,
                    "density": item.density,
                }
                for item in inventory.files
            ],
        }

    native: Optional[NativeLibraryInventory] = report.data("native")
    if native is not None:
        payload["native_libraries"] = [
            {"path": entry.path, "name": entry.name, "architecture": entry.architecture, "size": entry.size}
            for entry in native.entries
        ]

    references: Optional[ReferenceAnalysis] = report.data("references")
    if references is not None:
        payload["unused_resources"] = [
            {"path": _relative(item.path, root), "size": item.size}
            for item in sorted(references.unused, key=lambda item: item.path)
        ]

    catalog: Optional[CatalogAnalysis] = report.data("catalog")
    if catalog is not None:
        payload["unused_dependencies"] = [
            {"alias": dep.alias, "coordinate": dep.coordinate, "declared_in": dep.declared_in}
            for dep in catalog.unused
        ]
    return payload


def render_json(report: InspectionReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, sort_keys=True) + "\n"


def render(report: InspectionReport, config: InspectaConfig, fmt: str | None = None) -> str:
    chosen = (fmt or config.report.format).lower()
    if chosen == "json":
        return render_json(report)
    return render_text(report, config.report)


CLEANUP_PREVIEW_LIMIT = 20


def cleanup_context(outcome: CleanupOutcome, *, path_arg: str = "") -> Dict[str, Any]:
    """Flatten a cleanup outcome into template-ready values."""
    plan = outcome.plan
    context: Dict[str, Any] = {
        "error": outcome.error,
        "valid_types": CleanupType.choices() if outcome.invalid_type else [],
        "files": [],
        "path_arg": f"{path_arg} " if path_arg else "",
    }
    if plan is None:
        return context
    root = plan.root
    resource_type = plan.resource_type.value
    ranked = sorted(plan.candidates, key=lambda item: item.path)
    context.update(
        {
            "resource_type": resource_type,
            "label": "resource" if plan.resource_type is CleanupType.ALL else resource_type.upper(),
            "count": len(ranked),
            "total_text": format_size(plan.total_size),
            "by_type": (
                [
                    (name, {"count": count, "size_text": format_size(size)})
                    for name, (count, size) in plan.by_type().items()
                ]
                if plan.resource_type is CleanupType.ALL
                else []
            ),
            "by_module": [
                (module.rsplit(":", 1)[-1] or root.name, {"count": count, "size_text": format_size(size)})
                for module, (count, size) in plan.by_module().items()
            ],
            "files": [
                {"path": _relative(item.path, root), "size_text": format_size(item.size)}
                for item in ranked[:CLEANUP_PREVIEW_LIMIT]
            ],
            "more": max(len(ranked) - CLEANUP_PREVIEW_LIMIT, 0),
            "dry_run": outcome.dry_run,
            "deleted": len(outcome.deleted),
            "deleted_text": format_size(outcome.deleted_size),
            "failures": [(_relative(path, root), reason) for path, reason in outcome.failed],
        }
    )
    return context


def render_cleanup(outcome: CleanupOutcome, *, path_arg: str = "") -> str:
    template = _create_env().get_template("cleanup.txt.j2")
    return template.render(**cleanup_context(outcome, path_arg=path_arg))


__all__ = [
    "build_context",
    "build_suggestions",
    "cleanup_context",
    "format_size",
    "render",
    "render_cleanup",
    "render_json",
    "render_text",
    "report_to_dict",
]
