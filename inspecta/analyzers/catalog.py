"""Version catalog analyzer: finds library aliases no build script uses."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .base import Analyzer
from .utils import read_text
from ..config import DEFAULT_ACCESSORS, InspectaConfig
from ..logging import get_logger
from ..models import CatalogAnalysis, DependencyDeclaration, ProjectLayout, StageResult

LIBRARIES_HEADER = "[libraries]"
_BUILD_SCRIPT_NAMES = ("build.gradle.kts", "build.gradle")

logger = get_logger("analyzers.catalog")


def _value_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"""\b{re.escape(key)}\s*=\s*["']([^"']+)["']""")


_GROUP_PATTERN = _value_pattern("group")
_NAME_PATTERN = _value_pattern("name")
_MODULE_PATTERN = _value_pattern("module")


def find_catalog(root: Path, candidates: Sequence[str]) -> Optional[Path]:
    """Return the first existing catalog path relative to ``root``."""
    for relative in candidates:
        path = root / relative
        if path.is_file():
            return path
    return None


def parse_definition(definition: str) -> str:
    """Resolve a catalog definition to ``group:name`` or the raw coordinate."""
    definition = definition.strip()
    if definition.startswith("{"):
        group = _GROUP_PATTERN.search(definition)
        name = _NAME_PATTERN.search(definition)
        if group and name:
            return f"{group.group(1)}:{name.group(1)}"
        module = _MODULE_PATTERN.search(definition)
        if module:
            return module.group(1)
        return definition
    if definition[:1] in {'"', "'"}:
        return definition.strip("\"'")
    return definition


def parse_libraries(content: str) -> Dict[str, str]:
    """Parse the ``[libraries]`` table of a catalog into ``alias -> coordinate``.

    Line oriented: a ``[libraries]`` header opens the table and any other
    header closes it. Blank lines and ``#`` comments are ignored, and each entry
    is split on its first ``=``.
    """
    libraries: Dict[str, str] = {}
    in_libraries = False
    for line in content.splitlines():
        trimmed = line.strip()
        if trimmed == LIBRARIES_HEADER:
            in_libraries = True
            continue
        if trimmed.startswith("[") and trimmed.endswith("]"):
            in_libraries = False
            continue
        if not in_libraries or not trimmed or trimmed.startswith("#"):
            continue
        alias, sep, definition = trimmed.partition("=")
        if not sep:
            continue
        alias = alias.strip().strip("\"'")
        if alias:
            libraries[alias] = parse_definition(definition)
    return libraries


def accessor_patterns(alias: str, accessors: Sequence[str] = DEFAULT_ACCESSORS) -> List[re.Pattern[str]]:
    """Build the regexes that count as a use of ``alias`` in a build script.

    ``okhttp-client`` becomes ``libs.okhttp.client``; plugin accessors
    (``libs.plugins.<alias>``) and a dash-only variant that keeps underscores are
    also accepted. Matching is by prefix, so ``libs.okhttp`` is satisfied by
    ``libs.okhttp.client``.
    """
    normalized = r"\.".join(re.escape(part) for part in re.split(r"[-_]", alias))
    dash_only = r"\.".join(re.escape(part) for part in alias.split("-"))
    patterns: List[re.Pattern[str]] = []
    seen = set()
    for accessor in accessors:
        prefix = re.escape(accessor)
        for source in (
            rf"{prefix}\.{normalized}",
            rf"{prefix}\.plugins\.{normalized}",
            rf"{prefix}\.{dash_only}",
        ):
            if source not in seen:
                seen.add(source)
                patterns.append(re.compile(source))
    return patterns


def is_alias_used(alias: str, build_scripts: str, accessors: Sequence[str] = DEFAULT_ACCESSORS) -> bool:
    return any(pattern.search(build_scripts) for pattern in accessor_patterns(alias, accessors))


def load_build_scripts(layout: ProjectLayout) -> Tuple[str, int]:
    """Concatenate every Gradle build script of the project.

    Returns the text and the number of scripts that could not be read.
    """
    chunks: List[str] = []
    skipped = 0
    for module in layout.modules:
        for name in _BUILD_SCRIPT_NAMES:
            script = module.path / name
            if not script.is_file():
                continue
            try:
                chunks.append(read_text(script))
            except OSError as exc:
                skipped += 1
                logger.debug("Skipping unreadable build script %s: %s", script, exc)
                continue
            chunks.append("\n")
    return "".join(chunks), skipped


def find_unused_declarations(
    declarations: Iterable[DependencyDeclaration],
    build_scripts: str,
    accessors: Sequence[str] = DEFAULT_ACCESSORS,
) -> Tuple[DependencyDeclaration, ...]:
    unused = [
        declaration
        for declaration in declarations
        if not is_alias_used(declaration.alias, build_scripts, accessors)
    ]
    unused.sort(key=lambda declaration: declaration.alias)
    return tuple(unused)


def analyze_catalog(layout: ProjectLayout, config: InspectaConfig) -> StageResult:
    catalog_path = find_catalog(layout.root, config.catalog.paths)
    if catalog_path is None:
        looked = ", ".join(config.catalog.paths)
        return StageResult.skipped(f"Version catalog not found (looked in {looked})")

    try:
        content = read_text(catalog_path)
    except OSError as exc:
        return StageResult.skipped(f"Could not read version catalog {catalog_path.name}: {exc}")

    libraries = parse_libraries(content)
    declarations = tuple(
        DependencyDeclaration(alias=alias, coordinate=coordinate, declared_in=catalog_path.name)
        for alias, coordinate in libraries.items()
    )
    build_scripts, skipped = load_build_scripts(layout)
    unused = find_unused_declarations(declarations, build_scripts, config.catalog.accessors)
    logger.debug(
        "Catalog %s declares %d libraries; %d unused",
        catalog_path.name,
        len(declarations),
        len(unused),
    )
    warnings: Tuple[str, ...] = ()
    if skipped:
        warnings = (f"{skipped} build script(s) could not be read; unused dependencies may be overstated",)
    return StageResult.success(
        CatalogAnalysis(catalog_path=catalog_path, declarations=declarations, unused=unused),
        warnings=warnings,
    )


class CatalogAnalyzer(Analyzer):
    """Cross-references version catalog aliases against Gradle build scripts."""

    name = "catalog"

    def supports(self, layout: ProjectLayout) -> bool:
        return True

    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        return analyze_catalog(layout, config)
