"""Gradle project discovery and deterministic file walking."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import get_logger
from .models import AppModuleLookup, ModuleInfo, ProjectLayout

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".gradle",
    ".idea",
    ".inspecta",
    ".venv",
    "node_modules",
    "__pycache__",
    "build",
    "buildSrc",
    "src",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

_BUILD_SCRIPTS = ("build.gradle.kts", "build.gradle")

_APPLICATION_PATTERN = re.compile(
    r"com\.android\.application|plugins\.android\.application\b"
)
_LIBRARY_PATTERN = re.compile(r"com\.android\.library|plugins\.android\.library\b")
_APPLY_FALSE_PATTERN = re.compile(r"\bapply\s*\(?\s*false\b")

logger = get_logger("scanner")


@dataclass(frozen=True)
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .inspecta.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def build_ignore_rules(root: Path, exclude_paths: Sequence[str]) -> Tuple[IgnoreRule, ...]:
    """Combine .gitignore rules with configured exclusions."""
    rules = _parse_gitignore(root / ".gitignore")
    for pattern in exclude_paths:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def walk_files(directory: Path, *, suffixes: Iterable[str] | None = None) -> Iterator[Path]:
    """Yield every regular file under ``directory`` in sorted order.

    ``suffixes`` are matched case-insensitively without the leading dot.
    Ignore rules only prune module discovery; they never hide files here.
    """
    if not directory.is_dir():
        return
    wanted = {suffix.lower().lstrip(".") for suffix in suffixes} if suffixes else None

    for dirpath, dirnames, filenames in os.walk(directory):
        current = Path(dirpath)
        dirnames.sort()
        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            if wanted is not None and Path(filename).suffix.lower().lstrip(".") not in wanted:
                continue
            path = current / filename
            if path.is_file():
                yield path


def _relative(path: Path, base: Path) -> str:
    try:
        rel = path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()
    return "" if rel == "." else rel


def detect_module_kind(build_script: Optional[Path]) -> str:
    """Classify a module from the Android plugin its build script applies."""
    if build_script is None:
        return "other"
    try:
        text = build_script.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read %s: %s", build_script, exc)
        return "other"
    # Root scripts declare plugins with `apply false` without applying them.
    applied = "\n".join(
        line for line in text.splitlines() if not _APPLY_FALSE_PATTERN.search(line)
    )
    if _APPLICATION_PATTERN.search(applied):
        return "application"
    if _LIBRARY_PATTERN.search(applied):
        return "library"
    return "other"


def find_build_script(directory: Path) -> Optional[Path]:
    for name in _BUILD_SCRIPTS:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def resolve_app_module(modules: Sequence[ModuleInfo], root_module: ModuleInfo) -> AppModuleLookup:
    """Pick the application module.

    Fallback order: first module applying the Android application plugin, then a
    module named ``app``, then the project root.
    """
    for module in modules:
        if module.kind == "application":
            return AppModuleLookup(module=module, rule="android-application")
    for module in modules:
        if module.name == ":app":
            return AppModuleLookup(module=module, rule="named-app")
    return AppModuleLookup(module=root_module, rule="project-root")


class ProjectScanner:
    """Walks a Gradle project to produce a normalized layout."""

    def scan(self, root: str, *, exclude_paths: Sequence[str] = (), include: Sequence[str] = ()) -> ProjectLayout:
        """Return the modules, application module and ignore rules for ``root``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        if not exclude_paths and not include:
            exclude_paths, include = _config_filters(root_path)

        rules = build_ignore_rules(root_path, exclude_paths)
        root_module = _module_for_dir(root_path, root_path)
        modules: List[ModuleInfo] = [root_module]

        for dirpath, dirnames, _ in os.walk(root_path):
            current = Path(dirpath)
            rel_dir = _relative(current, root_path)
            kept = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS or name.startswith("."):
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if should_ignore(rel_path, True, rules):
                    continue
                kept.append(name)
            dirnames[:] = kept

            if current == root_path:
                continue
            if find_build_script(current) is not None or (current / "src" / "main").is_dir():
                modules.append(_module_for_dir(current, root_path))

        if include:
            wanted = set(include)
            modules = [
                module
                for module in modules
                if module.name in wanted or module.display_name in wanted
            ]

        modules.sort(key=lambda module: module.name)
        app = resolve_app_module(modules, root_module)
        logger.debug(
            "Discovered %d modules; app module %s (%s)",
            len(modules),
            app.module.name,
            app.rule,
        )
        return ProjectLayout(root=root_path, modules=tuple(modules), app=app)


def _module_for_dir(directory: Path, root: Path) -> ModuleInfo:
    rel = _relative(directory, root)
    name = ":" + rel.replace("/", ":") if rel else ":"
    build_script = find_build_script(directory)
    return ModuleInfo(
        name=name,
        path=directory,
        kind=detect_module_kind(build_script),
        build_script=build_script,
    )


def _config_filters(root: Path) -> Tuple[List[str], List[str]]:
    try:
        config = load_config(root / CONFIG_FILENAME)
    except ConfigError:
        return [], []
    return list(config.exclude_paths), list(config.modules)


__all__ = [
    "IgnoreRule",
    "ProjectScanner",
    "build_ignore_rules",
    "detect_module_kind",
    "resolve_app_module",
    "should_ignore",
    "walk_files",
]
