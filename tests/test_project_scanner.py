"""Tests for inspecta.project_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from inspecta.project_scanner import ProjectScanner, walk_files
from tests._fixtures.project_builder import ProjectBuilder


def test_scan_discovers_modules_and_kinds(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.android_library("feature/login")
    project_builder.write(
        {
            "build.gradle.kts": "plugins { alias(libs.plugins.android.application) apply false }\n",
            "core/build.gradle.kts": 'plugins { kotlin("jvm") }\n',
            "app/src/main/res/values/strings.xml": "<resources/>\n",
        }
    )

    layout = project_builder.scan()
    modules = {module.name: module for module in layout.modules}

    assert set(modules) == {":", ":app", ":core", ":feature:login"}
    assert modules[":app"].kind == "application"
    assert modules[":feature:login"].kind == "library"
    assert modules[":core"].kind == "other"
    assert modules[":feature:login"].display_name == "login"
    assert [module.name for module in layout.android_modules] == [":app", ":feature:login"]


def test_root_plugin_declared_with_apply_false_is_not_applied(project_builder: ProjectBuilder) -> None:
    project_builder.write({"build.gradle.kts": "plugins { id(\"com.android.application\") apply false }\n"})
    project_builder.android_app()

    layout = project_builder.scan()
    modules = {module.name: module for module in layout.modules}

    assert modules[":"].kind == "other"
    assert layout.app.module.name == ":app"
    assert layout.app.rule == "android-application"


def test_app_module_falls_back_to_module_named_app(project_builder: ProjectBuilder) -> None:
    project_builder.write({"app/build.gradle": "apply plugin: 'java'\n"})

    layout = project_builder.scan()

    assert layout.app.module.name == ":app"
    assert layout.app.rule == "named-app"


def test_app_module_falls_back_to_root(project_builder: ProjectBuilder) -> None:
    project_builder.write({"lib/build.gradle.kts": "plugins { `java-library` }\n"})

    layout = project_builder.scan()

    assert layout.app.module.name == ":"
    assert layout.app.rule == "project-root"


def test_scan_skips_build_and_ignored_directories(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.write(
        {
            ".gitignore": "sandbox/\n",
            "sandbox/build.gradle.kts": "plugins { id(\"com.android.library\") }\n",
            "app/build/generated/build.gradle.kts": "ignored\n",
        }
    )

    layout = project_builder.scan()
    names = {module.name for module in layout.modules}

    assert ":sandbox" not in names
    assert ":app:build:generated" not in names


def test_scan_respects_include_filter(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.android_library("feature")
    project_builder.write({".inspecta.yml": "modules:\n  include: [feature]\n"})

    layout = project_builder.scan()

    assert [module.name for module in layout.modules] == [":feature"]
    assert layout.app.rule == "project-root"


def test_module_for_returns_most_specific_owner(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.android_library("app/nested")

    layout = project_builder.scan()
    owner = layout.module_for(project_builder.path() / "app" / "nested" / "src" / "main" / "x.png")

    assert owner is not None
    assert owner.name == ":app:nested"


def test_scan_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ProjectScanner().scan(str(tmp_path / "missing"))


def test_walk_files_is_sorted_and_filters_suffixes(tmp_path: Path) -> None:
    for name in ("b/z.kt", "a/y.KT", "a/x.txt", "c.kt"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")

    found = [path.relative_to(tmp_path).as_posix() for path in walk_files(tmp_path, suffixes=["kt"])]

    assert found == ["c.kt", "a/y.KT", "b/z.kt"]
