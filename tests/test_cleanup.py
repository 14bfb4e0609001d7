"""Tests for unused image cleanup."""

from __future__ import annotations

from pathlib import Path

import pytest

from inspecta.cleanup import CleanupType, execute_cleanup, plan_cleanup
from inspecta.orchestrator import Orchestrator
from inspecta.report import render_cleanup
from tests._fixtures.project_builder import ProjectBuilder

VECTOR = '<vector android:pathData="M0,0"/>\n'


def _seed(builder: ProjectBuilder) -> None:
    builder.android_app()
    builder.android_library("feature")
    builder.write_bytes("app/src/main/res/drawable/used.png", 10)
    builder.write_bytes("app/src/main/res/drawable/stale.png", 20)
    builder.write_bytes("app/src/main/res/drawable/stale_photo.jpeg", 30)
    builder.write_bytes("feature/src/main/res/drawable/promo.webp", 40)
    builder.write_bytes("app/src/main/assets/splash.png", 50)
    builder.write(
        {
            "app/src/main/res/drawable/ic_stale.xml": VECTOR,
            "app/src/main/kotlin/Main.kt": "icon.setImageResource(R.drawable.used)\n",
        }
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [("png", CleanupType.PNG), ("JPG", CleanupType.JPG), (" all ", CleanupType.ALL), ("gif", None), (None, None)],
)
def test_cleanup_type_parse(value, expected) -> None:
    assert CleanupType.parse(value) is expected


def test_plan_selects_unreferenced_res_images_by_type(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    layout = project_builder.scan()

    def names(resource_type: CleanupType) -> list[str]:
        return sorted(item.path.name for item in plan_cleanup(layout, resource_type).candidates)

    assert names(CleanupType.PNG) == ["stale.png"]
    assert names(CleanupType.JPG) == ["stale_photo.jpeg"]
    assert names(CleanupType.WEBP) == ["promo.webp"]
    assert names(CleanupType.SVG) == ["ic_stale.xml"]
    assert names(CleanupType.ALL) == ["ic_stale.xml", "promo.webp", "stale.png", "stale_photo.jpeg"]


def test_plan_groups_by_type_and_module(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    plan = plan_cleanup(project_builder.scan(), CleanupType.ALL)

    assert plan.total_size == 20 + 30 + 40 + len(VECTOR)
    assert list(plan.by_type()) == ["PNG", "JPG", "WebP", "SVG (Vector)"]
    assert plan.by_module() == {":app": (3, 20 + 30 + len(VECTOR)), ":feature": (1, 40)}


def test_dry_run_never_deletes(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    plan = plan_cleanup(project_builder.scan(), CleanupType.ALL)
    before = sorted(path for path in project_builder.path().rglob("*") if path.is_file())

    outcome = execute_cleanup(plan)

    after = sorted(path for path in project_builder.path().rglob("*") if path.is_file())
    assert outcome.dry_run is True
    assert outcome.deleted == []
    assert before == after


def test_confirm_deletes_only_candidates(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    root = project_builder.path()
    plan = plan_cleanup(project_builder.scan(), CleanupType.PNG)

    outcome = execute_cleanup(plan, confirm=True)

    assert [path.name for path in outcome.deleted] == ["stale.png"]
    assert outcome.deleted_size == 20
    assert not (root / "app/src/main/res/drawable/stale.png").exists()
    assert (root / "app/src/main/res/drawable/used.png").exists()
    assert (root / "app/src/main/assets/splash.png").exists()


def test_failed_deletions_are_reported_and_do_not_stop_the_run(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    plan = plan_cleanup(project_builder.scan(), CleanupType.ALL)

    def _remove(path: Path) -> None:
        if path.name == "promo.webp":
            raise PermissionError("read-only file system")
        path.unlink()

    outcome = execute_cleanup(plan, confirm=True, remove=_remove)

    assert len(outcome.deleted) == 3
    assert [(path.name, reason) for path, reason in outcome.failed] == [("promo.webp", "read-only file system")]
    text = render_cleanup(outcome)
    assert "Deleted 3 files" in text
    assert "Failed to delete 1 files" in text
    assert "Cleanup complete." in text


def test_dry_run_output_explains_how_to_confirm(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    outcome = Orchestrator().run_cleanup(str(project_builder.path()), "png")

    text = render_cleanup(outcome, path_arg="project")

    assert "Found 1 unused PNG files" in text
    assert "app/src/main/res/drawable/stale.png (20 B)" in text
    assert "DRY RUN - no files were deleted." in text
    assert "inspecta cleanup project --type png --confirm" in text


def test_invalid_type_lists_valid_choices(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    outcome = Orchestrator().run_cleanup(str(project_builder.path()), "gif")

    text = render_cleanup(outcome)

    assert outcome.invalid_type is True
    assert outcome.plan is None
    assert "Valid types: png, jpg, jpeg, webp, svg, all" in text


def test_project_without_android_modules_is_an_error(project_builder: ProjectBuilder) -> None:
    project_builder.write({"lib/build.gradle.kts": "plugins { kotlin(\"jvm\") }\n"})

    outcome = Orchestrator().run_cleanup(str(project_builder.path()), "all")

    assert outcome.error is not None
    assert "No Android modules found" in outcome.error


def test_nothing_to_clean(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    outcome = Orchestrator().run_cleanup(str(project_builder.path()), "webp")

    assert "No unused WEBP files found." in render_cleanup(outcome)


def test_image_referenced_only_from_gitignored_source_survives_confirm(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    logo = project_builder.write_bytes("app/src/main/res/drawable/logo.png", 10)
    project_builder.write(
        {
            ".gitignore": "Generated.kt\n",
            "app/src/main/kotlin/Generated.kt": "val logo = R.drawable.logo\n",
        }
    )

    outcome = execute_cleanup(plan_cleanup(project_builder.scan(), CleanupType.ALL), confirm=True)

    assert outcome.deleted == []
    assert logo.exists()
