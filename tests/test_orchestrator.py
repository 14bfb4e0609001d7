"""Tests for inspecta.orchestrator."""

from __future__ import annotations

import pytest

from inspecta.analyzers import Analyzer
from inspecta.models import StageResult
from inspecta.orchestrator import Orchestrator
from tests._fixtures.project_builder import ProjectBuilder


class ExplodingAnalyzer(Analyzer):
    """Stage that always fails mid-analysis."""

    name = "exploding"

    def supports(self, layout) -> bool:
        return True

    def analyze(self, layout, config) -> StageResult:
        raise RuntimeError("disk on fire")


class RecordingAnalyzer(Analyzer):
    """Stage that records the layouts it saw."""

    name = "recording"

    def __init__(self, applies: bool = True) -> None:
        self.applies = applies
        self.seen: list[str] = []

    def supports(self, layout) -> bool:
        return self.applies

    def analyze(self, layout, config) -> StageResult:
        self.seen.append(layout.app.module.name)
        return StageResult.success({"modules": len(layout.modules)})


def _seed(builder: ProjectBuilder) -> None:
    builder.android_app()
    builder.android_library("core")
    builder.write_bytes("app/src/main/res/drawable/a.png", 10)
    builder.write_bytes("core/src/main/res/drawable-xhdpi/b.png", 20)
    builder.write_bytes("core/src/main/jniLibs/x86/libz.so", 30)
    builder.write(
        {
            "app/src/main/java/Main.java": "R.drawable.a\n",
            "gradle/libs.versions.toml": "[libraries]\ncore-ktx = \"androidx.core:core-ktx:1.13.1\"\n",
        }
    )


def test_repeated_runs_render_identical_reports(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    orchestrator = Orchestrator()
    path = str(project_builder.path())

    assert orchestrator.inspect(path) == orchestrator.inspect(path)
    assert orchestrator.inspect(path, fmt="json") == Orchestrator().inspect(path, fmt="json")


def test_all_builtin_stages_run(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)

    report = Orchestrator().run_inspect(str(project_builder.path()))

    assert list(report.stages) == ["resources", "native", "references", "artifact", "catalog"]
    assert report.stage("resources").ok
    assert not report.stage("artifact").ok
    assert [item.path.name for item in report.data("references").unused] == ["b.png"]
    assert [dep.alias for dep in report.data("catalog").unused] == ["core-ktx"]


def test_stage_exception_becomes_skip(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    recording = RecordingAnalyzer()
    orchestrator = Orchestrator(analyzers=[ExplodingAnalyzer(), recording])

    report = orchestrator.run_inspect(str(project_builder.path()))

    failed = report.stage("exploding")
    assert not failed.ok
    assert "disk on fire" in (failed.reason or "")
    assert report.stage("recording").ok
    assert recording.seen == [":app"]
    assert any("disk on fire" in warning for warning in report.warnings)


def test_unsupported_stage_is_skipped(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    recording = RecordingAnalyzer(applies=False)

    report = Orchestrator(analyzers=[recording]).run_inspect(str(project_builder.path()))

    assert not report.stage("recording").ok
    assert recording.seen == []


def test_configured_analyzers_limit_the_run(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    project_builder.write({".inspecta.yml": "analyzers:\n  - catalog\n  - native\n"})

    report = Orchestrator().run_inspect(str(project_builder.path()))

    assert list(report.stages) == ["native", "catalog"]


def test_unknown_configured_analyzer_falls_back_to_all(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    project_builder.write({".inspecta.yml": "analyzers:\n  - lint\n"})

    report = Orchestrator().run_inspect(str(project_builder.path()))

    assert "catalog" in report.stages
    assert any("lint" in note for note in report.notes)


def test_invalid_config_is_reported_and_ignored(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    project_builder.write({".inspecta.yml": "- just\n- a list\n"})

    report = Orchestrator().run_inspect(str(project_builder.path()))

    assert report.stage("resources").ok
    assert report.notes
    assert report.notes[0].startswith("Ignoring invalid configuration")


def test_missing_project_raises(project_builder: ProjectBuilder) -> None:
    with pytest.raises(FileNotFoundError):
        Orchestrator().run_inspect(str(project_builder.path() / "nope"))
