"""Pipeline orchestration for inspect and cleanup runs."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .analyzers import Analyzer, discover_analyzers
from .cleanup import CleanupOutcome, CleanupType, execute_cleanup, plan_cleanup
from .config import ConfigError, InspectaConfig, load_config
from .logging import get_logger
from .models import InspectionReport, ProjectLayout, StageResult
from .project_scanner import ProjectScanner
from .report import build_suggestions, render


class Orchestrator:
    """Coordinates one analysis run from project discovery to the final report.

    Every stage starts from an empty model; nothing is cached between runs.
    Stage failures become skipped results so a run always finishes.
    """

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        analyzers: Optional[Iterable[Analyzer]] = None,
    ) -> None:
        self.scanner = scanner or ProjectScanner()
        self._analyzer_overrides = list(analyzers) if analyzers is not None else None
        self.logger = get_logger("orchestrator")

    def run_inspect(self, path: str) -> InspectionReport:
        """Analyze the project at ``path`` and return the structured findings."""
        repo_path = Path(path).expanduser().resolve()
        self.logger.info("Inspecting %s", repo_path)
        config, notes = self._load_config(repo_path)
        layout = self._scan(repo_path, config)
        self.logger.debug(
            "Scanning %d modules: %s",
            len(layout.modules),
            ", ".join(module.display_name for module in layout.modules),
        )

        report = InspectionReport(root=layout.root, layout=layout, notes=notes)
        for analyzer in self._select_analyzers(config, report.notes):
            if not analyzer.supports(layout):
                report.stages[analyzer.name] = StageResult.skipped(
                    f"{analyzer.name} analysis does not apply to this project"
                )
                continue
            report.stages[analyzer.name] = self._run_stage(analyzer, layout, config)

        report.suggestions = build_suggestions(report, config.thresholds)
        for warning in report.warnings:
            self.logger.debug("Report warning: %s", warning)
        return report

    def render(self, report: InspectionReport, *, fmt: str | None = None) -> str:
        config, _ = self._load_config(report.root)
        return render(report, config, fmt)

    def inspect(self, path: str, *, fmt: str | None = None) -> str:
        """Run an inspection and return the rendered report."""
        return self.render(self.run_inspect(path), fmt=fmt)

    def run_cleanup(
        self,
        path: str,
        resource_type: str | None,
        *,
        confirm: bool = False,
    ) -> CleanupOutcome:
        """Plan, and with ``confirm`` execute, removal of unreferenced images."""
        selected = CleanupType.parse(resource_type)
        if selected is None:
            return CleanupOutcome(
                error=f"Please specify a valid resource type (got '{resource_type or ''}')",
                invalid_type=True,
            )

        repo_path = Path(path).expanduser().resolve()
        config, _ = self._load_config(repo_path)
        layout = self._scan(repo_path, config)
        if not layout.android_modules:
            return CleanupOutcome(
                error=(
                    "No Android modules found. Make sure the project has modules "
                    "applying the Android application or library plugin."
                )
            )

        self.logger.info(
            "Scanning %d Android modules for unused %s resources",
            len(layout.android_modules),
            selected.value,
        )
        plan = plan_cleanup(layout, selected)
        return execute_cleanup(plan, confirm=confirm)

    def _scan(self, repo_path: Path, config: InspectaConfig) -> ProjectLayout:
        return self.scanner.scan(
            str(repo_path),
            exclude_paths=config.exclude_paths,
            include=config.modules,
        )

    def _load_config(self, repo_path: Path) -> tuple[InspectaConfig, List[str]]:
        try:
            return load_config(repo_path), []
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return InspectaConfig(root=repo_path), [f"Ignoring invalid configuration: {exc}"]

    def _select_analyzers(self, config: InspectaConfig, notes: List[str]) -> List[Analyzer]:
        if self._analyzer_overrides is not None:
            return list(self._analyzer_overrides)
        try:
            return list(discover_analyzers(config.analyzers or None))
        except ValueError as exc:
            self.logger.warning("%s; running all analyzers", exc)
            notes.append(f"{exc}; running all analyzers")
            return list(discover_analyzers())

    def _run_stage(
        self, analyzer: Analyzer, layout: ProjectLayout, config: InspectaConfig
    ) -> StageResult:
        self.logger.debug("Running analyzer %s", analyzer.__class__.__name__)
        try:
            result = analyzer.analyze(layout, config)
        except Exception as exc:
            self.logger.debug("Analyzer %s failed", analyzer.name, exc_info=True)
            self.logger.warning("%s analysis skipped: %s", analyzer.name, exc)
            return StageResult.skipped(f"{analyzer.name} analysis failed: {exc}")
        if not result.ok:
            self.logger.warning("%s", result.reason)
        return result


__all__ = ["Orchestrator"]
