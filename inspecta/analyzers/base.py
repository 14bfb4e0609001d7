"""Base classes for analyzer plugins."""

from abc import ABC, abstractmethod

from ..config import InspectaConfig
from ..models import ProjectLayout, StageResult


class Analyzer(ABC):
    """Contract for analyzers that inspect one facet of a project."""

    name: str = ""

    @abstractmethod
    def supports(self, layout: ProjectLayout) -> bool:
        """Return True when this analyzer should run for the project."""

    @abstractmethod
    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        """Produce the stage result consumed by the report synthesizer."""
