"""Reference matcher: decides whether an image resource is used.

The check is textual containment against the corpus, not a reference graph.
A resource counts as used when the corpus contains ``R.drawable.<name>``,
``@drawable/<name>``, or the bare name in single or double quotes anywhere.

Known limitation: the quoted-name rule is not scoped to any statement, so an
unrelated string that happens to equal the resource name marks it used. The
bias is toward false "used" results; a name built at runtime from parts
(``"icon_" + size``) is never seen and is reported unused.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from .base import Analyzer
from .corpus import Corpus, build_corpus
from .resources import collect_resources
from ..config import InspectaConfig
from ..logging import get_logger
from ..models import (
    ModuleInfo,
    ProjectLayout,
    ReferenceAnalysis,
    ResourceCategory,
    ResourceFile,
    ResourceInventory,
    StageResult,
)

IMAGE_CATEGORIES = (ResourceCategory.IMAGE_RASTER, ResourceCategory.IMAGE_VECTOR)

logger = get_logger("analyzers.references")


def reference_patterns(name: str) -> Tuple[str, ...]:
    return (
        f"R.drawable.{name}",
        f"@drawable/{name}",
        f'"{name}"',
        f"'{name}'",
    )


def is_referenced(name: str, corpus: Corpus | str) -> bool:
    """Return True when any reference pattern for ``name`` occurs in ``corpus``."""
    text = corpus.text if isinstance(corpus, Corpus) else corpus
    return any(pattern in text for pattern in reference_patterns(name))


def reference_candidates(inventory: ResourceInventory) -> List[ResourceFile]:
    """Images under res/ are candidates; assets are loaded by path, not by id."""
    return [
        item
        for item in inventory.files
        if item.category in IMAGE_CATEGORIES and item.in_res
    ]


def find_unused(candidates: Iterable[ResourceFile], corpus: Corpus) -> ReferenceAnalysis:
    checked = tuple(candidates)
    unused = tuple(item for item in checked if not is_referenced(item.name, corpus))
    return ReferenceAnalysis(checked=checked, unused=unused, corpus_size=len(corpus))


def analyze_references(layout: ProjectLayout, modules: Iterable[ModuleInfo] | None = None) -> ReferenceAnalysis:
    targets = tuple(layout.modules if modules is None else modules)
    inventory = collect_resources(layout, targets)
    corpus = build_corpus(layout, targets)
    return find_unused(reference_candidates(inventory), corpus)


class ReferenceAnalyzer(Analyzer):
    """Flags image resources with no textual reference in sources or XML."""

    name = "references"

    def supports(self, layout: ProjectLayout) -> bool:
        return bool(layout.modules)

    def analyze(self, layout: ProjectLayout, config: InspectaConfig) -> StageResult:
        analysis = analyze_references(layout)
        warnings: Tuple[str, ...] = ()
        if analysis.checked and analysis.corpus_size == 0:
            warnings = ("No Kotlin, Java or XML sources found; every image will look unused",)
        logger.debug(
            "Checked %d images against %d corpus characters; %d unused",
            len(analysis.checked),
            analysis.corpus_size,
            len(analysis.unused),
        )
        return StageResult.success(analysis, warnings=warnings)
