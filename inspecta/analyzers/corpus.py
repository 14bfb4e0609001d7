"""Corpus builder: concatenated source and resource text used as usage evidence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .utils import iter_module_files, read_text
from ..logging import get_logger
from ..models import ModuleInfo, ProjectLayout

SOURCE_ROOTS = ("java", "kotlin", "res")
CORPUS_SUFFIXES = ("kt", "java", "xml")

logger = get_logger("analyzers.corpus")


@dataclass(frozen=True)
class Corpus:
    """All matched source text of a project held in memory at once."""

    text: str
    file_count: int = 0
    skipped: int = 0

    def __contains__(self, needle: str) -> bool:
        return needle in self.text

    def __len__(self) -> int:
        return len(self.text)


def build_corpus(layout: ProjectLayout, modules: Iterable[ModuleInfo] | None = None) -> Corpus:
    """Concatenate every Kotlin, Java and XML file under the source roots.

    Files are read in sorted traversal order and joined with newlines. A file
    that cannot be read is skipped and counted.
    """
    targets = layout.modules if modules is None else modules
    chunks: List[str] = []
    read = 0
    skipped = 0
    for module in targets:
        for root_name in SOURCE_ROOTS:
            for path in iter_module_files(module, root_name, suffixes=CORPUS_SUFFIXES):
                try:
                    chunks.append(read_text(path))
                except OSError as exc:
                    skipped += 1
                    logger.debug("Skipping unreadable source %s: %s", path, exc)
                    continue
                chunks.append("\n")
                read += 1
    return Corpus(text="".join(chunks), file_count=read, skipped=skipped)


__all__ = ["Corpus", "build_corpus"]
