"""
Base Pass System

Passes run over the parsed corpus and store their results on the
MigrationContext, never on themselves. Dependencies are declared with
`requires` and the PassManager runs passes in dependency order.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from ..ir.nodes import ParsedFile
from ..shared.errors import ErrorReporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Corpus:
    """Every successfully parsed record-like and mixin file of one run, sorted by path."""
    records: Tuple[ParsedFile, ...] = ()
    mixins: Tuple[ParsedFile, ...] = ()


class FileOutcome(Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    ERRORED = "errored"


class MigrationContext:
    """
    Single source of truth for one migration run.

    Holds the options, the shared resolver, the error reporter, the per-run
    extension cache and every analysis result. Created by the driver and
    discarded with the run.
    """

    def __init__(self, options, resolver, extension_cache=None,
                 source_files: Optional[Dict[str, str]] = None):
        from ..analysis.extension_cache import ExtensionCache

        self.options = options
        self.resolver = resolver
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.reporter: ErrorReporter = ErrorReporter(self.source_files)
        self.extension_cache = extension_cache if extension_cache is not None else ExtensionCache()

        self._analysis_results: Dict[Type["BasePass"], Any] = {}
        self._outcomes: Dict[str, FileOutcome] = {}

    def get_analysis(self, pass_class: Type["BasePass"]) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def set_analysis(self, pass_class: Type["BasePass"], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results

    # -- per-file outcome ---------------------------------------------------

    def mark(self, path: str, outcome: FileOutcome) -> None:
        # An error is never downgraded by a later stage
        if self._outcomes.get(path) is FileOutcome.ERRORED:
            return
        self._outcomes[path] = outcome

    def outcome(self, path: str) -> Optional[FileOutcome]:
        return self._outcomes.get(path)

    def paths_with(self, outcome: FileOutcome) -> List[str]:
        return sorted(p for p, o in self._outcomes.items() if o is outcome)


class BasePass(ABC):
    """Base class for all passes."""
    requires: List[Type["BasePass"]] = []

    @abstractmethod
    def run(self, corpus: Corpus, ctx: MigrationContext) -> Corpus:
        raise NotImplementedError


class PassManager:
    """Pass manager with dependency resolution (topological sort over `requires`)."""

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], set] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, corpus: Corpus, ctx: MigrationContext) -> Corpus:
        for pass_class in self._topological_sort():
            logger.debug(f"[PassManager] running {pass_class.__name__}")
            corpus = pass_class().run(corpus, ctx)
        return corpus

    def _topological_sort(self) -> List[Type[BasePass]]:
        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
