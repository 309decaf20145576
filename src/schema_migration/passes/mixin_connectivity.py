"""
Mixin Connectivity Pass: which mixins are used by at least one record.

Edges from a record to a mixin:
- composition: identifiers in `Model.extend(A, B)` / class heritage that
  resolve to a known mixin file
- polymorphic: a relationship field marked `polymorphic: true` whose target
  type is a mixin's base name
- type-only: `import type` (or `type`-qualified names) resolving to a mixin

Mixin-to-mixin dependencies use composition only. The connected set is the
closure of all record edge targets over that dependency graph, computed with
a worklist so each mixin is expanded once. Mixins outside the closure are
dead and produce no artifacts.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ..ir.nodes import ParsedFile
from ..shared.errors import EXTRACTION_FAILURE, ErrorReporter
from ..shared.source_location import SourceLocation
from .base import BasePass, Corpus, FileOutcome, MigrationContext

logger = logging.getLogger(__name__)


class EdgeKind(Enum):
    COMPOSITION = "composition"
    POLYMORPHIC = "polymorphic"
    TYPE_ONLY = "type-only"


@dataclass(frozen=True)
class MixinEdge:
    target: str
    kind: EdgeKind


@dataclass(frozen=True)
class ConnectivityResult:
    connected_mixins: FrozenSet[str] = frozenset()
    record_edges: Dict[str, Tuple[MixinEdge, ...]] = field(default_factory=dict, hash=False)
    mixin_dependencies: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)
    # Files whose edge extraction raised; they contribute no edges
    failed: FrozenSet[str] = frozenset()

    @property
    def record_to_mixins(self) -> Dict[str, Tuple[str, ...]]:
        """Every mixin each record directly uses, in first-seen order."""
        return {
            path: tuple(dict.fromkeys(e.target for e in edges))
            for path, edges in self.record_edges.items()
        }

    def composed_mixins(self, path: str) -> Tuple[str, ...]:
        """Mixins a record or mixin composes directly, in declaration order."""
        if path in self.record_edges:
            return tuple(dict.fromkeys(
                e.target for e in self.record_edges[path] if e.kind is EdgeKind.COMPOSITION
            ))
        return self.mixin_dependencies.get(path, ())

    def is_connected(self, path: str) -> bool:
        return path in self.connected_mixins


def _composition_targets(parsed: ParsedFile, known_mixins: FrozenSet[str]) -> List[str]:
    targets = []
    for ref in parsed.composition:
        if ref.resolved_path is not None and ref.resolved_path in known_mixins:
            targets.append(ref.resolved_path)
    return targets


def _polymorphic_targets(parsed: ParsedFile, mixins_by_name: Dict[str, List[str]]) -> List[str]:
    targets = []
    for f in parsed.fields:
        if f.kind.is_relationship and f.is_polymorphic and f.type in mixins_by_name:
            targets.extend(mixins_by_name[f.type])
    return targets


def _type_only_targets(parsed: ParsedFile, known_mixins: FrozenSet[str]) -> List[str]:
    targets = []
    for binding in parsed.imports:
        if binding.resolved_path not in known_mixins:
            continue
        if binding.type_only or any(n.type_only for n in binding.names):
            targets.append(binding.resolved_path)
    return targets


def record_edges_for(parsed: ParsedFile, known_mixins: FrozenSet[str],
                     mixins_by_name: Dict[str, List[str]]) -> Tuple[MixinEdge, ...]:
    edges: List[MixinEdge] = []
    edges.extend(MixinEdge(t, EdgeKind.COMPOSITION) for t in _composition_targets(parsed, known_mixins))
    edges.extend(MixinEdge(t, EdgeKind.POLYMORPHIC) for t in _polymorphic_targets(parsed, mixins_by_name))
    edges.extend(MixinEdge(t, EdgeKind.TYPE_ONLY) for t in _type_only_targets(parsed, known_mixins))
    return tuple(dict.fromkeys(edges))


def reachable_from(seeds: Iterable[str], dependencies: Dict[str, Sequence[str]]) -> Set[str]:
    """Worklist reachability: every vertex reachable from `seeds` (seeds included)."""
    visited: Set[str] = set()
    worklist = list(seeds)
    while worklist:
        vertex = worklist.pop()
        if vertex in visited:
            continue
        visited.add(vertex)
        for dep in dependencies.get(vertex, ()):
            if dep not in visited:
                worklist.append(dep)
    return visited


def analyze(records: Sequence[ParsedFile], mixins: Sequence[ParsedFile],
            reporter: Optional[ErrorReporter] = None) -> ConnectivityResult:
    """Compute the connected mixin set over the whole corpus."""
    known_mixins = frozenset(m.path for m in mixins)
    mixins_by_name: Dict[str, List[str]] = {}
    for m in mixins:
        mixins_by_name.setdefault(m.base_name, []).append(m.path)

    failed: Set[str] = set()

    def guarded(parsed: ParsedFile, extract):
        try:
            return extract(parsed)
        except Exception as e:
            logger.warning(f"[Connectivity] failed to extract mixin references from {parsed.path}: {e}")
            if reporter is not None:
                reporter.report_error(
                    f"could not analyze mixin references: {e}",
                    SourceLocation(parsed.path, 1, 1),
                    code=EXTRACTION_FAILURE,
                    note=f"{parsed.path} contributes no mixin edges",
                )
            failed.add(parsed.path)
            return ()

    record_edges: Dict[str, Tuple[MixinEdge, ...]] = {}
    for record in records:
        record_edges[record.path] = guarded(
            record, lambda p: record_edges_for(p, known_mixins, mixins_by_name)
        )

    mixin_dependencies: Dict[str, Tuple[str, ...]] = {}
    for mixin in mixins:
        mixin_dependencies[mixin.path] = tuple(dict.fromkeys(
            guarded(mixin, lambda p: _composition_targets(p, known_mixins))
        ))

    seeds = [e.target for edges in record_edges.values() for e in edges]
    connected = reachable_from(seeds, mixin_dependencies) & known_mixins

    logger.debug(
        f"[Connectivity] {len(connected)}/{len(known_mixins)} mixins connected "
        f"({len(known_mixins) - len(connected)} dead)"
    )
    return ConnectivityResult(
        connected_mixins=frozenset(connected),
        record_edges=record_edges,
        mixin_dependencies=mixin_dependencies,
        failed=frozenset(failed),
    )


class MixinConnectivityPass(BasePass):
    requires = []

    def run(self, corpus: Corpus, ctx: MigrationContext) -> Corpus:
        result = analyze(corpus.records, corpus.mixins, ctx.reporter)
        ctx.set_analysis(MixinConnectivityPass, result)
        for path in sorted(result.failed):
            ctx.mark(path, FileOutcome.ERRORED)
        for mixin in corpus.mixins:
            if not result.is_connected(mixin.path):
                logger.debug(f"[Connectivity] dead mixin {mixin.path}")
                ctx.mark(mixin.path, FileOutcome.SKIPPED)
        return corpus
