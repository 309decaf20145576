"""
Entity Registry & Linker

Wraps each parsed file in an Entity, then attaches linked trait Entities in
declaration order: the intermediate base class first (when there is one),
then the directly composed mixins. Linking is one-directional.
"""

import logging
from typing import FrozenSet, List, Sequence

from ..ir.entities import Entity, EntityRole, Registry
from ..ir.nodes import ParsedFile
from .base import BasePass, Corpus, MigrationContext
from .mixin_connectivity import ConnectivityResult, MixinConnectivityPass

logger = logging.getLogger(__name__)


def resolve_intermediate_paths(options, resolver) -> FrozenSet[str]:
    """Configured intermediate model/fragment specifiers, resolved to file paths."""
    resolved = set()
    for specifier in list(options.intermediate_model_paths) + list(options.intermediate_fragment_paths):
        path = resolver.resolve(specifier, None)
        if path is not None:
            resolved.add(path)
    return frozenset(resolved)


def build_registry(records: Sequence[ParsedFile], mixins: Sequence[ParsedFile],
                   options, resolver) -> Registry:
    intermediates = resolve_intermediate_paths(options, resolver)
    registry = Registry()
    for parsed in records:
        role = EntityRole.INTERMEDIATE_RECORD if parsed.path in intermediates else EntityRole.RECORD
        registry.add(Entity(parsed, role))
    for parsed in mixins:
        registry.add(Entity(parsed, EntityRole.MIXIN))
    logger.debug(
        f"[Registry] {len(registry.records())} records, {len(registry.mixins())} mixins, "
        f"{len(registry.intermediates())} intermediates"
    )
    return registry


def link_entities(registry: Registry, connectivity: ConnectivityResult) -> None:
    for entity in registry:
        traits: List[Entity] = []
        if entity.role is not EntityRole.MIXIN:
            base = entity.parsed.base_class
            base_entity = registry.get(base.resolved_path) if base is not None else None
            if base_entity is not None and base_entity.role is EntityRole.INTERMEDIATE_RECORD \
                    and base_entity is not entity:
                traits.append(base_entity)

        for path in connectivity.composed_mixins(entity.path):
            target = registry.get(path)
            if target is None:
                logger.debug(f"[Linker] {entity.path}: no entity for {path}")
                continue
            if target is entity or target in traits:
                continue
            traits.append(target)

        entity.attach_traits(traits)
        if traits:
            logger.debug(f"[Linker] {entity.name} <- {[t.name for t in traits]}")


class EntityLinkingPass(BasePass):
    requires = [MixinConnectivityPass]

    def run(self, corpus: Corpus, ctx: MigrationContext) -> Corpus:
        connectivity = ctx.get_analysis(MixinConnectivityPass)
        registry = build_registry(corpus.records, corpus.mixins, ctx.options, ctx.resolver)
        link_entities(registry, connectivity)
        ctx.set_analysis(EntityLinkingPass, registry)
        return corpus
