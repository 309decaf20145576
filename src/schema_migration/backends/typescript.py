"""
Artifact Generator

Turns linked Entities into schema, trait and extension modules:

    record        -> `x.schema.ts` (fields or traits) + `x.ext.ts` (behaviors)
    fragment      -> `x.schema.ts` (always)            + `x.ext.ts` (behaviors)
    mixin         -> nothing when dead, else trait `x.schema.ts` + `x.ext.ts` (behaviors)
    intermediate  -> trait `x.schema.ts` + `x.ext.ts` (behaviors)

JavaScript sources produce JavaScript modules without imports or interfaces.

Output files keep the subdirectory of their source below its configured source
root (`app/models/admin/user.ts` -> `admin/user.schema.ts`).
"""

import logging
import os
from typing import Dict, List, Set, Tuple

from ..analysis.module_system.path_resolver import normalize_path
from ..ir.entities import Entity, EntityRole
from ..ir.nodes import Field, FieldKind
from ..passes.base import BasePass, Corpus, FileOutcome, MigrationContext
from ..passes.entity_linking import EntityLinkingPass
from ..passes.mixin_connectivity import MixinConnectivityPass
from ..shared.errors import GENERATION_FAILURE, OUTPUT_COLLISION
from ..shared.source_location import SourceLocation
from ..utils.config import (
    FRAGMENT_TYPE_PREFIX,
    MODEL_BASE_PROPERTIES,
    MODEL_PRIVATE_TYPES_IMPORT,
    SCHEMA_FILE_SUFFIX,
    TYPE_SYMBOL,
)
from .base import Artifact, ArtifactType, Backend
from .extensions import artifact_dir, extension_file_name, extension_module, output_dir, source_subdir
from .imports import (
    ImportCollector, resource_module, store_source, trait_module, type_symbol_source,
)
from .schema_codegen import (
    InterfaceProperty, extends_entry, merged_schema_code, quote, render_interface,
    resource_schema_object, trait_schema_object,
)
from .type_mapping import field_type, relationship_target

logger = logging.getLogger(__name__)

_MODEL_PRIVATE_TYPES = ("BelongsToReference", "HasManyReference", "Errors")


def interface_member_names(entity: Entity) -> List[str]:
    """Every member name an entity's generated interface declares, traits included."""
    names: Dict[str, None] = {}
    seen: Set[str] = set()

    def visit(e: Entity) -> None:
        if e.path in seen:
            return
        seen.add(e.path)
        names.update(dict.fromkeys(e.own_field_names()))
        if e.role is EntityRole.INTERMEDIATE_RECORD:
            names["id"] = None
            names.update(dict.fromkeys(p[0] for p in MODEL_BASE_PROPERTIES))
        for trait in e.traits:
            visit(trait)

    visit(entity)
    return list(names)


class ArtifactGenerator(Backend):
    """Generates artifacts for the entities of one linked registry."""

    def __init__(self, options, ctx: MigrationContext):
        self.options = options
        self.ctx = ctx
        self.connectivity = ctx.get_analysis(MixinConnectivityPass)
        self.registry = ctx.get_analysis(EntityLinkingPass)
        self.cache = ctx.extension_cache
        self._trait_targets = self._build_trait_targets()

    def _build_trait_targets(self) -> Dict[str, Entity]:
        """Relationship type name -> trait entity, for targets that live in the traits namespace."""
        targets: Dict[str, Entity] = {}
        for mixin in self.registry.mixins():
            if self.connectivity.is_connected(mixin.path):
                targets.setdefault(mixin.base_name, mixin)
        for intermediate in self.registry.intermediates():
            targets.setdefault(intermediate.base_name, intermediate)
            targets.setdefault(intermediate.name, intermediate)
        return targets

    # -- dispatch -----------------------------------------------------------

    def generate(self, entity: Entity) -> List[Artifact]:
        if entity.role is EntityRole.MIXIN:
            if not self.connectivity.is_connected(entity.path):
                logger.debug(f"[Generator] skipping dead mixin {entity.path}")
                return []
            return self._trait_artifacts(entity)
        if entity.role is EntityRole.INTERMEDIATE_RECORD:
            return self._trait_artifacts(entity)
        return self._record_artifacts(entity)

    def _record_artifacts(self, entity: Entity) -> List[Artifact]:
        parsed = entity.parsed
        artifacts: List[Artifact] = []
        if parsed.fields or entity.traits or entity.is_fragment:
            artifacts.append(Artifact(
                type=ArtifactType.SCHEMA,
                name=entity.schema_name,
                code=self._resource_schema_code(entity),
                suggested_file_name=self._schema_file_name(entity),
            ))
        extension_name = self.cache.extension_name(entity)
        if extension_name is not None:
            module_name = self._module_name(entity)
            file_name = extension_file_name(module_name, parsed)
            artifacts.append(Artifact(
                type=ArtifactType.RESOURCE_EXTENSION,
                name=extension_name,
                code=extension_module(
                    parsed, extension_name, self.options,
                    file_name=file_name,
                    trait_context=False,
                    object_format=False,
                    interface_name=entity.interface_name,
                    interface_module=resource_module(module_name, self.options.require("resources_import")),
                ),
                suggested_file_name=file_name,
            ))
        return artifacts

    def _trait_artifacts(self, entity: Entity) -> List[Artifact]:
        parsed = entity.parsed
        artifacts = [Artifact(
            type=ArtifactType.TRAIT,
            name=entity.name,
            code=self._trait_schema_code(entity),
            suggested_file_name=self._schema_file_name(entity),
        )]
        extension_name = self.cache.extension_name(entity)
        if extension_name is not None:
            file_name = extension_file_name(self._module_name(entity), parsed)
            is_mixin = entity.role is EntityRole.MIXIN
            artifacts.append(Artifact(
                type=ArtifactType.TRAIT_EXTENSION,
                name=extension_name,
                code=extension_module(
                    parsed, extension_name, self.options,
                    file_name=file_name,
                    trait_context=True,
                    object_format=is_mixin,
                    interface_name=None if is_mixin else entity.trait_interface_name,
                    interface_module=None if is_mixin else self._trait_module_from_extension(entity),
                ),
                suggested_file_name=file_name,
            ))
        return artifacts

    # -- output names -------------------------------------------------------

    def _subdir(self, entity: Entity) -> str:
        return source_subdir(entity.path, self.options)

    def _module_name(self, entity: Entity) -> str:
        """Output module path of an entity below its output directory, without suffixes."""
        subdir = self._subdir(entity)
        return f"{subdir}/{entity.name}" if subdir else entity.name

    def _trait_module(self, trait: Entity, importer: Entity, from_trait: bool) -> str:
        return trait_module(
            self._module_name(trait), self.options.traits_import,
            from_trait=from_trait, from_dir=self._subdir(importer),
        )

    def _trait_module_from_extension(self, entity: Entity) -> str:
        """The trait schema module as imported by the entity's own extension module."""
        if self.options.traits_import or not self.options.extensions_dir:
            return self._trait_module(entity, entity, from_trait=True)
        module_name = self._module_name(entity)
        schema_path = os.path.join(output_dir(self.options, True), module_name)
        extension_dir = os.path.dirname(
            os.path.join(output_dir(self.options, True, extension=True), module_name)
        )
        relative = os.path.relpath(normalize_path(schema_path), normalize_path(extension_dir))
        relative = relative.replace(os.sep, "/")
        if not relative.startswith("."):
            relative = f"./{relative}"
        return f"{relative}{SCHEMA_FILE_SUFFIX}"

    # -- schema modules -----------------------------------------------------

    def _schema_file_name(self, entity: Entity) -> str:
        return f"{self._module_name(entity)}{SCHEMA_FILE_SUFFIX}{entity.parsed.output_extension}"

    def _extension_names(self, entity: Entity) -> List[str]:
        """Extensions of linked traits (depth first), then the entity's own."""
        names: List[str] = []
        seen: Set[str] = {entity.path}
        stack = list(reversed(entity.traits))
        while stack:
            trait = stack.pop()
            if trait.path in seen:
                continue
            seen.add(trait.path)
            name = self.cache.extension_name(trait)
            if name is not None:
                names.append(name)
            stack.extend(reversed(trait.traits))
        own = self.cache.extension_name(entity)
        if own is not None:
            names.append(own)
        return names

    def _resource_schema_code(self, entity: Entity) -> str:
        parsed = entity.parsed
        schema = resource_schema_object(
            entity.name,
            parsed.fields,
            [t.name for t in entity.traits],
            self._extension_names(entity),
            is_fragment=entity.is_fragment,
        )
        if not parsed.is_typescript:
            return merged_schema_code(entity.schema_name, schema, is_typescript=False)

        imports = ImportCollector(self.options.mirror)
        imports.add_type(TYPE_SYMBOL, type_symbol_source(self.options.ember_data_import_source))
        self._add_trait_imports(imports, entity, from_trait=False)
        self._add_field_imports(imports, entity, from_trait=False)

        type_value = f"{FRAGMENT_TYPE_PREFIX}{entity.name}" if entity.is_fragment else entity.name
        properties = [InterfaceProperty(f"[{TYPE_SYMBOL}]", quote(type_value))]
        properties.extend(self._field_properties(parsed.fields))
        interface = render_interface(entity.interface_name, properties, self._extends(entity))
        return merged_schema_code(entity.schema_name, schema, True, imports.lines(), interface)

    def _trait_schema_code(self, entity: Entity) -> str:
        parsed = entity.parsed
        schema = trait_schema_object(entity.name, parsed.fields, [t.name for t in entity.traits])
        if not parsed.is_typescript:
            return merged_schema_code(entity.schema_name, schema, is_typescript=False)

        imports = ImportCollector(self.options.mirror)
        self._add_trait_imports(imports, entity, from_trait=True)
        self._add_field_imports(imports, entity, from_trait=True)

        properties = self._field_properties(parsed.fields)
        if entity.role is EntityRole.INTERMEDIATE_RECORD:
            for name in _MODEL_PRIVATE_TYPES:
                imports.add_type(name, MODEL_PRIVATE_TYPES_IMPORT)
            properties.extend(self._intermediate_properties(entity, imports))

        interface = render_interface(entity.trait_interface_name, properties, self._extends(entity))
        return merged_schema_code(entity.schema_name, schema, True, imports.lines(), interface)

    def _intermediate_properties(self, entity: Entity, imports: ImportCollector) -> List[InterfaceProperty]:
        declared = set(entity.own_field_names())
        properties: List[InterfaceProperty] = []
        if "id" not in declared:
            properties.append(InterfaceProperty("id", "string | null", readonly=False))
        store = self.options.store_type
        if store is not None and "store" not in declared:
            imports.add_type(store.name, store.import_path or store_source(self.options.ember_data_import_source))
            properties.append(InterfaceProperty("store", store.name))
        for name, ts_type, readonly in MODEL_BASE_PROPERTIES:
            if name not in declared:
                properties.append(InterfaceProperty(name, ts_type, readonly=readonly))
        return properties

    def _extends(self, entity: Entity) -> List[str]:
        own = entity.own_field_names()
        return [
            extends_entry(t.trait_interface_name, interface_member_names(t), own)
            for t in entity.traits
        ]

    def _field_properties(self, fields) -> List[InterfaceProperty]:
        return [
            InterfaceProperty(f.name, field_type(f, self.options.type_mapping), comment=f.comment)
            for f in fields
        ]

    # -- imports ------------------------------------------------------------

    def _add_trait_imports(self, imports: ImportCollector, entity: Entity, from_trait: bool) -> None:
        for trait in entity.traits:
            imports.add_type(trait.trait_interface_name, self._trait_module(trait, entity, from_trait))

    def _add_field_imports(self, imports: ImportCollector, entity: Entity, from_trait: bool) -> None:
        for f in entity.parsed.fields:
            if not f.kind.is_relationship:
                continue
            self._add_relationship_import(imports, entity, f, from_trait)
            if f.kind is FieldKind.HAS_MANY and f.type:
                name = "AsyncHasMany" if f.is_async else "HasMany"
                imports.add_type(name, self.options.ember_data_import_source)

    def _add_relationship_import(self, imports: ImportCollector, entity: Entity, f: Field,
                                 from_trait: bool) -> None:
        target = relationship_target(f)
        if target is None or f.type in (entity.base_name, entity.name):
            return
        trait = self._trait_targets.get(f.type)
        if trait is not None:
            if trait is entity:
                return
            imports.add_type(
                f"{trait.trait_interface_name} as {target}",
                self._trait_module(trait, entity, from_trait),
            )
            return
        imports.add_type(target, resource_module(f.type, self.options.require("resources_import")))


class ArtifactGenerationPass(BasePass):
    requires = [EntityLinkingPass]

    def run(self, corpus: Corpus, ctx: MigrationContext) -> Corpus:
        registry = ctx.get_analysis(EntityLinkingPass)
        generator = ArtifactGenerator(ctx.options, ctx)
        produced_by: List[Tuple[str, List[Artifact]]] = []

        for entity in sorted(registry, key=lambda e: e.path):
            if ctx.outcome(entity.path) in (FileOutcome.ERRORED, FileOutcome.SKIPPED):
                continue
            try:
                produced = generator.generate(entity)
            except Exception as e:
                logger.warning(f"[Generator] failed to generate artifacts for {entity.path}: {e}")
                ctx.reporter.report_error(
                    f"could not generate artifacts: {e}",
                    SourceLocation(entity.path, 1, 1),
                    code=GENERATION_FAILURE,
                    note="no artifacts were written for this file",
                )
                ctx.mark(entity.path, FileOutcome.ERRORED)
                continue
            produced_by.append((entity.path, produced))
            ctx.mark(entity.path, FileOutcome.PROCESSED)
            logger.debug(f"[Generator] {entity.path}: {[a.suggested_file_name for a in produced]}")

        colliding = self._colliding_sources(produced_by, ctx)
        artifacts = [a for path, produced in produced_by if path not in colliding for a in produced]
        ctx.set_analysis(ArtifactGenerationPass, artifacts)
        return corpus

    @staticmethod
    def _colliding_sources(produced_by: List[Tuple[str, List[Artifact]]], ctx: MigrationContext) -> Set[str]:
        """Sources whose artifacts would be written to the same file as another source's."""
        owners: Dict[str, List[str]] = {}
        for path, produced in produced_by:
            for artifact in produced:
                target = normalize_path(os.path.join(artifact_dir(artifact.type, ctx.options),
                                                     artifact.suggested_file_name))
                sources = owners.setdefault(target, [])
                if path not in sources:
                    sources.append(path)

        colliding: Set[str] = set()
        for target, sources in owners.items():
            if len(sources) < 2:
                continue
            logger.warning(f"[Generator] {len(sources)} sources map to {target}")
            for path in sources:
                others = ", ".join(p for p in sources if p != path)
                ctx.reporter.report_error(
                    f"output file {target} is also generated from {others}",
                    SourceLocation(path, 1, 1),
                    code=OUTPUT_COLLISION,
                    note="no artifacts were written for this file",
                )
                ctx.mark(path, FileOutcome.ERRORED)
                colliding.add(path)
        return colliding
