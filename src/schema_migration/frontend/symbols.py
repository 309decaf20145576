"""
Per-file import table.

Built in one pass over the top-level import statements of a syntax tree.
Every later provenance question ("where does the local name `attr` come
from?") is answered from this table, never from source text.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..analysis.module_system.path_resolver import is_relative_specifier, is_within, match_wildcard_pattern
from ..ir.nodes import ImportBinding, ImportedName, ImportRole
from .syntax import node_text, string_value, has_keyword

logger = logging.getLogger(__name__)


class ImportTable:
    """Local name -> (binding, imported name) for one file."""

    def __init__(self, bindings: List[ImportBinding]):
        self.bindings: Tuple[ImportBinding, ...] = tuple(bindings)
        self._by_local: Dict[str, Tuple[ImportBinding, ImportedName]] = {}
        for binding in self.bindings:
            for name in binding.names:
                self._by_local[name.local] = (binding, name)

    def lookup(self, local_name: str) -> Optional[Tuple[ImportBinding, ImportedName]]:
        return self._by_local.get(local_name)

    def source_of(self, local_name: str) -> Optional[str]:
        entry = self._by_local.get(local_name)
        return entry[0].specifier if entry else None

    def imported_name(self, local_name: str, sources: Iterable[str]) -> Optional[str]:
        """The exported name behind `local_name`, if it was imported from one of `sources`."""
        entry = self._by_local.get(local_name)
        if entry is None:
            return None
        binding, name = entry
        if binding.specifier not in set(sources):
            return None
        return name.imported

    def __contains__(self, local_name: str) -> bool:
        return local_name in self._by_local

    def __len__(self) -> int:
        return len(self.bindings)


def build_import_table(root, src: bytes, path: str, options, resolver) -> ImportTable:
    """Collect every top-level import statement of `root` into an ImportTable."""
    bindings: List[ImportBinding] = []
    for stmt in root.named_children:
        if stmt.type != "import_statement":
            continue
        source_node = stmt.child_by_field_name("source")
        if source_node is None:
            continue
        specifier = string_value(source_node, src)
        names = _collect_names(stmt, src)
        resolved = resolver.resolve(specifier, path)
        bindings.append(ImportBinding(
            specifier=specifier,
            role=classify_import_role(specifier, resolved, options),
            names=tuple(names),
            type_only=has_keyword(stmt, "type"),
            resolved_path=resolved,
        ))
    logger.debug(f"[Imports] {path}: {len(bindings)} import statements")
    return ImportTable(bindings)


def _collect_names(stmt, src: bytes) -> List[ImportedName]:
    names: List[ImportedName] = []
    for clause in stmt.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                names.append(ImportedName("default", node_text(part, src)))
            elif part.type == "namespace_import":
                for ident in part.named_children:
                    if ident.type == "identifier":
                        names.append(ImportedName("*", node_text(ident, src)))
            elif part.type == "named_imports":
                for item in part.named_children:
                    if item.type != "import_specifier":
                        continue
                    name_node = item.child_by_field_name("name")
                    alias_node = item.child_by_field_name("alias")
                    if name_node is None:
                        continue
                    imported = node_text(name_node, src)
                    if name_node.type == "string":
                        imported = string_value(name_node, src)
                    local = node_text(alias_node, src) if alias_node is not None else imported
                    names.append(ImportedName(imported, local, type_only=has_keyword(item, "type")))
    return names


def classify_import_role(specifier: str, resolved: Optional[str], options) -> ImportRole:
    if specifier in options.field_declaration_sources:
        return ImportRole.FIELD_SOURCE
    if specifier in options.mixin_sources:
        return ImportRole.MIXIN_FACTORY
    if specifier in options.fragment_base_sources:
        return ImportRole.FRAGMENT_BASE
    if _under_prefix(specifier, options.mixin_import_source) or _in_dir(resolved, options.mixin_source_dir) \
            or _matches_any(specifier, options.additional_mixin_sources):
        return ImportRole.MIXIN
    if _under_prefix(specifier, options.model_import_source) or _in_dir(resolved, options.model_source_dir) \
            or _matches_any(specifier, options.additional_model_sources):
        return ImportRole.MODEL
    if resolved is None and not is_relative_specifier(specifier):
        return ImportRole.LIBRARY
    return ImportRole.OTHER


def _under_prefix(specifier: str, prefix: Optional[str]) -> bool:
    return bool(prefix) and specifier.startswith(prefix.rstrip("/") + "/")


def _in_dir(resolved: Optional[str], directory: Optional[str]) -> bool:
    return resolved is not None and directory is not None and is_within(resolved, directory)


def _matches_any(specifier: str, sources) -> bool:
    return any(match_wildcard_pattern(s.pattern, specifier, s.dir) is not None for s in sources)
