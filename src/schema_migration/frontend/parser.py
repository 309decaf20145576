"""
Source Parser

One legacy model or mixin file in, one immutable ParsedFile out.

Supported default-export shapes:
- `export default class X extends <heritage> { ... }`
- `export default <Base>.extend(A, B, { ... })`
- `export default Mixin.create(A, { ... })` / `Mixin.createWithMixins(...)`
- `export default X` where `X` is declared at the top level of the file
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from ..analysis.module_system.path_resolver import normalize_path
from ..ir.nodes import (
    Behavior, Field, ImportRole, MixinReference, ParsedFile, PreservedStatement,
)
from ..shared.errors import ParseFailure
from ..shared.source_location import SourceLocation
from ..utils.config import EXTEND_METHOD, MIXIN_FACTORY_METHODS
from ..utils.naming import extract_base_name, mixin_name_to_kebab, strip_model_suffix
from .classifier import MemberClassifier, classify_file_kind
from .symbols import ImportTable, build_import_table
from .syntax import (
    call_arguments, first_error_node, has_keyword, make_parser, member_call_parts,
    node_text, string_value, unwrap,
)

logger = logging.getLogger(__name__)

CLASS_NODE_TYPES = ("class_declaration", "abstract_class_declaration", "class")
TYPE_EXPORT_NODE_TYPES = ("interface_declaration", "type_alias_declaration")

# Bindings that can never name an application mixin
_NON_MIXIN_ROLES = (
    ImportRole.LIBRARY, ImportRole.FIELD_SOURCE, ImportRole.MIXIN_FACTORY, ImportRole.FRAGMENT_BASE,
)


class _ExportShape:
    """What the default export turned out to be."""

    def __init__(self, class_node=None, call_node=None, consumed=()):
        self.class_node = class_node
        self.call_node = call_node
        # Top-level statements the export is built from
        self.consumed: Tuple = tuple(consumed)


class SourceParser:
    """
    Parses source files against one run's options and resolver.

    Intermediate base paths are resolved once here so the per-file record /
    fragment decision is a plain set lookup.
    """

    def __init__(self, options, resolver):
        self.options = options
        self.resolver = resolver
        self.intermediate_models = _resolve_all(resolver, options.intermediate_model_paths)
        self.intermediate_fragments = _resolve_all(resolver, options.intermediate_fragment_paths)

    def parse(self, path: str, code: str) -> ParsedFile:
        path = normalize_path(path)
        src = code.encode("utf-8")
        tree = make_parser(path).parse(src)
        root = tree.root_node
        if root.has_error:
            bad = first_error_node(root) or root
            location = SourceLocation.from_node(path, bad)
            raise ParseFailure(f"unexpected syntax in {path}", path, location)

        imports = build_import_table(root, src, path, self.options, self.resolver)
        shape = self._default_export(root, src)
        classifier = MemberClassifier(imports, self.options, src, path)

        base_class: Optional[MixinReference] = None
        mixin_factory: Optional[str] = None
        composition_nodes: List = []
        members: List = []

        if shape.class_node is not None:
            heritage = _heritage_expression(shape.class_node)
            if heritage is not None:
                base_node, composition_nodes, objects = _split_extend_chain(heritage, src)
                base_class = self._reference(base_node, imports, path, src)
                for obj in objects:
                    members.extend(_object_members(obj, classifier))
            members.extend(_class_members(shape.class_node, classifier))
        elif shape.call_node is not None:
            obj, method = member_call_parts(shape.call_node, src)
            if method in MIXIN_FACTORY_METHODS and obj is not None and obj.type == "identifier":
                mixin_factory = node_text(obj, src)
                args = call_arguments(shape.call_node)
                for arg in args:
                    arg = unwrap(arg)
                    if arg.type == "identifier":
                        composition_nodes.append(arg)
                    elif arg.type == "object":
                        members.extend(_object_members(arg, classifier))
            elif method == EXTEND_METHOD:
                base_node, composition_nodes, objects = _split_extend_chain(shape.call_node, src)
                base_class = self._reference(base_node, imports, path, src)
                for obj in objects:
                    members.extend(_object_members(obj, classifier))

        kind = classify_file_kind(
            imports, self.options,
            base_class=base_class,
            mixin_factory=mixin_factory,
            intermediate_models=self.intermediate_models,
            intermediate_fragments=self.intermediate_fragments,
        )

        composition = self._composition(composition_nodes, imports, path, src)
        traits = self._trait_names(base_class, composition)

        fields = tuple(m for m in members if isinstance(m, Field))
        behaviors = tuple(m for m in members if isinstance(m, Behavior))
        preserved = _preserved_statements(root, src, shape)

        logger.debug(
            f"[Parser] {path}: kind={kind.value} fields={len(fields)} "
            f"behaviors={len(behaviors)} traits={list(traits)}"
        )
        return ParsedFile(
            path=path,
            kind=kind,
            imports=imports.bindings,
            fields=fields,
            behaviors=behaviors,
            traits=traits,
            composition=composition,
            base_class=base_class,
            preserved_statements=preserved,
        )

    # -- default export -----------------------------------------------------

    def _default_export(self, root, src: bytes) -> _ExportShape:
        declarations = _top_level_declarations(root, src)
        for stmt in root.named_children:
            if stmt.type != "export_statement" or not has_keyword(stmt, "default"):
                continue
            declaration = stmt.child_by_field_name("declaration")
            if declaration is not None and declaration.type in CLASS_NODE_TYPES:
                return _ExportShape(class_node=declaration, consumed=(stmt,))
            value = unwrap(stmt.child_by_field_name("value"))
            if value is None:
                # `export default class ...` parsed without a declaration field
                for child in stmt.named_children:
                    if child.type in CLASS_NODE_TYPES:
                        return _ExportShape(class_node=child, consumed=(stmt,))
                return _ExportShape(consumed=(stmt,))
            if value.type in CLASS_NODE_TYPES:
                return _ExportShape(class_node=value, consumed=(stmt,))
            if value.type == "call_expression":
                return _ExportShape(call_node=value, consumed=(stmt,))
            if value.type == "identifier":
                target = declarations.get(node_text(value, src))
                if target is None:
                    logger.debug(f"[Parser] default export {node_text(value, src)!r} has no local declaration")
                    return _ExportShape(consumed=(stmt,))
                node, owner = target
                if node.type in CLASS_NODE_TYPES:
                    return _ExportShape(class_node=node, consumed=(stmt, owner))
                if node.type == "call_expression":
                    return _ExportShape(call_node=node, consumed=(stmt, owner))
            return _ExportShape(consumed=(stmt,))
        return _ExportShape()

    # -- references ---------------------------------------------------------

    def _reference(self, node, imports: ImportTable, path: str, src: bytes) -> Optional[MixinReference]:
        if node is None:
            return None
        local = node_text(node, src)
        # `DS.Model` is looked up through its namespace binding
        head = local.split(".", 1)[0]
        entry = imports.lookup(head)
        if entry is None:
            return MixinReference(local_name=local)
        binding = entry[0]
        return MixinReference(local_name=local, specifier=binding.specifier, resolved_path=binding.resolved_path)

    def _composition(self, nodes, imports: ImportTable, path: str, src: bytes) -> Tuple[MixinReference, ...]:
        refs: List[MixinReference] = []
        for node in nodes:
            local = node_text(node, src)
            entry = imports.lookup(local)
            if entry is None:
                logger.warning(f"[Parser] {path}: composed identifier '{local}' is not imported")
                refs.append(MixinReference(local_name=local))
                continue
            binding = entry[0]
            if binding.role in _NON_MIXIN_ROLES:
                logger.debug(f"[Parser] {path}: '{local}' from {binding.specifier} is not an app mixin")
                continue
            resolved = self.resolver.resolve_mixin(binding.specifier, path)
            if resolved is None:
                logger.warning(f"[Parser] {path}: could not resolve mixin '{local}' from {binding.specifier!r}")
            refs.append(MixinReference(local_name=local, specifier=binding.specifier, resolved_path=resolved))
        return tuple(refs)

    def _trait_names(self, base_class: Optional[MixinReference],
                     composition: Tuple[MixinReference, ...]) -> Tuple[str, ...]:
        names: List[str] = []
        if base_class is not None and base_class.resolved_path is not None and (
                base_class.resolved_path in self.intermediate_models
                or base_class.resolved_path in self.intermediate_fragments):
            names.append(strip_model_suffix(extract_base_name(base_class.resolved_path)))
        for ref in composition:
            if ref.resolved_path is not None:
                names.append(extract_base_name(ref.resolved_path))
            else:
                names.append(mixin_name_to_kebab(ref.local_name))
        return tuple(dict.fromkeys(names))


def _resolve_all(resolver, specifiers) -> frozenset:
    resolved: Set[str] = set()
    for specifier in specifiers:
        path = resolver.resolve(specifier, None)
        if path is None:
            logger.warning(f"[Parser] intermediate path {specifier!r} does not resolve to a source file")
            continue
        resolved.add(path)
    return frozenset(resolved)


def _top_level_declarations(root, src: bytes) -> Dict[str, Tuple]:
    """name -> (class node or initializer, owning top-level statement)."""
    found: Dict[str, Tuple] = {}
    for stmt in root.named_children:
        owner = stmt
        if stmt.type == "export_statement" and not has_keyword(stmt, "default"):
            declaration = stmt.child_by_field_name("declaration")
            if declaration is None:
                continue
            stmt = declaration
        if stmt.type in CLASS_NODE_TYPES:
            name = stmt.child_by_field_name("name")
            if name is not None:
                found[node_text(name, src)] = (stmt, owner)
        elif stmt.type in ("lexical_declaration", "variable_declaration"):
            for declarator in stmt.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = declarator.child_by_field_name("name")
                value = unwrap(declarator.child_by_field_name("value"))
                if name is not None and value is not None:
                    found[node_text(name, src)] = (value, owner)
    return found


def _heritage_expression(class_node):
    for child in class_node.named_children:
        if child.type != "class_heritage":
            continue
        for clause in child.named_children:
            if clause.type == "extends_clause":
                value = clause.child_by_field_name("value")
                if value is not None:
                    return unwrap(value)
                named = [c for c in clause.named_children if c.type != "comment"]
                return unwrap(named[0]) if named else None
        # JS grammar: class_heritage holds the expression directly
        named = [c for c in child.named_children if c.type != "comment"]
        if named:
            return unwrap(named[0])
    return None


def _split_extend_chain(expr, src: bytes):
    """
    `Model.extend(A).extend(B, {...})` -> (Model, [A, B], [{...}]).

    Arguments are returned innermost call first.
    """
    chain = []
    expr = unwrap(expr)
    while expr is not None and expr.type == "call_expression":
        obj, method = member_call_parts(expr, src)
        if method != EXTEND_METHOD or obj is None:
            break
        chain.append(expr)
        expr = obj
    composition, objects = [], []
    for call in reversed(chain):
        for arg in call_arguments(call):
            arg = unwrap(arg)
            if arg.type == "identifier":
                composition.append(arg)
            elif arg.type == "object":
                objects.append(arg)
    if expr is not None and expr.type not in ("identifier", "member_expression"):
        return None, composition, objects
    return expr, composition, objects


def _class_members(class_node, classifier: MemberClassifier) -> List:
    body = class_node.child_by_field_name("body")
    if body is None:
        return []
    members = []
    pending: List = []
    for child in body.named_children:
        if child.type == "decorator":
            pending.append(child)
            continue
        if child.type == "comment":
            continue
        member = classifier.classify_class_member(child, tuple(pending))
        pending = []
        if member is not None:
            members.append(member)
    return members


def _object_members(obj, classifier: MemberClassifier) -> List:
    members = []
    for child in obj.named_children:
        if child.type == "comment":
            continue
        member = classifier.classify_object_member(child)
        if member is not None:
            members.append(member)
    return members


def _preserved_statements(root, src: bytes, shape: _ExportShape) -> Tuple[PreservedStatement, ...]:
    """
    Top-level statements carried into extension artifacts.

    The default export and the declarations it consumed are dropped together
    with a doc comment directly above them. Non-type exports lose `export`.
    """
    consumed = {(n.start_byte, n.end_byte) for n in shape.consumed}
    statements = list(root.named_children)
    kept: List[PreservedStatement] = []
    for index, stmt in enumerate(statements):
        span = (stmt.start_byte, stmt.end_byte)
        if span in consumed:
            continue
        if stmt.type == "comment":
            following = statements[index + 1] if index + 1 < len(statements) else None
            if following is not None and (following.start_byte, following.end_byte) in consumed:
                continue
            kept.append(PreservedStatement(node_text(stmt, src)))
        elif stmt.type == "import_statement":
            source = stmt.child_by_field_name("source")
            specifier = string_value(source, src) if source is not None else None
            kept.append(PreservedStatement(node_text(stmt, src), specifier))
        elif stmt.type == "export_statement":
            if has_keyword(stmt, "default"):
                continue
            declaration = stmt.child_by_field_name("declaration")
            if declaration is None:
                # re-exports have no meaning next to the extension
                logger.debug(f"[Parser] dropping re-export {node_text(stmt, src)!r}")
                continue
            if declaration.type in TYPE_EXPORT_NODE_TYPES:
                kept.append(PreservedStatement(node_text(stmt, src)))
            else:
                kept.append(PreservedStatement(node_text(declaration, src)))
        else:
            kept.append(PreservedStatement(node_text(stmt, src)))
    return tuple(kept)
