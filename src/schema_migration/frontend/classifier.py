"""
Field / Behavior Classifier

Partitions every class or mixin member into exactly one schema Field or
Behavior. The decision is made on provenance, not on names: a member is a
Field only when its field-declaring call targets a local name that the
file's import table binds to one of the configured field-declaration
sources. `attr` imported from anywhere else is ordinary behavior.

Also home of the one file-kind classification function.
"""

import logging
from typing import Dict, List, Optional, Sequence, Union

from ..ir.nodes import (
    Behavior, BehaviorKind, Field, FieldKind, FileKind, ImportRole,
    MixinReference, OptionValue, SourceExpression,
)
from ..utils.config import (
    ARRAY_TYPE_PREFIX,
    COMPUTED_SOURCES,
    FIELD_DECLARATION_NAMES,
    FRAGMENT_ARRAY_EXTENSIONS,
    FRAGMENT_OBJECT_EXTENSIONS,
    FRAGMENT_TYPE_PREFIX,
    SKIP_METHOD_NAMES,
    UNKNOWN_TYPE,
)
from .symbols import ImportTable
from .syntax import (
    call_arguments, callee_identifier, has_keyword, leading_comment,
    node_text, string_value, unwrap,
)

logger = logging.getLogger(__name__)

Member = Union[Field, Behavior]

FUNCTION_NODE_TYPES = ("function_expression", "function", "arrow_function", "generator_function")
CLASS_FIELD_NODE_TYPES = ("public_field_definition", "field_definition")

_DECORATOR_TO_KIND = {
    "attr": FieldKind.ATTRIBUTE,
    "belongsTo": FieldKind.BELONGS_TO,
    "hasMany": FieldKind.HAS_MANY,
    "fragment": FieldKind.SCHEMA_OBJECT,
    "fragmentArray": FieldKind.SCHEMA_ARRAY,
    "array": FieldKind.ARRAY,
}

_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
# Characters that escape to themselves
_IDENTITY_ESCAPES = "'\"\\`$/"
_LINE_CONTINUATIONS = ("\r\n", "\n", "\r", "\u2028", "\u2029")


# ---------------------------------------------------------------------------
# Literal decoding
# ---------------------------------------------------------------------------

def _hex_escape(raw: str, start: int, length: int) -> int:
    digits = raw[start:start + length]
    if len(digits) != length or not all(c in "0123456789abcdefABCDEF" for c in digits):
        raise ValueError(f"malformed escape at offset {start - 2}")
    return int(digits, 16)


def unescape_js_string(raw: str) -> str:
    """
    Decode the escapes of a JS string body.

    Raises ValueError for an escape this decoder does not understand (legacy
    octal, malformed hex) so the caller can keep the literal as source text.
    """
    out: List[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(raw):
            raise ValueError("dangling backslash")
        nxt = raw[i + 1]
        continuation = next((lt for lt in _LINE_CONTINUATIONS if raw.startswith(lt, i + 1)), None)
        if continuation is not None:
            i += 1 + len(continuation)
        elif nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt in _IDENTITY_ESCAPES:
            out.append(nxt)
            i += 2
        elif nxt == "0" and not raw[i + 2:i + 3].isdigit():
            out.append("\0")
            i += 2
        elif nxt == "x":
            out.append(chr(_hex_escape(raw, i + 2, 2)))
            i += 4
        elif nxt == "u" and raw.startswith("{", i + 2):
            end = raw.find("}", i + 3)
            if end == -1:
                raise ValueError(f"unterminated code point escape at offset {i}")
            code_point = _hex_escape(raw, i + 3, end - i - 3)
            if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
                raise ValueError(f"code point out of range at offset {i}")
            out.append(chr(code_point))
            i = end + 1
        elif nxt == "u":
            unit = _hex_escape(raw, i + 2, 4)
            i += 6
            # UTF-16 surrogate pair written as two escapes
            if 0xD800 <= unit <= 0xDBFF and raw.startswith("\\u", i):
                try:
                    low = _hex_escape(raw, i + 2, 4)
                except ValueError:
                    low = None
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            if 0xD800 <= unit <= 0xDFFF:
                raise ValueError(f"unpaired surrogate at offset {i - 6}")
            out.append(chr(unit))
        else:
            raise ValueError(f"unsupported escape '\\{nxt}'")
    return "".join(out)


def _decode_number(text: str) -> OptionValue:
    cleaned = text.replace("_", "")
    try:
        if cleaned[:2].lower() in ("0x", "0o", "0b"):
            return int(cleaned, 0)
        if any(c in cleaned for c in ".eE"):
            return float(cleaned)
        return int(cleaned, 10)
    except ValueError:
        return SourceExpression(text)


def decode_literal(node, src: bytes) -> OptionValue:
    """
    Decode a literal expression.

    Booleans, strings, numbers and null become Python values; everything
    else (identifiers, calls, arrays, objects, `undefined`) is kept as
    opaque source text and never evaluated.
    """
    node = unwrap(node)
    if node is None:
        return None
    kind = node.type
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    if kind == "template_string" and any(c.type == "template_substitution" for c in node.named_children):
        return SourceExpression(node_text(node, src))
    if kind in ("string", "template_string"):
        try:
            return unescape_js_string(string_value(node, src))
        except ValueError as e:
            logger.debug(f"[Classifier] keeping {node_text(node, src)!r} as source: {e}")
            return SourceExpression(node_text(node, src))
    if kind == "number":
        return _decode_number(node_text(node, src))
    if kind == "unary_expression":
        operand = node.child_by_field_name("argument")
        operator = node.child_by_field_name("operator")
        if operand is not None and operand.type == "number" and operator is not None \
                and node_text(operator, src) == "-":
            value = _decode_number(node_text(operand, src))
            if isinstance(value, (int, float)):
                return -value
    return SourceExpression(node_text(node, src))


def property_key(node, src: bytes) -> str:
    """Plain name of an object/class member key (quotes removed)."""
    if node is None:
        return ""
    if node.type == "string":
        return string_value(node, src)
    return node_text(node, src)


def decode_options(node, src: bytes) -> Dict[str, OptionValue]:
    """Decode an object literal key by key; non-object input decodes to {}."""
    node = unwrap(node)
    if node is None or node.type != "object":
        return {}
    options: Dict[str, OptionValue] = {}
    for member in node.named_children:
        if member.type == "pair":
            key = property_key(member.child_by_field_name("key"), src)
            options[key] = decode_literal(member.child_by_field_name("value"), src)
        elif member.type == "shorthand_property_identifier":
            name = node_text(member, src)
            options[name] = SourceExpression(name)
        elif member.type != "comment":
            logger.debug(f"[Classifier] skipping option member {member.type}")
    return options


# ---------------------------------------------------------------------------
# Field construction
# ---------------------------------------------------------------------------

def _string_arg(args: Sequence, index: int, src: bytes) -> Optional[str]:
    if index >= len(args):
        return None
    arg = unwrap(args[index])
    if arg is not None and arg.type in ("string", "template_string"):
        value = decode_literal(arg, src)
        return value if isinstance(value, str) else None
    return None


def _object_arg(args: Sequence, index: int):
    if index >= len(args):
        return None
    arg = unwrap(args[index])
    return arg if arg is not None and arg.type == "object" else None


def build_field(name: str, declaration: str, args: Sequence, src: bytes,
                type_annotation: Optional[str] = None, comment: Optional[str] = None) -> Field:
    """Convert one recognized field-declaring call into a Field."""
    kind = _DECORATOR_TO_KIND[declaration]
    first_string = _string_arg(args, 0, src)

    if kind is FieldKind.ARRAY:
        options: Dict[str, OptionValue] = {"arrayExtensions": FRAGMENT_ARRAY_EXTENSIONS}
        options.update(decode_options(_object_arg(args, 0), src))
        return Field(name, kind, f"{ARRAY_TYPE_PREFIX}{name}", options, type_annotation, comment)

    # `attr({ defaultValue: ... })` carries options in the first slot
    options_node = _object_arg(args, 1) if first_string is not None or len(args) > 1 else _object_arg(args, 0)
    decoded = decode_options(options_node, src)

    if kind is FieldKind.SCHEMA_OBJECT:
        options = {"objectExtensions": FRAGMENT_OBJECT_EXTENSIONS}
        options.update(decoded)
        return Field(name, kind, f"{FRAGMENT_TYPE_PREFIX}{first_string or name}", options, type_annotation, comment)

    if kind is FieldKind.SCHEMA_ARRAY:
        options = {"arrayExtensions": FRAGMENT_ARRAY_EXTENSIONS, "defaultValue": True}
        options.update(decoded)
        return Field(name, kind, f"{FRAGMENT_TYPE_PREFIX}{first_string or name}", options, type_annotation, comment)

    return Field(name, kind, first_string, decoded, type_annotation, comment)


# ---------------------------------------------------------------------------
# Member classification
# ---------------------------------------------------------------------------

class MemberClassifier:
    """Classifies members of one file against that file's import table."""

    def __init__(self, imports: ImportTable, options, src: bytes, path: str = "<unknown>"):
        self.imports = imports
        self.options = options
        self.src = src
        self.path = path

    def field_declaration(self, expr) -> Optional[str]:
        """
        Imported name of the field-declaring function `expr` calls (or names,
        for bare decorators like `@attr`), when its provenance is a
        configured field-declaration source.
        """
        expr = unwrap(expr)
        if expr is None:
            return None
        if expr.type == "call_expression":
            local = callee_identifier(expr, self.src)
        elif expr.type == "identifier":
            local = node_text(expr, self.src)
        else:
            return None
        if local is None:
            return None
        imported = self.imports.imported_name(local, self.options.field_declaration_sources)
        if imported in FIELD_DECLARATION_NAMES:
            return imported
        return None

    def is_computed(self, expr) -> bool:
        expr = unwrap(expr)
        if expr is None:
            return False
        target = expr
        if expr.type == "call_expression":
            target = unwrap(expr.child_by_field_name("function"))
        # `computed.readOnly(...)`, `computed(...)`, `readOnly(...)`
        while target is not None and target.type == "member_expression":
            target = unwrap(target.child_by_field_name("object"))
        if target is None or target.type != "identifier":
            return False
        return self.imports.source_of(node_text(target, self.src)) in COMPUTED_SOURCES

    # -- class members ------------------------------------------------------

    def classify_class_member(self, node, sibling_decorators: Sequence = ()) -> Optional[Member]:
        """Classify a class body member; returns None for members that are skipped."""
        if node.type == "method_definition":
            return self._class_method(node, sibling_decorators)
        if node.type in CLASS_FIELD_NODE_TYPES:
            return self._class_field(node, sibling_decorators)
        return None

    def _class_method(self, node, sibling_decorators: Sequence) -> Optional[Behavior]:
        name = property_key(node.child_by_field_name("name"), self.src)
        if name in SKIP_METHOD_NAMES:
            logger.debug(f"[Classifier] {self.path}: skipping callback method '{name}'")
            return None
        start = sibling_decorators[0].start_byte if sibling_decorators else node.start_byte
        text = self.src[start:node.end_byte].decode("utf-8")
        return Behavior(
            name=name,
            source_text=text,
            kind=_method_kind(node),
            original_key=name,
            is_object_method=True,
            type_annotation=self._annotation(node.child_by_field_name("return_type")),
        )

    def _class_field(self, node, sibling_decorators: Sequence) -> Member:
        name = property_key(node.child_by_field_name("name"), self.src)
        decorators = list(sibling_decorators) + [c for c in node.named_children if c.type == "decorator"]
        value = node.child_by_field_name("value")
        type_node = node.child_by_field_name("type")

        for decorator in decorators:
            expr = _decorator_expression(decorator)
            declaration = self.field_declaration(expr)
            if declaration is not None:
                args = call_arguments(unwrap(expr)) if unwrap(expr).type == "call_expression" else []
                return build_field(
                    name, declaration, args, self.src,
                    type_annotation=self._annotation(type_node, default=None),
                    comment=leading_comment(sibling_decorators[0] if sibling_decorators else node, self.src),
                )

        if value is not None:
            declaration = self.field_declaration(value)
            if declaration is not None:
                return build_field(
                    name, declaration, call_arguments(unwrap(value)), self.src,
                    type_annotation=self._annotation(type_node, default=None),
                    comment=leading_comment(node, self.src),
                )

        start = sibling_decorators[0].start_byte if sibling_decorators else node.start_byte
        text = self.src[start:node.end_byte].decode("utf-8")
        if any(self.is_computed(_decorator_expression(d)) for d in decorators) or self.is_computed(value):
            kind = BehaviorKind.COMPUTED
        elif value is not None and unwrap(value).type in FUNCTION_NODE_TYPES:
            kind = BehaviorKind.METHOD
        else:
            kind = BehaviorKind.PROPERTY
        return Behavior(
            name=name,
            source_text=text,
            kind=kind,
            original_key=name,
            is_object_method=True,
            type_annotation=self._annotation(type_node),
        )

    # -- object members (Mixin.create / Model.extend object literals) -------

    def classify_object_member(self, node) -> Optional[Member]:
        if node.type == "pair":
            return self._pair(node)
        if node.type == "method_definition":
            return self._class_method(node, ())
        if node.type == "shorthand_property_identifier":
            name = node_text(node, self.src)
            return Behavior(name, name, BehaviorKind.PROPERTY, original_key=name, is_object_method=True)
        if node.type == "spread_element":
            text = node_text(node, self.src)
            return Behavior(text, text, BehaviorKind.PROPERTY, original_key=text, is_object_method=True)
        return None

    def _pair(self, node) -> Member:
        key_node = node.child_by_field_name("key")
        name = property_key(key_node, self.src)
        value = node.child_by_field_name("value")

        declaration = self.field_declaration(value)
        if declaration is not None:
            return build_field(
                name, declaration, call_arguments(unwrap(value)), self.src,
                comment=leading_comment(node, self.src),
            )

        if self.is_computed(value):
            kind = BehaviorKind.COMPUTED
        elif value is not None and unwrap(value).type in FUNCTION_NODE_TYPES:
            kind = BehaviorKind.METHOD
        else:
            kind = BehaviorKind.PROPERTY
        return Behavior(
            name=name,
            source_text=node_text(value, self.src) if value is not None else "",
            kind=kind,
            original_key=node_text(key_node, self.src) if key_node is not None else name,
            is_object_method=False,
        )

    def _annotation(self, type_node, default: Optional[str] = UNKNOWN_TYPE) -> Optional[str]:
        if type_node is None:
            return default
        try:
            text = node_text(type_node, self.src).strip()
        except UnicodeDecodeError as e:
            logger.debug(f"[Classifier] {self.path}: type annotation unreadable: {e}")
            return default
        if text.startswith(":"):
            text = text[1:].strip()
        return text or default


def _method_kind(node) -> BehaviorKind:
    if has_keyword(node, "get"):
        return BehaviorKind.GETTER
    if has_keyword(node, "set"):
        return BehaviorKind.SETTER
    return BehaviorKind.METHOD


def _decorator_expression(decorator):
    for child in decorator.named_children:
        if child.type != "comment":
            return child
    return None


# ---------------------------------------------------------------------------
# File kind
# ---------------------------------------------------------------------------

def classify_file_kind(imports: ImportTable, options,
                       base_class: Optional[MixinReference] = None,
                       mixin_factory: Optional[str] = None,
                       intermediate_models=frozenset(),
                       intermediate_fragments=frozenset()) -> FileKind:
    """
    The single record / mixin / fragment / unknown decision for a file.

    `mixin_factory` is the local name a default-exported `X.create(...)` was
    called on; `base_class` is the innermost class named in `extends`.
    """
    if mixin_factory is not None:
        if imports.imported_name(mixin_factory, options.mixin_sources) == "default":
            return FileKind.MIXIN
        return FileKind.UNKNOWN

    if base_class is None:
        return FileKind.UNKNOWN

    local = base_class.local_name
    if imports.imported_name(local, options.fragment_base_sources) is not None:
        return FileKind.FRAGMENT
    if base_class.resolved_path is not None and base_class.resolved_path in intermediate_fragments:
        return FileKind.FRAGMENT
    if imports.imported_name(local, options.field_declaration_sources) == "default":
        return FileKind.RECORD
    if base_class.resolved_path is not None and base_class.resolved_path in intermediate_models:
        return FileKind.RECORD

    entry = imports.lookup(local)
    if entry is not None and entry[0].role is ImportRole.MODEL and entry[0].resolved_path is not None:
        return FileKind.RECORD
    return FileKind.UNKNOWN
