"""
Schema module code generation.

Schema objects are built as ordered dicts and rendered as JS object literals
(2-space indent, single quotes, quoted keys). Option values that were kept as
source text are emitted verbatim.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..ir.nodes import Field, SourceExpression
from ..utils.config import (
    FRAGMENT_OBJECT_EXTENSIONS,
    FRAGMENT_TYPE_PREFIX,
    IDENTITY_FIELD,
    INDENT,
    LEGACY_TRAIT_MODE,
)


@dataclass(frozen=True)
class InterfaceProperty:
    name: str
    type: str
    readonly: bool = True
    comment: Optional[str] = None


# ---------------------------------------------------------------------------
# JS literal rendering
# ---------------------------------------------------------------------------

_QUOTE_ESCAPES = {"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _escape_char(ch: str) -> str:
    if ch in _QUOTE_ESCAPES:
        return _QUOTE_ESCAPES[ch]
    code = ord(ch)
    if code < 0x20 or code == 0x7F:
        return f"\\x{code:02x}"
    if code in (0x2028, 0x2029):
        return f"\\u{code:04x}"
    return ch


def quote(text: str) -> str:
    return "'" + "".join(_escape_char(ch) for ch in text) + "'"


def _render_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def render_value(value: Any, level: int = 0) -> str:
    """Render a Python value as a JS literal at nesting depth `level`."""
    if isinstance(value, SourceExpression):
        return value.text
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _render_number(value)
    if isinstance(value, str):
        return quote(value)

    pad = INDENT * (level + 1)
    closing = INDENT * level
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = [f"{pad}{quote(str(k))}: {render_value(v, level + 1)}" for k, v in value.items()]
        return "{\n" + ",\n".join(items) + f"\n{closing}}}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [f"{pad}{render_value(v, level + 1)}" for v in value]
        return "[\n" + ",\n".join(items) + f"\n{closing}]"
    raise TypeError(f"Cannot render {type(value).__name__} as a JS literal")


# ---------------------------------------------------------------------------
# Schema objects
# ---------------------------------------------------------------------------

def field_entry(field: Field) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"name": field.name, "kind": field.kind.value}
    if field.type:
        entry["type"] = field.type
    if field.options:
        entry["options"] = dict(field.options)
    return entry


def resource_schema_object(type_name: str, fields: Sequence[Field], traits: Sequence[str],
                           extensions: Sequence[str], is_fragment: bool = False) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": f"{FRAGMENT_TYPE_PREFIX}{type_name}" if is_fragment else type_name,
        "legacy": True,
        "identity": None if is_fragment else dict(IDENTITY_FIELD),
        "fields": [field_entry(f) for f in fields],
    }
    if traits:
        schema["traits"] = list(traits)
    object_extensions = (list(FRAGMENT_OBJECT_EXTENSIONS) if is_fragment else []) + list(extensions)
    if object_extensions:
        schema["objectExtensions"] = list(dict.fromkeys(object_extensions))
    return schema


def trait_schema_object(name: str, fields: Sequence[Field], traits: Sequence[str]) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "name": name,
        "mode": LEGACY_TRAIT_MODE,
        "fields": [field_entry(f) for f in fields],
    }
    if traits:
        schema["traits"] = list(traits)
    return schema


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

def extends_entry(trait_interface: str, inherited: Sequence[str], own: Sequence[str]) -> str:
    """`ATrait`, or `Omit<ATrait, 'x'>` when the entity redeclares an inherited name."""
    own_names = set(own)
    shadowed = [n for n in inherited if n in own_names]
    if not shadowed:
        return trait_interface
    names = " | ".join(quote(n) for n in shadowed)
    return f"Omit<{trait_interface}, {names}>"


def render_interface(name: str, properties: Sequence[InterfaceProperty],
                     extends: Sequence[str] = ()) -> str:
    header = f"export interface {name}"
    if extends:
        header += f" extends {', '.join(extends)}"
    lines = [header + " {"]
    for prop in properties:
        if prop.comment:
            comment = prop.comment if prop.comment.startswith("/**") else f"/** {prop.comment} */"
            lines.append(f"{INDENT}{comment}")
        readonly = "readonly " if prop.readonly else ""
        lines.append(f"{INDENT}{readonly}{prop.name}: {prop.type};")
    lines.append("}")
    return "\n".join(lines)


def merged_schema_code(schema_name: str, schema_object: Dict[str, Any], is_typescript: bool,
                       import_lines: Sequence[str] = (), interface: Optional[str] = None) -> str:
    """
    One `.schema` module: imports, the schema const, its default export and
    (TypeScript only) the interface.
    """
    sections: List[str] = []
    if is_typescript and import_lines:
        sections.append("\n".join(import_lines))
    suffix = " as const;" if is_typescript else ";"
    sections.append(f"const {schema_name} = {render_value(schema_object)}{suffix}")
    sections.append(f"\nexport default {schema_name};")
    if is_typescript and interface:
        sections.append("")
        sections.append(interface)
    return "\n".join(sections) + "\n"
