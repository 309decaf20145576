"""
Field -> TypeScript type text for generated interfaces.
"""

from typing import Mapping, Optional

from ..ir.nodes import Field, FieldKind
from ..utils.config import BUILT_IN_TYPE_MAPPINGS, UNKNOWN_TYPE
from ..utils.naming import to_pascal_case


def _nullable(ts_type: str, nullable: bool) -> str:
    return f"{ts_type} | null" if nullable else ts_type


def attribute_type(attr_type: Optional[str], options: Mapping, type_mapping: Mapping[str, str],
                   declared: Optional[str] = None) -> str:
    """
    TypeScript type for an `attr` field.

    Precedence: enum with allowedValues, project type mapping, built-in
    transforms, then the declared annotation, then `unknown`.
    """
    has_default = "defaultValue" in options
    allow_null = options.get("allowNull") is not False

    if attr_type == "enum" and "allowedValues" in options:
        return _nullable("string", allow_null)

    if attr_type is not None and attr_type in type_mapping:
        return _nullable(type_mapping[attr_type], allow_null and not has_default)

    if attr_type is not None and attr_type in BUILT_IN_TYPE_MAPPINGS:
        if attr_type == "boolean":
            return _nullable("boolean", allow_null)
        return _nullable(BUILT_IN_TYPE_MAPPINGS[attr_type], allow_null and not has_default)

    if declared:
        return declared
    return _nullable(UNKNOWN_TYPE, allow_null and not has_default)


def relationship_target(field: Field) -> Optional[str]:
    """Interface name of a relationship's target (`user-profile` -> `UserProfile`)."""
    if not field.type:
        return None
    return to_pascal_case(field.type)


def field_type(field: Field, type_mapping: Mapping[str, str]) -> str:
    if field.kind is FieldKind.ATTRIBUTE:
        return attribute_type(field.type, field.options, type_mapping, field.type_annotation)

    target = relationship_target(field) if field.kind.is_relationship else None
    if field.kind is FieldKind.BELONGS_TO:
        if target is None:
            return UNKNOWN_TYPE
        return f"Promise<{target} | null>" if field.is_async else f"{target} | null"
    if field.kind is FieldKind.HAS_MANY:
        if target is None:
            return UNKNOWN_TYPE
        return f"AsyncHasMany<{target}>" if field.is_async else f"HasMany<{target}>"
    return UNKNOWN_TYPE
