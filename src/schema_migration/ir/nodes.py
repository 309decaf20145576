"""
Parsed File IR

Immutable snapshot of one legacy model/mixin source file, produced once by
the parser and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from typing_extensions import TypeAlias

from ..utils.config import PARSEABLE_FILE_EXTENSIONS, UNKNOWN_TYPE
from ..utils.naming import extract_base_name, to_camel_case, to_pascal_case


class FileKind(Enum):
    RECORD = "record"
    MIXIN = "mixin"
    FRAGMENT = "fragment"
    UNKNOWN = "unknown"


class ImportRole(Enum):
    FIELD_SOURCE = "field-source"
    MIXIN_FACTORY = "mixin-factory"
    FRAGMENT_BASE = "fragment-base"
    MIXIN = "mixin"
    MODEL = "model"
    LIBRARY = "library"
    OTHER = "other"


class FieldKind(Enum):
    ATTRIBUTE = "attribute"
    BELONGS_TO = "belongsTo"
    HAS_MANY = "hasMany"
    SCHEMA_OBJECT = "schema-object"
    SCHEMA_ARRAY = "schema-array"
    ARRAY = "array"

    @property
    def is_relationship(self) -> bool:
        return self in (FieldKind.BELONGS_TO, FieldKind.HAS_MANY)


class BehaviorKind(Enum):
    METHOD = "method"
    COMPUTED = "computed"
    GETTER = "getter"
    SETTER = "setter"
    PROPERTY = "property"


@dataclass(frozen=True)
class SourceExpression:
    """An option value kept as verbatim source text instead of being evaluated."""
    text: str

    def __str__(self) -> str:
        return self.text


OptionValue: TypeAlias = Union[bool, int, float, str, None, SourceExpression, Tuple[str, ...]]


@dataclass(frozen=True)
class ImportedName:
    """One name bound by an import statement (`default` / `*` for default / namespace)."""
    imported: str
    local: str
    type_only: bool = False


@dataclass(frozen=True)
class ImportBinding:
    specifier: str
    role: ImportRole
    names: Tuple[ImportedName, ...] = ()
    type_only: bool = False
    resolved_path: Optional[str] = None

    @property
    def local_names(self) -> Tuple[str, ...]:
        return tuple(n.local for n in self.names)


@dataclass(frozen=True)
class Field:
    """A schema-representable member. `kind` is fixed at parse time."""
    name: str
    kind: FieldKind
    type: Optional[str] = None
    options: Dict[str, OptionValue] = field(default_factory=dict, hash=False)
    type_annotation: Optional[str] = None
    comment: Optional[str] = None

    @property
    def is_async(self) -> bool:
        return self.options.get("async") is True

    @property
    def is_polymorphic(self) -> bool:
        return self.options.get("polymorphic") is True


@dataclass(frozen=True)
class Behavior:
    """
    A member that is not a schema field.

    `source_text` is copied verbatim into extension artifacts and is never
    re-parsed downstream.
    """
    name: str
    source_text: str
    kind: BehaviorKind
    original_key: str = ""
    is_object_method: bool = False
    type_annotation: str = UNKNOWN_TYPE


@dataclass(frozen=True)
class MixinReference:
    """An identifier in a composition clause or `extends`, with its import provenance."""
    local_name: str
    specifier: Optional[str] = None
    resolved_path: Optional[str] = None


@dataclass(frozen=True)
class PreservedStatement:
    """A top-level statement carried into extension artifacts (imports keep their specifier)."""
    text: str
    specifier: Optional[str] = None


@dataclass(frozen=True)
class ParsedFile:
    path: str
    kind: FileKind
    imports: Tuple[ImportBinding, ...] = ()
    fields: Tuple[Field, ...] = ()
    behaviors: Tuple[Behavior, ...] = ()
    traits: Tuple[str, ...] = ()
    composition: Tuple[MixinReference, ...] = ()
    base_class: Optional[MixinReference] = None
    preserved_statements: Tuple[PreservedStatement, ...] = ()

    @property
    def base_name(self) -> str:
        return extract_base_name(self.path)

    @property
    def camel_name(self) -> str:
        return to_camel_case(self.base_name)

    @property
    def pascal_name(self) -> str:
        return to_pascal_case(self.base_name)

    @property
    def file_extension(self) -> str:
        for ext in PARSEABLE_FILE_EXTENSIONS:
            if self.path.endswith(ext):
                return ext
        return ".js"

    @property
    def is_typescript(self) -> bool:
        return self.file_extension in (".ts", ".tsx")

    @property
    def output_extension(self) -> str:
        return ".ts" if self.is_typescript else ".js"

    @property
    def is_record_like(self) -> bool:
        return self.kind in (FileKind.RECORD, FileKind.FRAGMENT)

    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def binding_for(self, local_name: str) -> Optional[ImportBinding]:
        for binding in self.imports:
            if local_name in binding.local_names:
                return binding
        return None
