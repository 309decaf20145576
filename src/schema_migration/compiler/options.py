"""
Migration Options

The configuration surface read by the core. Owned by the caller (usually
loaded from a JSON file by the CLI) and treated as read-only during a run.
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..analysis.module_system.path_resolver import normalize_path
from ..shared.errors import MissingConfigurationError
from ..utils.config import (
    DEFAULT_EMBER_DATA_SOURCE,
    DEFAULT_RESOURCES_DIR,
    DEFAULT_TRAITS_DIR,
    DEFAULT_FIELD_DECLARATION_SOURCES,
    DEFAULT_MIXIN_SOURCE,
    FRAGMENT_BASE_SOURCE,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class AdditionalSource:
    """An import pattern (optionally ending in `*`) and the directory it maps to."""
    pattern: str
    dir: str


@dataclass(frozen=True)
class StoreType:
    name: str = "Store"
    import_path: str = ""


@dataclass
class MigrationOptions:
    """
    Options for one migration run.

    `resources_import` is the only option the generator cannot do without;
    `validate()` raises `MissingConfigurationError` when it is absent.
    """
    # Modules whose exports declare schema fields
    field_declaration_sources: Tuple[str, ...] = DEFAULT_FIELD_DECLARATION_SOURCES
    # Where generated HasMany/AsyncHasMany types are imported from
    ember_data_import_source: str = DEFAULT_EMBER_DATA_SOURCE
    mixin_sources: Tuple[str, ...] = (DEFAULT_MIXIN_SOURCE,)
    fragment_base_sources: Tuple[str, ...] = (FRAGMENT_BASE_SOURCE,)

    # Import resolution
    model_import_source: Optional[str] = None
    mixin_import_source: Optional[str] = None
    model_source_dir: Optional[str] = None
    mixin_source_dir: Optional[str] = None
    additional_model_sources: List[AdditionalSource] = field(default_factory=list)
    additional_mixin_sources: List[AdditionalSource] = field(default_factory=list)
    import_aliases: Dict[str, str] = field(default_factory=dict)

    # Intermediate base classes that become traits
    intermediate_model_paths: List[str] = field(default_factory=list)
    intermediate_fragment_paths: List[str] = field(default_factory=list)

    # Per-project attribute transform -> TypeScript type remap
    type_mapping: Dict[str, str] = field(default_factory=dict)

    # Generated import prefixes
    resources_import: Optional[str] = None
    traits_import: Optional[str] = None

    # Project root that relative directories are resolved against
    input_dir: Optional[str] = None

    # Output locations (used for relative import rewriting and by the writer).
    # Extensions sit next to their schemas unless `extensions_dir` is set.
    resources_dir: Optional[str] = None
    traits_dir: Optional[str] = None
    extensions_dir: Optional[str] = None
    extensions_import: Optional[str] = None
    directory_import_mapping: Dict[str, str] = field(default_factory=dict)

    store_type: Optional[StoreType] = None

    # Output naming flags
    mirror: bool = False
    emit_signature_types: bool = True

    def validate(self) -> None:
        """Raise for options the run cannot proceed without."""
        self.require("resources_import")

    def require(self, name: str) -> Any:
        value = getattr(self, name)
        if value in (None, ""):
            raise MissingConfigurationError(
                name,
                help=f"set '{_to_camel(name)}' in the migration config",
            )
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MigrationOptions":
        """
        Build options from a config mapping.

        Keys may be camelCase (as in the JS tool's config files) or
        snake_case. `emberDataImportSource` also becomes the first
        field-declaration source when none are given explicitly.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _to_snake(raw_key)
            if key == "store_type" and value is not None:
                value = StoreType(
                    name=value.get("name", "Store"),
                    import_path=value.get("import", value.get("import_path", "")),
                )
            elif key in ("additional_model_sources", "additional_mixin_sources"):
                value = [AdditionalSource(pattern=s["pattern"], dir=s["dir"]) for s in value or []]
            elif key in ("field_declaration_sources", "mixin_sources", "fragment_base_sources"):
                value = tuple(value)
            if key not in known:
                logger.debug(f"[Options] ignoring unknown option '{raw_key}'")
                continue
            kwargs[key] = value

        if "field_declaration_sources" not in kwargs and "ember_data_import_source" in kwargs:
            source = kwargs["ember_data_import_source"]
            kwargs["field_declaration_sources"] = tuple(
                dict.fromkeys((source,) + DEFAULT_FIELD_DECLARATION_SOURCES)
            )
        return cls(**kwargs)


def _anchor(directory: Optional[str], input_dir: str) -> Optional[str]:
    if not directory or os.path.isabs(directory):
        return directory
    return normalize_path(os.path.join(input_dir, directory))


def anchor_options(options: MigrationOptions, input_dir: Optional[str]) -> MigrationOptions:
    """
    Copy of `options` with every relative directory resolved against `input_dir`.

    Unset output directories take their defaults first, so generated paths
    never depend on the process working directory.
    """
    if input_dir is None:
        return options
    input_dir = normalize_path(input_dir)
    return replace(
        options,
        input_dir=input_dir,
        model_source_dir=_anchor(options.model_source_dir, input_dir),
        mixin_source_dir=_anchor(options.mixin_source_dir, input_dir),
        resources_dir=_anchor(options.resources_dir or DEFAULT_RESOURCES_DIR, input_dir),
        traits_dir=_anchor(options.traits_dir or DEFAULT_TRAITS_DIR, input_dir),
        extensions_dir=_anchor(options.extensions_dir, input_dir),
        import_aliases={k: _anchor(v, input_dir) for k, v in options.import_aliases.items()},
        additional_model_sources=[
            replace(s, dir=_anchor(s.dir, input_dir)) for s in options.additional_model_sources
        ],
        additional_mixin_sources=[
            replace(s, dir=_anchor(s.dir, input_dir)) for s in options.additional_mixin_sources
        ],
    )


def _to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)
