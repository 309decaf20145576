"""
Import lines of generated modules.

Names are merged per source module; both sources and names keep
first-insertion order so output is stable across runs.
"""

import posixpath
import re
from typing import Dict, List, Optional

from ..utils.config import (
    DEFAULT_EMBER_DATA_SOURCE,
    DEFAULT_TRAITS_IMPORT,
    SCHEMA_FILE_SUFFIX,
    TYPE_SYMBOL_IMPORT,
    WARP_DRIVE_MIRROR_PREFIX,
    WARP_DRIVE_PREFIX,
)

_MODEL_SUFFIX = re.compile(r"/model$")
WARP_DRIVE_CORE = "@warp-drive/core"


def mirror_source(source: str, mirror: bool) -> str:
    """`@warp-drive/...` -> `@warp-drive-mirror/...` when mirroring."""
    if mirror and source.startswith(WARP_DRIVE_PREFIX) and not source.startswith(WARP_DRIVE_MIRROR_PREFIX):
        return WARP_DRIVE_MIRROR_PREFIX + source[len(WARP_DRIVE_PREFIX):]
    return source


def type_symbol_source(ember_data_source: str) -> str:
    """
    Module exporting the `Type` symbol.

    A custom package ending in `/model` ships it at `/core-types/symbols`;
    the stock Ember Data package maps to WarpDrive's own module.
    """
    if ember_data_source != DEFAULT_EMBER_DATA_SOURCE and _MODEL_SUFFIX.search(ember_data_source):
        return _MODEL_SUFFIX.sub("/core-types/symbols", ember_data_source)
    return TYPE_SYMBOL_IMPORT


def store_source(ember_data_source: str) -> str:
    if ember_data_source != DEFAULT_EMBER_DATA_SOURCE and _MODEL_SUFFIX.search(ember_data_source):
        return _MODEL_SUFFIX.sub("/store", ember_data_source)
    return WARP_DRIVE_CORE


def trait_module(trait_name: str, traits_import: Optional[str], from_trait: bool = False,
                 from_dir: str = "") -> str:
    """
    Module path of a trait schema, as seen from a resource (or another trait).

    Without `traits_import` the path is relative to the importing module,
    which sits in `from_dir` below its output directory.
    """
    if traits_import:
        return f"{traits_import.rstrip('/')}/{trait_name}{SCHEMA_FILE_SUFFIX}"
    if from_trait:
        relative = posixpath.relpath(trait_name, from_dir or ".")
        if not relative.startswith("."):
            relative = f"./{relative}"
        return f"{relative}{SCHEMA_FILE_SUFFIX}"
    depth = len([part for part in from_dir.split("/") if part])
    return f"{'../' * depth}{DEFAULT_TRAITS_IMPORT}/{trait_name}{SCHEMA_FILE_SUFFIX}"


def resource_module(name: str, resources_import: str) -> str:
    return f"{resources_import.rstrip('/')}/{name}{SCHEMA_FILE_SUFFIX}"


class ImportCollector:
    """Ordered `import type { ... } from '...'` lines."""

    def __init__(self, mirror: bool = False):
        self.mirror = mirror
        self._sources: Dict[str, Dict[str, None]] = {}

    def add_type(self, name: str, source: str) -> None:
        source = mirror_source(source, self.mirror)
        self._sources.setdefault(source, {})[name] = None

    def __bool__(self) -> bool:
        return bool(self._sources)

    def lines(self) -> List[str]:
        return [
            f"import type {{ {', '.join(names)} }} from '{source}';"
            for source, names in self._sources.items()
        ]
