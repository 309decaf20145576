"""
Source discovery (collaborator).

Walks the configured model/mixin directories and returns `{path: code}` for
the driver. The core never calls this.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from ..analysis.module_system.path_resolver import ImportResolver, normalize_path, pattern_root
from ..utils.config import DECLARATION_FILE_SUFFIX, SOURCE_FILE_EXTENSIONS
from ..utils.io_utils import read_source_file

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    files: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    errored: List[str] = field(default_factory=list)


def source_roots(options) -> List[Path]:
    """Every directory discovery walks, de-duplicated in configuration order."""
    dirs: List[str] = []
    for directory in (options.model_source_dir, options.mixin_source_dir):
        if directory:
            dirs.append(directory)
    for source in list(options.additional_model_sources) + list(options.additional_mixin_sources):
        dirs.append(pattern_root(source.dir))

    resolver = ImportResolver(options)
    for specifier in list(options.intermediate_model_paths) + list(options.intermediate_fragment_paths):
        resolved = resolver.resolve(specifier, None)
        if resolved is not None:
            dirs.append(os.path.dirname(resolved))

    roots: Dict[str, Path] = {}
    for directory in dirs:
        roots.setdefault(normalize_path(directory), Path(directory))
    return list(roots.values())


def discover_sources(options) -> DiscoveryResult:
    """Collect `*.ts` / `*.js` sources (declaration files excluded) under every root."""
    result = DiscoveryResult()
    for root in source_roots(options):
        if not root.is_dir():
            logger.warning(f"[Discovery] source directory {root} does not exist")
            continue
        for ext in SOURCE_FILE_EXTENSIONS:
            for path in sorted(root.rglob(f"*{ext}")):
                key = normalize_path(str(path))
                if key in result.files or key in result.skipped or not path.is_file():
                    continue
                if path.name.endswith(DECLARATION_FILE_SUFFIX):
                    result.skipped.append(key)
                    continue
                try:
                    result.files[key] = read_source_file(path)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"[Discovery] could not read {path}: {e}")
                    result.errored.append(key)
    logger.debug(
        f"[Discovery] {len(result.files)} files, {len(result.skipped)} skipped, "
        f"{len(result.errored)} unreadable"
    )
    return result
