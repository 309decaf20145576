"""
Import Path Resolution

Maps a raw import specifier plus the importing file's location to the
absolute path of a source file in the corpus.

Resolution order:
- alias table (exact specifier, or prefix ending in `/`) -> directory
- relative specifiers (`./`, `../`) against the importing file's directory
- primary prefixes: model import source -> model dir, mixin import source -> mixin dir
- additional source patterns with one trailing `*`

Every candidate base path is probed for `.ts`/`.js` and `index.ts`/`index.js`.
Resolution never raises; anything that does not map to a known file is None.

This class holds no per-call state and can be shared across a run.
"""

import logging
import os
from typing import AbstractSet, Callable, Iterable, List, Optional

from ...utils.config import SOURCE_FILE_EXTENSIONS, PARSEABLE_FILE_EXTENSIONS, INDEX_FILE_STEM

logger = logging.getLogger(__name__)

WILDCARD = "*"


def normalize_path(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def match_wildcard_pattern(pattern: str, specifier: str, target_dir: str) -> Optional[str]:
    """
    Map `specifier` through `pattern` onto `target_dir`.

    `pattern` may end in a single `*`; the captured tail replaces the `*` in
    `target_dir`, or is appended when `target_dir` has none. Without a
    wildcard the pattern must match exactly (or as a directory prefix).
    """
    if pattern.endswith(WILDCARD):
        prefix = pattern[: -len(WILDCARD)]
        if not specifier.startswith(prefix):
            return None
        captured = specifier[len(prefix):]
        if not captured:
            return None
        if WILDCARD in target_dir:
            return target_dir.replace(WILDCARD, captured, 1)
        return os.path.join(target_dir, captured)

    pattern = pattern.rstrip("/")
    if specifier == pattern:
        return target_dir
    if specifier.startswith(pattern + "/"):
        return os.path.join(target_dir, specifier[len(pattern) + 1:])
    return None


def pattern_root(target_dir: str) -> str:
    """Directory part of a pattern target such as `addon/mixins/*`."""
    head = target_dir.split(WILDCARD, 1)[0]
    return head.rstrip("/") or "."


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith("./") or specifier.startswith("../") or specifier in (".", "..")


def is_within(path: str, root: str) -> bool:
    root = normalize_path(root)
    path = normalize_path(path)
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


class ImportResolver:
    """
    Import resolution against the configured source roots.

    `known_files` is the in-memory snapshot of the run; when omitted the
    filesystem is probed instead (collaborators only).
    """

    def __init__(self, options, known_files: Optional[Iterable[str]] = None):
        self.options = options
        if known_files is not None:
            snapshot: AbstractSet[str] = frozenset(normalize_path(p) for p in known_files)
            self._exists: Callable[[str], bool] = snapshot.__contains__
        else:
            self._exists = os.path.isfile

    def resolve(self, specifier: str, from_file_path: Optional[str] = None) -> Optional[str]:
        """Resolve an import specifier to an absolute file path, or None."""
        try:
            for candidate in self._candidate_bases(specifier, from_file_path):
                resolved = self._probe(candidate)
                if resolved is not None:
                    logger.debug(f"[Resolver] {specifier!r} -> {resolved}")
                    return resolved
        except (TypeError, ValueError) as e:
            logger.debug(f"[Resolver] could not resolve {specifier!r} from {from_file_path}: {e}")
            return None
        logger.debug(f"[Resolver] {specifier!r} from {from_file_path} is unresolved")
        return None

    def resolve_within(self, specifier: str, from_file_path: Optional[str], root: Optional[str]) -> Optional[str]:
        """Resolve, then require the result to live under `root`."""
        resolved = self.resolve(specifier, from_file_path)
        if resolved is None or root is None:
            return resolved
        if not is_within(resolved, root):
            logger.debug(f"[Resolver] {resolved} is outside {root}")
            return None
        return resolved

    def resolve_mixin(self, specifier: str, from_file_path: Optional[str] = None) -> Optional[str]:
        """Resolve a specifier that must land inside the mixin source tree (when configured)."""
        root = self.options.mixin_source_dir
        if root is None or not self._matches_mixin_roots(specifier):
            return self.resolve(specifier, from_file_path)
        return self.resolve_within(specifier, from_file_path, root)

    def _matches_mixin_roots(self, specifier: str) -> bool:
        # Additional mixin sources deliberately live outside the mixin dir.
        for source in self.options.additional_mixin_sources:
            if match_wildcard_pattern(source.pattern, specifier, source.dir) is not None:
                return False
        return True

    def _candidate_bases(self, specifier: str, from_file_path: Optional[str]) -> List[str]:
        options = self.options
        candidates: List[str] = []

        for alias, directory in options.import_aliases.items():
            if specifier == alias.rstrip("/"):
                candidates.append(directory)
            elif alias.endswith("/") and specifier.startswith(alias):
                candidates.append(os.path.join(directory, specifier[len(alias):]))
        if candidates:
            return candidates

        if is_relative_specifier(specifier):
            if from_file_path is None:
                return []
            return [os.path.join(os.path.dirname(from_file_path), specifier)]

        if os.path.isabs(specifier):
            return [specifier]

        primaries = (
            (options.model_import_source, options.model_source_dir),
            (options.mixin_import_source, options.mixin_source_dir),
        )
        for prefix, directory in primaries:
            if not prefix or not directory:
                continue
            prefix = prefix.rstrip("/")
            if specifier.startswith(prefix + "/"):
                candidates.append(os.path.join(directory, specifier[len(prefix) + 1:]))

        for source in list(options.additional_model_sources) + list(options.additional_mixin_sources):
            mapped = match_wildcard_pattern(source.pattern, specifier, source.dir)
            if mapped is not None:
                candidates.append(mapped)

        return candidates

    def _probe(self, base: str) -> Optional[str]:
        base = normalize_path(base)
        if base.endswith(PARSEABLE_FILE_EXTENSIONS) and self._exists(base):
            return base
        for ext in SOURCE_FILE_EXTENSIONS:
            if self._exists(base + ext):
                return base + ext
        for ext in SOURCE_FILE_EXTENSIONS:
            index_file = os.path.join(base, INDEX_FILE_STEM + ext)
            if self._exists(index_file):
                return index_file
        return None


def resolve(specifier: str, from_file_path: Optional[str], options,
            known_files: Optional[Iterable[str]] = None) -> Optional[str]:
    """Functional form of `ImportResolver.resolve`."""
    return ImportResolver(options, known_files).resolve(specifier, from_file_path)
