"""
Extension module code generation.

An extension module is the original file's other top-level statements
(imports rewritten for the new location) followed by the behaviors that
could not become schema fields:
- records and intermediate bases: an `export class XExtension { ... }`
- mixins: an `export const xExtension = { ... };` object
"""

import logging
import os
import re
from typing import List, Optional, Sequence

from ..analysis.module_system.path_resolver import (
    is_relative_specifier, is_within, normalize_path, pattern_root,
)
from ..ir.nodes import Behavior, BehaviorKind, ParsedFile
from ..utils.config import (
    DEFAULT_RESOURCES_DIR,
    DEFAULT_TRAITS_DIR,
    EXTENSION_FILE_SUFFIX,
    EXTENSION_SIGNATURE_SUFFIX,
    FRAGMENT_DECORATOR_SOURCE,
    INDENT,
    INDEX_FILE_STEM,
)
from ..utils.naming import strip_source_extension, to_pascal_case
from .base import ArtifactType

logger = logging.getLogger(__name__)

_CODE_KINDS = (BehaviorKind.METHOD, BehaviorKind.GETTER, BehaviorKind.SETTER)
_LEADING_WS = re.compile(r"^[ \t]*")


# ---------------------------------------------------------------------------
# Output locations
# ---------------------------------------------------------------------------

def extension_file_name(module_name: str, parsed: ParsedFile) -> str:
    return f"{module_name}{EXTENSION_FILE_SUFFIX}{parsed.output_extension}"


def output_dir(options, trait_context: bool, extension: bool = False) -> str:
    if extension and options.extensions_dir:
        return options.extensions_dir
    if trait_context:
        return options.traits_dir or DEFAULT_TRAITS_DIR
    return options.resources_dir or DEFAULT_RESOURCES_DIR


def artifact_dir(artifact_type: ArtifactType, options) -> str:
    """Directory an artifact of `artifact_type` is written to."""
    return output_dir(options, artifact_type.is_trait_output, extension=artifact_type.is_extension)


def source_subdir(path: str, options) -> str:
    """
    Directory of `path` below the deepest configured source root holding it,
    as a `/`-separated path; empty at a root or outside every root. An index
    file stands for its directory.
    """
    directory = os.path.dirname(path)
    if strip_source_extension(os.path.basename(path)) == INDEX_FILE_STEM:
        directory = os.path.dirname(directory)
    roots = [options.model_source_dir, options.mixin_source_dir]
    for source in list(options.additional_model_sources) + list(options.additional_mixin_sources):
        roots.append(pattern_root(source.dir))

    best: Optional[str] = None
    for root in roots:
        if root and is_within(directory, root):
            root = normalize_path(root)
            if best is None or len(root) > len(best):
                best = root
    if best is None:
        return ""
    relative = os.path.relpath(normalize_path(directory), best)
    return "" if relative == "." else relative.replace(os.sep, "/")


# ---------------------------------------------------------------------------
# Relative import rewriting
# ---------------------------------------------------------------------------

def _mapped_specifier(specifier: str, source_dir: str, mapping) -> Optional[str]:
    """Resolve `./x` / `../x` against a `directory_import_mapping` entry, if one covers the file."""
    for mapped_dir, import_base in mapping.items():
        mapped_dir = mapped_dir.rstrip("/")
        index = source_dir.find(mapped_dir)
        if not mapped_dir or index == -1:
            continue
        tail = source_dir[index + len(mapped_dir):]
        parts = [p for p in tail.split(os.sep) if p]
        for part in strip_source_extension(specifier).split("/"):
            if part == "..":
                if parts:
                    parts.pop()
            elif part not in (".", ""):
                parts.append(part)
        return "/".join([import_base.rstrip("/")] + parts)
    return None


def rewrite_specifier(specifier: str, source_path: str, target_path: str, options) -> str:
    """
    Re-point a relative import from `source_path` so it still resolves from
    `target_path`. Bare specifiers are returned unchanged.
    """
    if not is_relative_specifier(specifier):
        return specifier
    source_dir = os.path.dirname(source_path)

    mapped = _mapped_specifier(specifier, source_dir, options.directory_import_mapping)
    if mapped is not None:
        return mapped

    if specifier.startswith("./") and options.model_import_source and options.model_source_dir \
            and normalize_path(options.model_source_dir) == source_dir:
        return f"{options.model_import_source.rstrip('/')}/{strip_source_extension(specifier[2:])}"

    absolute = os.path.normpath(os.path.join(source_dir, specifier))
    relative = os.path.relpath(absolute, os.path.dirname(target_path)).replace(os.sep, "/")
    return relative if relative.startswith(".") else f"./{relative}"


def _replace_specifier(text: str, old: str, new: str) -> str:
    for q in ("'", '"'):
        quoted = f"{q}{old}{q}"
        if quoted in text:
            return text.replace(quoted, f"{q}{new}{q}", 1)
    return text


def preamble(parsed: ParsedFile, target_path: str, options, drop_fragment_imports: bool) -> str:
    """Preserved top-level statements with relative imports re-pointed at `target_path`."""
    blocks: List[str] = []
    previous_was_import = False
    for stmt in parsed.preserved_statements:
        text = stmt.text
        is_import = stmt.specifier is not None
        if is_import:
            if drop_fragment_imports and stmt.specifier == FRAGMENT_DECORATOR_SOURCE:
                continue
            new_spec = rewrite_specifier(stmt.specifier, parsed.path, target_path, options)
            if new_spec != stmt.specifier:
                logger.debug(f"[Extensions] {stmt.specifier!r} -> {new_spec!r}")
                text = _replace_specifier(text, stmt.specifier, new_spec)
        if blocks:
            blocks.append("\n" if is_import and previous_was_import else "\n\n")
        blocks.append(text)
        previous_was_import = is_import
    return "".join(blocks).strip()


# ---------------------------------------------------------------------------
# Generated code
# ---------------------------------------------------------------------------

def reindent(text: str, indent: str = INDENT) -> str:
    """
    Move a member copied out of its original file to `indent`.

    The first line starts at the member itself; continuation lines keep their
    indentation relative to the least indented of them.
    """
    lines = text.split("\n")
    rest = [line for line in lines[1:] if line.strip()]
    common = min((len(_LEADING_WS.match(line).group(0)) for line in rest), default=0)
    out = [indent + lines[0].strip()]
    for line in lines[1:]:
        out.append(indent + line[common:] if line.strip() else "")
    return "\n".join(out)


def _class_member(behavior: Behavior) -> Optional[str]:
    if behavior.is_object_method:
        if behavior.name.startswith("..."):
            logger.warning(f"[Extensions] spread member {behavior.name!r} cannot be placed in a class")
            return None
        text = behavior.source_text.rstrip()
        if behavior.kind not in _CODE_KINDS and not text.endswith(";"):
            text += ";"
        return reindent(text)
    return reindent(f"{behavior.original_key or behavior.name} = {behavior.source_text.rstrip()};")


def class_extension_code(name: str, behaviors: Sequence[Behavior]) -> str:
    members = [m for m in (_class_member(b) for b in behaviors) if m is not None]
    return f"export class {name} {{\n" + "\n\n".join(members) + "\n}"


def object_extension_code(name: str, behaviors: Sequence[Behavior]) -> str:
    members = []
    for b in behaviors:
        if b.is_object_method:
            members.append(reindent(b.source_text.rstrip().rstrip(";")))
        else:
            members.append(reindent(f"{b.original_key or b.name}: {b.source_text.rstrip()}"))
    return f"export const {name} = {{\n" + ",\n".join(members) + "\n};"


def signature_type(extension_name: str, is_typescript: bool) -> str:
    signature = f"{to_pascal_case(extension_name)}{EXTENSION_SIGNATURE_SUFFIX}"
    if is_typescript:
        return f"export type {signature} = typeof {extension_name};"
    return f"/** @typedef {{typeof {extension_name}}} {signature} */"


def extension_module(parsed: ParsedFile, extension_name: str, options, *,
                     file_name: str,
                     trait_context: bool, object_format: bool,
                     interface_name: Optional[str] = None,
                     interface_module: Optional[str] = None) -> str:
    """Full source text of one extension module."""
    target_path = normalize_path(os.path.join(output_dir(options, trait_context, extension=True), file_name))
    is_typescript = parsed.is_typescript

    sections: List[str] = []
    head = preamble(parsed, target_path, options, drop_fragment_imports=not object_format)
    if head:
        sections.append(head)

    if object_format:
        sections.append(object_extension_code(extension_name, parsed.behaviors))
    else:
        if is_typescript and interface_name:
            if interface_module:
                sections.append(f"import type {{ {interface_name} }} from '{interface_module}';")
            sections.append(f"export interface {extension_name} extends {interface_name} {{}}")
        sections.append(class_extension_code(extension_name, parsed.behaviors))

    if options.emit_signature_types:
        sections.append(signature_type(extension_name, is_typescript))
    return "\n\n".join(sections) + "\n"
