"""
Name form conversions shared by the parser, the registry and code generation.
"""

import os
import re

from .config import PARSEABLE_FILE_EXTENSIONS, INDEX_FILE_STEM, MODEL_NAME_SUFFIX

_WORD_SPLIT = re.compile(r"[-_/\s.]+")
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")
_REPEATED_HYPHEN = re.compile(r"-{2,}")
_MIXIN_SUFFIX = "Mixin"


def to_pascal_case(name: str) -> str:
    """`user-profile`, `user_profile`, `userProfile` -> `UserProfile`."""
    parts = [p for p in _WORD_SPLIT.split(name) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def to_camel_case(name: str) -> str:
    """`user-profile` -> `userProfile`."""
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def to_kebab_case(name: str) -> str:
    """`UserProfile`, `userProfile`, `user_profile`, `HTTPRequest` -> kebab-case."""
    s = _ACRONYM_WORD.sub(r"\1-\2", name)
    s = _LOWER_UPPER.sub(r"\1-\2", s)
    s = re.sub(r"[_\s]+", "-", s).lower()
    return _REPEATED_HYPHEN.sub("-", s).strip("-")


def mixin_name_to_kebab(identifier: str) -> str:
    """`FileableMixin` -> `fileable`; used when a mixin identifier is unresolved."""
    if identifier.endswith(_MIXIN_SUFFIX) and len(identifier) > len(_MIXIN_SUFFIX):
        identifier = identifier[: -len(_MIXIN_SUFFIX)]
    return to_kebab_case(identifier)


def strip_source_extension(file_name: str) -> str:
    for ext in PARSEABLE_FILE_EXTENSIONS:
        if file_name.endswith(ext):
            return file_name[: -len(ext)]
    return file_name


def extract_base_name(path: str) -> str:
    """
    File stem in kebab-case, e.g. `app/models/user-profile.ts` -> `user-profile`.

    An `index` file is named after its directory.
    """
    stem = strip_source_extension(os.path.basename(path))
    if stem == INDEX_FILE_STEM:
        parent = os.path.basename(os.path.dirname(path))
        if parent:
            stem = parent
    return to_kebab_case(stem)


def strip_model_suffix(name: str) -> str:
    """`data-field-model` -> `data-field`."""
    if name.endswith(MODEL_NAME_SUFFIX) and len(name) > len(MODEL_NAME_SUFFIX):
        return name[: -len(MODEL_NAME_SUFFIX)]
    return name
