"""Module system: import specifier resolution against configured source roots."""

from .path_resolver import ImportResolver, resolve, normalize_path, is_within, match_wildcard_pattern

__all__ = [
    'ImportResolver',
    'resolve',
    'normalize_path',
    'is_within',
    'match_wildcard_pattern',
]
