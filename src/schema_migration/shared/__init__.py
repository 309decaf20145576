"""
Shared foundational types: source locations, diagnostics, exceptions.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter,
    SchemaMigrationError, ParseFailure, MissingConfigurationError,
)

__all__ = [
    "SourceLocation",
    "Error",
    "ErrorReporter",
    "SchemaMigrationError",
    "ParseFailure",
    "MissingConfigurationError",
]
