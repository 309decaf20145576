"""
Schema migration utilities package
"""

from .io_utils import read_source_file, write_text_file, read_json_file
from .naming import (
    to_pascal_case, to_camel_case, to_kebab_case,
    mixin_name_to_kebab, extract_base_name, strip_model_suffix,
)

__all__ = [
    "read_source_file", "write_text_file", "read_json_file",
    "to_pascal_case", "to_camel_case", "to_kebab_case",
    "mixin_name_to_kebab", "extract_base_name", "strip_model_suffix",
]
