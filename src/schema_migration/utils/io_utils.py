"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_text()/write_text() consistently (no raw open/read)
- Only collaborators (discovery, writer, CLI) call these; the core never does
"""

import json
from pathlib import Path
from typing import Any, Union

from .config import DEFAULT_FILE_ENCODING


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_text_file(path: Union[Path, str], content: str) -> Path:
    """Write a generated file, creating parent directories as needed."""
    p = Path(path) if not isinstance(path, Path) else path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding=DEFAULT_FILE_ENCODING)
    return p


def read_json_file(path: Union[Path, str]) -> Any:
    """Read a JSON config file."""
    return json.loads(read_source_file(path))
