"""
Centralized file I/O utilities.

- Single place for encoding and path handling
- Use Path.read_text() consistently (no raw open/read)
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_output_file(path: Union[Path, str], text: str) -> None:
    """Write bundled output with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    p.write_text(text, encoding=DEFAULT_FILE_ENCODING)


def to_absolute_path(path: Union[Path, str]) -> Path:
    """Return path unchanged when absolute, otherwise anchored at the working directory."""
    p = Path(path) if not isinstance(path, Path) else path
    if p.is_absolute():
        return p
    return p.absolute()
