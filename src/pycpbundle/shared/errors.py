"""
Error Reporting

Bundling errors carry a message, a diagnostic code and an optional source
location. The reporter renders them rustc-style:

    error[E0004]: name 'dobule' is not defined
     --> main.py:3:7
      |
    3 | print(dobule(2))
      |       ^^^^^^
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .source_location import SourceLocation
from ..utils.config import COLOR_ENV_VAR, NO_COLOR_ENV_VAR


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get(NO_COLOR_ENV_VAR):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One diagnostic, detached from the exception that produced it."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """Render a single diagnostic with an optional source snippet."""
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    gw = max(len(str(loc.line)), 1)
    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))

    if source is None:
        _append_annotations(out, error, gw, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""

    gutter = _style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color)
    out.append(gutter)
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_line == loc.line and loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(f"{gutter} {_style(carets + label_suffix, _BOLD, _RED, color=color)}")

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when the end column is unavailable."""
    if col_start >= len(code_line):
        return 1
    length = 0
    for ch in code_line[col_start:]:
        if not (ch.isalnum() or ch in "_."):
            break
        length += 1
    return max(1, length)


def _append_annotations(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not (error.help or error.note):
        return
    pad = " " * (gw + 1)
    out.append(_style(pad + "|", _BOLD, _BLUE, color=color))
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects diagnostics and renders them against the sources read during the run."""

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.errors: List[Error] = []

    def report(self, exc: "BundleError") -> None:
        self.errors.append(exc.to_error())

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        return "\n\n".join(self.format_error(e, color=color) for e in self.errors)

    def print_errors(self) -> None:
        for error in self.errors:
            print(self.format_error(error), file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class BundleError(Exception):
    """Base exception for everything that aborts a bundling run."""
    code = "E0000"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.location = location
        self.help = help
        self.note = note

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.code,
            help=self.help,
            note=self.note,
        )

    def __str__(self):
        if self.location:
            return f"error[{self.code}]: {self.message}\n --> {self.location}"
        return f"error[{self.code}]: {self.message}"


class PathResolutionError(BundleError):
    """The entry path cannot be made absolute."""
    code = "E0001"


class ParseError(BundleError):
    """Syntax error in the entry file or any loaded module."""
    code = "E0002"


class PackageLoadError(BundleError):
    """An imported module cannot be located or read."""
    code = "E0003"


class TypeCheckError(BundleError):
    """Semantic analysis rejected a file in the closure (unresolved name or attribute)."""
    code = "E0004"


class SerializationError(BundleError):
    """The bundled tree cannot be rendered to source text."""
    code = "E0005"
