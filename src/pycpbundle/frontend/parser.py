"""
Parser

Thin wrapper around `ast.parse` that keeps the source text and the comment
block documenting each top-level statement (the syntax tree drops comments).
"""

import ast
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..shared.errors import ParseError
from ..shared.nodes import SourceFile
from ..shared.source_location import SourceLocation
from ..utils.config import COMMENT_PREFIX, SHEBANG_PREFIX

logger = logging.getLogger(__name__)


def statement_first_line(stmt: ast.stmt) -> int:
    """First source line of a statement, decorators included."""
    decorators = getattr(stmt, "decorator_list", None) or []
    return min([stmt.lineno] + [d.lineno for d in decorators])


def _leading_comments(lines: List[str], stmt: ast.stmt) -> Optional[str]:
    """Contiguous unindented comment lines directly above stmt."""
    idx = statement_first_line(stmt) - 2
    block: List[str] = []
    while idx >= 0:
        line = lines[idx]
        if not line.startswith(COMMENT_PREFIX):
            break
        if idx == 0 and line.startswith(SHEBANG_PREFIX):
            break
        block.append(line.rstrip())
        idx -= 1
    if not block:
        return None
    return "\n".join(reversed(block))


class Parser:
    """Parses Python source into SourceFile objects."""

    def parse(self, source: str, source_file: Union[Path, str]) -> SourceFile:
        """
        Parse source code.

        Raises:
            ParseError: on any syntax error, located at the offending token
        """
        path = Path(source_file)
        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as e:
            location = SourceLocation(
                file=str(path),
                line=e.lineno or 1,
                column=e.offset or 1,
            )
            raise ParseError(f"invalid syntax: {e.msg}", location) from e
        except ValueError as e:
            raise ParseError(f"cannot parse {path}: {e}", SourceLocation(str(path), 1, 1)) from e

        lines = source.splitlines()
        docs: Dict[ast.stmt, str] = {}
        for stmt in tree.body:
            doc = _leading_comments(lines, stmt)
            if doc is not None:
                docs[stmt] = doc
        logger.debug(f"Parsed {path}: {len(tree.body)} top-level statements, {len(docs)} documented")
        return SourceFile(path=path, source=source, tree=tree, docs=docs)
