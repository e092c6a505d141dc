"""
Source Printer

Renders a BundledModule to Python source. Statements that came straight
from a parsed file are printed from their original text (comments and
formatting inside them survive); split imports and, with
preserve_source=False, every statement are printed with ast.unparse.
"""

import ast
import logging
from typing import List, Optional

from ..frontend.parser import statement_first_line
from ..shared.errors import SerializationError
from ..shared.nodes import BundledModule, Declaration
from ..utils.config import BLANK_LINES_AROUND_DEFINITIONS, COMMENT_PREFIX, SHEBANG_PREFIX

logger = logging.getLogger(__name__)

_DEFINITIONS = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


class SourcePrinter:
    """
    Prints bundled modules.

    Args:
        preserve_source: reuse original statement text where available
    """

    def __init__(self, preserve_source: bool = True):
        self.preserve_source = preserve_source

    def render(self, bundled: BundledModule) -> str:
        """
        Render the whole bundle.

        Raises:
            SerializationError: a statement cannot be turned back into source
        """
        out: List[str] = []
        shebang = self._shebang(bundled)
        if shebang:
            out.append(shebang)
        previous: Optional[Declaration] = None
        for item in bundled.items:
            if previous is not None:
                out.extend([""] * self._blank_lines(previous, item))
            out.append(self.render_declaration(item))
            previous = item
        logger.debug(f"Rendered {len(bundled.items)} statements ({len(bundled.appended)} inlined)")
        return "\n".join(out) + "\n"

    def render_declaration(self, declaration: Declaration) -> str:
        text = self._statement_text(declaration)
        if declaration.doc:
            return f"{declaration.doc}\n{text}"
        return text

    def _statement_text(self, declaration: Declaration) -> str:
        stmt = declaration.node
        if self.preserve_source and not declaration.synthesized:
            text = self._original_text(declaration)
            if text is not None:
                return text
        try:
            return ast.unparse(ast.fix_missing_locations(stmt))
        except (AttributeError, TypeError, ValueError, RecursionError) as e:
            raise SerializationError(
                f"cannot print {type(stmt).__name__} statement: {e}",
                declaration.location,
            ) from e

    @staticmethod
    def _original_text(declaration: Declaration) -> Optional[str]:
        stmt = declaration.node
        source = declaration.source_file.source
        segment = ast.get_source_segment(source, stmt)
        if segment is None:
            return None
        lines = source.splitlines()
        # a comment trailing the last line belongs to the statement
        end = lines[stmt.end_lineno - 1] if stmt.end_lineno <= len(lines) else ""
        last = end.encode()[stmt.end_col_offset:].decode(errors="replace")
        if last.strip().startswith(COMMENT_PREFIX):
            segment += last.rstrip()
        first = statement_first_line(stmt)
        if first == stmt.lineno:
            return segment
        # decorators sit on whole lines above the statement
        return "\n".join(lines[first - 1: stmt.lineno - 1] + [segment])

    @staticmethod
    def _shebang(bundled: BundledModule) -> Optional[str]:
        source = bundled.entry.source
        if source.startswith(SHEBANG_PREFIX):
            return source.splitlines()[0]
        return None

    @staticmethod
    def _blank_lines(previous: Declaration, item: Declaration) -> int:
        """Blank lines between two printed items."""
        if previous.source_file is item.source_file and not (previous.synthesized or item.synthesized):
            start = statement_first_line(item.node)
            if item.doc:
                start -= item.doc.count("\n") + 1
            gap = start - previous.node.end_lineno - 1
            # items that follow each other in their file keep their spacing
            if gap >= 0:
                return min(gap, BLANK_LINES_AROUND_DEFINITIONS)
        if isinstance(item.node, _DEFINITIONS) or isinstance(previous.node, _DEFINITIONS):
            return BLANK_LINES_AROUND_DEFINITIONS
        return 0
