"""
Source Location (Span)

Points at a statement or identifier inside a parsed Python file.
"""

import ast
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of a node.

    - File, 1-based line and column (+ optional end position)
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"

    @classmethod
    def of(cls, node: Optional[ast.AST], file: str) -> "SourceLocation":
        """Span of an ast node; ast columns are 0-based, spans are 1-based."""
        line = getattr(node, "lineno", None) or 1
        col = getattr(node, "col_offset", None) or 0
        end_line = getattr(node, "end_lineno", None) or 0
        end_col = getattr(node, "end_col_offset", None)
        return cls(
            file=file,
            line=line,
            column=col + 1,
            end_line=end_line,
            end_column=end_col + 1 if end_col is not None else 0,
        )
