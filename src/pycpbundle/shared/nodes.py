"""
Parsed files and top-level declaration units.

Python's own `ast` module is the syntax tree; these classes only attach the
bookkeeping the bundler needs around it (where a tree came from, which
comment block documents a statement, which names a unit binds).
"""

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .source_location import SourceLocation


@dataclass(eq=False)
class SourceFile:
    """One parsed Python file."""
    path: Path
    source: str
    tree: ast.Module
    docs: Dict[ast.stmt, str] = field(default_factory=dict)

    @property
    def directory(self) -> Path:
        return self.path.parent

    def doc_of(self, stmt: ast.stmt) -> Optional[str]:
        """Comment block directly above a top-level statement, if any."""
        return self.docs.get(stmt)

    def location_of(self, node: Optional[ast.AST]) -> SourceLocation:
        return SourceLocation.of(node, str(self.path))

    def __repr__(self) -> str:
        return f"SourceFile({str(self.path)!r}, {len(self.tree.body)} statements)"


@dataclass(eq=False)
class Declaration:
    """
    Minimal top-level unit: one function, one class, one value binding
    statement or one import alias.

    `synthesized` marks units that are new nodes (split imports), which have
    no verbatim text in their source file.
    """
    node: ast.stmt
    source_file: SourceFile
    names: Tuple[str, ...]
    doc: Optional[str] = None
    synthesized: bool = False

    @property
    def location(self) -> SourceLocation:
        return self.source_file.location_of(self.node)

    def __repr__(self) -> str:
        return f"Declaration({', '.join(self.names) or type(self.node).__name__} @ {self.location})"


@dataclass
class BundledModule:
    """The emitted tree: entry statements plus inlined declarations, in output order."""
    entry: SourceFile
    items: List[Declaration]
    appended: List[Declaration]

    @property
    def tree(self) -> ast.Module:
        return ast.Module(body=[item.node for item in self.items], type_ignores=[])

    def __len__(self) -> int:
        return len(self.items)
