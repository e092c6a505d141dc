"""
Emitter

Builds the bundled tree: the entry's own statements, unchanged and in order,
plus the collected declarations in collector order. Nothing inside a
declaration is rewritten and no import statement is added or removed.
"""

import ast
import logging
from typing import List, Sequence

from ..shared.nodes import BundledModule, Declaration, SourceFile
from ..utils.config import PLACEMENT_AFTER_IMPORTS, PLACEMENT_END, PLACEMENTS

logger = logging.getLogger(__name__)


def _is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def header_length(body: Sequence[ast.stmt]) -> int:
    """Number of leading statements that are the module docstring or imports."""
    count = 0
    for i, stmt in enumerate(body):
        if i == 0 and _is_docstring(stmt):
            count += 1
            continue
        if isinstance(stmt, (ast.Import, ast.ImportFrom)):
            count += 1
            continue
        break
    return count


def emit(entry: SourceFile, declarations: Sequence[Declaration], placement: str = PLACEMENT_END) -> BundledModule:
    """
    Place declarations into the entry's top-level statement list.

    placement:
        PLACEMENT_END            after the entry's last statement
        PLACEMENT_AFTER_IMPORTS  after the entry's leading docstring and import block
    """
    if placement not in PLACEMENTS:
        raise ValueError(f"unknown placement {placement!r}")
    own: List[Declaration] = [
        Declaration(stmt, entry, (), entry.doc_of(stmt)) for stmt in entry.tree.body
    ]
    appended = list(declarations)
    split = len(own) if placement == PLACEMENT_END else header_length(entry.tree.body)
    if placement == PLACEMENT_AFTER_IMPORTS:
        logger.debug(f"Inserting {len(appended)} declarations after {split} header statements")
    items = own[:split] + appended + own[split:]
    return BundledModule(entry=entry, items=items, appended=appended)
