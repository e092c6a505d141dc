"""
Reachability Collector

Pre-order depth-first walk of the entry tree. At every call whose callee
has a Declaration, the declaration's own body is walked first and the
declaration is appended after it, so dependencies always precede their
dependents within one call chain.

There is no visited set across the walk: a declaration reached from two call
sites is appended twice. Only a declaration that is currently being walked is
not re-entered, which is what makes recursive and mutually recursive
functions terminate.
"""

import ast
import logging
from typing import List, Set

from .declaration_index import DeclarationIndex
from ..shared.nodes import Declaration, SourceFile
from ..shared.use_def import UseDefTable

logger = logging.getLogger(__name__)


class ReachabilityCollector:
    """Collects the declarations reachable from call sites, in append order."""

    def __init__(self, table: UseDefTable, index: DeclarationIndex, deduplicate: bool = False):
        self.table = table
        self.index = index
        self.deduplicate = deduplicate
        self.collected: List[Declaration] = []
        self._active: Set[int] = set()
        self._emitted: Set[int] = set()

    def collect(self, entry: SourceFile) -> List[Declaration]:
        self.visit(entry.tree)
        return self.collected

    def visit(self, node: ast.AST) -> None:
        # ast.walk is breadth-first; inclusion order needs a true pre-order walk
        if isinstance(node, ast.Call):
            self._visit_call(node)
        for child in ast.iter_child_nodes(node):
            self.visit(child)

    def _visit_call(self, call: ast.Call) -> None:
        declaration = self.index.lookup(self.table.callee(call))
        if declaration is None:
            return
        key = id(declaration)
        if key in self._active:
            return
        if self.deduplicate and key in self._emitted:
            return
        self._active.add(key)
        try:
            self.visit(declaration.node)
        finally:
            self._active.discard(key)
        self.collected.append(declaration)
        self._emitted.add(key)
        logger.debug(f"Reached {declaration!r}")


def collect_reachable(
    entry: SourceFile,
    table: UseDefTable,
    index: DeclarationIndex,
    deduplicate: bool = False,
) -> List[Declaration]:
    """
    Declarations the entry needs, dependencies first.

    deduplicate=True appends each declaration at most once (at its first
    position). That deviates from the default duplicate-per-call-site output.
    """
    if deduplicate:
        logger.warning("deduplication enabled: each declaration is emitted at most once (deviates from default output)")
    collected = ReachabilityCollector(table, index, deduplicate).collect(entry)
    logger.debug(f"Collected {len(collected)} declarations from {entry.path}")
    return collected
