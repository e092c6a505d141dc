"""
Declaration Index

Maps every top-level identity of the imported modules to the minimal
statement that declares it. Built once, after resolution has discovered the
whole file set.

Units:
- def / async def                 → one Declaration, its own name
- class                           → one Declaration for the class and every member (Point.origin)
- import a, b / from m import a, b → one Declaration per alias (new nodes sharing the comment block)
- x = ..., a = b = ..., a, b = ... → one Declaration per statement, under every bound name
- if / try / with / for / match    → the whole statement, under every name it binds
"""

import ast
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..analysis.module_system.stdlib import StandardLibrary
from ..shared.defid import SymbolId
from ..shared.nodes import Declaration, SourceFile
from ..shared.use_def import UseDefTable

logger = logging.getLogger(__name__)

_NESTED_SCOPES = (ast.Lambda, ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)
_COMPOUND = tuple(
    getattr(ast, name)
    for name in ("If", "Try", "TryStar", "With", "AsyncWith", "For", "AsyncFor", "While", "Match")
    if hasattr(ast, name)
)


@dataclass
class DeclarationIndex:
    """SymbolId → Declaration; an identity maps to at most one declaration."""
    declarations: Dict[SymbolId, Declaration] = field(default_factory=dict)

    def add(self, symbol: SymbolId, declaration: Declaration) -> None:
        previous = self.declarations.get(symbol)
        if previous is not None and previous is not declaration:
            logger.debug(f"{symbol} redefined at {declaration.location}, replacing {previous.location}")
        self.declarations[symbol] = declaration

    def lookup(self, symbol: Optional[SymbolId]) -> Optional[Declaration]:
        if symbol is None:
            return None
        return self.declarations.get(symbol)

    def units(self) -> List[Declaration]:
        """Distinct declarations, in insertion order."""
        seen: Dict[int, Declaration] = {}
        for declaration in self.declarations.values():
            seen.setdefault(id(declaration), declaration)
        return list(seen.values())

    def __contains__(self, symbol: SymbolId) -> bool:
        return symbol in self.declarations

    def __iter__(self) -> Iterator[SymbolId]:
        return iter(self.declarations)

    def __len__(self) -> int:
        return len(self.declarations)


def _target_names(target: ast.expr) -> List[ast.Name]:
    """Name nodes bound by an assignment target (tuples and starred unpacked)."""
    if isinstance(target, ast.Name):
        return [target]
    if isinstance(target, (ast.Tuple, ast.List)):
        names: List[ast.Name] = []
        for elt in target.elts:
            names.extend(_target_names(elt))
        return names
    if isinstance(target, ast.Starred):
        return _target_names(target.value)
    return []


def _class_members(cls: ast.ClassDef) -> List[ast.AST]:
    """Binding nodes of a class body, nested classes included (Point.origin, Point.ORIGIN)."""
    members: List[ast.AST] = []
    for stmt in cls.body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            members.append(stmt)
        elif isinstance(stmt, ast.ClassDef):
            members.append(stmt)
            members.extend(_class_members(stmt))
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                members.extend(_target_names(target))
        elif isinstance(stmt, ast.AnnAssign):
            members.extend(_target_names(stmt.target))
    return members


def _nested_bindings(node: ast.AST, found: List[Tuple[str, ast.AST]]) -> None:
    """Names a compound statement binds at module level, in source order."""
    for child in ast.iter_child_nodes(node):
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            found.append((child.name, child))
        elif isinstance(child, ast.alias):
            if child.name != "*":
                found.append((child.asname or child.name.split(".")[0], child))
        elif isinstance(child, ast.Name):
            if isinstance(child.ctx, ast.Store):
                found.append((child.id, child))
        elif not isinstance(child, _NESTED_SCOPES):
            _nested_bindings(child, found)


def _split_import(stmt: ast.stmt) -> List[ast.stmt]:
    """One statement per alias; a single-alias statement is returned as is."""
    if len(stmt.names) == 1:
        return [stmt]
    parts: List[ast.stmt] = []
    for alias in stmt.names:
        if isinstance(stmt, ast.Import):
            part = ast.Import(names=[alias])
        else:
            part = ast.ImportFrom(module=stmt.module, names=[alias], level=stmt.level)
        parts.append(ast.copy_location(part, stmt))
    return parts


class _IndexBuilder:
    def __init__(self, table: UseDefTable, classifier: StandardLibrary, share_split_doc: bool):
        self.table = table
        self.classifier = classifier
        self.share_split_doc = share_split_doc
        self.index = DeclarationIndex()

    def _insert(self, nodes: Sequence[ast.AST], declaration: Declaration) -> None:
        for node in nodes:
            symbol = self.table.defs.get(node)
            if symbol is None or self.classifier.is_standard_package(symbol):
                continue
            self.index.add(symbol, declaration)

    def add_file(self, source_file: SourceFile) -> None:
        for stmt in source_file.tree.body:
            doc = source_file.doc_of(stmt)
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._insert([stmt], Declaration(stmt, source_file, (stmt.name,), doc))
            elif isinstance(stmt, ast.ClassDef):
                # a class is the unit of its methods and attributes too
                self._insert([stmt] + _class_members(stmt), Declaration(stmt, source_file, (stmt.name,), doc))
            elif isinstance(stmt, (ast.Import, ast.ImportFrom)):
                parts = _split_import(stmt)
                synthesized = len(parts) > 1
                for i, part in enumerate(parts):
                    alias = part.names[0]
                    if alias.name == "*":
                        continue
                    bound = alias.asname or alias.name.split(".")[0]
                    part_doc = doc if (self.share_split_doc or i == 0) else None
                    self._insert([alias], Declaration(part, source_file, (bound,), part_doc, synthesized))
            elif isinstance(stmt, (ast.Assign, ast.AnnAssign)):
                targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
                names: List[ast.Name] = []
                for target in targets:
                    names.extend(_target_names(target))
                if names:
                    unit = Declaration(stmt, source_file, tuple(n.id for n in names), doc)
                    self._insert(names, unit)
            elif type(stmt).__name__ == "TypeAlias":
                self._insert([stmt.name], Declaration(stmt, source_file, (stmt.name.id,), doc))
            elif isinstance(stmt, _COMPOUND):
                self._add_compound(stmt, source_file, doc)

    def _add_compound(self, stmt: ast.stmt, source_file: SourceFile, doc: Optional[str]) -> None:
        """if/try/with/for/while/match binding top-level names: the whole statement is one unit."""
        found: List[Tuple[str, ast.AST]] = []
        _nested_bindings(stmt, found)
        if not found:
            return
        names = tuple(dict.fromkeys(name for name, _ in found))
        nodes: List[ast.AST] = []
        for _, node in found:
            nodes.append(node)
            if isinstance(node, ast.ClassDef):
                nodes.extend(_class_members(node))
        logger.debug(
            f"{type(stmt).__name__} at {source_file.path}:{stmt.lineno} is one unit for {', '.join(names)}"
        )
        self._insert(nodes, Declaration(stmt, source_file, names, doc))


def build_declaration_index(
    files: Sequence[SourceFile],
    table: UseDefTable,
    classifier: StandardLibrary,
    share_split_doc: bool = True,
) -> DeclarationIndex:
    """
    Index the top-level declarations of every file.

    Args:
        files: files loaded during resolution, in discovery order
        table: use-def table produced by the resolver for those files
        classifier: standard-library predicate; standard identities are never indexed
        share_split_doc: split imports all carry the original comment block (else only the first)
    """
    builder = _IndexBuilder(table, classifier, share_split_doc)
    for source_file in files:
        builder.add_file(source_file)
    logger.debug(f"Declaration index: {len(builder.index)} identities over {len(files)} files")
    return builder.index
