"""
Name Resolution Pass

Resolves every identifier in the entry file and, transitively, in every local
module it imports, producing one UseDefTable for the whole closure.

Construction is two-phase: the SymbolResolver is created first, then a
CheckerConfig referencing it as the import hook, and the config is handed
back to the resolver (build_resolver does both). Every module is analyzed in
two steps:

  declare: allocate an identity for every name bound at module level
  check:   resolve imports, then walk all statements and record defs/uses

A module is cached between the two steps, so an import cycle finds the
partially analyzed module instead of loading it again. Standard modules are
never loaded: attribute accesses on them yield opaque identities.
"""

import ast
import builtins
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..analysis.module_system.module_info import ModuleInfo, ModuleKind, ModuleLocation
from ..analysis.module_system.module_loader import PackageLoader
from ..analysis.module_system.path_resolver import split_relative
from ..analysis.module_system.stdlib import StandardLibrary
from ..shared.defid import DefType, SymbolId, builtin_symbol
from ..shared.errors import PackageLoadError, TypeCheckError
from ..shared.nodes import SourceFile
from ..shared.scope import Binding, Scope, ScopeKind
from ..shared.source_location import SourceLocation
from ..shared.use_def import UseDefTable
from ..utils.config import (
    ENTRY_MODULE_NAME,
    INTRINSIC_MODULE_NAME,
    MODULE_DUNDERS,
    MODULE_SEPARATOR,
    PACKAGE_DUNDERS,
)

logger = logging.getLogger(__name__)

_COMPREHENSION_LABELS = {
    ast.ListComp: "listcomp",
    ast.SetComp: "setcomp",
    ast.DictComp: "dictcomp",
    ast.GeneratorExp: "genexpr",
}

ImportCacheKey = Tuple[str, str]


# -----------------------------------------------------------------------------
# Import bindings
# -----------------------------------------------------------------------------
# Import statements are not resolved when their names are declared. Each
# import binding carries a PendingImport and is completed on first need:
# either when its own module is checked, or earlier, when another module does
# `from m import name` while m is still being analyzed (import cycles).
#
#   import a.b.c        binds 'a' to module a, loads a, a.b, a.b.c
#   import a.b.c as x   binds 'x' to module a.b.c
#   from m import x     binds 'x' to whatever m.x resolves to (re-exports followed)
#   from . import sub   binds 'sub' to the submodule when m has no such name
# -----------------------------------------------------------------------------

@dataclass
class PendingImport:
    """An import binding that has not been resolved yet."""
    origin_dir: Path
    module_path: str
    attr: Optional[str] = None
    bind_top: bool = False
    location: Optional[SourceLocation] = None
    active: bool = False


@dataclass
class CheckerConfig:
    """
    Configuration shared by every ModuleChecker of one run.

    importer: the resolver, used as the import hook
    builtins: the intrinsic module every module scope is nested in
    strict: unresolved references raise instead of being logged
    """
    importer: "SymbolResolver"
    builtins: ModuleInfo
    strict: bool = True

    def report(self, error: TypeCheckError) -> None:
        if self.strict:
            raise error
        logger.warning(str(error))


def create_builtin_module() -> ModuleInfo:
    """The intrinsic 'builtins' module: a fixed scope, never analyzed."""
    scope = Scope(parent=None, kind=ScopeKind.BUILTIN)
    for name in dir(builtins):
        scope.define(name, Binding(name, DefType.BUILTIN, builtin_symbol(name)))
    location = ModuleLocation(INTRINSIC_MODULE_NAME, ModuleKind.INTRINSIC)
    return ModuleInfo(INTRINSIC_MODULE_NAME, location, scope=scope, checked=True)


def complete_binding(binding: Binding, config: CheckerConfig) -> Binding:
    """Resolve a pending import binding in place; other bindings pass through."""
    pending: Optional[PendingImport] = binding.pending
    if pending is None:
        return binding
    if pending.active:
        config.report(TypeCheckError(
            f"cannot import name '{binding.name}' (circular import)",
            pending.location,
        ))
        return binding
    pending.active = True
    try:
        target, module = _resolve_import(pending, config)
    finally:
        pending.active = False
        binding.pending = None
    binding.target = target
    binding.module = module
    return binding


def _resolve_import(
    pending: PendingImport, config: CheckerConfig
) -> Tuple[Optional[SymbolId], Optional[ModuleInfo]]:
    try:
        chain = config.importer.import_module(pending.module_path, pending.origin_dir)
    except PackageLoadError as e:
        if e.location is None:
            e.location = pending.location
        raise
    if pending.attr is None:
        return None, chain[0] if pending.bind_top else chain[-1]
    source = chain[-1]
    member = module_member(source, pending.attr, config)
    if member is None:
        config.report(TypeCheckError(
            f"cannot import name '{pending.attr}' from '{source.name}'",
            pending.location,
        ))
        return None, None
    return member


def module_member(
    module: ModuleInfo, attr: str, config: CheckerConfig
) -> Optional[Tuple[SymbolId, Optional[ModuleInfo]]]:
    """
    Resolve attribute `attr` of a module object.

    Returns (identity, module-or-None) or None when the module has no such member.
    Members of opaque modules always resolve to opaque identities.
    """
    if module.is_intrinsic:
        return builtin_symbol(attr), None
    if module.is_standard:
        sub = module.submodules.get(attr)
        return SymbolId(module.name, attr), sub
    if module.scope is not None:
        binding = module.scope.get_local(attr)
        if binding is not None:
            complete_binding(binding, config)
            return binding.resolved, binding.module
    sub = config.importer.find_submodule(module, attr)
    if sub is not None:
        return sub.symbol_id, sub
    if module.star_sources:
        return SymbolId(module.star_sources[0].name, attr), None
    if module.scope is not None and module.scope.defined_in_this_scope("__getattr__"):
        return module.symbol(attr), None
    return None


def _public_names(module: ModuleInfo) -> List[str]:
    """Names a star import of module binds: a literal __all__, else every public name."""
    exported: Optional[List[str]] = None
    for source_file in module.files:
        for stmt in source_file.tree.body:
            if isinstance(stmt, ast.Assign):
                targets = stmt.targets
            elif isinstance(stmt, (ast.AnnAssign, ast.AugAssign)) and stmt.value is not None:
                targets = [stmt.target]
            else:
                continue
            if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
                continue
            if not isinstance(stmt.value, (ast.List, ast.Tuple)):
                continue
            names = [
                elt.value for elt in stmt.value.elts
                if isinstance(elt, ast.Constant) and isinstance(elt.value, str)
            ]
            if isinstance(stmt, ast.AugAssign) and exported is not None:
                exported.extend(names)
            else:
                exported = names
    if exported is not None:
        return exported
    if module.scope is None:
        return []
    return [name for name in module.scope.names() if not name.startswith("_")]


def _has_future_annotations(tree: ast.Module) -> bool:
    for stmt in tree.body:
        if isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__":
            if any(alias.name == "annotations" for alias in stmt.names):
                return True
    return False


def _global_declarations(tree: ast.Module) -> Set[str]:
    """Names declared `global` anywhere in the file (they live at module level)."""
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Global):
            names.update(node.names)
    return names


def _all_args(args: ast.arguments) -> List[ast.arg]:
    every = list(args.posonlyargs) + list(args.args)
    if args.vararg is not None:
        every.append(args.vararg)
    every.extend(args.kwonlyargs)
    if args.kwarg is not None:
        every.append(args.kwarg)
    return every


# -----------------------------------------------------------------------------
# Binding collection
# -----------------------------------------------------------------------------

@dataclass
class _Bound:
    name: str
    node: ast.AST
    kind: DefType
    stmt: Optional[ast.stmt] = None


class _BindingCollector(ast.NodeVisitor):
    """Names bound directly in one scope body; nested scopes are not entered."""

    def __init__(self) -> None:
        self.bound: List[_Bound] = []
        self.global_names: Set[str] = set()
        self.nonlocal_names: Set[str] = set()
        self.star_imports: List[ast.ImportFrom] = []

    def collect(self, body: Sequence[ast.AST]) -> "_BindingCollector":
        for node in body:
            self.visit(node)
        return self

    def bind(self, name: str, node: ast.AST, kind: DefType, stmt: Optional[ast.stmt] = None) -> None:
        self.bound.append(_Bound(name, node, kind, stmt))

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self.bind(node.name, node, DefType.FUNCTION)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.bind(node.name, node, DefType.CLASS)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        pass

    def _visit_comprehension(self, node: ast.expr) -> None:
        # only assignment expressions escape a comprehension
        for sub in ast.walk(node):
            if isinstance(sub, ast.NamedExpr) and isinstance(sub.target, ast.Name):
                self.bind(sub.target.id, sub.target, DefType.VARIABLE)

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Store):
            self.bind(node.id, node, DefType.VARIABLE)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            name = alias.asname or alias.name.split(MODULE_SEPARATOR)[0]
            self.bind(name, alias, DefType.MODULE, node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name == "*":
                self.star_imports.append(node)
                continue
            self.bind(alias.asname or alias.name, alias, DefType.IMPORT, node)

    def visit_Global(self, node: ast.Global) -> None:
        self.global_names.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self.nonlocal_names.update(node.names)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self.bind(node.name, node, DefType.VARIABLE)
        self.generic_visit(node)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.name:
            self.bind(node.name, node, DefType.VARIABLE)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self.bind(node.name, node, DefType.VARIABLE)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self.bind(node.rest, node, DefType.VARIABLE)
        self.generic_visit(node)


# -----------------------------------------------------------------------------
# Per-module checker
# -----------------------------------------------------------------------------

class ModuleChecker(ast.NodeVisitor):
    """Declares and checks the files of one module, recording into the shared table."""

    def __init__(self, config: CheckerConfig, table: UseDefTable, module: ModuleInfo):
        self.config = config
        self.table = table
        self.module = module
        self._collected: Dict[SourceFile, _BindingCollector] = {}
        self._file: Optional[SourceFile] = None
        self._scope: Optional[Scope] = None
        self._lazy_annotations = False

    # -- phases ---------------------------------------------------------------

    def declare(self) -> None:
        """Allocate identities for every module-level name; no imports are followed."""
        module = self.module
        scope = Scope(parent=self.config.builtins.scope, kind=ScopeKind.MODULE)
        module.scope = scope
        dunders = MODULE_DUNDERS + (PACKAGE_DUNDERS if module.is_package else ())
        for name in dunders:
            scope.define(name, Binding(name, DefType.VARIABLE, module.symbol(name)))
        for source_file in module.files:
            self._file = source_file
            collector = _BindingCollector().collect(source_file.tree.body)
            self._collected[source_file] = collector
            self._declare_bindings(scope, collector)
            for name in _global_declarations(source_file.tree):
                if not scope.defined_in_this_scope(name):
                    scope.define(name, Binding(name, DefType.VARIABLE, module.symbol(name)))
        logger.debug(f"Declared {module.name}: {sum(1 for _ in scope.names())} module-level names")

    def check(self) -> None:
        """Resolve imports and record defs/uses for every node of the module."""
        for source_file in self.module.files:
            self._file = source_file
            self._scope = self.module.scope
            self._lazy_annotations = _has_future_annotations(source_file.tree)
            # module-level imports bind names every function body can see
            self._resolve_imports(self._collected[source_file], self.module.scope)
            for stmt in source_file.tree.body:
                self.visit(stmt)
        self.module.checked = True

    # -- helpers --------------------------------------------------------------

    @contextmanager
    def _entering(self, scope: Scope) -> Iterator[Scope]:
        saved = self._scope
        self._scope = scope
        try:
            yield scope
        finally:
            self._scope = saved

    def _location(self, node: Optional[ast.AST]) -> Optional[SourceLocation]:
        return self._file.location_of(node) if self._file is not None else None

    def _unresolved(self, message: str, node: ast.AST) -> None:
        self.config.report(TypeCheckError(message, self._location(node)))

    def _declare_bindings(self, scope: Scope, collector: _BindingCollector) -> None:
        scope.global_names |= collector.global_names
        scope.nonlocal_names |= collector.nonlocal_names
        for bound in collector.bound:
            if bound.name in collector.global_names or bound.name in collector.nonlocal_names:
                continue
            if scope.defined_in_this_scope(bound.name):
                continue
            binding = Binding(bound.name, bound.kind, self.module.symbol(scope.qualify(bound.name)), bound.node)
            if bound.stmt is not None:
                binding.pending = self._pending_for(bound)
            scope.define(bound.name, binding)

    def _pending_for(self, bound: _Bound) -> PendingImport:
        stmt = bound.stmt
        alias = bound.node
        origin_dir = self._file.directory
        location = self._location(stmt)
        if isinstance(stmt, ast.Import):
            return PendingImport(origin_dir, alias.name, bind_top=alias.asname is None, location=location)
        module_path = MODULE_SEPARATOR * stmt.level + (stmt.module or "")
        return PendingImport(origin_dir, module_path, attr=alias.name, location=location)

    def _resolve_imports(self, collector: _BindingCollector, scope: Scope) -> None:
        for bound in collector.bound:
            if bound.stmt is None:
                continue
            binding = scope.get_local(bound.name)
            if binding is not None and binding.node is bound.node:
                complete_binding(binding, self.config)
            else:
                # shadowed by an earlier binding of the same name: still load and validate
                _resolve_import(self._pending_for(bound), self.config)
        for stmt in collector.star_imports:
            self._star_import(stmt, scope)

    def _star_import(self, stmt: ast.ImportFrom, scope: Scope) -> None:
        pending = PendingImport(
            self._file.directory,
            MODULE_SEPARATOR * stmt.level + (stmt.module or ""),
            location=self._location(stmt),
        )
        _, source = _resolve_import(pending, self.config)
        if source is None or source.is_intrinsic:
            return
        if source.is_standard:
            self.module.star_sources.append(source)
            return
        for name in _public_names(source):
            if scope.defined_in_this_scope(name):
                continue
            member = module_member(source, name, self.config)
            if member is None:
                continue
            target, module = member
            sid = self.module.symbol(scope.qualify(name))
            scope.define(name, Binding(name, DefType.IMPORT, sid, stmt, module=module, target=target))
        logger.debug(f"Star import of {source.name} into {self.module.name}")

    def _store_binding(self, name: str, scope: Optional[Scope] = None) -> Binding:
        scope = scope or self._scope
        if name in scope.nonlocal_names:
            found = scope.lookup(name)
            if found is not None:
                return found
        target = scope.module_scope() if name in scope.global_names else scope
        binding = target.get_local(name)
        if binding is None:
            binding = Binding(name, DefType.VARIABLE, self.module.symbol(target.qualify(name)))
            target.define(name, binding)
        return binding

    def _define_node(self, node: ast.AST, name: str) -> None:
        self.table.defs[node] = self._store_binding(name).symbol

    def _star_fallback(self, name: str) -> Optional[SymbolId]:
        if self.module.star_sources:
            return SymbolId(self.module.star_sources[0].name, name)
        return None

    def _visit_all(self, nodes: Sequence[Optional[ast.AST]]) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node)

    def _type_param_scope(self, node: ast.AST, name: str) -> Scope:
        params = getattr(node, "type_params", None) or []
        if not params:
            return self._scope
        scope = self._scope.child(ScopeKind.ANNOTATION, name)
        for param in params:
            sid = self.module.symbol(scope.qualify(param.name))
            scope.define(param.name, Binding(param.name, DefType.VARIABLE, sid, param))
            self.table.defs[param] = sid
        with self._entering(scope):
            for param in params:
                self.generic_visit(param)
        return scope

    def _open_scope(self, scope: Scope, collector: _BindingCollector) -> None:
        self._declare_bindings(scope, collector)
        with self._entering(scope):
            self._resolve_imports(collector, scope)

    # -- definitions ----------------------------------------------------------

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        outer = self._scope
        self._visit_all(node.decorator_list)
        self._visit_all(node.args.defaults)
        self._visit_all(node.args.kw_defaults)
        self._define_node(node, node.name)

        type_scope = self._type_param_scope(node, node.name)
        args = _all_args(node.args)
        with self._entering(type_scope):
            if not self._lazy_annotations:
                self._visit_all([arg.annotation for arg in args])
                self._visit_all([node.returns])

        scope = type_scope.child(ScopeKind.FUNCTION, node.name)
        if outer.kind == ScopeKind.CLASS:
            scope.define("__class__", Binding("__class__", DefType.CLASS, self.module.symbol(outer.qualname)))
        collector = _BindingCollector()
        for arg in args:
            collector.bind(arg.arg, arg, DefType.PARAMETER)
        collector.collect(node.body)
        self._open_scope(scope, collector)
        for arg in args:
            self.table.defs[arg] = scope.get_local(arg.arg).symbol
        with self._entering(scope):
            self._visit_all(node.body)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_all(node.args.defaults)
        self._visit_all(node.args.kw_defaults)
        scope = self._scope.child(ScopeKind.LAMBDA, f"<lambda@{node.lineno}:{node.col_offset}>")
        collector = _BindingCollector()
        args = _all_args(node.args)
        for arg in args:
            collector.bind(arg.arg, arg, DefType.PARAMETER)
        collector.visit(node.body)
        self._open_scope(scope, collector)
        for arg in args:
            self.table.defs[arg] = scope.get_local(arg.arg).symbol
        with self._entering(scope):
            self.visit(node.body)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._visit_all(node.decorator_list)
        self._define_node(node, node.name)
        type_scope = self._type_param_scope(node, node.name)
        with self._entering(type_scope):
            self._visit_all(node.bases)
            self._visit_all(node.keywords)
        scope = type_scope.child(ScopeKind.CLASS, node.name)
        self._open_scope(scope, _BindingCollector().collect(node.body))
        with self._entering(scope):
            self._visit_all(node.body)

    def visit_TypeAlias(self, node: ast.AST) -> None:
        self.visit(node.name)
        scope = self._type_param_scope(node, node.name.id)
        with self._entering(scope):
            self.visit(node.value)

    def _visit_comprehension(self, node: ast.expr, elements: Sequence[ast.expr]) -> None:
        generators = node.generators
        # the first iterable is evaluated in the enclosing scope
        self.visit(generators[0].iter)
        label = _COMPREHENSION_LABELS[type(node)]
        scope = self._scope.child(ScopeKind.COMPREHENSION, f"<{label}@{node.lineno}:{node.col_offset}>")
        collector = _BindingCollector()
        for generator in generators:
            collector.visit(generator.target)
        self._declare_bindings(scope, collector)
        with self._entering(scope):
            for i, generator in enumerate(generators):
                if i:
                    self.visit(generator.iter)
                self.visit(generator.target)
                self._visit_all(generator.ifs)
            self._visit_all(elements)

    def visit_ListComp(self, node: ast.ListComp) -> None:
        self._visit_comprehension(node, [node.elt])

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp) -> None:
        self._visit_comprehension(node, [node.key, node.value])

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        scope = self._scope
        while scope.kind == ScopeKind.COMPREHENSION and scope.parent is not None:
            scope = scope.parent
        self.table.defs[node.target] = self._store_binding(node.target.id, scope).symbol

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        self._visit_all([node.value, node.target])
        if not self._lazy_annotations:
            self.visit(node.annotation)

    # -- imports --------------------------------------------------------------

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._define_node(alias, alias.asname or alias.name.split(MODULE_SEPARATOR)[0])

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name != "*":
                self._define_node(alias, alias.asname or alias.name)

    # -- other binding forms --------------------------------------------------

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        self._visit_all([node.type])
        if node.name:
            self._define_node(node, node.name)
        self._visit_all(node.body)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        self._visit_all([node.pattern])
        if node.name:
            self._define_node(node, node.name)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self._define_node(node, node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        self._visit_all(node.keys)
        self._visit_all(node.patterns)
        if node.rest:
            self._define_node(node, node.rest)

    # -- references -----------------------------------------------------------

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Store):
            self._define_node(node, node.id)
            return
        binding = self._scope.lookup(node.id)
        if binding is None:
            fallback = self._star_fallback(node.id)
            if fallback is not None:
                self.table.uses[node] = fallback
            else:
                self._unresolved(f"name '{node.id}' is not defined", node)
            return
        complete_binding(binding, self.config)
        self.table.uses[node] = binding.resolved
        if binding.module is not None:
            self.table.modules[node] = binding.module

    def visit_Attribute(self, node: ast.Attribute) -> None:
        self.visit(node.value)
        module = self.table.modules.get(node.value)
        if module is not None:
            member = module_member(module, node.attr, self.config)
            if member is None:
                if isinstance(node.ctx, ast.Load):
                    self._unresolved(f"module '{module.name}' has no attribute '{node.attr}'", node)
                return
            sid, submodule = member
            self.table.uses[node] = sid
            if submodule is not None:
                self.table.modules[node] = submodule
            return
        base = self.table.uses.get(node.value)
        if base is not None:
            # opaque members (math.pi.real) and class members (Point.origin)
            self.table.uses[node] = base.member(node.attr)


# -----------------------------------------------------------------------------
# Resolver
# -----------------------------------------------------------------------------

class SymbolResolver:
    """
    Drives name resolution over the entry file and everything it imports.

    Acts as the import hook of its CheckerConfig: import_from() memoizes one
    module per (import path, importing directory), and one module object per
    canonical location, so every import of the same file shares identities.
    """

    def __init__(self, loader: PackageLoader, classifier: StandardLibrary, table: Optional[UseDefTable] = None):
        self.loader = loader
        self.classifier = classifier
        self.table = table if table is not None else UseDefTable()
        self.config: Optional[CheckerConfig] = None
        self.files: List[SourceFile] = []
        self._cache: Dict[ImportCacheKey, ModuleInfo] = {}
        self._by_location: Dict[str, ModuleInfo] = {}

    def configure(self, config: CheckerConfig) -> None:
        self.config = config

    @property
    def modules(self) -> List[ModuleInfo]:
        return list(self._by_location.values())

    def resolve(self, entry: SourceFile) -> Tuple[UseDefTable, List[SourceFile]]:
        """
        Analyze the entry file and its whole import closure.

        Returns the use-def table and every file parsed in service of an
        import, in load order (the entry file itself is not among them).
        """
        if self.config is None:
            raise RuntimeError("SymbolResolver.resolve() called before configure()")
        location = ModuleLocation(ENTRY_MODULE_NAME, ModuleKind.MODULE, entry.path)
        module = ModuleInfo(ENTRY_MODULE_NAME, location, [entry])
        self._by_location[location.key] = module
        self._analyze(module)
        logger.debug(
            f"Resolved {entry.path}: {len(self.files)} imported files, "
            f"{len(self.table.defs)} defs, {len(self.table.uses)} uses"
        )
        return self.table, list(self.files)

    def import_from(self, import_path: str, origin_dir: Path) -> ModuleInfo:
        """Load one module; memoized per (import_path, origin_dir)."""
        key = (import_path, str(origin_dir))
        cached = self._cache.get(key)
        if cached is not None:
            state = "" if cached.checked else " (still being analyzed: import cycle)"
            logger.debug(f"Import cache hit: '{import_path}' from {origin_dir}{state}")
            return cached
        if import_path == INTRINSIC_MODULE_NAME:
            self._cache[key] = self.config.builtins
            return self.config.builtins

        source = self.loader.load(import_path, origin_dir)
        module = self._by_location.get(source.location.key)
        if module is not None:
            if not module.checked:
                logger.debug(f"{module!r} reached again while being analyzed (import cycle)")
            self._cache[key] = module
            return module

        module = ModuleInfo(source.location.name, source.location, list(source.files))
        self._by_location[source.location.key] = module
        self._cache[key] = module
        if module.is_standard:
            module.checked = True
            return module
        self.files.extend(module.files)
        self._analyze(module)
        return module

    def import_module(self, import_path: str, origin_dir: Path) -> List[ModuleInfo]:
        """
        Import a dotted path the way an import statement does: every package
        on the way is imported and linked to its child. Returns the chain.
        """
        level, dotted = split_relative(import_path)
        prefix = MODULE_SEPARATOR * level
        chain: List[ModuleInfo] = []
        parent: Optional[ModuleInfo] = None
        if level:
            parent = self.import_from(prefix, origin_dir)
            if not dotted:
                return [parent]
        parts = dotted.split(MODULE_SEPARATOR)
        for i, part in enumerate(parts):
            module = self.import_from(prefix + MODULE_SEPARATOR.join(parts[: i + 1]), origin_dir)
            if parent is not None:
                parent.submodules.setdefault(part, module)
            chain.append(module)
            parent = module
        return chain

    def find_submodule(self, module: ModuleInfo, attr: str) -> Optional[ModuleInfo]:
        """Child module `attr` of a local package, imported on demand; None if absent."""
        sub = module.submodules.get(attr)
        if sub is not None:
            return sub
        if not module.location.is_local or not module.is_package or module.directory is None:
            return None
        if self.loader.path_resolver.find_submodule(module.location, attr) is None:
            return None
        sub = self.import_from(MODULE_SEPARATOR + attr, module.directory)
        module.submodules[attr] = sub
        return sub

    def _analyze(self, module: ModuleInfo) -> None:
        checker = ModuleChecker(self.config, self.table, module)
        checker.declare()
        checker.check()
        logger.debug(f"Analyzed {module!r}")


def build_resolver(
    loader: PackageLoader,
    classifier: StandardLibrary,
    strict: bool = True,
    table: Optional[UseDefTable] = None,
) -> SymbolResolver:
    """Create a resolver and its checker configuration, each referencing the other."""
    resolver = SymbolResolver(loader, classifier, table)
    config = CheckerConfig(importer=resolver, builtins=create_builtin_module(), strict=strict)
    resolver.configure(config)
    return resolver
