"""
Scope resolution following Python's lexical rules.

Each Scope maps a name to a Binding. Lookup goes innermost to outermost, but
class bodies are only visible to their own statements: a function or
comprehension nested in a class skips the class scope, exactly as CPython's
symtable does. The outermost scope of every module is the shared builtin
scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional, Set

from .defid import DefType, SymbolId

if TYPE_CHECKING:
    from ..analysis.module_system.module_info import ModuleInfo


class ScopeKind(Enum):
    BUILTIN = "builtin"
    MODULE = "module"
    FUNCTION = "function"
    LAMBDA = "lambda"
    CLASS = "class"
    COMPREHENSION = "comprehension"
    ANNOTATION = "annotation"


@dataclass
class Binding:
    """
    One name binding.

    For import bindings, `target` is the identity the name refers to (the
    original definition for `from m import x`), and `module` is set when the
    name denotes a module object. `pending` holds the unresolved import until
    the first lookup that needs it.
    """
    name: str
    binding_type: DefType
    symbol: SymbolId
    node: Any = None
    module: Optional["ModuleInfo"] = None
    target: Optional[SymbolId] = None
    pending: Any = None

    @property
    def resolved(self) -> SymbolId:
        """Identity a use of this name resolves to."""
        return self.target if self.target is not None else self.symbol


@dataclass
class Scope:
    """One scope level: name → Binding, plus global/nonlocal declarations."""

    parent: Optional[Scope]
    kind: ScopeKind
    qualname: str = ""
    _bindings: Dict[str, Binding] = field(default_factory=dict)
    global_names: Set[str] = field(default_factory=set)
    nonlocal_names: Set[str] = field(default_factory=set)

    def define(self, name: str, binding: Binding) -> None:
        """Bind name in this scope; a later binding replaces an earlier one."""
        self._bindings[name] = binding

    def get_local(self, name: str) -> Optional[Binding]:
        """Binding for name in this scope only."""
        return self._bindings.get(name)

    def defined_in_this_scope(self, name: str) -> bool:
        return name in self._bindings

    def names(self) -> Iterator[str]:
        return iter(self._bindings)

    def module_scope(self) -> Optional[Scope]:
        s: Optional[Scope] = self
        while s is not None and s.kind != ScopeKind.MODULE:
            s = s.parent
        return s

    def lookup(self, name: str) -> Optional[Binding]:
        """Resolve name from this scope outward (LEGB, class scopes skipped when enclosing)."""
        if name in self.global_names:
            module = self.module_scope()
            return module.lookup(name) if module is not None else None
        if name not in self.nonlocal_names and name in self._bindings:
            return self._bindings[name]
        parent = self.parent
        while parent is not None:
            if parent.kind == ScopeKind.CLASS:
                parent = parent.parent
                continue
            if name in parent.global_names:
                module = parent.module_scope()
                return module.lookup(name) if module is not None else None
            if name in parent._bindings and name not in parent.nonlocal_names:
                return parent._bindings[name]
            parent = parent.parent
        return None

    def child(self, kind: ScopeKind, name: str = "") -> Scope:
        """New nested scope; qualname follows the __qualname__ convention."""
        # annotation scopes are invisible in the names of what they wrap
        namer: Scope = self
        while namer.kind == ScopeKind.ANNOTATION and namer.parent is not None:
            namer = namer.parent
        if not name:
            qualname = namer.qualname
        elif namer.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA, ScopeKind.COMPREHENSION):
            qualname = f"{namer.qualname}.<locals>.{name}"
        elif namer.qualname:
            qualname = f"{namer.qualname}.{name}"
        else:
            qualname = name
        return Scope(parent=self, kind=kind, qualname=qualname)

    def qualify(self, name: str) -> str:
        """Qualified name of `name` bound in this scope."""
        if self.kind in (ScopeKind.MODULE, ScopeKind.BUILTIN):
            return name
        if self.kind == ScopeKind.ANNOTATION:
            return f"{self.qualname}.<type_params>.{name}"
        if self.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA, ScopeKind.COMPREHENSION):
            return f"{self.qualname}.<locals>.{name}"
        return f"{self.qualname}.{name}" if self.qualname else name
