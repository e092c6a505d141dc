"""
Use-definition table.

The single product of name resolution: for every identifier node in every
analyzed file, the identity it declares or refers to. Nodes are keyed by
object identity (ast nodes hash by id), so the table is only valid for the
trees it was built from.
"""

import ast
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from .defid import SymbolId

if TYPE_CHECKING:
    from ..analysis.module_system.module_info import ModuleInfo


@dataclass
class UseDefTable:
    """
    defs: binding nodes (FunctionDef, ClassDef, Name store, alias, arg, handler, match capture) → identity
    uses: Name loads and Attribute accesses → identity referred to
    modules: expression nodes that evaluate to a module object → that module
    """
    defs: Dict[ast.AST, SymbolId] = field(default_factory=dict)
    uses: Dict[ast.AST, SymbolId] = field(default_factory=dict)
    modules: Dict[ast.AST, "ModuleInfo"] = field(default_factory=dict)

    def object_of(self, node: ast.AST) -> Optional[SymbolId]:
        """Identity a node declares or refers to."""
        sid = self.defs.get(node)
        if sid is not None:
            return sid
        return self.uses.get(node)

    def callee(self, call: ast.Call) -> Optional[SymbolId]:
        """Statically known target of a call, or None (calls through arbitrary expressions)."""
        func = call.func
        if isinstance(func, (ast.Name, ast.Attribute)):
            return self.uses.get(func)
        return None

    def __len__(self) -> int:
        return len(self.defs) + len(self.uses)
