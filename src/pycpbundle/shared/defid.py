"""
Symbol identities.

A SymbolId names one binding in the whole analyzed program. It is qualified
by the owning module's dotted name and by the module's canonical location, so
two modules that share a dotted name but live in different directories never
produce colliding identities. Identities are only allocated by the resolver
(see passes/name_resolution.py).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..utils.config import INTRINSIC_MODULE_NAME


class DefType(Enum):
    """Kind of the binding a SymbolId was allocated for."""
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    IMPORT = "import"
    MODULE = "module"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class SymbolId:
    """
    Globally unique identity of one declared name.

    package: dotted module name ('__main__', 'mathutil', 'pkg.sub', 'math')
    name: qualified name inside the module ('double', 'Point.norm', 'solve.<locals>.n')
    origin: canonical location of the module; empty for standard and builtin modules
    """
    package: str
    name: str
    origin: str = ""

    def __str__(self) -> str:
        return f"{self.package}.{self.name}"

    def __deepcopy__(self, memo: Any) -> "SymbolId":
        return self

    def member(self, attr: str) -> "SymbolId":
        """
        Identity of an attribute reached through this one.

        For a class this is the identity its body gives the member
        (Point.origin); for anything else it matches no declaration.
        """
        return SymbolId(self.package, f"{self.name}.{attr}", self.origin)


def builtin_symbol(name: str) -> SymbolId:
    """Fixed identity of a name in the intrinsic builtins scope."""
    return SymbolId(INTRINSIC_MODULE_NAME, name)
