"""
Module System Types

Pure data structures shared by the path resolver, the package loader and
the symbol resolver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ...shared.defid import SymbolId
from ...shared.nodes import SourceFile
from ...shared.scope import Scope

MODULE_SYMBOL_NAME = "<module>"


class ModuleKind(Enum):
    MODULE = "module"          # name.py
    PACKAGE = "package"        # name/__init__.py
    NAMESPACE = "namespace"    # name/ without __init__.py
    STANDARD = "standard"      # opaque, never loaded
    INTRINSIC = "intrinsic"    # the builtins scope


@dataclass(frozen=True)
class ModuleLocation:
    """Where an import path resolved to."""
    name: str
    kind: ModuleKind
    path: Optional[Path] = None
    directory: Optional[Path] = None

    @property
    def key(self) -> str:
        """Canonical location; one module object exists per key."""
        if self.path is not None:
            return str(self.path)
        if self.directory is not None:
            return str(self.directory)
        return f"<{self.kind.value}:{self.name}>"

    @property
    def is_package(self) -> bool:
        return self.kind in (ModuleKind.PACKAGE, ModuleKind.NAMESPACE)

    @property
    def is_local(self) -> bool:
        return self.kind in (ModuleKind.MODULE, ModuleKind.PACKAGE, ModuleKind.NAMESPACE)

    def __str__(self) -> str:
        where = self.path or self.directory
        return f"{self.name} ({self.kind.value}{f' at {where}' if where else ''})"


@dataclass(eq=False)
class PackageSource:
    """What the package loader returns: the location and its parsed files, in order."""
    location: ModuleLocation
    files: List[SourceFile] = field(default_factory=list)


@dataclass(eq=False)
class ModuleInfo:
    """
    A resolved module: the object every import of the same location shares.

    - name: dotted module name
    - files: parsed files analyzed for this module (empty when opaque)
    - scope: module-level scope, set once the module is declared
    - submodules: child modules imported so far (linked by `import a.b`)
    - star_sources: opaque modules star-imported here; unknown names fall back to them
    """
    name: str
    location: ModuleLocation
    files: List[SourceFile] = field(default_factory=list)
    scope: Optional[Scope] = None
    submodules: Dict[str, ModuleInfo] = field(default_factory=dict)
    star_sources: List[ModuleInfo] = field(default_factory=list)
    checked: bool = False

    @property
    def origin(self) -> str:
        return self.location.key if self.location.is_local else ""

    @property
    def is_standard(self) -> bool:
        return self.location.kind == ModuleKind.STANDARD

    @property
    def is_intrinsic(self) -> bool:
        return self.location.kind == ModuleKind.INTRINSIC

    @property
    def is_package(self) -> bool:
        return self.location.is_package

    @property
    def directory(self) -> Optional[Path]:
        """Directory relative imports inside this module start from."""
        if self.location.directory is not None:
            return self.location.directory
        if self.location.path is not None:
            return self.location.path.parent
        return None

    @property
    def symbol_id(self) -> SymbolId:
        """Identity of the module object itself."""
        return SymbolId(self.name, MODULE_SYMBOL_NAME, self.origin)

    def symbol(self, qualname: str) -> SymbolId:
        """Identity of a name bound inside this module."""
        return SymbolId(self.name, qualname, self.origin)

    def __str__(self) -> str:
        return f"Module({self.name}, {len(self.files)} files, {len(self.submodules)} submodules)"

    def __repr__(self) -> str:
        return f"ModuleInfo(name={self.name!r}, location={self.location.key!r})"
