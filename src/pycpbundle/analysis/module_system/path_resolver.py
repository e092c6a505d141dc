"""
Module Path Resolution

Maps an import path, as written in an import statement, to a module
location. Follows Python's import rules:

- math, os.path          → standard (opaque, never located on disk) unless a root holds it
- sys, --assume-stdlib   → standard, whatever the roots hold
- builtins               → the intrinsic builtin scope
- mathutil               → <root>/mathutil/__init__.py, <root>/mathutil.py or <root>/mathutil/
- pkg.sub                → resolved inside pkg's directory once pkg is a package
- .helper, ..shared.io   → relative to the importing file's directory

Absolute imports search the configured roots in order (the entry directory
first). This class is stateless apart from its configuration and can be
shared.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .module_info import ModuleKind, ModuleLocation
from .stdlib import StandardLibrary
from ...shared.errors import PackageLoadError
from ...utils.config import (
    INTRINSIC_MODULE_NAME,
    MODULE_FILE_EXTENSION,
    MODULE_SEPARATOR,
    PACKAGE_INIT_FILE,
)

logger = logging.getLogger(__name__)


def split_relative(import_path: str) -> Tuple[int, str]:
    """'..pkg.mod' → (2, 'pkg.mod'); 'math' → (0, 'math')."""
    dotted = import_path.lstrip(MODULE_SEPARATOR)
    return len(import_path) - len(dotted), dotted


def package_name_of(directory: Path) -> str:
    """Dotted name of a directory, walking up while parents are regular packages."""
    parts: List[str] = []
    current = directory
    while (current / PACKAGE_INIT_FILE).is_file():
        parts.append(current.name)
        if current.parent == current:
            break
        current = current.parent
    return MODULE_SEPARATOR.join(reversed(parts))


class PathResolver:
    """
    Import path → ModuleLocation.

    Args:
        classifier: standard-library predicate; standard modules resolve without touching disk
        search_roots: directories searched, in order, for absolute imports
    """

    def __init__(self, classifier: StandardLibrary, search_roots: Sequence[Path] = ()):
        self.classifier = classifier
        self.search_roots: List[Path] = []
        for root in search_roots:
            root = Path(root)
            if root not in self.search_roots:
                self.search_roots.append(root)

    def resolve(self, import_path: str, origin_dir: Path) -> ModuleLocation:
        """
        Resolve an import path seen in a file living in origin_dir.

        Raises:
            PackageLoadError: if no module matches the path
        """
        level, dotted = split_relative(import_path)
        if level == 0:
            if not dotted:
                raise PackageLoadError("empty module path")
            if dotted == INTRINSIC_MODULE_NAME:
                return ModuleLocation(dotted, ModuleKind.INTRINSIC)
            if self.classifier.is_pinned(dotted):
                return ModuleLocation(dotted, ModuleKind.STANDARD)
            return self._resolve_absolute(dotted)
        return self._resolve_relative(level, dotted, Path(origin_dir), import_path)

    def _resolve_absolute(self, dotted: str) -> ModuleLocation:
        parts = dotted.split(MODULE_SEPARATOR)
        location = self._find_top_level(parts[0])
        # the standard library sits on the path after the roots: it loses to
        # local modules and packages, and wins over namespace portions
        if location is None or location.kind == ModuleKind.NAMESPACE:
            if self.classifier.is_standard(dotted):
                return ModuleLocation(dotted, ModuleKind.STANDARD)
        if location is None:
            roots = ", ".join(str(r) for r in self.search_roots) or "<none>"
            raise PackageLoadError(
                f"no module named '{parts[0]}'",
                help=f"searched: {roots}",
                note="add its directory with --root, or mark it as provided with --assume-stdlib",
            )
        return self._descend(location, parts[1:], dotted)

    def _resolve_relative(self, level: int, dotted: str, origin_dir: Path, import_path: str) -> ModuleLocation:
        base = origin_dir
        for _ in range(level - 1):
            if base.parent == base:
                raise PackageLoadError(f"attempted relative import beyond top-level directory: '{import_path}'")
            base = base.parent
        base_name = package_name_of(base)
        if (base / PACKAGE_INIT_FILE).is_file():
            location = ModuleLocation(base_name or base.name, ModuleKind.PACKAGE, base / PACKAGE_INIT_FILE, base)
        elif base.is_dir():
            location = ModuleLocation(base_name or base.name, ModuleKind.NAMESPACE, None, base)
        else:
            raise PackageLoadError(f"no directory for relative import '{import_path}': {base}")
        if not dotted:
            return location
        return self._descend(location, dotted.split(MODULE_SEPARATOR), import_path)

    def _find_top_level(self, name: str) -> Optional[ModuleLocation]:
        namespace: Optional[ModuleLocation] = None
        for root in self.search_roots:
            found = self._find_child(root, name, name)
            if found is None:
                continue
            # A regular module or package anywhere on the path beats a namespace portion
            if found.kind != ModuleKind.NAMESPACE:
                logger.debug(f"Resolved '{name}' to {found}")
                return found
            if namespace is None:
                namespace = found
        if namespace is not None:
            logger.debug(f"Resolved '{name}' to namespace package {namespace.directory}")
        return namespace

    def _descend(self, location: ModuleLocation, parts: List[str], import_path: str) -> ModuleLocation:
        for part in parts:
            if not location.is_package or location.directory is None:
                raise PackageLoadError(f"'{location.name}' is not a package (importing '{import_path}')")
            name = f"{location.name}{MODULE_SEPARATOR}{part}" if location.name else part
            found = self._find_child(location.directory, part, name)
            if found is None:
                raise PackageLoadError(f"no module named '{name}'")
            location = found
        return location

    def find_submodule(self, location: ModuleLocation, part: str) -> Optional[ModuleLocation]:
        """Child module `part` of a package, or None."""
        if not location.is_package or location.directory is None:
            return None
        name = f"{location.name}{MODULE_SEPARATOR}{part}" if location.name else part
        return self._find_child(location.directory, part, name)

    @staticmethod
    def _find_child(directory: Path, part: str, name: str) -> Optional[ModuleLocation]:
        """Look for `part` inside directory: package first, then module file, then namespace."""
        if not part.isidentifier():
            return None
        candidate = directory / part
        init_file = candidate / PACKAGE_INIT_FILE
        if init_file.is_file():
            return ModuleLocation(name, ModuleKind.PACKAGE, init_file, candidate)
        module_file = directory / f"{part}{MODULE_FILE_EXTENSION}"
        if module_file.is_file():
            return ModuleLocation(name, ModuleKind.MODULE, module_file, None)
        if candidate.is_dir():
            return ModuleLocation(name, ModuleKind.NAMESPACE, None, candidate)
        return None
