"""
Standard-library classification.

Modules the target environment is assumed to always provide. Their sources
are never loaded and their identities are never inlined. Build one instance
per process with StandardLibrary.load() before any resolution begins and
pass it explicitly to whatever needs it.
"""

import logging
import sys
from typing import FrozenSet, Iterable, Optional

from ...shared.defid import SymbolId
from ...utils.config import MODULE_SEPARATOR

logger = logging.getLogger(__name__)


class StandardLibrary:
    """Predicate over module names: is this module always available?"""

    def __init__(self, names: Iterable[str], pinned: Iterable[str] = ()):
        self._names: FrozenSet[str] = frozenset(n for n in names if n)
        # compiled-in and user-declared modules cannot be shadowed by a local file
        self._pinned: FrozenSet[str] = frozenset(n for n in pinned if n) & self._names

    @classmethod
    def load(cls, extra: Iterable[str] = ()) -> "StandardLibrary":
        """
        Build the classifier from the running interpreter's module index.

        Args:
            extra: additional top-level names the target provides (e.g. 'numpy' on a judge)
        """
        extra = set(extra)
        pinned = set(sys.builtin_module_names) | extra
        names = set(sys.stdlib_module_names) | pinned
        logger.debug(f"Standard library index: {len(names)} top-level modules ({len(extra)} extra)")
        return cls(names, pinned)

    def is_standard(self, name: Optional[str]) -> bool:
        """True if the dotted module name belongs to the standard library."""
        if not name:
            return False
        top = name.split(MODULE_SEPARATOR, 1)[0]
        if not top.isidentifier():
            return False
        return top in self._names

    def is_pinned(self, name: Optional[str]) -> bool:
        """True if the module is standard and takes precedence over the search roots."""
        if not self.is_standard(name):
            return False
        return name.split(MODULE_SEPARATOR, 1)[0] in self._pinned

    def is_standard_package(self, symbol: Optional[SymbolId]) -> bool:
        """True if the identity is owned by a standard module (never by a loaded file)."""
        if symbol is None or symbol.origin:
            return False
        return self.is_standard(symbol.package)

    def __contains__(self, name: str) -> bool:
        return self.is_standard(name)

    def __len__(self) -> int:
        return len(self._names)
