"""
Configuration constants and bundling options.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Module resolution constants
MODULE_SEPARATOR = "."
MODULE_FILE_EXTENSION = ".py"
PACKAGE_INIT_FILE = "__init__.py"
ENTRY_MODULE_NAME = "__main__"
INTRINSIC_MODULE_NAME = "builtins"

# Names every module namespace provides without a binding statement
MODULE_DUNDERS = (
    "__name__", "__file__", "__doc__", "__package__", "__spec__",
    "__loader__", "__builtins__", "__cached__", "__annotations__",
    "__dict__",
)
PACKAGE_DUNDERS = ("__path__",)

# Placement of inlined declarations in the bundled output
PLACEMENT_END = "end"
PLACEMENT_AFTER_IMPORTS = "after-imports"
PLACEMENTS = (PLACEMENT_END, PLACEMENT_AFTER_IMPORTS)

# Source printer constants
COMMENT_PREFIX = "#"
SHEBANG_PREFIX = "#!"
BLANK_LINES_AROUND_DEFINITIONS = 2

# Environment variables read by the error formatter only
COLOR_ENV_VAR = "PYCPBUNDLE_COLOR"
NO_COLOR_ENV_VAR = "NO_COLOR"

# Process exit codes
EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass
class BundleOptions:
    """
    Options for one bundling run.

    search_roots: directories searched for absolute imports after the entry directory
    extra_stdlib: top-level module names the target environment provides (never inlined)
    deduplicate: append each declaration once (deviation from the default duplicate-per-call-site output)
    placement: where inlined declarations go (PLACEMENT_END or PLACEMENT_AFTER_IMPORTS)
    preserve_source: print statements from their original text instead of ast.unparse
    share_split_doc: split imports share the comment block of the original statement
    strict: unresolved references abort the run instead of being logged
    """
    search_roots: List[Path] = field(default_factory=list)
    extra_stdlib: Tuple[str, ...] = ()
    deduplicate: bool = False
    placement: str = PLACEMENT_END
    preserve_source: bool = True
    share_split_doc: bool = True
    strict: bool = True

    def __post_init__(self) -> None:
        if self.placement not in PLACEMENTS:
            raise ValueError(
                f"unknown placement {self.placement!r}; expected one of {', '.join(PLACEMENTS)}"
            )
        self.search_roots = [Path(p) for p in self.search_roots]
        self.extra_stdlib = tuple(self.extra_stdlib)
