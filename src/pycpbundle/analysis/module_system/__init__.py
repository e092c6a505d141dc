"""Module system: standard-library classification, path resolution, module loading."""

from .stdlib import StandardLibrary
from .module_info import ModuleInfo, ModuleKind, ModuleLocation, PackageSource
from .path_resolver import PathResolver
from .module_loader import PackageLoader

__all__ = [
    'StandardLibrary',
    'ModuleInfo',
    'ModuleKind',
    'ModuleLocation',
    'PackageSource',
    'PathResolver',
    'PackageLoader',
]
