"""
Shared components: identities, scopes, parsed files and errors.
"""

from .defid import DefType, SymbolId, builtin_symbol
from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, BundleError,
    PathResolutionError, ParseError, PackageLoadError, TypeCheckError, SerializationError,
)
from .scope import Binding, Scope, ScopeKind
from .nodes import SourceFile, Declaration, BundledModule
from .use_def import UseDefTable
