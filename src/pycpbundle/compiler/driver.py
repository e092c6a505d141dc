"""
Bundle Driver

Runs the whole pipeline for one entry file:

1. Parsing (entry file → SourceFile)
2. Name resolution (entry + import closure → UseDefTable, loaded files)
3. Declaration indexing (loaded files → DeclarationIndex)
4. Reachability (entry call sites → ordered declarations)
5. Emission (entry + declarations → BundledModule)
6. Printing (BundledModule → text)

Any BundleError aborts the run; the result then carries the error and a
reporter able to render it against the sources read so far.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..analysis.module_system.module_loader import PackageLoader
from ..analysis.module_system.path_resolver import PathResolver
from ..analysis.module_system.stdlib import StandardLibrary
from ..backends.source_printer import SourcePrinter
from ..frontend.parser import Parser
from ..passes.declaration_index import DeclarationIndex, build_declaration_index
from ..passes.emitter import emit
from ..passes.name_resolution import build_resolver
from ..passes.reachability import collect_reachable
from ..shared.errors import BundleError, ErrorReporter, PathResolutionError
from ..shared.nodes import BundledModule, Declaration, SourceFile
from ..shared.use_def import UseDefTable
from ..utils.config import BundleOptions
from ..utils.io_utils import to_absolute_path

logger = logging.getLogger(__name__)


class BundleResult:
    """Bundling result"""
    def __init__(
        self,
        text: Optional[str] = None,
        bundled: Optional[BundledModule] = None,
        declarations: Optional[List[Declaration]] = None,
        table: Optional[UseDefTable] = None,
        index: Optional[DeclarationIndex] = None,
        files: Optional[List[SourceFile]] = None,
        error: Optional[BundleError] = None,
        reporter: Optional[ErrorReporter] = None,
        success: bool = False,
    ):
        self.text = text
        self.bundled = bundled
        self.declarations = declarations if declarations is not None else []
        self.table = table
        self.index = index
        self.files = files if files is not None else []
        self.error = error
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.success = success

    def has_errors(self) -> bool:
        return self.reporter.has_errors() or not self.success

    def get_errors(self) -> list:
        if self.reporter.has_errors():
            return [self.reporter.format_all_errors(color=False)]
        return []


class BundleDriver:
    """
    Bundler driver.

    Args:
        options: per-run options (defaults when None)
        classifier: standard-library classifier; built from options.extra_stdlib when None.
                    Build it once and share it between drivers.
    """

    def __init__(self, options: Optional[BundleOptions] = None, classifier: Optional[StandardLibrary] = None):
        self.options = options if options is not None else BundleOptions()
        if classifier is None:
            classifier = StandardLibrary.load(self.options.extra_stdlib)
        self.classifier = classifier
        self.parser = Parser()
        self.printer = SourcePrinter(preserve_source=self.options.preserve_source)

    def bundle(self, entry_path: Union[Path, str]) -> BundleResult:
        """Bundle one entry file. Never raises BundleError; failures come back in the result."""
        reporter = ErrorReporter()
        try:
            return self._bundle(entry_path, reporter)
        except BundleError as e:
            logger.debug(f"Bundling {entry_path} failed: {e.message}")
            reporter.report(e)
            return BundleResult(error=e, reporter=reporter, success=False)

    def _bundle(self, entry_path: Union[Path, str], reporter: ErrorReporter) -> BundleResult:
        try:
            path = to_absolute_path(entry_path)
        except OSError as e:
            raise PathResolutionError(f"cannot resolve path {entry_path}: {e}") from e

        roots = [path.parent] + [to_absolute_path(root) for root in self.options.search_roots]
        loader = PackageLoader(PathResolver(self.classifier, roots), self.parser)
        # diagnostics quote whatever the loader has read, including the entry
        reporter.source_files = loader.sources

        # Phase 1: Parsing
        entry = loader.parse_file(path)

        # Phase 2: Name resolution
        resolver = build_resolver(loader, self.classifier, strict=self.options.strict)
        table, files = resolver.resolve(entry)

        # Phase 3: Declaration index
        index = build_declaration_index(files, table, self.classifier, self.options.share_split_doc)

        # Phase 4: Reachability
        declarations = collect_reachable(entry, table, index, deduplicate=self.options.deduplicate)

        # Phase 5-6: Emission and printing
        bundled = emit(entry, declarations, self.options.placement)
        text = self.printer.render(bundled)
        logger.debug(f"Bundled {path}: {len(declarations)} declarations appended from {len(files)} files")

        return BundleResult(
            text=text,
            bundled=bundled,
            declarations=declarations,
            table=table,
            index=index,
            files=files,
            reporter=reporter,
            success=True,
        )
