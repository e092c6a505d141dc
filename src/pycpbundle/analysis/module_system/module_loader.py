"""
Module Loader

Turns an import path into a PackageSource: the resolved location plus its
parsed file. Standard and intrinsic modules come back with no files. Each
file is read and parsed at most once per loader, and every text read is
kept so diagnostics can quote it (including files that failed to parse).
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from .module_info import PackageSource
from .path_resolver import PathResolver
from ...frontend.parser import Parser
from ...shared.errors import PackageLoadError
from ...shared.nodes import SourceFile
from ...utils.io_utils import read_source_file

logger = logging.getLogger(__name__)


class PackageLoader:
    """
    Locates and parses modules.

    Args:
        path_resolver: PathResolver used to turn import paths into locations
        parser: Parser instance (auto-created if None)
    """

    def __init__(self, path_resolver: PathResolver, parser: Optional[Parser] = None):
        self.path_resolver = path_resolver
        self.parser = parser if parser is not None else Parser()
        self.sources: Dict[str, str] = {}
        self._parsed: Dict[Path, SourceFile] = {}

    def load(self, import_path: str, origin_dir: Path) -> PackageSource:
        """
        Load the module an import path refers to.

        Raises:
            PackageLoadError: module not found or unreadable
            ParseError: module has a syntax error
        """
        location = self.path_resolver.resolve(import_path, origin_dir)
        source = PackageSource(location)
        if location.path is not None:
            source.files.append(self.parse_file(location.path))
        logger.debug(f"Loaded '{import_path}' from {origin_dir}: {location} ({len(source.files)} files)")
        return source

    def parse_file(self, path: Path) -> SourceFile:
        """Read and parse one file, memoized by path."""
        cached = self._parsed.get(path)
        if cached is not None:
            return cached
        try:
            text = read_source_file(path)
        except (OSError, UnicodeDecodeError) as e:
            raise PackageLoadError(f"cannot read {path}: {e}") from e
        self.sources[str(path)] = text
        parsed = self.parser.parse(text, path)
        self._parsed[path] = parsed
        return parsed
