"""
Pytest configuration and shared fixtures for all pycpbundle tests.

Module trees are written into tmp_path; the standard-library classifier is
built once per session and shared by every driver, as the CLI does.
"""

import sys
import pytest
from pathlib import Path
from typing import Dict

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))
from pycpbundle.analysis.module_system.stdlib import StandardLibrary
from pycpbundle.compiler.driver import BundleDriver, BundleResult
from pycpbundle.utils.config import BundleOptions
from tests.test_utils import write_tree


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def classifier():
    """Standard-library classifier, built once per process."""
    return StandardLibrary.load()


@pytest.fixture(scope="session")
def session_driver(classifier):
    """Driver with default options; stateless between runs, safe to share."""
    return BundleDriver(classifier=classifier)


# =============================================================================
# Helper fixtures
# =============================================================================

@pytest.fixture
def make_tree(tmp_path):
    """Write {relative path: source} into tmp_path and return tmp_path."""
    def _make_tree(files: Dict[str, str]) -> Path:
        return write_tree(tmp_path, files)
    return _make_tree


@pytest.fixture
def bundle(tmp_path, classifier, session_driver):
    """
    Write a module tree and bundle its entry file.

    Keyword arguments other than `entry` become BundleOptions fields.
    """
    def _bundle(files: Dict[str, str], entry: str = "main.py", **options) -> BundleResult:
        write_tree(tmp_path, files)
        if not options:
            return session_driver.bundle(tmp_path / entry)
        opts = BundleOptions(**options)
        # extra standard names need their own classifier
        driver = BundleDriver(opts, None if opts.extra_stdlib else classifier)
        return driver.bundle(tmp_path / entry)
    return _bundle


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
