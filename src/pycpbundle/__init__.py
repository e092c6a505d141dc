"""
pycpbundle: bundle a multi-module Python program into one source file.
"""

from .compiler.driver import BundleDriver, BundleResult
from .utils.config import BundleOptions

__version__ = "0.1.0"

__all__ = ["BundleDriver", "BundleResult", "BundleOptions", "__version__"]
