"""
pycpbundle utilities package
"""

from .io_utils import read_source_file, write_output_file, to_absolute_path
from .config import BundleOptions

__all__ = ["read_source_file", "write_output_file", "to_absolute_path", "BundleOptions"]
