"""
drdump - MySQL disaster-recovery dump and environment preparation tool
"""

__version__ = "0.3.0"

from .core import DbDump
from .errors import DumpError

__all__ = ["DbDump", "DumpError"]
