"""OS-specific lock signal sources"""

from .base import LockInterface, LockSignalSource
from .factory import create_lock_source

__all__ = ["LockInterface", "LockSignalSource", "create_lock_source"]
