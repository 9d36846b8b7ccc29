"""
Factory for creating platform-specific lock signal sources.

Architecture Decision: Factory Pattern
Instantiates the correct source based on the current OS.
"""

import asyncio
import logging
import platform
from typing import Optional

from lockrepaint.domain.errors import BusConnectionError
from .base import LockInterface, LockSignalSource

logger = logging.getLogger(__name__)


class UnsupportedLockSource(LockSignalSource):
    """Fallback for platforms without a screensaver bus"""

    def __init__(self, system: str):
        self.system = system

    def start_monitoring(self):
        logger.warning("Lock monitoring not supported on %s", self.system)

    async def get_interface(self, service: str, path: str, interface: str) -> LockInterface:
        raise BusConnectionError(f"No session bus available on {self.system}")


def create_lock_source(loop: Optional[asyncio.AbstractEventLoop] = None) -> LockSignalSource:
    """
    Create the appropriate lock signal source for the current platform.

    Args:
        loop: asyncio loop that bus callbacks are delivered to

    Returns:
        LockSignalSource instance for the current platform
    """
    system = platform.system()

    if system == "Linux":
        from .linux_monitor import DBusLockSignalSource
        return DBusLockSignalSource(loop=loop)

    return UnsupportedLockSource(system)
