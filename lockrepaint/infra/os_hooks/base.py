"""
Base classes for lock signal sources.

Architecture Decision: Observer Pattern + Factory Pattern
Defines the abstract interface that platform-specific implementations must
follow. The coordinator receives a source by injection, so tests can hand it
an in-memory double instead of a real bus.
"""

from abc import ABC, abstractmethod
from typing import Callable


class LockInterface(ABC):
    """
    Handle to the screensaver interface on the bus.

    Read-only once created; safe to share between callers.
    """

    @abstractmethod
    def on_active_changed(self, callback: Callable[[bool], None]) -> None:
        """Subscribe to lock-state changes. The callback runs on the asyncio loop."""
        raise NotImplementedError("Subclasses must implement on_active_changed")

    @abstractmethod
    async def get_active(self) -> bool:
        """Query whether the screensaver (lock) is currently active"""
        raise NotImplementedError("Subclasses must implement get_active")


class LockSignalSource(ABC):
    """
    Abstract source of screen lock notifications.

    Platform-specific implementations inherit from this class.
    """

    @abstractmethod
    async def get_interface(self, service: str, path: str, interface: str) -> LockInterface:
        """
        Acquire the screensaver interface.

        Raises:
            BusConnectionError: If the interface cannot be acquired
        """
        raise NotImplementedError("Subclasses must implement get_interface")

    def start_monitoring(self):
        """Start whatever background machinery the source needs"""
        pass

    def stop_monitoring(self):
        """Stop monitoring"""
        pass
