"""
Interface Handle Cache - lazy, shared acquisition of the bus interface.

Architecture Decision: Explicit state instead of a memoized promise
UNINITIALIZED -> PENDING -> READY | FAILED. The transition out of
UNINITIALIZED/FAILED happens under an asyncio.Lock, so concurrent first-time
callers all attach to the same in-flight acquisition and see the same result.
"""

import asyncio
import logging
from typing import Optional

from lockrepaint.domain.errors import BusConnectionError, LockRepaintError
from lockrepaint.domain.models import InterfaceState
from lockrepaint.infra.os_hooks.base import LockInterface, LockSignalSource

logger = logging.getLogger(__name__)


class InterfaceCache:
    """
    Holds the one screensaver interface handle for the process.

    A failed acquisition is retried on the next call when ``retry_failed`` is
    set; otherwise the failure is remembered and re-raised forever.
    """

    def __init__(
        self,
        source: LockSignalSource,
        service: str,
        path: str,
        interface: str,
        retry_failed: bool = True,
    ):
        self.source = source
        self.service = service
        self.path = path
        self.interface = interface
        self.retry_failed = retry_failed

        self.state = InterfaceState.UNINITIALIZED
        self._handle: Optional[LockInterface] = None
        self._error: Optional[BusConnectionError] = None
        self._pending: Optional[asyncio.Future] = None
        self._lock = asyncio.Lock()

    async def get_interface(self) -> LockInterface:
        """
        Return the cached handle, acquiring it on first use.

        Raises:
            BusConnectionError: If acquisition failed
        """
        if self.state is InterfaceState.READY:
            return self._handle

        async with self._lock:
            if self.state is InterfaceState.FAILED and not self.retry_failed:
                raise self._error
            if self.state in (InterfaceState.UNINITIALIZED, InterfaceState.FAILED):
                self.state = InterfaceState.PENDING
                self._pending = asyncio.ensure_future(self._acquire())
            pending = self._pending

        if pending is None:
            # Became READY while waiting for the lock
            return self._handle

        # Shielded so one cancelled caller does not abort everyone else's wait
        return await asyncio.shield(pending)

    async def _acquire(self) -> LockInterface:
        logger.debug("Acquiring %s at %s on %s", self.interface, self.path, self.service)
        try:
            handle = await self.source.get_interface(self.service, self.path, self.interface)
        except BusConnectionError as e:
            self._fail(e)
            raise
        except LockRepaintError as e:
            error = BusConnectionError(f"The DBus interface could not be gotten: {e}")
            self._fail(error)
            raise error from e
        except Exception as e:
            error = BusConnectionError(f"The DBus interface could not be gotten: {e!r}")
            self._fail(error)
            raise error from e

        self._handle = handle
        self._error = None
        self._pending = None
        self.state = InterfaceState.READY
        logger.info("Connected to %s", self.interface)
        return handle

    def _fail(self, error: BusConnectionError):
        self._error = error
        self._pending = None
        self.state = InterfaceState.FAILED
        logger.error("There was an error getting the interface: %s", error)
