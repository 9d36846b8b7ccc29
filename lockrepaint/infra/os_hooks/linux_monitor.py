"""
Linux lock signal source using DBus.

Talks to the desktop's ScreenSaver service on the session bus. dbus-python
dispatches through a GLib main loop, which runs on a daemon thread here;
every reply and signal is handed back to the asyncio loop with
call_soon_threadsafe.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from lockrepaint.domain.errors import BusConnectionError, InterfaceError
from .base import LockInterface, LockSignalSource

logger = logging.getLogger(__name__)

try:
    import dbus
    import dbus.mainloop.glib
    from gi.repository import GLib
    HAS_DBUS = True
except ImportError:
    HAS_DBUS = False

# Largest reply timeout libdbus accepts (INT_MAX ms, about 24.8 days).
# GetActive is meant to wait for its reply without a deadline.
NO_REPLY_TIMEOUT = 2147483.0


class DBusLockInterface(LockInterface):
    """Wraps a dbus.Interface for the ScreenSaver service"""

    def __init__(self, iface, loop: asyncio.AbstractEventLoop):
        self._iface = iface
        self._loop = loop

    def on_active_changed(self, callback: Callable[[bool], None]) -> None:
        def _on_signal(active):
            self._loop.call_soon_threadsafe(callback, bool(active))

        self._iface.connect_to_signal("ActiveChanged", _on_signal)

    async def get_active(self) -> bool:
        future = self._loop.create_future()

        def _resolve(value):
            if not future.done():
                future.set_result(value)

        def _reject(error):
            if not future.done():
                future.set_exception(error)

        def _on_reply(active=None):
            if active is None:
                error = InterfaceError("GetActive returned no value")
                self._loop.call_soon_threadsafe(_reject, error)
                return
            self._loop.call_soon_threadsafe(_resolve, bool(active))

        def _on_error(exc):
            error = InterfaceError(f"GetActive failed: {exc}")
            self._loop.call_soon_threadsafe(_reject, error)

        try:
            self._iface.GetActive(
                reply_handler=_on_reply,
                error_handler=_on_error,
                timeout=NO_REPLY_TIMEOUT,
            )
        except dbus.DBusException as e:
            raise InterfaceError(f"GetActive could not be sent: {e}") from e

        return await future


class DBusLockSignalSource(LockSignalSource):
    """
    Lock signal source backed by the session bus.

    The bus connection is created on first acquisition and owned by this
    object; there is no module-level bus.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._bus = None
        self._glib_loop = None
        self._thread: Optional[threading.Thread] = None
        self._monitoring = False

        if not HAS_DBUS:
            logger.warning("dbus-python not installed. Install with: pip install dbus-python PyGObject")

    def start_monitoring(self):
        """Start the GLib main loop thread that dispatches bus traffic"""
        if not HAS_DBUS or self._monitoring:
            return

        dbus.mainloop.glib.threads_init()
        dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)

        self._glib_loop = GLib.MainLoop()
        self._thread = threading.Thread(target=self._glib_loop.run, name="dbus-glib", daemon=True)
        self._thread.start()
        self._monitoring = True
        logger.debug("DBus main loop thread started")

    def stop_monitoring(self):
        """Stop monitoring"""
        if not self._monitoring:
            return

        if self._glib_loop is not None:
            self._glib_loop.quit()
            self._glib_loop = None
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self._monitoring = False

    async def get_interface(self, service: str, path: str, interface: str) -> LockInterface:
        if not HAS_DBUS:
            raise BusConnectionError("dbus-python is not installed")

        loop = self._loop or asyncio.get_running_loop()
        self.start_monitoring()

        try:
            iface = await loop.run_in_executor(None, self._acquire, service, path, interface)
        except dbus.DBusException as e:
            raise BusConnectionError(f"The DBus interface could not be gotten: {e}") from e

        return DBusLockInterface(iface, loop)

    def _acquire(self, service: str, path: str, interface: str):
        """Blocking part of acquisition; runs in the default executor"""
        if self._bus is None:
            self._bus = dbus.SessionBus()
        obj = self._bus.get_object(service, path)
        return dbus.Interface(obj, dbus_interface=interface)
