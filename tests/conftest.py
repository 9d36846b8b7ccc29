"""
Pytest configuration and fixtures.

In-memory doubles for the bus, the probes and the actuator, so the
coordinator can be driven without a desktop session.
"""

import sys
from pathlib import Path
import asyncio
import pytest

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from lockrepaint.domain.errors import BusConnectionError
from lockrepaint.domain.models import MonitorPower
from lockrepaint.infra.config import Settings
from lockrepaint.infra.os_hooks.base import LockInterface, LockSignalSource


class FakeInterface(LockInterface):
    """Screensaver interface whose answers are set by the test"""

    def __init__(self, active=True):
        self.active = active
        self.error = None
        self.callbacks = []
        self.get_active_calls = 0

    def on_active_changed(self, callback):
        self.callbacks.append(callback)

    async def get_active(self):
        self.get_active_calls += 1
        if self.error is not None:
            raise self.error
        return self.active

    def emit(self, locked):
        for callback in self.callbacks:
            callback(locked)


class FakeLockSource(LockSignalSource):
    """Counts acquisitions; can be made to fail or to block until released"""

    def __init__(self, iface=None):
        self.iface = iface or FakeInterface()
        self.calls = 0
        self.errors = []
        self.gate = None
        self.stopped = False

    async def get_interface(self, service, path, interface):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        return self.iface

    def stop_monitoring(self):
        self.stopped = True


class FakeProbes:
    """Scripted SystemProbes stand-in; records every call in ``log``"""

    def __init__(self, log, power=None, idle_setting=600, idle_time=100):
        self.log = log
        self.power = list(power or [MonitorPower.ON])
        self.idle_setting = idle_setting
        self.idle_time = idle_time
        self.power_error = None
        self.idle_setting_error = None
        self.idle_time_error = None

    async def monitor_power(self):
        self.log.append("monitor_power")
        if self.power_error is not None:
            raise self.power_error
        # Last answer repeats once the script runs out
        if len(self.power) > 1:
            return self.power.pop(0)
        return self.power[0]

    async def get_idle_setting(self):
        self.log.append("get_idle_setting")
        if self.idle_setting_error is not None:
            raise self.idle_setting_error
        return self.idle_setting

    async def get_idle_time(self):
        self.log.append("get_idle_time")
        if self.idle_time_error is not None:
            raise self.idle_time_error
        return self.idle_time


class FakeActuator:
    """Records switches and power-offs in the shared ``log``"""

    def __init__(self, log):
        self.log = log
        self.switch_error = None
        self.power_off_error = None

    async def switch_virtual_terminal(self, first=1, second=7):
        self.log.append(("chvt", first))
        if self.switch_error is not None:
            raise self.switch_error
        self.log.append(("chvt", second))

    async def turn_screen_off(self):
        self.log.append("turn_screen_off")
        if self.power_off_error is not None:
            raise self.power_off_error


class RecordingSleep:
    """Replacement for asyncio.sleep; optionally blocks until ``release()``"""

    def __init__(self, blocking=False):
        self.delays = []
        self.blocking = blocking
        self.entered = asyncio.Event()
        self._gate = asyncio.Event()

    async def __call__(self, delay):
        self.delays.append(delay)
        self.entered.set()
        if self.blocking:
            await self._gate.wait()
        else:
            await asyncio.sleep(0)

    def release(self):
        self._gate.set()


@pytest.fixture
def settings():
    """Default settings with the DPMS settle delay removed"""
    return Settings(settle_delay_seconds=0)


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def lock_source():
    return FakeLockSource()


@pytest.fixture
def probes(call_log):
    return FakeProbes(call_log)


@pytest.fixture
def actuator(call_log):
    return FakeActuator(call_log)


@pytest.fixture
def connection_error():
    return BusConnectionError("bus is down")
