"""
Tests for lock source selection and application wiring.
"""

import pytest

from lockrepaint import app
from lockrepaint.domain.errors import BusConnectionError
from lockrepaint.infra.config import Settings
from lockrepaint.infra.os_hooks import factory
from lockrepaint.infra.os_hooks import linux_monitor
from lockrepaint.services.recheck_coordinator import RecheckCoordinator
from conftest import FakeLockSource, RecordingSleep


def test_factory_picks_dbus_on_linux(monkeypatch):
    monkeypatch.setattr(factory.platform, "system", lambda: "Linux")

    assert isinstance(factory.create_lock_source(), linux_monitor.DBusLockSignalSource)


@pytest.mark.asyncio
async def test_factory_fallback_cannot_connect(monkeypatch):
    monkeypatch.setattr(factory.platform, "system", lambda: "Darwin")
    source = factory.create_lock_source()

    assert isinstance(source, factory.UnsupportedLockSource)
    with pytest.raises(BusConnectionError):
        await source.get_interface("svc", "/path", "iface")


@pytest.mark.asyncio
async def test_dbus_source_without_bindings(monkeypatch):
    monkeypatch.setattr(linux_monitor, "HAS_DBUS", False)
    source = linux_monitor.DBusLockSignalSource()

    with pytest.raises(BusConnectionError):
        await source.get_interface("svc", "/path", "iface")


@pytest.mark.asyncio
async def test_run_exits_when_subscription_fails(monkeypatch, connection_error):
    source = FakeLockSource()
    source.errors = [connection_error]
    monkeypatch.setattr(app, "create_lock_source", lambda loop=None: source)

    assert await app.run(Settings(subscribe_attempts=1)) == 1
    assert source.stopped


@pytest.mark.asyncio
async def test_subscribe_retries_until_the_bus_answers(connection_error):
    source = FakeLockSource()
    source.errors = [connection_error, connection_error]
    settings = Settings(subscribe_attempts=5, subscribe_retry_seconds=2)
    coordinator = RecheckCoordinator(settings, source)
    sleep = RecordingSleep()

    assert await app.subscribe(coordinator, settings, sleep=sleep) is True
    assert source.calls == 3
    assert sleep.delays == [2, 2]
    assert len(source.iface.callbacks) == 1


@pytest.mark.asyncio
async def test_subscribe_gives_up_after_last_attempt(connection_error):
    source = FakeLockSource()
    source.errors = [connection_error] * 3
    settings = Settings(subscribe_attempts=3, subscribe_retry_seconds=0)
    coordinator = RecheckCoordinator(settings, source)
    sleep = RecordingSleep()

    assert await app.subscribe(coordinator, settings, sleep=sleep) is False
    assert source.calls == 3
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_subscribe_without_interface_retry_stops_at_first_failure(connection_error):
    source = FakeLockSource()
    source.errors = [connection_error]
    settings = Settings(subscribe_attempts=3, subscribe_retry_seconds=0, retry_failed_interface=False)
    coordinator = RecheckCoordinator(settings, source)

    assert await app.subscribe(coordinator, settings, sleep=RecordingSleep()) is False
    assert source.calls == 1
