"""
Recheck Coordinator - the lock event state machine.

Architecture Decision: Single-threaded asyncio, one schedule slot
Every lock notification runs as its own task. The only shared mutable state
is the interface cache and the single RecheckSchedule slot. The slot is
tested and claimed without an await in between, which is what keeps two
rechecks from ever being outstanding at once.

A recheck that finds the screen still locked loops back to the power check
instead of calling the handler again, so many consecutive rechecks do not
grow the call chain.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from lockrepaint.domain.errors import InterfaceError, LockRepaintError
from lockrepaint.domain.models import CoordinatorState, MonitorPower, RecheckSchedule
from lockrepaint.infra.config import Settings
from lockrepaint.infra.os_hooks.base import LockSignalSource
from .interface_cache import InterfaceCache
from .system_probes import SystemProbes
from .terminal_actuator import TerminalActuator

logger = logging.getLogger(__name__)


class RecheckCoordinator:
    """
    Repaints the lock screen when it gets locked with the monitor off.

    If the monitor is still on at lock time, DPMS has not kicked in yet. The
    coordinator works out how long until the session goes idle, waits that
    long, and looks again.
    """

    def __init__(
        self,
        settings: Settings,
        source: LockSignalSource,
        probes: Optional[SystemProbes] = None,
        actuator: Optional[TerminalActuator] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.source = source
        self.probes = probes or SystemProbes(settings)
        self.actuator = actuator or TerminalActuator(settings)
        self.sleep = sleep

        self.interfaces = InterfaceCache(
            source,
            settings.service,
            settings.path,
            settings.interface,
            retry_failed=settings.retry_failed_interface,
        )

        self.schedule: Optional[RecheckSchedule] = None
        self.subscribed = False
        self._state = CoordinatorState.IDLE
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> CoordinatorState:
        """Outstanding recheck wins; otherwise the last transition any chain made"""
        if self.schedule is not None:
            if self.schedule.delay is None:
                return CoordinatorState.SCHEDULING_RECHECK
            return CoordinatorState.AWAITING_RECHECK
        return self._state

    def _transition(self, state: CoordinatorState):
        logger.debug("%s -> %s", self._state.value, state.value)
        self._state = state

    # --- Subscription ---

    async def init(self) -> "RecheckCoordinator":
        """
        Subscribe to ActiveChanged on the screensaver interface.

        Failures are logged; check ``subscribed`` afterwards.
        """
        if self.subscribed:
            return self

        try:
            iface = await self.interfaces.get_interface()
        except InterfaceError as e:
            logger.error("Could not subscribe to lock events: %s", e)
            return self

        iface.on_active_changed(self._on_active_changed)
        self.subscribed = True
        logger.info("Listening for ActiveChanged on %s", self.settings.interface)
        return self

    def _on_active_changed(self, locked: bool):
        """Bus callback; dispatches the event as its own task"""
        task = asyncio.ensure_future(self.screen_lock_changed(locked))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Unhandled error in lock event handler", exc_info=error)

    async def close(self):
        """Cancel in-flight handlers and stop the signal source"""
        self.cancel_recheck()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.source.stop_monitoring()

    # --- Lock event handler ---

    async def screen_lock_changed(self, locked: bool):
        """
        Handle a lock-state notification.

        Never raises LockRepaintError; every failure ends the chain in IDLE.
        """
        if not locked:
            logger.info("screen is unlocked.")
            if self.settings.cancel_recheck_on_unlock and self.cancel_recheck():
                logger.info("cancelled the outstanding recheck")
            self._transition(CoordinatorState.IDLE)
            return

        logger.info("screen is locked!")
        await self._lock_cycle()

    async def _lock_cycle(self):
        while True:
            self._transition(CoordinatorState.CHECKING_POWER)
            try:
                power = await self.probes.monitor_power()
            except LockRepaintError as e:
                logger.error("There was an error checking the monitor power state: %s", e)
                self._transition(CoordinatorState.IDLE)
                return

            if power is MonitorPower.OFF:
                logger.info("screen was off when locked -- switching terminals")
                await self._repaint()
                return

            logger.info("screen is still on -- calculating recheck delay")
            self._transition(CoordinatorState.SCHEDULING_RECHECK)

            schedule = self._claim_schedule()
            if schedule is None:
                logger.info("a recheck is already scheduled; leaving it to re-evaluate")
                self._transition(CoordinatorState.IDLE)
                return

            try:
                still_locked = await self._await_recheck(schedule)
            except asyncio.CancelledError:
                self._transition(CoordinatorState.IDLE)
                raise
            except LockRepaintError as e:
                logger.error("There was an error during the delayed recheck: %s", e)
                self._transition(CoordinatorState.IDLE)
                return
            finally:
                self._release_schedule(schedule)

            if not still_locked:
                logger.info("screen is found unlocked after delay. nothing to be done.")
                self._transition(CoordinatorState.IDLE)
                return

            logger.info("delay is up -- trying again")

    async def _repaint(self):
        self._transition(CoordinatorState.SWITCHING_TERMINAL)
        try:
            await self.actuator.switch_virtual_terminal()
        except LockRepaintError as e:
            logger.error("There was an error switching virtual terminals: %s", e)
            self._transition(CoordinatorState.IDLE)
            return

        self._transition(CoordinatorState.POWERING_OFF)
        try:
            await self.actuator.turn_screen_off()
        except LockRepaintError as e:
            logger.error("There was an error turning the screen off: %s", e)

        self._transition(CoordinatorState.IDLE)

    # --- Recheck scheduling ---

    def _claim_schedule(self) -> Optional[RecheckSchedule]:
        """Take the schedule slot for the current task, or None if it is taken"""
        if self.schedule is not None:
            return None
        self.schedule = RecheckSchedule(task=asyncio.current_task())
        return self.schedule

    def _release_schedule(self, schedule: RecheckSchedule):
        if self.schedule is not None and self.schedule.token == schedule.token:
            self.schedule = None

    def cancel_recheck(self) -> bool:
        """Abort the outstanding recheck, if any. Returns True if one was cancelled."""
        if self.schedule is None:
            return False
        return self.schedule.cancel()

    async def _await_recheck(self, schedule: RecheckSchedule) -> bool:
        schedule.delay = await self.compute_delay()
        self._transition(CoordinatorState.AWAITING_RECHECK)
        logger.info("checking if the screen is still locked in %s seconds", schedule.delay)

        await self.sleep(schedule.delay)
        return await self.check_if_locked()

    async def compute_delay(self) -> float:
        """
        Seconds until the session should go idle.

        Both idle probes run concurrently. A non-positive result means idle
        time already passed the threshold; the configured cushion is used.

        Raises:
            ProbeError: If either probe fails
        """
        idle_setting, idle_time = await asyncio.gather(
            self.probes.get_idle_setting(),
            self.probes.get_idle_time(),
        )

        delay = idle_setting - idle_time
        if delay <= 0:
            delay = self.settings.recheck_cushion_seconds

        logger.info("idleSetting was: %s. idleTime was: %s. delay is: %s", idle_setting, idle_time, delay)
        return delay

    async def check_if_locked(self) -> bool:
        """
        Ask the screensaver whether it is active.

        Raises:
            InterfaceError: If the interface cannot be acquired or the call fails
        """
        iface = await self.interfaces.get_interface()
        try:
            return bool(await iface.get_active())
        except InterfaceError:
            raise
        except Exception as e:
            raise InterfaceError(f"There was an error checking if the screen was locked: {e}") from e
