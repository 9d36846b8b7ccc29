"""
System Probes - idle threshold, idle duration and monitor power queries.

Each probe shells out to an existing utility and turns its output into a
number or a MonitorPower value. Nothing here retries.
"""

import asyncio
import logging
import re
from typing import Callable, Awaitable

from lockrepaint.domain.errors import ProbeError, ProbeParseError
from lockrepaint.domain.models import MonitorPower
from lockrepaint.infra.commands import run_command
from lockrepaint.infra.config import Settings

logger = logging.getLogger(__name__)

UINT32_PATTERN = re.compile(r"uint32 (\d+)")

# Divisor turning the idle command's output into seconds
IDLE_UNIT_DIVISORS = {"ms": 1000.0, "s": 1.0}


def parse_idle_setting(output: str) -> int:
    """Parse `gsettings get` output such as 'uint32 600'"""
    match = UINT32_PATTERN.search(output)
    if not match:
        raise ProbeParseError(f"Idle setting was not in the expected 'uint32 <n>' format: {output.strip()!r}")
    return int(match.group(1))


def parse_idle_duration(output: str, unit: str) -> float:
    """Parse a bare integer and convert it to seconds"""
    text = output.strip()
    try:
        value = int(text)
    except ValueError:
        raise ProbeParseError(f"Idle time was not an integer: {text!r}") from None
    return value / IDLE_UNIT_DIVISORS[unit]


def parse_monitor_power(output: str, marker: str) -> MonitorPower:
    """MonitorPower.OFF if the DPMS report contains the marker text"""
    return MonitorPower.OFF if marker in output else MonitorPower.ON


class SystemProbes:
    """
    Queries the desktop for idle and DPMS state.

    ``sleep`` is injectable so tests can skip the settle delay.
    """

    def __init__(
        self,
        settings: Settings,
        runner: Callable[..., Awaitable[str]] = run_command,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.runner = runner
        self.sleep = sleep

    async def get_idle_setting(self) -> int:
        """
        Seconds of inactivity after which the session is considered idle.

        Raises:
            ProbeError: gsettings failed
            ProbeParseError: gsettings output was not 'uint32 <n>'
        """
        output = await self.runner(["gsettings", "get", *self.settings.gsetting_args], ProbeError)
        return parse_idle_setting(output)

    async def get_idle_time(self) -> float:
        """
        Seconds the user has been inactive so far.

        The command's unit comes from ``idle_duration_unit``; the result is
        always in seconds.
        """
        output = await self.runner(self.settings.idle_duration_command, ProbeError)
        return parse_idle_duration(output, self.settings.idle_duration_unit)

    async def monitor_power(self) -> MonitorPower:
        """
        Current DPMS state, after giving the monitor time to settle.

        Raises:
            ProbeError: The query command failed
        """
        await self.sleep(self.settings.settle_delay_seconds)
        output = await self.runner(self.settings.monitor_query_command, ProbeError)
        power = parse_monitor_power(output, self.settings.monitor_off_marker)
        logger.debug("Monitor power is %s", power.value)
        return power
