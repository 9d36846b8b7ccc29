"""
Terminal Actuator - virtual terminal bounce and forced DPMS off.

Switching to another VT and back makes X repaint the screen, which clears the
artifacts DPMS leaves on the lock screen.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from lockrepaint.domain.errors import ActuatorError
from lockrepaint.infra.commands import run_command
from lockrepaint.infra.config import Settings

logger = logging.getLogger(__name__)


class TerminalActuator:
    """Runs the privileged commands that change what the display shows"""

    def __init__(
        self,
        settings: Settings,
        runner: Callable[..., Awaitable[str]] = run_command,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.runner = runner
        self.sleep = sleep

    async def chvt(self, terminal: int):
        """Switch to a single virtual terminal"""
        await self.runner([*self.settings.chvt_command, str(terminal)], ActuatorError)

    async def switch_virtual_terminal(self, first: Optional[int] = None, second: Optional[int] = None):
        """
        Switch to ``first`` and then back to ``second``.

        Defaults to the configured intermediate and display terminals. The
        second switch only runs once the first has completed.

        Raises:
            ActuatorError: If either switch fails; the sequence stops there
        """
        if first is None:
            first = self.settings.intermediate_terminal
        if second is None:
            second = self.settings.display_terminal

        await self.chvt(first)
        await self.chvt(second)

    async def turn_screen_off(self):
        """
        Force the monitor off, after the configured delay.

        Raises:
            ActuatorError: If the power-off command fails
        """
        if self.settings.screen_off_delay_seconds > 0:
            await self.sleep(self.settings.screen_off_delay_seconds)

        logger.info("Turning off the screen.")
        await self.runner(self.settings.power_off_command, ActuatorError)
