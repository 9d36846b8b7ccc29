"""
Domain Models.

Architecture Decision: Why enums instead of booleans?
"Monitor is on" is an ordinary answer, not a failure, so it gets its own
variant rather than riding the error channel. The coordinator and cache states
are enums so logs and tests can name them.
"""

import asyncio
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MonitorPower(str, Enum):
    """DPMS power state of the monitor"""
    OFF = "off"
    ON = "on"


class InterfaceState(str, Enum):
    """Lifecycle of the cached bus interface handle"""
    UNINITIALIZED = "uninitialized"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class CoordinatorState(str, Enum):
    """Where the lock event handler currently is"""
    IDLE = "idle"
    CHECKING_POWER = "checking_power"
    SWITCHING_TERMINAL = "switching_terminal"
    POWERING_OFF = "powering_off"
    SCHEDULING_RECHECK = "scheduling_recheck"
    AWAITING_RECHECK = "awaiting_recheck"


class RecheckSchedule(BaseModel):
    """
    The single outstanding delayed recheck.

    The token is only ever compared, never interpreted. ``delay`` stays None
    while the idle probes are running; ``task`` is the asyncio task doing the
    waiting, so the recheck can be cancelled.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    token: str = Field(default_factory=lambda: uuid.uuid4().hex)
    delay: Optional[float] = None
    task: Optional[asyncio.Task] = None

    def cancel(self) -> bool:
        """Cancel the waiting task. Returns False if there was nothing to cancel."""
        if self.task is None or self.task.done():
            return False
        return self.task.cancel()
