"""Domain layer - Pure entities and error taxonomy"""

from .errors import (
    LockRepaintError,
    InterfaceError,
    BusConnectionError,
    CommandError,
    ProbeError,
    ProbeParseError,
    ActuatorError,
)
from .models import CoordinatorState, InterfaceState, MonitorPower, RecheckSchedule

__all__ = [
    "LockRepaintError",
    "InterfaceError",
    "BusConnectionError",
    "CommandError",
    "ProbeError",
    "ProbeParseError",
    "ActuatorError",
    "CoordinatorState",
    "InterfaceState",
    "MonitorPower",
    "RecheckSchedule",
]
