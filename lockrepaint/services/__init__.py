"""Services layer - Lock handling logic"""

from .interface_cache import InterfaceCache
from .system_probes import SystemProbes
from .terminal_actuator import TerminalActuator
from .recheck_coordinator import RecheckCoordinator

__all__ = ["InterfaceCache", "SystemProbes", "TerminalActuator", "RecheckCoordinator"]
