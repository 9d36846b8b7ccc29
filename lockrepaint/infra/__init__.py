"""Infrastructure layer - Configuration, command execution and OS hooks"""

from .config import Settings, get_settings, load_settings
from .commands import run_command

__all__ = ["Settings", "get_settings", "load_settings", "run_command"]
