"""
Error taxonomy.

Architecture Decision: One root, one branch per collaborator
The coordinator catches LockRepaintError at its boundary and logs it, so every
failure a collaborator can produce must derive from it. Anything else is a bug
and is allowed to surface.
"""

from typing import Optional, Sequence


class LockRepaintError(Exception):
    """Base class for all recoverable failures"""
    pass


class InterfaceError(LockRepaintError):
    """A bus method call failed or returned an unexpected shape"""
    pass


class BusConnectionError(InterfaceError):
    """The bus interface could not be acquired"""
    pass


class CommandError(LockRepaintError):
    """
    An external command failed.

    Attributes:
        argv: The command line that was executed
        returncode: Exit status, or None if the process never started
        stderr: Whatever the command wrote to its error stream
    """

    def __init__(
        self,
        message: str,
        argv: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        text = super().__str__()
        if self.argv:
            text = f"{text} [{' '.join(self.argv)}]"
        if self.returncode is not None:
            text = f"{text} (exit {self.returncode})"
        if self.stderr:
            text = f"{text}: {self.stderr.strip()}"
        return text


class ProbeError(CommandError):
    """A system query command failed"""
    pass


class ProbeParseError(ProbeError):
    """A system query command succeeded but its output could not be parsed"""
    pass


class ActuatorError(CommandError):
    """A terminal-switch or power-off command failed"""
    pass
