"""
Async wrapper around external command execution.

Every probe and actuator shells out to an existing utility. A command counts
as failed when it exits non-zero OR writes anything to stderr.
"""

import asyncio
import logging
from typing import Sequence, Type

from lockrepaint.domain.errors import CommandError

logger = logging.getLogger(__name__)


async def run_command(argv: Sequence[str], error_cls: Type[CommandError] = CommandError) -> str:
    """
    Run a command and return its decoded stdout.

    Args:
        argv: Program and arguments, no shell involved
        error_cls: CommandError subclass raised on failure

    Returns:
        The command's standard output

    Raises:
        error_cls: If the command cannot be started, exits non-zero, or writes to stderr
    """
    argv = [str(arg) for arg in argv]
    logger.debug("Running %s", argv)

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise error_cls(f"Could not start command: {e}", argv=argv) from e

    try:
        stdout, stderr = await process.communicate()
    except BaseException:
        # Cancelled mid-run; do not leave the child behind
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    out = stdout.decode('utf-8', errors='replace')
    err = stderr.decode('utf-8', errors='replace')

    if process.returncode != 0:
        raise error_cls("Command failed", argv=argv, returncode=process.returncode, stderr=err)
    if err:
        raise error_cls("Command wrote to stderr", argv=argv, returncode=process.returncode, stderr=err)

    return out
