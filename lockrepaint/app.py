"""
Application wiring - settings, logging, lock source and the event loop.

The process runs until it receives SIGINT or SIGTERM. Nothing is persisted.
"""

import asyncio
import logging
import signal
from typing import Awaitable, Callable, Optional

from lockrepaint.infra.config import Settings, get_settings
from lockrepaint.infra.os_hooks import create_lock_source
from lockrepaint.services import RecheckCoordinator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str):
    """Send log records to stderr at the configured level"""
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def subscribe(
    coordinator: RecheckCoordinator,
    settings: Settings,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Subscribe to lock events, retrying while the screensaver is unreachable.

    Retries only reach the bus again when ``retry_failed_interface`` is set;
    otherwise the first failure is final.
    """
    for attempt in range(1, settings.subscribe_attempts + 1):
        await coordinator.init()
        if coordinator.subscribed:
            return True
        if attempt < settings.subscribe_attempts:
            logger.info("Retrying subscription in %s seconds (attempt %s of %s)",
                        settings.subscribe_retry_seconds, attempt + 1, settings.subscribe_attempts)
            await sleep(settings.subscribe_retry_seconds)
    return False


async def run(settings: Settings) -> int:
    """Subscribe to lock events and wait until asked to stop"""
    loop = asyncio.get_running_loop()
    source = create_lock_source(loop=loop)
    coordinator = RecheckCoordinator(settings, source)

    if not await subscribe(coordinator, settings):
        await coordinator.close()
        return 1

    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down")
        await coordinator.close()
    return 0


def main(settings: Optional[Settings] = None) -> int:
    """Main entry point"""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    return asyncio.run(run(settings))
