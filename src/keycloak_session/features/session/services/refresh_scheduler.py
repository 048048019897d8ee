"""Refresh scheduler: one repeating refresh task per configuration name."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

RefreshTick = Callable[[], Awaitable[None]]


class RefreshScheduler:
    """Owns the refresh timer handles of every configuration.

    A handle is an ``asyncio.Task`` sleeping ``interval_seconds`` between two
    ticks. At most one live handle exists per configuration name, and the
    task releases its handle whichever way it exits. Stopping only cancels a
    sleeping loop; a tick already in progress runs to completion and the loop
    ends after it.
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}
        # Loops currently inside a tick
        self._ticking: Set[asyncio.Task] = set()

    def start(self, configuration_name: str, tick: RefreshTick, interval_seconds: float) -> bool:
        """Start the refresh loop of a configuration.

        Returns:
            False if a live loop already exists for the name, True otherwise
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        if self.is_running(configuration_name):
            logger.debug(f"Refresh timer already running for {configuration_name}")
            return False

        task = asyncio.create_task(
            self._run(configuration_name, tick, interval_seconds),
            name=f"keycloak-refresh-{configuration_name}",
        )
        self._tasks[configuration_name] = task
        logger.debug(f"Started refresh timer for {configuration_name} every {interval_seconds}s")
        return True

    def stop(self, configuration_name: str) -> bool:
        """Discard the refresh loop of a configuration.

        A sleeping loop is cancelled. A loop inside a tick lets the tick finish
        and exits once it returns.

        Returns:
            True if a loop was running
        """
        task = self._tasks.pop(configuration_name, None)
        if task is None:
            return False
        if not task.done() and task not in self._ticking:
            task.cancel()
        logger.debug(f"Stopped refresh timer for {configuration_name}")
        return True

    def stop_all(self) -> None:
        for configuration_name in list(self._tasks):
            self.stop(configuration_name)

    def is_running(self, configuration_name: str) -> bool:
        task = self._tasks.get(configuration_name)
        return task is not None and not task.done()

    def get_task(self, configuration_name: str) -> Optional[asyncio.Task]:
        return self._tasks.get(configuration_name)

    def __len__(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def _run(self, configuration_name: str, tick: RefreshTick, interval_seconds: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                current = asyncio.current_task()
                self._ticking.add(current)
                try:
                    await tick()
                finally:
                    self._ticking.discard(current)
                if self._tasks.get(configuration_name) is not asyncio.current_task():
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Refresh timer for {configuration_name} stopped after error: {e}")
        finally:
            # A newer loop may already own the name
            if self._tasks.get(configuration_name) is asyncio.current_task():
                del self._tasks[configuration_name]
