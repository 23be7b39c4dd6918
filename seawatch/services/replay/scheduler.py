import asyncio
from typing import Awaitable, Callable

from seawatch.shared.utils.logger import LoggerSetup


class ReplayScheduler:
    """
    Fixed-interval timer running one tick at a time.

    A tick never overlaps the next one; fires missed while a tick overran the
    interval are dropped, not queued. The stop event is only checked at the
    wait point, an in-flight tick always runs to completion.
    """

    def __init__(self, tick: Callable[[], Awaitable[object]], interval: float, name: str = "replay"):
        if interval <= 0:
            raise ValueError("Scheduler interval must be positive")
        self._tick = tick
        self._interval = interval
        self._name = name

        self.ticks = 0
        self.failures = 0
        self.skipped = 0
        self.logger = LoggerSetup.setup(__class__.__name__)

    @property
    def interval(self) -> float:
        return self._interval

    async def run(self, stop_event: asyncio.Event) -> None:
        """Fire ticks until `stop_event` is set"""
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self._interval
        self.logger.info(f"Scheduler {self._name} started, interval {self._interval}s")

        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, next_fire - loop.time()))
                break
            except asyncio.TimeoutError:
                pass

            self.ticks += 1
            try:
                await self._tick()
            except Exception as e:
                self.failures += 1
                self.logger.error(f"Tick {self.ticks} of {self._name} failed: {e}")

            next_fire += self._interval
            now = loop.time()
            if next_fire <= now:
                missed = int((now - next_fire) // self._interval) + 1
                self.skipped += missed
                next_fire += missed * self._interval
                self.logger.debug(f"{self._name} overran, skipped {missed} fires")

        self.logger.info(f"Scheduler {self._name} stopped after {self.ticks} ticks")
