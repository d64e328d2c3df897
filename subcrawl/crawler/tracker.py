"""
In-flight work accounting used to detect that the crawl has drained.
"""

import asyncio
import logging


class InFlightTracker:
    """
    Counts URLs that have been enqueued but whose page is not yet settled.

    A URL is settled when its fetch fails or when the links on its page have
    all been claimed and enqueued. Producers must call `add` before the
    enqueue so the count can never touch zero while work is still circulating.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._in_flight = 0
        self._drained = asyncio.Event()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def add(self, count: int = 1):
        self._in_flight += count
        self._drained.clear()

    def done(self):
        if self._in_flight <= 0:
            raise RuntimeError("InFlightTracker.done() called more times than add()")
        self._in_flight -= 1
        if self._in_flight == 0:
            self.logger.debug("No work in flight")
            self._drained.set()

    async def wait_drained(self):
        """Block until the in-flight count drops to zero."""
        await self._drained.wait()
