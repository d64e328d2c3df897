"""
Unbounded message channels connecting the fetch and extraction stages.
"""

import asyncio
import logging
from typing import Any, Optional


class ChannelError(Exception):
    """Base class for conditions that end a receive or send."""


class ChannelClosed(ChannelError):
    """The receiving side of the channel has gone away."""


class ChannelTimeout(ChannelError):
    """No item arrived within the receive timeout."""


class ReceiveCancelled(ChannelError):
    """The stop event fired while waiting for an item."""


class Channel:
    """
    Multi-producer queue with a single logical consumer.

    Closing is done by the consumer: once closed, every `send` raises
    `ChannelClosed`, which is how producers learn the receiver has exited.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(__name__)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def close(self):
        """Mark the receiving side as gone."""
        if not self._closed:
            self._closed = True
            self.logger.debug(f"Channel {self.name} closed ({self.qsize()} items discarded)")

    async def send(self, item: Any):
        """Enqueue an item, raising ChannelClosed if the receiver is gone."""
        if self._closed:
            raise ChannelClosed(f"{self.name} channel closed")
        await self._queue.put(item)

    async def receive(self, timeout: Optional[float] = None,
                      stop: Optional[asyncio.Event] = None) -> Any:
        """
        Wait for the next item.

        Args:
            timeout: Seconds to wait before raising ChannelTimeout. None waits
                forever, 0 only returns an item that is already queued.
            stop: Event that, once set, makes the wait raise ReceiveCancelled.

        Returns:
            The next queued item.
        """
        if self._closed:
            raise ChannelClosed(f"{self.name} channel closed")
        if stop is not None and stop.is_set():
            raise ReceiveCancelled(f"{self.name} receive cancelled")

        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            pass

        if timeout is not None and timeout <= 0:
            raise ChannelTimeout(f"{self.name} receive timed out")

        getter = asyncio.ensure_future(self._queue.get())
        waiters = {getter}
        if stop is not None:
            waiters.add(asyncio.ensure_future(stop.wait()))

        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if getter.done() and not getter.cancelled():
            return getter.result()

        if stop is not None and stop.is_set():
            raise ReceiveCancelled(f"{self.name} receive cancelled")
        if self._closed:
            raise ChannelClosed(f"{self.name} channel closed")
        raise ChannelTimeout(f"{self.name} receive timed out after {timeout}s")
