"""FIFO mailbox for actors."""

import asyncio
from typing import Any


class Mailbox:
    """Private inbound queue of one actor.

    Messages come out in the order they went in. ``get`` blocks until a
    message is available, so an idle actor costs nothing.
    """

    def __init__(self, maxsize: int = 0):
        """
        Initialize mailbox.

        Args:
            maxsize: Maximum number of queued messages (0 = unbounded)
        """
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(maxsize, 0))

    async def put(self, message: Any) -> None:
        """
        Enqueue a message, waiting for room if the mailbox is bounded and full.

        Args:
            message: Message to enqueue
        """
        await self._queue.put(message)

    async def get(self) -> Any:
        """Wait for and return the oldest message."""
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()
