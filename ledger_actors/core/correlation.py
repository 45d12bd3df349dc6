"""Correlation of requests with their eventual replies."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import RequestTimeout

logger = logging.getLogger(__name__)


def new_request_id(prefix: str = "req") -> str:
    """Generate a request id: prefix, epoch milliseconds and a random suffix."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


@dataclass
class _Pending:
    future: asyncio.Future
    timer: asyncio.TimerHandle
    deadline: float


class PendingRequests:
    """
    Table of outstanding requests, keyed by request id.

    Each entry completes exactly once: with a reply, with an explicit
    failure, or with :class:`RequestTimeout` once its deadline passes. The
    entry is removed on completion, and anything arriving for an id that is
    no longer pending is ignored.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, _Pending] = {}

    def expect(self, request_id: str, timeout: float) -> asyncio.Future:
        """
        Register a request and return the future its reply will complete.

        Args:
            request_id: Correlation id echoed by the reply
            timeout: Seconds before the future fails with RequestTimeout

        Raises:
            ValueError: If the request id is already pending
        """
        if request_id in self._pending:
            raise ValueError(f"Request {request_id} is already pending")

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        timer = loop.call_later(timeout, self._expire, request_id, timeout)
        self._pending[request_id] = _Pending(future, timer, loop.time() + timeout)
        return future

    def resolve(self, request_id: Optional[str], value: Any) -> bool:
        """Complete a request with a reply. Returns False if it was not pending."""
        entry = self._take(request_id)
        if entry is None:
            return False
        if not entry.future.done():
            entry.future.set_result(value)
        return True

    def reject(self, request_id: Optional[str], error: BaseException) -> bool:
        """Fail a request. Returns False if it was not pending."""
        entry = self._take(request_id)
        if entry is None:
            return False
        if not entry.future.done():
            entry.future.set_exception(error)
        return True

    def cancel_all(self) -> None:
        """Cancel every outstanding request."""
        for request_id in list(self._pending):
            entry = self._take(request_id)
            if entry is not None and not entry.future.done():
                entry.future.cancel()

    def __len__(self) -> int:
        return len(self._pending)

    def _take(self, request_id: Optional[str]) -> Optional[_Pending]:
        if request_id is None:
            return None
        entry = self._pending.pop(request_id, None)
        if entry is not None:
            entry.timer.cancel()
        return entry

    def _expire(self, request_id: str, timeout: float) -> None:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return
        logger.debug("Request %s timed out after %ss", request_id, timeout)
        if not entry.future.done():
            entry.future.set_exception(RequestTimeout(f"Timeout after {timeout}s waiting for {request_id}"))
