"""In-flight activity tracking for pending contact operations.

Registration is fire-and-forget observability: tracking a task never
changes its result and never raises into the caller.  Failures are logged
here because the caller awaiting the task handles them separately.
"""

from __future__ import annotations

import asyncio
import logging

from addressbook.core.cancellation import Cancelled

logger = logging.getLogger(__name__)


class ActivityTracker:
    """Keep references to pending operation tasks until they settle."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def busy(self) -> bool:
        return bool(self._pending)

    def track(self, future: asyncio.Future) -> asyncio.Future:
        """Register *future* and return it unchanged."""
        self._pending.add(future)
        future.add_done_callback(self._settle)
        return future

    def _settle(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            logger.debug("Tracked activity was cancelled")
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Tracked activity failed: %s", exc)
        elif isinstance(future.result(), Cancelled):
            logger.debug("Tracked activity ended by cancellation token")

    async def wait_idle(self) -> None:
        """Wait until every tracked task has settled, ignoring their outcomes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
