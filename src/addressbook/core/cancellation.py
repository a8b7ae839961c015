"""Cooperative cancellation for long-running batch operations.

A ``CancellationToken`` is created per batch operation and passed
explicitly to the store call and to whatever UI affordance can cancel it.
Cancellation is one-way: once cancelled, a token stays cancelled.

Store calls signal an observed cancellation by raising
``CancellationError``.  Orchestration code converts that into the
``Cancelled`` result variant with :func:`run_cancellable`, so callers
branch on a value instead of catching an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Final, TypeVar

from addressbook.errors import CancellationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Shared, monotonic cancellation flag.

    Mutated from two call sites at most (the operation driver and the
    cancel affordance).  Both run on the same event loop, so a plain
    attribute flip needs no lock.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the token cancelled.  Idempotent."""
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        """Raise ``CancellationError`` if the token has been cancelled."""
        if self._cancelled:
            raise CancellationError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


def create_cancellation_token() -> CancellationToken:
    return CancellationToken()


@dataclass(frozen=True, slots=True)
class Cancelled:
    """Result variant for an operation that was cancelled by its caller."""

    def __bool__(self) -> bool:
        return False


CANCELLED: Final = Cancelled()


async def run_cancellable(awaitable: Awaitable[T]) -> T | Cancelled:
    """Await *awaitable*, mapping a ``CancellationError`` to ``CANCELLED``.

    Every other exception propagates unchanged.
    """
    try:
        return await awaitable
    except CancellationError:
        logger.info("Cancellable operation stopped by its token")
        return CANCELLED
