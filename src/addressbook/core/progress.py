"""Progress reporting for batch operations.

A reporter maps a cumulative "units completed" count, bounded by a known
total, onto ``[minimum, maximum]`` and hands the value to an emitter
(typically a ``ProgressUpdated`` event on the bus).  One reporter is
created per operation and discarded when the operation ends.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ProgressEmitter = Callable[[float], None]


@dataclass
class ProgressState:
    """Snapshot of a reporter: completed units, fixed total and mapped value."""

    completed: int
    total: int
    value: float


class ProgressReporter:
    """Map cumulative completed units onto a bounded output range.

    ``total == 0`` is treated as already finished: any report emits
    ``maximum``.  Emitted values never decrease; a report that would map
    below the previous emission re-emits the previous value.
    """

    def __init__(
        self,
        minimum: float,
        maximum: float,
        total: int,
        emit: ProgressEmitter,
    ) -> None:
        if maximum < minimum:
            raise ValueError(f"maximum ({maximum}) must be >= minimum ({minimum})")
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self._minimum = minimum
        self._maximum = maximum
        self._total = total
        self._emit = emit
        self._state = ProgressState(completed=0, total=total, value=minimum)

    @property
    def state(self) -> ProgressState:
        return self._state

    def value_for(self, completed: int) -> float:
        """Return the clamped output value for *completed* units."""
        if self._total == 0:
            return self._maximum
        span = self._maximum - self._minimum
        value = self._minimum + (completed / self._total) * span
        return min(max(value, self._minimum), self._maximum)

    def __call__(self, completed: int) -> float:
        value = max(self.value_for(completed), self._state.value)
        self._state = ProgressState(
            completed=max(completed, self._state.completed),
            total=self._total,
            value=value,
        )
        self._emit(value)
        return value


def create_progress_reporter(
    minimum: float,
    maximum: float,
    total: int,
    emit: ProgressEmitter,
) -> ProgressReporter:
    return ProgressReporter(minimum, maximum, total, emit)
