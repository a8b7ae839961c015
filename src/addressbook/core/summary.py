"""Reduction of per-group merge results into one batch summary."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from addressbook.models import Contact


@dataclass
class SubOperationResult:
    """Outcome of one update-and-remove unit (one merge group).

    ``total`` counts the contacts the unit was responsible for: one for the
    update when present, plus every removal attempted.
    """

    total: int = 0
    updated: Contact | None = None
    removed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class BatchSummary:
    """Concatenation of all unit results; ``total`` is the sum of unit totals."""

    updated: list[Contact] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total: int = 0


def summarize(results: Iterable[SubOperationResult]) -> BatchSummary:
    """Fold unit results left to right into a fresh ``BatchSummary``.

    Pure: inputs are not mutated.  Each unit's own ``removed`` and
    ``errors`` keep their internal order.
    """
    summary = BatchSummary()
    for result in results:
        if result.updated is not None:
            summary.updated.append(result.updated)
        if result.removed:
            summary.removed.extend(result.removed)
        if result.errors:
            summary.errors.extend(result.errors)
        summary.total += result.total
    return summary
