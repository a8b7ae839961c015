"""Typed notifications emitted by contact operations.

Each event is a frozen dataclass.  Listeners subscribe by event class
rather than by topic string; ``topic`` is kept on each class for
consumers that forward events to a string-keyed channel.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar

from addressbook.core.summary import BatchSummary
from addressbook.models import Contact, ContactCard, CreationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContactCreated:
    topic: ClassVar[str] = "contactCreated"

    created: list[Contact]
    total: int
    errors: list[CreationError]
    mode: str | None = None
    state: Any = None


@dataclass(frozen=True)
class ContactUpdated:
    topic: ClassVar[str] = "contactUpdated"

    contact: Contact
    cards: list[ContactCard] = field(default_factory=list)


@dataclass(frozen=True)
class ContactsUpdated:
    """Generic "contacts changed" signal with no payload."""

    topic: ClassVar[str] = "contactsUpdated"


@dataclass(frozen=True)
class ContactsMerged:
    topic: ClassVar[str] = "contactsMerged"

    summary: BatchSummary


@dataclass(frozen=True)
class SelectContacts:
    topic: ClassVar[str] = "selectContacts"

    is_checked: bool = False
    contact_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProgressUpdated:
    topic: ClassVar[str] = "progressBar"

    progress: float
    mode: str | None = None


ContactEvent = (
    ContactCreated
    | ContactUpdated
    | ContactsUpdated
    | ContactsMerged
    | SelectContacts
    | ProgressUpdated
)

E = TypeVar("E")
Handler = Callable[[Any], None]


class EventBus:
    """In-process publish/subscribe keyed on event type."""

    def __init__(self) -> None:
        self._handlers: defaultdict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register *handler* for *event_type*; return a callable that unsubscribes it."""
        self._handlers[event_type].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def emit(self, event: ContactEvent) -> None:
        """Deliver *event* to its handlers in registration order.

        A handler that raises is logged and skipped.
        """
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.topic)
