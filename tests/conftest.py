"""Shared doubles and fixtures for address book tests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import pytest

from addressbook.core.activity import ActivityTracker
from addressbook.core.cancellation import CancellationToken
from addressbook.core.metrics import EditorMetrics
from addressbook.editor import ContactEditor
from addressbook.errors import InvalidContactError
from addressbook.events import (
    ContactCreated,
    ContactsMerged,
    ContactsUpdated,
    ContactUpdated,
    EventBus,
    ProgressUpdated,
    SelectContacts,
)
from addressbook.models import (
    Contact,
    ContactCard,
    CreationError,
    CreationOutcome,
    RemovalError,
    RemovalOutcome,
    UpdateResult,
)
from addressbook.ports import ContactStore


class StoreDouble(ContactStore):
    """In-memory contact store that records calls and replays scripted failures."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._log = log
        self.create_errors: list[CreationError] = []
        self.update_failures: dict[str, Exception] = {}
        self.remove_failures: dict[str, str] = {}
        self.remove_exception: Exception | None = None
        self.create_gate: asyncio.Event | None = None
        self.update_gates: dict[str, asyncio.Event] = {}
        self._next_id = 100

    async def create_many(
        self,
        contacts: Sequence[Contact],
        token: CancellationToken,
        track_progress: bool = False,
    ) -> CreationOutcome:
        self.calls.append(("create_many", {"contacts": list(contacts), "track": track_progress}))
        if self.create_gate is not None:
            await self.create_gate.wait()
        token.raise_if_cancelled()
        if self.create_errors:
            return CreationOutcome(created=[], errors=self.create_errors, total=len(contacts))
        created = []
        for contact in contacts:
            self._next_id += 1
            created.append(contact.model_copy(update={"id": f"new-{self._next_id}"}))
        return CreationOutcome(created=created, errors=[], total=len(contacts))

    async def update_one(self, contact: Contact) -> UpdateResult:
        self.calls.append(("update_one", contact.id))
        if contact.id is None:
            raise InvalidContactError("Cannot update a contact without an id")
        gate = self.update_gates.get(contact.id or "")
        if gate is not None:
            await gate.wait()
        failure = self.update_failures.get(contact.id or "")
        if failure is not None:
            raise failure
        return UpdateResult(contact=contact, cards=contact.cards)

    async def update_unencrypted_one(self, contact: Contact) -> UpdateResult:
        self.calls.append(("update_unencrypted_one", contact.id))
        return UpdateResult(contact=contact, cards=contact.cards)

    async def remove_many(self, ids: Sequence[str]) -> RemovalOutcome:
        self.calls.append(("remove_many", list(ids)))
        if self.remove_exception is not None:
            raise self.remove_exception
        removed = [i for i in ids if i not in self.remove_failures]
        errors = [
            RemovalError(id=i, error=self.remove_failures[i]) for i in ids if i not in removed
        ]
        return RemovalOutcome(removed=removed, errors=errors)

    async def remove_all(self) -> None:
        self.calls.append(("remove_all", None))
        if self._log is not None:
            self._log.append("remove_all")


class EncryptionDouble:
    def __init__(self, failure: Exception | None = None) -> None:
        self.failure = failure
        self.processed: list[list[Contact]] = []

    async def process(self, contacts: Sequence[Contact]) -> list[Contact]:
        self.processed.append(list(contacts))
        if self.failure is not None:
            raise self.failure
        return [
            c.model_copy(
                update={"cards": [ContactCard(type=1, data=f"enc:{card.data}") for card in c.cards]}
            )
            for c in contacts
        ]


class EventSyncDouble:
    def __init__(self, log: list[str] | None = None) -> None:
        self.calls = 0
        self._log = log

    async def sync(self) -> str:
        self.calls += 1
        if self._log is not None:
            self._log.append("sync")
        return "synced"


class NotifierDouble:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def success(self, message: str) -> None:
        self.messages.append(message)


class ConfirmDouble:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked: list[dict[str, str]] = []

    async def confirm(self, *, title: str, message: str) -> bool:
        self.asked.append({"title": title, "message": message})
        return self.answer


class LoaderDouble:
    def __init__(self) -> None:
        self.activations: list[str] = []
        self.deactivations = 0
        self.on_close: Callable[[], Awaitable[None]] | None = None

    def activate(self, *, mode: str, on_close: Callable[[], Awaitable[None]]) -> None:
        self.activations.append(mode)
        self.on_close = on_close

    def deactivate(self) -> None:
        self.deactivations += 1


class ModalDouble:
    def __init__(self) -> None:
        self.cards: list[Any] = []
        self.on_close: Callable[[], None] | None = None
        self.deactivations = 0

    def activate(self, *, card: Any, on_close: Callable[[], None]) -> None:
        self.cards.append(card)
        self.on_close = on_close

    def deactivate(self) -> None:
        self.deactivations += 1


class NavigatorDouble:
    def __init__(self) -> None:
        self.routes: list[str] = []

    def go(self, route: str) -> None:
        self.routes.append(route)


class CacheDouble:
    def __init__(self, name: str, log: list[str] | None = None) -> None:
        self.name = name
        self.clears = 0
        self._log = log

    def clear(self) -> None:
        self.clears += 1
        if self._log is not None:
            self._log.append(f"clear:{self.name}")


class MetricsRecorder(EditorMetrics):
    """Keeps removal recordings instead of exporting them."""

    def __init__(self) -> None:
        super().__init__()
        self.removed: list[tuple[int, str]] = []
        self.cleared = 0

    def record_removed(self, count: int, *, scope: str) -> None:
        self.removed.append((count, scope))

    def record_cleared(self) -> None:
        self.cleared += 1


class EventRecorder:
    """Subscribe to every editor event and keep them in emission order."""

    EVENT_TYPES = (
        ContactCreated,
        ContactUpdated,
        ContactsUpdated,
        ContactsMerged,
        SelectContacts,
        ProgressUpdated,
    )

    def __init__(self, bus: EventBus) -> None:
        self.events: list[Any] = []
        for event_type in self.EVENT_TYPES:
            bus.subscribe(event_type, self.events.append)

    def of(self, event_type: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]


class Harness:
    """Editor wired to doubles, with handles on every collaborator."""

    def __init__(self, store: ContactStore | None = None) -> None:
        self.log: list[str] = []
        self.store = store if store is not None else StoreDouble(self.log)
        self.encryption = EncryptionDouble()
        self.event_sync = EventSyncDouble(self.log)
        self.bus = EventBus()
        self.recorder = EventRecorder(self.bus)
        self.notifier = NotifierDouble()
        self.confirm = ConfirmDouble()
        self.loader = LoaderDouble()
        self.modal = ModalDouble()
        self.navigator = NavigatorDouble()
        self.contact_cache = CacheDouble("contacts", self.log)
        self.contact_emails = CacheDouble("emails", self.log)
        self.activity = ActivityTracker()
        self.metrics = MetricsRecorder()
        self.editor = ContactEditor(
            store=self.store,
            encryption=self.encryption,
            event_sync=self.event_sync,
            bus=self.bus,
            notifier=self.notifier,
            confirm_dialog=self.confirm,
            loader=self.loader,
            contact_modal=self.modal,
            navigator=self.navigator,
            contact_cache=self.contact_cache,
            contact_emails=self.contact_emails,
            activity=self.activity,
            metrics=self.metrics,
        )


@pytest.fixture
def harness() -> Harness:
    return Harness()

@pytest.fixture
def make_harness() -> Callable[..., Harness]:
    """Build a harness around a caller-supplied store."""
    return Harness
