"""Collaborator contracts consumed by the contact editor.

The remote store is an abstract base class, like a sync provider; the
UI-facing surfaces are structural protocols so any object with the right
methods can be wired in.
"""

from __future__ import annotations

import abc
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from addressbook.core.cancellation import CancellationToken
from addressbook.models import Contact, CreationOutcome, RemovalOutcome, UpdateResult


class ContactStore(abc.ABC):
    """Remote contact store contract."""

    @abc.abstractmethod
    async def create_many(
        self,
        contacts: Sequence[Contact],
        token: CancellationToken,
        track_progress: bool = False,
    ) -> CreationOutcome:
        """Create *contacts*, honouring *token*.

        Raises ``CancellationError`` once the token is observed cancelled.
        """
        ...

    @abc.abstractmethod
    async def update_one(self, contact: Contact) -> UpdateResult:
        """Update one contact, re-encrypting its cards."""
        ...

    @abc.abstractmethod
    async def update_unencrypted_one(self, contact: Contact) -> UpdateResult:
        """Update the metadata-only part of one contact."""
        ...

    @abc.abstractmethod
    async def remove_many(self, ids: Sequence[str]) -> RemovalOutcome:
        """Remove contacts by ID, reporting per-ID failures."""
        ...

    @abc.abstractmethod
    async def remove_all(self) -> None:
        """Remove every contact."""
        ...


class ImportEncryption(Protocol):
    async def process(self, contacts: Sequence[Contact]) -> list[Contact]:
        """Prepare *contacts* for upload.

        Raise ``EncryptionError`` when the batch cannot be prepared; the
        import then fails before anything reaches the store.
        """
        ...


class EventSync(Protocol):
    async def sync(self) -> Any:
        """Reconcile local state with the remote event stream."""
        ...


class Notifier(Protocol):
    def success(self, message: str) -> None: ...


class ConfirmDialog(Protocol):
    async def confirm(self, *, title: str, message: str) -> bool:
        """Ask the user; True only on an explicit confirm."""
        ...


class LoaderSurface(Protocol):
    def activate(self, *, mode: str, on_close: Callable[[], Awaitable[None]]) -> None: ...

    def deactivate(self) -> None: ...


class ContactModal(Protocol):
    def activate(self, *, card: Any, on_close: Callable[[], None]) -> None: ...

    def deactivate(self) -> None: ...


class Navigator(Protocol):
    def go(self, route: str) -> None: ...


class LocalCache(Protocol):
    def clear(self) -> None: ...
