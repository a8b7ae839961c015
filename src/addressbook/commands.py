"""Explicit command interface over the contact editor.

UI-originated requests arrive as command objects instead of string-typed
events; ``ContactCommandHandler.handle`` routes each to the matching
editor operation and returns its result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from addressbook.editor import ContactEditor
from addressbook.models import Contact, CreationOutcome, UpdateResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteContacts:
    contact_ids: Sequence[str] | Literal["all"] = ()
    confirm: bool = True


@dataclass(frozen=True)
class UpdateContact:
    contact: Contact
    callback: Callable[[UpdateResult], Any] | None = None


@dataclass(frozen=True)
class CreateContacts:
    contacts: Sequence[Contact] = field(default_factory=tuple)
    mode: str | None = None
    state: Any = None
    callback: Callable[[CreationOutcome], Any] | None = None


@dataclass(frozen=True)
class AddContact:
    email: str | None = None
    name: str | None = None


ContactCommand = DeleteContacts | UpdateContact | CreateContacts | AddContact


class ContactCommandHandler:
    """Route contact commands to a ``ContactEditor``."""

    def __init__(self, editor: ContactEditor) -> None:
        self._editor = editor

    async def handle(self, command: ContactCommand) -> Any:
        logger.debug("Handling %s", type(command).__name__)
        if isinstance(command, DeleteContacts):
            return await self._editor.remove(command.contact_ids, confirm=command.confirm)
        if isinstance(command, UpdateContact):
            return await self._editor.update(command.contact, callback=command.callback)
        if isinstance(command, CreateContacts):
            return await self._editor.create(
                command.contacts,
                mode=command.mode,
                state=command.state,
                callback=command.callback,
            )
        if isinstance(command, AddContact):
            return self._editor.add(email=command.email, name=command.name)
        raise TypeError(f"Unsupported contact command: {type(command).__name__}")
