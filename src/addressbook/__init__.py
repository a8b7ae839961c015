"""Contact batch orchestration: import, merge, update and delete contacts against a remote store."""

from addressbook.commands import (
    AddContact,
    ContactCommandHandler,
    CreateContacts,
    DeleteContacts,
    UpdateContact,
)
from addressbook.core.cancellation import CANCELLED, CancellationToken, Cancelled
from addressbook.core.summary import BatchSummary, SubOperationResult, summarize
from addressbook.editor import ContactEditor
from addressbook.errors import (
    CancellationError,
    ContactCreationError,
    ContactError,
    ContactUpdateError,
    EncryptionError,
    InvalidContactError,
    StoreRequestError,
)
from addressbook.events import EventBus
from addressbook.models import Contact, ContactCard, CreationOutcome, MergeGroup

__all__ = [
    "CANCELLED",
    "AddContact",
    "BatchSummary",
    "CancellationError",
    "CancellationToken",
    "Cancelled",
    "Contact",
    "ContactCard",
    "ContactCommandHandler",
    "ContactCreationError",
    "ContactEditor",
    "ContactError",
    "ContactUpdateError",
    "CreateContacts",
    "CreationOutcome",
    "DeleteContacts",
    "EncryptionError",
    "EventBus",
    "InvalidContactError",
    "MergeGroup",
    "StoreRequestError",
    "SubOperationResult",
    "UpdateContact",
    "summarize",
]
