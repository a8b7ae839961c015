"""Error kinds raised by address book operations and their store collaborators."""

from __future__ import annotations


class ContactError(Exception):
    """Base error for contact operations.

    Merge units catch this family and fold it into their result; anything
    outside it is treated as unexpected and aborts the whole merge.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CancellationError(ContactError):
    """Raised by a cancellable store call once its token has been cancelled."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class ContactUpdateError(ContactError):
    """Raised when an update is rejected as stale or conflicting.

    The update is known not to have been applied.
    """


class ContactCreationError(ContactError):
    """Raised when a single contact could not be created."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


class EncryptionError(ContactError):
    """Raised by the import encryption collaborator when a batch cannot be prepared.

    ``ImportEncryption.process`` implementations are expected to raise this;
    the editor lets it propagate before any remote call is made.
    """


class InvalidContactError(ContactError):
    """Raised when a contact cannot be sent to the store as given (e.g. no id to update)."""


class StoreRequestError(ContactError):
    """Raised when the remote contact store request fails."""

    def __init__(self, *, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        if status_code is None:
            super().__init__(f"Contact store request failed: {message}")
        else:
            super().__init__(f"Contact store request failed ({status_code}): {message}")
