"""HTTP implementation of the remote contact store contract.

Endpoints (relative to ``base_url``)::

    POST   /contacts                 create a chunk of contacts
    PUT    /contacts/{id}            update a contact and its cards
    PUT    /contacts/{id}/unencrypted  update metadata-only cards
    PUT    /contacts/delete          remove contacts by ID
    DELETE /contacts                 remove every contact

Batch endpoints answer with one entry per item; code ``1000`` marks a
per-item success, any other code carries an ``error`` message.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from addressbook.config import DEFAULT_UPLOAD_CHUNK_SIZE, EditorConfig
from addressbook.core.cancellation import CancellationToken
from addressbook.core.progress import ProgressEmitter, ProgressReporter
from addressbook.errors import ContactUpdateError, InvalidContactError, StoreRequestError
from addressbook.models import (
    Contact,
    CreationError,
    CreationOutcome,
    RemovalError,
    RemovalOutcome,
    UpdateResult,
)
from addressbook.ports import ContactStore

logger = logging.getLogger(__name__)

SUCCESS_CODE = 1000


class HttpContactStore(ContactStore):
    """Contact store backed by a JSON HTTP API."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 20.0,
        upload_chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE,
        progress: ProgressEmitter | None = None,
        progress_range: tuple[float, float] = (0.0, 100.0),
        headers: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._chunk_size = max(1, int(upload_chunk_size))
        self._progress = progress
        self._progress_range = progress_range
        self._owns_http_client = http_client is None
        self._http_client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(
                base_url=base_url,
                headers=dict(headers or {}),
                timeout=httpx.Timeout(timeout_s, connect=10.0),
            )
        )

    @classmethod
    def from_config(
        cls,
        config: EditorConfig,
        *,
        progress: ProgressEmitter | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpContactStore:
        if not config.store.base_url:
            raise ValueError("store.base_url must be configured for the HTTP contact store")
        return cls(
            base_url=config.store.base_url,
            timeout_s=config.store.timeout_s,
            upload_chunk_size=config.store.upload_chunk_size,
            progress=progress,
            progress_range=(config.progress.minimum, config.progress.maximum),
            headers=headers,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    # ------------------------------------------------------------------
    # ContactStore contract
    # ------------------------------------------------------------------

    async def create_many(
        self,
        contacts: Sequence[Contact],
        token: CancellationToken,
        track_progress: bool = False,
    ) -> CreationOutcome:
        total = len(contacts)
        reporter: ProgressReporter | None = None
        if track_progress and self._progress is not None:
            minimum, maximum = self._progress_range
            reporter = ProgressReporter(minimum, maximum, total, self._progress)
            reporter(0)

        created: list[Contact] = []
        errors: list[CreationError] = []
        for start in range(0, total, self._chunk_size):
            token.raise_if_cancelled()
            chunk = contacts[start : start + self._chunk_size]
            payload = await self._request(
                "POST",
                "/contacts",
                json={"contacts": [_dump_contact(contact) for contact in chunk]},
            )
            chunk_created, chunk_errors = _parse_creation_responses(payload, len(chunk))
            created.extend(chunk_created)
            errors.extend(chunk_errors)
            if reporter is not None:
                reporter(start + len(chunk))

        logger.debug("Created %d/%d contacts (%d errors)", len(created), total, len(errors))
        return CreationOutcome(created=created, errors=errors, total=total)

    async def update_one(self, contact: Contact) -> UpdateResult:
        return await self._update(contact, f"/contacts/{_require_id(contact)}")

    async def update_unencrypted_one(self, contact: Contact) -> UpdateResult:
        return await self._update(contact, f"/contacts/{_require_id(contact)}/unencrypted")

    async def remove_many(self, ids: Sequence[str]) -> RemovalOutcome:
        if not ids:
            return RemovalOutcome()
        payload = await self._request("PUT", "/contacts/delete", json={"ids": list(ids)})
        removed: list[str] = []
        errors: list[RemovalError] = []
        for item in _responses(payload):
            contact_id = str(item.get("id", ""))
            if item.get("code") == SUCCESS_CODE:
                removed.append(contact_id)
            else:
                errors.append(
                    RemovalError(id=contact_id, error=str(item.get("error") or "unknown error"))
                )
        return RemovalOutcome(removed=removed, errors=errors)

    async def remove_all(self) -> None:
        await self._request("DELETE", "/contacts")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _update(self, contact: Contact, path: str) -> UpdateResult:
        payload = await self._request(
            "PUT",
            path,
            json={"cards": [c.model_dump(mode="json") for c in contact.cards]},
            conflict_is_stale=True,
        )
        raw_contact = payload.get("contact")
        if not isinstance(raw_contact, dict):
            raise StoreRequestError(status_code=None, message="Update response is missing contact")
        return UpdateResult(contact=_parse_contact(raw_contact), cards=contact.cards)

    async def _request(
        self, method: str, path: str, *, conflict_is_stale: bool = False, **kwargs: Any
    ) -> dict[str, Any]:
        """Send one request and return its JSON object body.

        A 409 means a stale update only on the update endpoints; elsewhere it
        is an ordinary request failure.
        """
        try:
            response = await self._http_client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreRequestError(
                status_code=None, message=str(exc) or type(exc).__name__
            ) from exc

        if response.status_code == 409 and conflict_is_stale:
            raise ContactUpdateError(_safe_error_message(response))

        if response.status_code < 200 or response.status_code >= 300:
            raise StoreRequestError(
                status_code=response.status_code,
                message=_safe_error_message(response),
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreRequestError(
                status_code=response.status_code, message="Invalid JSON payload"
            ) from exc

        if not isinstance(payload, dict):
            raise StoreRequestError(
                status_code=response.status_code, message="Payload must be a JSON object"
            )
        return payload


def _require_id(contact: Contact) -> str:
    if contact.id is None:
        raise InvalidContactError("Cannot update a contact without an id")
    return contact.id


def _dump_contact(contact: Contact) -> dict[str, Any]:
    return contact.model_dump(mode="json", exclude_none=True)


def _parse_contact(raw: dict[str, Any]) -> Contact:
    try:
        return Contact.model_validate(raw)
    except ValidationError as exc:
        raise StoreRequestError(status_code=None, message=f"Invalid contact: {exc}") from exc


def _responses(payload: dict[str, Any]) -> list[dict[str, Any]]:
    raw = payload.get("responses")
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def _parse_creation_responses(
    payload: dict[str, Any], expected: int
) -> tuple[list[Contact], list[CreationError]]:
    created: list[Contact] = []
    errors: list[CreationError] = []
    items = _responses(payload)
    for item in items:
        code = item.get("code")
        raw_contact = item.get("contact")
        if code == SUCCESS_CODE and isinstance(raw_contact, dict):
            created.append(_parse_contact(raw_contact))
        else:
            errors.append(
                CreationError(
                    code=code if isinstance(code, int) else None,
                    error=str(item.get("error") or "unknown error"),
                )
            )
    if len(items) < expected:
        logger.warning("Store answered %d of %d creations in a chunk", len(items), expected)
    return created, errors


def _safe_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        message = payload.get("error") or payload.get("message")
        if isinstance(message, str) and message.strip():
            return " ".join(message.split())[:200]

    text = response.text.strip()
    if text:
        return " ".join(text.split())[:200]
    return "unknown error"
