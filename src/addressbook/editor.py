"""Contact editor: batch creation, merge, update and deletion orchestration.

Every public operation runs as an ``asyncio.Task`` so it can be handed
to the in-flight activity tracker (or, for imports, awaited by the
loader's cancel action) while the caller awaits the same result.

Creation
    ``create`` optionally encrypts the batch (import mode), uploads it
    through the store with a fresh ``CancellationToken`` and returns the
    store's ``CreationOutcome``.  A cancelled import returns ``CANCELLED``
    and emits nothing.

Merge
    ``merge`` runs one update-and-remove unit per duplicate group
    concurrently.  Each unit folds its own ``ContactError`` into a
    ``SubOperationResult``; the join reports progress as a running sum of
    settled unit totals and reduces the results with ``summarize``.

Deletion
    ``remove`` optionally asks for confirmation, deletes the given IDs
    (or everything for ``"all"``) and resynchronises.  Only a full clear
    drops the local caches; targeted removals reach them through the
    event sync.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Iterable, Mapping, Sequence
from typing import Any, Literal, TypeVar

from addressbook.core.activity import ActivityTracker
from addressbook.core.cancellation import (
    CANCELLED,
    CancellationToken,
    Cancelled,
    create_cancellation_token,
    run_cancellable,
)
from addressbook.core.metrics import EditorMetrics
from addressbook.core.progress import ProgressEmitter, create_progress_reporter
from addressbook.core.summary import BatchSummary, SubOperationResult, summarize
from addressbook.core.telemetry import operation_span
from addressbook.errors import ContactCreationError, ContactError, ContactUpdateError
from addressbook.events import (
    ContactCreated,
    ContactsMerged,
    ContactsUpdated,
    ContactUpdated,
    EventBus,
    ProgressUpdated,
    SelectContacts,
)
from addressbook.i18n import ALL_CONTACTS, Messages
from addressbook.models import Contact, CreationOutcome, MergeGroup, UpdateResult
from addressbook.ports import (
    ConfirmDialog,
    ContactModal,
    ContactStore,
    EventSync,
    ImportEncryption,
    LoaderSurface,
    LocalCache,
    Navigator,
    Notifier,
)
from addressbook.vcard import new_contact_card

logger = logging.getLogger(__name__)

IMPORT_MODE = "import"
MERGE_MODE = "merge"
CONTACTS_ROUTE = "secured.contacts"

ContactIDs = Sequence[str] | Literal["all"]

T = TypeVar("T")


class ContactEditor:
    """Orchestrates contact mutations against a remote store."""

    def __init__(
        self,
        *,
        store: ContactStore,
        encryption: ImportEncryption,
        event_sync: EventSync,
        bus: EventBus,
        notifier: Notifier,
        confirm_dialog: ConfirmDialog,
        loader: LoaderSurface,
        contact_modal: ContactModal,
        navigator: Navigator,
        contact_cache: LocalCache,
        contact_emails: LocalCache,
        activity: ActivityTracker | None = None,
        messages: Messages | None = None,
        metrics: EditorMetrics | None = None,
        progress_range: tuple[float, float] = (0.0, 100.0),
    ) -> None:
        self._store = store
        self._encryption = encryption
        self._event_sync = event_sync
        self._bus = bus
        self._notifier = notifier
        self._confirm_dialog = confirm_dialog
        self._loader = loader
        self._contact_modal = contact_modal
        self._navigator = navigator
        self._contact_cache = contact_cache
        self._contact_emails = contact_emails
        self._activity = activity or ActivityTracker()
        self._messages = messages or Messages()
        self._metrics = metrics or EditorMetrics()
        self._progress_range = progress_range

    @property
    def activity(self) -> ActivityTracker:
        return self._activity

    def _spawn(self, coro: Coroutine[Any, Any, T], *, track: bool = True) -> asyncio.Task[T]:
        task = asyncio.ensure_future(coro)
        if track:
            self._activity.track(task)
        return task

    def _progress_emitter(self, mode: str) -> ProgressEmitter:
        def _emit(value: float) -> None:
            self._bus.emit(ProgressUpdated(progress=value, mode=mode))

        return _emit

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self,
        contacts: Iterable[Contact] = (),
        *,
        mode: str | None = None,
        state: Any = None,
        callback: Callable[[CreationOutcome], Any] | None = None,
    ) -> CreationOutcome | Cancelled:
        """Create *contacts* in one batch.

        In import mode the batch is encrypted first, the store tracks
        upload progress, and the loader surface is activated with a close
        action that cancels the upload.  Otherwise the operation is
        registered with the activity tracker.

        Returns the store outcome, or ``CANCELLED`` when the token was
        cancelled mid-flight.  Only on success are ``ContactCreated``
        emitted and *callback* invoked.
        """
        token = create_cancellation_token()
        task = self._spawn(
            self._create(list(contacts), token, mode=mode, state=state, callback=callback),
            track=mode != IMPORT_MODE,
        )

        if mode == IMPORT_MODE:

            async def _close() -> None:
                token.cancel()
                try:
                    await asyncio.wait({task})
                finally:
                    self._loader.deactivate()

            self._loader.activate(mode=IMPORT_MODE, on_close=_close)

        return await task

    @operation_span("create")
    async def _create(
        self,
        contacts: list[Contact],
        token: CancellationToken,
        *,
        mode: str | None,
        state: Any,
        callback: Callable[[CreationOutcome], Any] | None,
    ) -> CreationOutcome | Cancelled:
        started = time.monotonic()
        outcome = await run_cancellable(self._prepare_and_upload(contacts, token, mode=mode))
        if isinstance(outcome, Cancelled):
            self._metrics.record_cancelled(mode=mode)
            return CANCELLED

        logger.info(
            "Created %d of %d contacts (mode=%s, errors=%d)",
            len(outcome.created),
            outcome.total,
            mode,
            len(outcome.errors),
        )
        self._metrics.record_created(len(outcome.created), mode=mode)
        self._metrics.record_create_errors(len(outcome.errors), mode=mode)
        self._metrics.record_duration("create", (time.monotonic() - started) * 1000)

        self._bus.emit(
            ContactCreated(
                created=outcome.created,
                total=outcome.total,
                errors=outcome.errors,
                mode=mode,
                state=state,
            )
        )
        if callback is not None:
            callback(outcome)
        return outcome

    async def _prepare_and_upload(
        self,
        contacts: list[Contact],
        token: CancellationToken,
        *,
        mode: str | None,
    ) -> CreationOutcome:
        if mode == IMPORT_MODE:
            contacts = await self._encryption.process(contacts)
        # Progress only for imports so small interactive creates do not flash a progress bar.
        return await self._store.create_many(contacts, token, mode == IMPORT_MODE)

    async def create_singular(self, contact: Contact) -> Contact:
        """Create one contact and return it, raising on any reported failure.

        Raises
        ------
        ContactCreationError
            When the store reports an error or creates nothing.  The store's
            error message and code are carried over when present.
        """
        outcome = await self.create([contact])
        if isinstance(outcome, Cancelled):
            raise ContactCreationError(self._messages.general_contact_error)

        error = outcome.errors[0] if outcome.errors else None
        created = outcome.created[0] if outcome.created else None
        if error is not None or created is None:
            message = (error.error if error is not None else "") or (
                self._messages.general_contact_error
            )
            code = error.code if error is not None and error.code else None
            raise ContactCreationError(message, code=code)
        return created

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_contact(self, contact: Contact) -> UpdateResult:
        """Update *contact* in the store and emit ``ContactUpdated``."""
        result = await self._store.update_one(contact)
        self._bus.emit(ContactUpdated(contact=result.contact, cards=result.cards))
        return result

    async def update(
        self,
        contact: Contact,
        *,
        callback: Callable[[UpdateResult], Any] | None = None,
    ) -> UpdateResult:
        """Update *contact*, notify success, resynchronise, then run *callback*."""
        return await self._spawn(self._update(contact, callback))

    @operation_span("update")
    async def _update(
        self,
        contact: Contact,
        callback: Callable[[UpdateResult], Any] | None,
    ) -> UpdateResult:
        result = await self.update_contact(contact)
        self._notifier.success(self._messages.edit_success)
        await self._event_sync.sync()
        if callback is not None:
            callback(result)
        return result

    async def update_unencrypted(self, contact: Contact) -> UpdateResult:
        """Update only the metadata part of *contact* (no card re-encryption)."""
        return await self._spawn(self._update_unencrypted(contact))

    @operation_span("update_unencrypted")
    async def _update_unencrypted(self, contact: Contact) -> UpdateResult:
        result = await self._store.update_unencrypted_one(contact)
        self._bus.emit(ContactUpdated(contact=result.contact, cards=result.cards))
        self._notifier.success(self._messages.edit_success)
        await self._event_sync.sync()
        return result

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    async def update_and_remove(self, group: MergeGroup) -> SubOperationResult:
        """Update the group's survivor, then remove its duplicates.

        Removal only runs once the update succeeded (or when there is no
        update).  A ``ContactError`` is folded into the result: a conflict
        means the update did not apply, so the survivor is not reported as
        updated; other errors keep it for the caller to inspect.
        """
        total = group.total
        try:
            if group.update is not None:
                await self.update_contact(group.update)
            removed: list[str] = []
            errors: list[str] = []
            if group.remove:
                outcome = await self._store.remove_many(group.remove)
                removed = list(outcome.removed)
                errors = [failure.error for failure in outcome.errors]
        except ContactError as exc:
            logger.warning("Merge group failed: %s", exc.message)
            return SubOperationResult(
                total=total,
                updated=None if isinstance(exc, ContactUpdateError) else group.update,
                errors=[exc.message],
            )

        return SubOperationResult(
            total=total,
            updated=group.update,
            removed=removed,
            errors=errors,
        )

    async def merge(self, groups: Mapping[str, MergeGroup | Mapping[str, Any]]) -> BatchSummary:
        """Resolve every duplicate group and return the merged summary.

        Emits ``ContactsUpdated``, ``ContactsMerged`` and ``SelectContacts``
        in that order once all groups have settled, then resynchronises.
        """
        parsed = {
            key: group if isinstance(group, MergeGroup) else MergeGroup.model_validate(group)
            for key, group in groups.items()
        }
        return await self._spawn(self._merge(parsed))

    @operation_span("merge")
    async def _merge(self, groups: dict[str, MergeGroup]) -> BatchSummary:
        started = time.monotonic()

        async def _close() -> None:
            self._loader.deactivate()

        self._loader.activate(mode=MERGE_MODE, on_close=_close)

        total = sum(group.total for group in groups.values())
        minimum, maximum = self._progress_range
        reporter = create_progress_reporter(
            minimum, maximum, total, self._progress_emitter(MERGE_MODE)
        )
        completed = 0

        async def _run(group: MergeGroup) -> SubOperationResult:
            nonlocal completed
            result = await self.update_and_remove(group)
            completed += result.total
            reporter(completed)
            return result

        results = await asyncio.gather(*(_run(group) for group in groups.values()))
        summary = summarize(results)

        logger.info(
            "Merged %d groups: %d updated, %d removed, %d errors",
            len(groups),
            len(summary.updated),
            len(summary.removed),
            len(summary.errors),
        )
        self._metrics.record_merge(groups=len(groups), errors=len(summary.errors))
        self._metrics.record_removed(len(summary.removed), scope="merge")

        self._bus.emit(ContactsUpdated())
        self._bus.emit(ContactsMerged(summary=summary))
        self._bus.emit(SelectContacts(is_checked=False))

        await self._event_sync.sync()
        self._metrics.record_duration("merge", (time.monotonic() - started) * 1000)
        return summary

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    @operation_span("remove")
    async def remove(self, contact_ids: ContactIDs, *, confirm: bool = True) -> bool:
        """Delete *contact_ids* (or every contact for ``"all"``).

        When *confirm* is set the deletion only proceeds on an explicit
        confirmation.  Returns True when the deletion ran.
        """
        if isinstance(contact_ids, str) and contact_ids != ALL_CONTACTS:
            raise ValueError(f"contact_ids must be a sequence of IDs or {ALL_CONTACTS!r}")

        success = self._messages.deleted(contact_ids)

        if confirm:
            confirmed = await self._confirm_dialog.confirm(
                title=self._messages.confirm_delete_title(contact_ids),
                message=self._messages.confirm_delete_message(contact_ids),
            )
            if not confirmed:
                logger.info("Contact deletion dismissed")
                return False

        await self._request_deletion(contact_ids)
        self._notifier.success(success)
        self._navigator.go(CONTACTS_ROUTE)
        self._bus.emit(SelectContacts(is_checked=False))
        return True

    async def _request_deletion(self, contact_ids: ContactIDs) -> None:
        if contact_ids == ALL_CONTACTS:
            await self._spawn(self._store.remove_all())
            self._metrics.record_cleared()
            self._contact_cache.clear()
            self._contact_emails.clear()
            logger.info("Removed all contacts and cleared local caches")
        else:
            outcome = await self._spawn(self._store.remove_many(list(contact_ids)))
            self._metrics.record_removed(len(outcome.removed), scope="ids")
            if outcome.errors:
                logger.warning(
                    "Failed to remove %d of %d contacts", len(outcome.errors), len(contact_ids)
                )

        await self._event_sync.sync()

    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------

    def add(self, *, email: str | None = None, name: str | None = None) -> Any:
        """Open the contact editing surface on a new card prefilled with *email* / *name*."""
        card = new_contact_card(email=email, name=name)
        self._contact_modal.activate(card=card, on_close=self._contact_modal.deactivate)
        return card
