"""Localized user-facing strings for contact operations."""

from __future__ import annotations

import gettext
from collections.abc import Sequence
from pathlib import Path

from addressbook.config import I18nConfig

ALL_CONTACTS = "all"

DEFAULT_DOMAIN = "addressbook"


class Messages:
    """Catalog lookups for notifications and confirmation dialogs.

    Falls back to the untranslated English strings when no catalog is
    installed for the requested languages.
    """

    def __init__(self, translations: gettext.NullTranslations | None = None) -> None:
        self._t = translations or gettext.NullTranslations()

    @classmethod
    def load(
        cls,
        *,
        domain: str = DEFAULT_DOMAIN,
        localedir: str | Path | None = None,
        languages: Sequence[str] | None = None,
    ) -> Messages:
        translations = gettext.translation(
            domain,
            localedir=localedir,
            languages=list(languages) if languages else None,
            fallback=True,
        )
        return cls(translations)

    @classmethod
    def from_config(cls, config: I18nConfig) -> Messages:
        return cls.load(
            domain=config.domain, localedir=config.localedir, languages=config.languages
        )

    @property
    def general_contact_error(self) -> str:
        return self._t.pgettext("error message", "Error creating a contact")

    @property
    def edit_success(self) -> str:
        return self._t.pgettext("Success message", "Contact edited")

    def deleted(self, contact_ids: Sequence[str] | str) -> str:
        if contact_ids == ALL_CONTACTS:
            return self._t.pgettext("Success", "All contacts deleted")
        return self._t.npgettext(
            "Success", "Contact deleted", "Contacts deleted", len(contact_ids)
        )

    def confirm_delete_message(self, contact_ids: Sequence[str] | str) -> str:
        if contact_ids == ALL_CONTACTS:
            return self._t.pgettext("Info", "Are you sure you want to delete all your contacts?")
        return self._t.npgettext(
            "Info",
            "Are you sure you want to delete this contact?",
            "Are you sure you want to delete the selected contacts?",
            len(contact_ids),
        )

    def confirm_delete_title(self, contact_ids: Sequence[str] | str) -> str:
        if contact_ids == ALL_CONTACTS:
            return self._t.pgettext("Title", "Delete all")
        return self._t.pgettext("Title", "Delete")
