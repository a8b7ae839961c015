"""Tests for user-facing messages."""

from __future__ import annotations

import gettext

import pytest

from addressbook.config import I18nConfig
from addressbook.i18n import Messages

pytestmark = pytest.mark.unit


@pytest.fixture
def messages() -> Messages:
    return Messages()


def test_default_strings(messages):
    assert messages.general_contact_error == "Error creating a contact"
    assert messages.edit_success == "Contact edited"


@pytest.mark.parametrize(
    ("ids", "expected"),
    [
        ("all", "All contacts deleted"),
        (["1"], "Contact deleted"),
        (["1", "2"], "Contacts deleted"),
    ],
)
def test_deleted(messages, ids, expected):
    assert messages.deleted(ids) == expected


def test_confirmation_titles(messages):
    assert messages.confirm_delete_title("all") == "Delete all"
    assert messages.confirm_delete_title(["1"]) == "Delete"


def test_confirmation_messages(messages):
    assert "all your contacts" in messages.confirm_delete_message("all")
    assert "this contact" in messages.confirm_delete_message(["1"])
    assert "selected contacts" in messages.confirm_delete_message(["1", "2"])


def test_load_without_catalog_falls_back(tmp_path):
    messages = Messages.load(localedir=tmp_path, languages=["fr"])
    assert messages.edit_success == "Contact edited"


def test_custom_translations_are_used():
    class _Upper(gettext.NullTranslations):
        def pgettext(self, context, message):
            return message.upper()

    assert Messages(_Upper()).edit_success == "CONTACT EDITED"


def test_from_config(tmp_path):
    config = I18nConfig(domain="contacts", localedir=str(tmp_path), languages=["nl"])
    assert Messages.from_config(config).deleted("all") == "All contacts deleted"
