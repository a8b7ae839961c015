"""Tests for vCard helpers."""

from __future__ import annotations

import pytest
import vobject

from addressbook.vcard import card_display_name, new_contact_card, read_vcards

pytestmark = pytest.mark.unit

_TWO_CARDS = (
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "FN:Ada Lovelace\r\n"
    "EMAIL;TYPE=INTERNET:ada@example.com\r\n"
    "END:VCARD\r\n"
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "EMAIL:grace@example.com\r\n"
    "END:VCARD\r\n"
)


def test_new_card_prefills_email_and_name():
    card = new_contact_card(email=" ada@example.com ", name="Ada")

    assert card.email.value == "ada@example.com"
    assert card.email.type_param == "INTERNET"
    assert card.fn.value == "Ada"


def test_new_card_without_values_is_blank():
    card = new_contact_card()

    assert card.name == "VCARD"
    assert "email" not in card.contents
    assert "fn" not in card.contents


def test_read_vcards():
    cards = read_vcards(_TWO_CARDS)

    assert [card_display_name(card) for card in cards] == ["Ada Lovelace", "grace@example.com"]


def test_read_skips_other_components():
    text = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n" + _TWO_CARDS
    assert len(read_vcards(text)) == 2


def test_read_malformed_raises():
    with pytest.raises(vobject.base.ParseError):
        read_vcards("BEGIN:VCARD\r\nthis is not a content line\r\nEND:VCARD\r\n")


def test_display_name_fallback():
    assert card_display_name(new_contact_card()) == "Unknown"
