"""Tests for the typed event bus."""

from __future__ import annotations

import dataclasses
import logging

import pytest

from addressbook.core.summary import BatchSummary
from addressbook.events import (
    ContactCreated,
    ContactsMerged,
    ContactsUpdated,
    EventBus,
    ProgressUpdated,
    SelectContacts,
)

pytestmark = pytest.mark.unit


def test_dispatch_by_event_type():
    bus = EventBus()
    progress: list[ProgressUpdated] = []
    merged: list[ContactsMerged] = []
    bus.subscribe(ProgressUpdated, progress.append)
    bus.subscribe(ContactsMerged, merged.append)

    bus.emit(ProgressUpdated(progress=50, mode="merge"))

    assert progress == [ProgressUpdated(progress=50, mode="merge")]
    assert merged == []


def test_handlers_run_in_registration_order():
    bus = EventBus()
    order: list[str] = []
    bus.subscribe(ContactsUpdated, lambda e: order.append("first"))
    bus.subscribe(ContactsUpdated, lambda e: order.append("second"))

    bus.emit(ContactsUpdated())

    assert order == ["first", "second"]


def test_unsubscribe():
    bus = EventBus()
    seen: list[SelectContacts] = []
    unsubscribe = bus.subscribe(SelectContacts, seen.append)

    unsubscribe()
    unsubscribe()
    bus.emit(SelectContacts())

    assert seen == []


def test_failing_handler_does_not_block_others(caplog):
    bus = EventBus()
    seen: list[ContactsMerged] = []

    def _boom(event):
        raise RuntimeError("listener bug")

    bus.subscribe(ContactsMerged, _boom)
    bus.subscribe(ContactsMerged, seen.append)

    with caplog.at_level(logging.ERROR, logger="addressbook.events"):
        bus.emit(ContactsMerged(summary=BatchSummary()))

    assert len(seen) == 1
    assert "contactsMerged" in caplog.text


def test_events_are_frozen_and_carry_topics():
    event = ContactCreated(created=[], total=0, errors=[])

    with pytest.raises(dataclasses.FrozenInstanceError):
        event.total = 1  # type: ignore[misc]

    assert ContactCreated.topic == "contactCreated"
    assert ProgressUpdated.topic == "progressBar"
    assert SelectContacts().is_checked is False
