"""vCard helpers: blank cards for the editor and parsing for import."""

from __future__ import annotations

import logging
from typing import Any

import vobject

logger = logging.getLogger(__name__)


def new_contact_card(*, email: str | None = None, name: str | None = None) -> Any:
    """Return a fresh vCard 3.0 prefilled with *email* and *name* when given."""
    card = vobject.vCard()

    if email:
        email_field = card.add("email")
        email_field.value = email.strip()
        email_field.type_param = "INTERNET"
    if name:
        card.add("fn")
        card.fn.value = name.strip()

    return card


def read_vcards(text: str) -> list[Any]:
    """Parse every vCard in *text*.

    Components that are not vCards are skipped.  A malformed document
    raises ``vobject.base.ParseError``.
    """
    cards = []
    for component in vobject.readComponents(text):
        if component.name.upper() != "VCARD":
            logger.warning("Skipping non-vCard component %s during import", component.name)
            continue
        cards.append(component)
    return cards


def card_display_name(card: Any) -> str:
    """Best display name for a parsed vCard: FN, then the first email, then "Unknown"."""
    fn = getattr(card, "fn", None)
    if fn is not None and str(fn.value).strip():
        return str(fn.value).strip()
    email = getattr(card, "email", None)
    if email is not None and str(email.value).strip():
        return str(email.value).strip()
    return "Unknown"
