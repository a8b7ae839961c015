"""Contact payload shapes exchanged with the remote contact store."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CardType(enum.IntEnum):
    """How a vCard payload is protected."""

    CLEAR = 0
    ENCRYPTED = 1
    SIGNED = 2
    ENCRYPTED_AND_SIGNED = 3


class ContactCard(BaseModel):
    """One serialized vCard belonging to a contact."""

    model_config = ConfigDict(extra="forbid")

    type: CardType = CardType.CLEAR
    data: str
    signature: str | None = None


class Contact(BaseModel):
    """Identifier plus payload for a contact.

    The contact schema itself is owned by the store; unknown fields are
    carried through untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    cards: list[ContactCard] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class CreationError(BaseModel):
    """A per-contact creation failure reported by the store."""

    model_config = ConfigDict(extra="ignore")

    code: int | None = None
    error: str


class CreationOutcome(BaseModel):
    """Result of one create-batch call."""

    model_config = ConfigDict(extra="forbid")

    created: list[Contact] = Field(default_factory=list)
    errors: list[CreationError] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class RemovalError(BaseModel):
    """A per-ID removal failure reported by the store."""

    model_config = ConfigDict(extra="ignore")

    id: str
    error: str


class RemovalOutcome(BaseModel):
    """Result of one bulk removal call."""

    model_config = ConfigDict(extra="forbid")

    removed: list[str] = Field(default_factory=list)
    errors: list[RemovalError] = Field(default_factory=list)


class UpdateResult(BaseModel):
    """Result of one contact update: the stored contact and its cards."""

    model_config = ConfigDict(extra="forbid")

    contact: Contact
    cards: list[ContactCard] = Field(default_factory=list)


class MergeGroup(BaseModel):
    """One cluster of duplicates: an optional survivor to update and IDs to remove."""

    model_config = ConfigDict(extra="forbid")

    update: Contact | None = None
    remove: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of contacts this group is responsible for."""
        return len(self.remove) + (1 if self.update is not None else 0)
