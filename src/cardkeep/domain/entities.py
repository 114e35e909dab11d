"""Domain entities: Card and CardDraft."""

import uuid
from dataclasses import dataclass, field

# Optional free-text fields a card may carry besides its name.
OPTIONAL_FIELDS = (
    "title",
    "company",
    "email",
    "phone",
    "website",
    "address",
    "notes",
    "image_ref",
)

# Fields a caller may change on a stored card.
EDITABLE_FIELDS = ("name",) + OPTIONAL_FIELDS


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Card name must be non-empty.")
    return name


@dataclass(frozen=True)
class CardDraft:
    """
    A candidate card built by the capture or import flow, before insertion.
    Timestamps are assigned by the repository; id defaults to a fresh UUID.
    """

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    notes: str | None = None
    image_ref: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "name", _require_name(self.name))
        if not self.id or not str(self.id).strip():
            raise ValueError("Card id must be non-empty.")
        for name in OPTIONAL_FIELDS:
            object.__setattr__(self, name, _clean_optional(getattr(self, name)))


@dataclass(frozen=True)
class Card:
    """
    A stored business card.
    id and created_at never change once the card is in a collection.
    """

    id: str
    name: str
    created_at: int
    updated_at: int
    title: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    notes: str | None = None
    image_ref: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "name", _require_name(self.name))
        if not self.id or not str(self.id).strip():
            raise ValueError("Card id must be non-empty.")
        for name in OPTIONAL_FIELDS:
            object.__setattr__(self, name, _clean_optional(getattr(self, name)))
        if self.updated_at < self.created_at:
            raise ValueError("Card updated_at must not precede created_at.")

    @classmethod
    def from_draft(cls, draft: CardDraft, timestamp: int) -> "Card":
        return cls(
            id=draft.id,
            name=draft.name,
            created_at=timestamp,
            updated_at=timestamp,
            **{name: getattr(draft, name) for name in OPTIONAL_FIELDS},
        )
