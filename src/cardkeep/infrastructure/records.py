"""Card <-> JSON-compatible record conversion shared by the storage adapters."""

from typing import Any

from cardkeep.domain import Card

# Python attribute -> stored key.
_KEYS = {
    "id": "id",
    "name": "name",
    "title": "title",
    "company": "company",
    "email": "email",
    "phone": "phone",
    "website": "website",
    "address": "address",
    "notes": "notes",
    "image_ref": "imageRef",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

# Older exports stored the image location under this key.
_LEGACY_IMAGE_KEY = "imageUri"


def card_to_record(card: Card) -> dict[str, Any]:
    """Return the stored form of a card. Optional fields that are unset are omitted."""
    record = {}
    for attr, key in _KEYS.items():
        value = getattr(card, attr)
        if value is not None:
            record[key] = value
    return record


def record_to_card(record: dict[str, Any]) -> Card:
    if not isinstance(record, dict):
        raise ValueError(f"Card record must be an object, got {type(record).__name__}")
    values = {attr: record.get(key) for attr, key in _KEYS.items()}
    if values["image_ref"] is None:
        values["image_ref"] = record.get(_LEGACY_IMAGE_KEY)
    if values["id"] is None:
        raise ValueError("Card record has no id")
    values["id"] = str(values["id"])
    created_at = values["created_at"]
    if created_at is None:
        raise ValueError(f"Card record {values['id']} has no createdAt")
    values["created_at"] = int(created_at)
    updated_at = values["updated_at"]
    values["updated_at"] = int(updated_at) if updated_at is not None else int(created_at)
    return Card(**values)
