"""Domain layer: card entities and duplicate matching. No dependencies on outer layers."""

from cardkeep.domain.entities import EDITABLE_FIELDS, OPTIONAL_FIELDS, Card, CardDraft
from cardkeep.domain.matching import (
    MatchScore,
    find_duplicate,
    normalize_email,
    normalize_phone_digits,
    normalize_text,
    score,
)

__all__ = [
    "EDITABLE_FIELDS",
    "OPTIONAL_FIELDS",
    "Card",
    "CardDraft",
    "MatchScore",
    "find_duplicate",
    "normalize_email",
    "normalize_phone_digits",
    "normalize_text",
    "score",
]
