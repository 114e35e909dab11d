"""Duplicate detection between a candidate card and stored cards.

A stored card is a duplicate of the candidate when either:

- more than 60% of the signal fields present on both sides (name, email,
  phone, company) are equal after normalization, with at least two such
  fields present and at least two equal; or
- the email or the phone number is present on both sides and equal.

Stored cards are scanned in collection order and the first match wins.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from cardkeep.domain.entities import Card, CardDraft

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"[^0-9]")

MIN_COMPARABLE_FIELDS = 2
MIN_MATCHING_FIELDS = 2
MATCH_RATIO_THRESHOLD = 0.6


def normalize_text(value: str | None) -> str:
    """Lowercase, trim, and collapse internal whitespace (names, companies)."""
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def normalize_phone_digits(value: str | None) -> str:
    """Keep only the digits of a phone number."""
    return _NON_DIGIT.sub("", value or "")


SIGNAL_FIELDS = {
    "name": normalize_text,
    "email": normalize_email,
    "phone": normalize_phone_digits,
    "company": normalize_text,
}

# Fields whose exact match is conclusive on its own.
IDENTIFIER_FIELDS = ("email", "phone")


@dataclass(frozen=True)
class MatchScore:
    """Comparison of one candidate against one stored card."""

    total_fields: int
    match_count: int
    identifier_match: bool

    @property
    def ratio(self) -> float:
        if not self.total_fields:
            return 0.0
        return self.match_count / self.total_fields

    @property
    def is_duplicate(self) -> bool:
        if self.identifier_match:
            return True
        return (
            self.total_fields >= MIN_COMPARABLE_FIELDS
            and self.match_count >= MIN_MATCHING_FIELDS
            and self.ratio > MATCH_RATIO_THRESHOLD
        )


def score(candidate: Card | CardDraft, existing: Card) -> MatchScore:
    total_fields = 0
    match_count = 0
    identifier_match = False
    for field_name, normalize in SIGNAL_FIELDS.items():
        left = normalize(getattr(candidate, field_name))
        right = normalize(getattr(existing, field_name))
        # A field only counts when both sides carry a value.
        if not left or not right:
            continue
        total_fields += 1
        if left == right:
            match_count += 1
            if field_name in IDENTIFIER_FIELDS:
                identifier_match = True
    return MatchScore(
        total_fields=total_fields,
        match_count=match_count,
        identifier_match=identifier_match,
    )


def find_duplicate(
    candidate: Card | CardDraft, existing_cards: Iterable[Card]
) -> Card | None:
    """Return the first stored card that duplicates the candidate, or None."""
    for existing in existing_cards:
        if score(candidate, existing).is_duplicate:
            return existing
    return None
