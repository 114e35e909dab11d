"""Export cards as CSV or vCard 3.0 text."""

import csv
import io
from collections.abc import Iterable
from datetime import datetime, timezone

import phonenumbers

from cardkeep.domain import Card

CSV_HEADERS = [
    "Name",
    "Title",
    "Company",
    "Email",
    "Phone",
    "Website",
    "Address",
    "Notes",
    "Date Added",
]


def _date_added(card: Card) -> str:
    return datetime.fromtimestamp(card.created_at / 1000, tz=timezone.utc).date().isoformat()


def cards_to_csv(cards: Iterable[Card]) -> str:
    """One header row, then one row per card in the given order."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for card in cards:
        writer.writerow(
            [
                card.name,
                card.title or "",
                card.company or "",
                card.email or "",
                card.phone or "",
                card.website or "",
                card.address or "",
                card.notes or "",
                _date_added(card),
            ]
        )
    return out.getvalue()


def _escape_vcard(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def vcard_phone(card: Card, default_region: str | None = None) -> str | None:
    """The card's phone in E.164 when it is a valid number, otherwise as written on the card.

    Numbers without a leading + need default_region (e.g. "US") to be recognized.
    """
    if not card.phone:
        return None
    try:
        parsed = phonenumbers.parse(card.phone, default_region)
    except phonenumbers.NumberParseException:
        return card.phone
    if not phonenumbers.is_valid_number(parsed):
        return card.phone
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def _vcard_lines(card: Card, default_region: str | None) -> list[str]:
    name = _escape_vcard(card.name)
    lines = ["BEGIN:VCARD", "VERSION:3.0", f"FN:{name}", f"N:{name};;;;"]
    if card.company:
        lines.append(f"ORG:{_escape_vcard(card.company)}")
    if card.title:
        lines.append(f"TITLE:{_escape_vcard(card.title)}")
    if card.email:
        lines.append(f"EMAIL;TYPE=INTERNET:{_escape_vcard(card.email)}")
    if card.phone:
        lines.append(f"TEL;TYPE=WORK,VOICE:{_escape_vcard(vcard_phone(card, default_region))}")
    if card.website:
        lines.append(f"URL:{_escape_vcard(card.website)}")
    if card.address:
        lines.append(f"ADR;TYPE=WORK:;;{_escape_vcard(card.address)};;;;")
    if card.notes:
        lines.append(f"NOTE:{_escape_vcard(card.notes)}")
    lines.append(f"UID:{card.id}")
    lines.append("END:VCARD")
    return lines


def cards_to_vcard(cards: Iterable[Card], default_region: str | None = None) -> str:
    """Concatenated vCard 3.0 entries. Phones are written in E.164 when they parse."""
    lines: list[str] = []
    for card in cards:
        lines.extend(_vcard_lines(card, default_region))
    if not lines:
        return ""
    return "\r\n".join(lines) + "\r\n"
