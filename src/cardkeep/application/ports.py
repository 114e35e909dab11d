"""Application ports (interfaces). Implemented by infrastructure adapters."""

from collections.abc import Sequence
from typing import Protocol

from cardkeep.domain import Card


class CardStorage(Protocol):
    """Durable storage for a whole card collection under one namespace."""

    def load_all(self) -> list[Card]:
        """Return the stored cards in collection order (empty if nothing saved yet)."""
        ...

    def save_all(self, cards: Sequence[Card]) -> None:
        """Replace the stored collection with cards. Raises if the write did not complete."""
        ...
