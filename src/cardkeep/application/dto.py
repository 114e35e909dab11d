"""Result types returned by the card repository."""

from dataclasses import dataclass

from cardkeep.domain import Card


@dataclass(frozen=True)
class DuplicateRejected:
    """Insert refused: an equivalent card is already stored. Nothing was changed."""

    card: Card

    @property
    def card_id(self) -> str:
        return self.card.id
