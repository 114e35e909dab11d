"""Card collection: insert with duplicate gate, update, remove, lookup, and search.

Every successful mutation re-serializes the whole collection to storage.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timezone

from cardkeep.application.dto import DuplicateRejected
from cardkeep.application.errors import PersistenceFailure
from cardkeep.application.ports import CardStorage
from cardkeep.domain import EDITABLE_FIELDS, Card, CardDraft, find_duplicate

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "company", "email", "phone", "title")


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class CardRepository:
    """Owns the card collection. Newest cards first; updates keep their position."""

    def __init__(
        self,
        storage: CardStorage,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._lock = threading.RLock()
        self._by_id: dict[str, Card] = {}
        self._order: list[str] = []
        self._dirty = False
        for card in storage.load_all():
            if card.id in self._by_id:
                logger.warning("Skipping stored card with repeated id %s", card.id)
                continue
            self._by_id[card.id] = card
            self._order.append(card.id)
        logger.info("Loaded %d cards", len(self._order))

    def __len__(self) -> int:
        return len(self._order)

    @property
    def is_dirty(self) -> bool:
        """True while the last mutation has not been written to storage."""
        return self._dirty

    def insert(self, draft: CardDraft) -> Card | DuplicateRejected:
        """Store a new card at the front of the collection unless it duplicates one."""
        with self._lock:
            existing = self.find_duplicate(draft)
            if existing is not None:
                logger.info(
                    "Rejected card %s as duplicate of %s", draft.id, existing.id
                )
                return DuplicateRejected(card=existing)
            if draft.id in self._by_id:
                raise ValueError(f"Card id {draft.id!r} is already stored.")

            card = Card.from_draft(draft, self._clock())
            self._by_id[card.id] = card
            self._order.insert(0, card.id)
            logger.info("Inserted card %s", card.id)
            self._persist(card.id)
            return card

    def update(self, card_id: str, changes: Mapping[str, str | None]) -> Card | None:
        """Apply field changes to a stored card. Returns the updated card, or None if not found.

        Duplicate detection is not re-run here.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update card fields: {', '.join(sorted(unknown))}")
        with self._lock:
            card = self._by_id.get(card_id)
            if card is None:
                return None
            if not changes:
                return card
            updated = replace(
                card,
                **changes,
                updated_at=self._next_timestamp(card.updated_at),
            )
            self._by_id[card_id] = updated
            logger.debug("Updated card %s (%s)", card_id, ", ".join(sorted(changes)))
            self._persist(card_id)
            return updated

    def remove(self, card_id: str) -> bool:
        """Delete a card. Returns False (and writes nothing) if it was not stored."""
        with self._lock:
            if self._by_id.pop(card_id, None) is None:
                return False
            self._order.remove(card_id)
            logger.debug("Removed card %s", card_id)
            self._persist(card_id)
            return True

    def get(self, card_id: str) -> Card | None:
        return self._by_id.get(card_id)

    def list_all(self) -> list[Card]:
        with self._lock:
            return [self._by_id[cid] for cid in self._order]

    def search(self, query: str) -> list[Card]:
        """Return cards whose name, company, email, phone, or title contains query.

        Case-insensitive. An empty or blank query matches nothing.
        """
        if not query or not query.strip():
            return []
        needle = query.strip().lower()
        return [
            card
            for card in self.list_all()
            if any(
                needle in (getattr(card, name) or "").lower() for name in SEARCH_FIELDS
            )
        ]

    def find_duplicate(self, candidate: Card | CardDraft) -> Card | None:
        """Return the first stored card the candidate duplicates, or None."""
        return find_duplicate(candidate, self.list_all())

    def flush(self) -> None:
        """Retry the storage write after a failed one. No-op when nothing is pending."""
        with self._lock:
            if self._dirty:
                self._persist(None)

    def _next_timestamp(self, previous: int) -> int:
        return max(self._clock(), previous + 1)

    def _persist(self, card_id: str | None) -> None:
        cards = [self._by_id[cid] for cid in self._order]
        try:
            self._storage.save_all(cards)
        except Exception as e:
            self._dirty = True
            logger.exception("Failed to persist %d cards", len(cards))
            raise PersistenceFailure(
                "Card collection could not be written to storage.", card_id=card_id
            ) from e
        self._dirty = False
