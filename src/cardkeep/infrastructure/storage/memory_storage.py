"""In-memory implementation of CardStorage (no DB)."""

from collections.abc import Sequence

from cardkeep.domain import Card


class InMemoryCardStorage:
    """Keeps the last saved collection in memory. Order preserved as saved.
    Set fail_writes to make save_all raise, e.g. to exercise persistence failures.
    """

    def __init__(self, cards: Sequence[Card] = (), *, fail_writes: bool = False) -> None:
        self._cards: list[Card] = list(cards)
        self.fail_writes = fail_writes
        self.save_count = 0

    def load_all(self) -> list[Card]:
        return list(self._cards)

    def save_all(self, cards: Sequence[Card]) -> None:
        if self.fail_writes:
            raise OSError("In-memory card storage is set to fail writes")
        self._cards = list(cards)
        self.save_count += 1
