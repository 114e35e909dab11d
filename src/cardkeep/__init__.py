"""
cardkeep core: clean-architecture layout.

- domain: entities (Card, CardDraft) and duplicate matching. No outer dependencies.
- application: CardRepository, storage port (CardStorage), results and errors.
- infrastructure: storage adapters (in-memory, JSON file, Neo4j), phone formatting, export.
"""

from cardkeep.application import (
    CardRepository,
    CardStorage,
    DuplicateRejected,
    PersistenceFailure,
)
from cardkeep.domain import Card, CardDraft
from cardkeep.infrastructure import (
    InMemoryCardStorage,
    JsonFileCardStorage,
    Neo4jCardStorage,
)

__all__ = [
    "Card",
    "CardDraft",
    "CardRepository",
    "CardStorage",
    "DuplicateRejected",
    "InMemoryCardStorage",
    "JsonFileCardStorage",
    "Neo4jCardStorage",
    "PersistenceFailure",
]
