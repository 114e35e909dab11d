"""Infrastructure layer: concrete implementations of application ports."""

from cardkeep.infrastructure.export import cards_to_csv, cards_to_vcard, vcard_phone
from cardkeep.infrastructure.storage import DEFAULT_NAMESPACE
from cardkeep.infrastructure.storage.json_storage import JsonFileCardStorage
from cardkeep.infrastructure.storage.memory_storage import InMemoryCardStorage
from cardkeep.infrastructure.storage.neo4j_storage import (
    Neo4jCardStorage,
    ensure_card_collection_constraint,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "InMemoryCardStorage",
    "JsonFileCardStorage",
    "Neo4jCardStorage",
    "cards_to_csv",
    "cards_to_vcard",
    "ensure_card_collection_constraint",
    "vcard_phone",
]
