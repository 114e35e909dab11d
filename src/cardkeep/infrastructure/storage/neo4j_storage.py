"""Neo4j implementation of CardStorage.
Graph: one CardCollection node per namespace holding its cards in order.
(col:CardCollection {namespace})-[:HOLDS {position}]->(card:Card {id, name, createdAt, ...}).
save_all replaces the namespace's cards in a single write transaction.
"""

from collections.abc import Sequence

from cardkeep.domain import Card
from cardkeep.infrastructure.records import card_to_record, record_to_card
from cardkeep.infrastructure.storage import DEFAULT_NAMESPACE

_CONSTRAINT_QUERY = """
CREATE CONSTRAINT card_collection_namespace IF NOT EXISTS
FOR (c:CardCollection) REQUIRE c.namespace IS UNIQUE
"""

_CLEAR_QUERY = """
MERGE (col:CardCollection {namespace: $namespace})
WITH col
OPTIONAL MATCH (col)-[:HOLDS]->(old:Card)
DETACH DELETE old
"""

_WRITE_QUERY = """
MATCH (col:CardCollection {namespace: $namespace})
UNWIND $rows AS row
CREATE (col)-[:HOLDS {position: row.position}]->(c:Card)
SET c = row.card
"""

_LOAD_QUERY = """
MATCH (:CardCollection {namespace: $namespace})-[h:HOLDS]->(c:Card)
RETURN c
ORDER BY h.position
"""


def ensure_card_collection_constraint(driver) -> None:
    """Create unique constraint on CardCollection(namespace) if missing."""
    with driver.session() as session:
        session.run(_CONSTRAINT_QUERY)


def _replace_cards(tx, namespace: str, rows: list[dict]) -> None:
    tx.run(_CLEAR_QUERY, namespace=namespace).consume()
    if rows:
        tx.run(_WRITE_QUERY, namespace=namespace, rows=rows).consume()


class Neo4jCardStorage:
    """Stores the card collection of one namespace in Neo4j."""

    def __init__(self, driver: object, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._driver = driver
        self._namespace = namespace

    def load_all(self) -> list[Card]:
        with self._driver.session() as session:
            result = session.run(_LOAD_QUERY, namespace=self._namespace)
            return [_node_to_card(rec["c"]) for rec in result]

    def save_all(self, cards: Sequence[Card]) -> None:
        rows = [
            {"position": position, "card": card_to_record(card)}
            for position, card in enumerate(cards)
        ]
        with self._driver.session() as session:
            session.execute_write(_replace_cards, self._namespace, rows)


def _node_to_card(node) -> Card:
    return record_to_card(dict(node.items()))
