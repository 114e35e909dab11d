"""JSON file implementation of CardStorage.

The file holds one JSON object mapping a namespace to its card records, so
several collections may share a file:

    {"business-cards": [{"id": "...", "name": "...", "createdAt": 0, ...}, ...]}
"""

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from cardkeep.domain import Card
from cardkeep.infrastructure.records import card_to_record, record_to_card
from cardkeep.infrastructure.storage import DEFAULT_NAMESPACE

logger = logging.getLogger(__name__)


class JsonFileCardStorage:
    """Stores the card collection of one namespace in a JSON file."""

    def __init__(self, path: Path | str, namespace: str = DEFAULT_NAMESPACE) -> None:
        namespace = (namespace or "").strip()
        if not namespace:
            raise ValueError("namespace must be non-empty")
        self._path = Path(path)
        self._namespace = namespace

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict:
        if not self._path.exists():
            return {}
        raw = self._path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Card storage file {self._path} is not valid JSON") from e
        if not isinstance(document, dict):
            raise ValueError(f"Card storage file {self._path} must hold a JSON object")
        return document

    def load_all(self) -> list[Card]:
        records = self._read_document().get(self._namespace) or []
        if not isinstance(records, list):
            raise ValueError(f"Namespace {self._namespace!r} must hold a list of cards")
        return [record_to_card(record) for record in records]

    def save_all(self, cards: Sequence[Card]) -> None:
        document = self._read_document()
        document[self._namespace] = [card_to_record(card) for card in cards]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.debug("Wrote %d cards to %s [%s]", len(cards), self._path, self._namespace)
