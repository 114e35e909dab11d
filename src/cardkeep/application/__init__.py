"""Application layer: card repository, storage port, results and errors. Depends only on domain."""

from cardkeep.application.card_repository import CardRepository
from cardkeep.application.dto import DuplicateRejected
from cardkeep.application.errors import PersistenceFailure
from cardkeep.application.ports import CardStorage

__all__ = [
    "CardRepository",
    "CardStorage",
    "DuplicateRejected",
    "PersistenceFailure",
]
