"""Errors raised by the application layer."""


class PersistenceFailure(Exception):
    """The durable write after a mutation did not complete.

    The in-memory collection already reflects the mutation and stays usable;
    the repository is marked dirty until a later write succeeds.
    """

    def __init__(self, message: str, *, card_id: str | None = None) -> None:
        super().__init__(message)
        self.card_id = card_id
