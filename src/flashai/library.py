from __future__ import annotations

import logging
from typing import Iterable

from .db import LIBRARY_NAMESPACE, LoadResult, PersistenceError, RecordStore
from .models import Card

logger = logging.getLogger(__name__)


class CardStore:
    """Durable card library keyed by card id."""

    def __init__(self, store: RecordStore, namespace: str = LIBRARY_NAMESPACE) -> None:
        self.store = store
        self.namespace = namespace

    def load(self) -> LoadResult:
        """Read and decode the library; decoding problems land in ``error``."""
        result = self.store.read(self.namespace)
        if not result.ok or result.value is None:
            return result
        try:
            if not isinstance(result.value, list):
                raise ValueError(f"expected a list of cards, got {type(result.value).__name__}")
            cards = [Card.from_dict(item) for item in result.value]
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            return LoadResult(error=exc)
        return LoadResult(value=cards)

    def load_all(self) -> list[Card]:
        result = self.load()
        if not result.ok:
            logger.warning("Card library unreadable, starting from empty: %s", result.error)
        return list(result.value_or([]))

    def count(self) -> int:
        return len(self.load_all())

    def upsert_many(self, cards: Iterable[Card]) -> bool:
        """Insert or replace ``cards`` by id. Returns False if the write failed."""
        library = {card.id: card for card in self.load_all()}
        for card in cards:
            library[card.id] = card
        try:
            self.store.write(self.namespace, [card.to_dict() for card in library.values()])
        except PersistenceError:
            logger.exception("Failed to save %d cards to the library", len(library))
            return False
        return True


__all__ = ["CardStore"]
