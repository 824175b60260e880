from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional

from src.infrastructure.database import KeyValueStore, V


class SecondaryIndex(ABC, Generic[V]):
    """Looks up a record by a field other than its primary key."""

    @abstractmethod
    async def find(self, value: str) -> Optional[V]:
        """Returns the first record whose indexed field equals value, or None."""


class ScanIndex(SecondaryIndex[V]):
    """
    Secondary index that walks every record of the store: O(n) per lookup.
    Adequate for small collections; swap for a keyed index without touching callers.
    """

    def __init__(self, store: KeyValueStore[V], field: Callable[[V], str]):
        self.store = store
        self.field = field

    async def find(self, value: str) -> Optional[V]:
        if not value:
            return None
        for record in await self.store.values():
            if self.field(record) == value:
                return record
        return None
