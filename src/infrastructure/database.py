from abc import ABC, abstractmethod
from typing import Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy import JSON, Table, Column, String, DateTime, MetaData, delete, func, select

V = TypeVar("V", bound=BaseModel)

# SQLAlchemy core Table definition shared by every namespace
metadata = MetaData()
entries_table = Table(
    'registry_entries', metadata,
    Column('namespace', String, primary_key=True),
    Column('key', String, primary_key=True),
    Column('value', JSON().with_variant(JSONB, 'postgresql'), nullable=False),
    Column('stored_at', DateTime(timezone=True), server_default=func.now()),
)

_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def create_engine(db_url: str) -> AsyncEngine:
    return create_async_engine(db_url, echo=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Creates the entries table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


class KeyValueStore(ABC, Generic[V]):
    """
    Durable mapping from a string key to a record, bound to one namespace.
    No secondary indexing; callers do their own "already exists" checks.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[V]:
        """Returns the record stored under key, or None on a miss."""

    @abstractmethod
    async def insert(self, key: str, value: V) -> Optional[V]:
        """Stores value under key unconditionally and returns the previous record, if any."""

    @abstractmethod
    async def remove(self, key: str) -> Optional[V]:
        """Deletes key and returns the removed record, or None if it was absent."""

    @abstractmethod
    async def values(self) -> List[V]:
        """Returns every record in the namespace, ordered by key."""


class SqlAlchemyStore(KeyValueStore[V]):
    """
    Key-value store backed by the registry_entries table.
    Records are persisted as JSON documents and rebuilt with the model class.
    """

    def __init__(self, engine: AsyncEngine, namespace: str, model: Type[V]):
        self.engine = engine
        self.namespace = namespace
        self.model = model

    def _load(self, raw) -> V:
        return self.model.model_validate(raw)

    def _key_clause(self, key: str):
        return (entries_table.c.namespace == self.namespace) & (entries_table.c.key == key)

    async def get(self, key: str) -> Optional[V]:
        async with self.engine.connect() as conn:
            result = await conn.execute(select(entries_table.c.value).where(self._key_clause(key)))
            raw = result.scalar_one_or_none()
        return self._load(raw) if raw is not None else None

    async def insert(self, key: str, value: V) -> Optional[V]:
        async with self.engine.begin() as conn:
            result = await conn.execute(select(entries_table.c.value).where(self._key_clause(key)))
            previous = result.scalar_one_or_none()

            insert = _UPSERT_DIALECTS[self.engine.dialect.name]
            stmt = insert(entries_table).values(
                namespace=self.namespace,
                key=key,
                value=value.model_dump(mode='json'),
            )
            upsert_stmt = stmt.on_conflict_do_update(
                index_elements=['namespace', 'key'],
                set_={
                    'value': stmt.excluded.value,
                    'stored_at': func.now(),
                },
            )
            await conn.execute(upsert_stmt)

        return self._load(previous) if previous is not None else None

    async def remove(self, key: str) -> Optional[V]:
        async with self.engine.begin() as conn:
            result = await conn.execute(select(entries_table.c.value).where(self._key_clause(key)))
            previous = result.scalar_one_or_none()
            if previous is None:
                return None
            await conn.execute(delete(entries_table).where(self._key_clause(key)))
        return self._load(previous)

    async def values(self) -> List[V]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                select(entries_table.c.value)
                .where(entries_table.c.namespace == self.namespace)
                .order_by(entries_table.c.key)
            )
            return [self._load(raw) for raw in result.scalars()]


class InMemoryStore(KeyValueStore[V]):
    """Process-local store used for isolated tests and ephemeral runs."""

    def __init__(self) -> None:
        self._entries: Dict[str, V] = {}

    async def get(self, key: str) -> Optional[V]:
        return self._entries.get(key)

    async def insert(self, key: str, value: V) -> Optional[V]:
        previous = self._entries.get(key)
        self._entries[key] = value
        return previous

    async def remove(self, key: str) -> Optional[V]:
        return self._entries.pop(key, None)

    async def values(self) -> List[V]:
        return [self._entries[key] for key in sorted(self._entries)]
