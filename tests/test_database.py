import os
import tempfile
import unittest
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql

from src.domain.models import Developer, ProgrammingLanguage
from src.infrastructure.database import InMemoryStore, SqlAlchemyStore, create_engine, create_schema


def _developer(dev_id: str, username: str = "octocat") -> Developer:
    return Developer(
        id=dev_id,
        owner="principal-a",
        username=username,
        email=f"{username}@example.com",
        created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )


class _DummyResult:
    def scalar_one_or_none(self):
        return None


class _DummyConn:
    def __init__(self) -> None:
        self.executed = []

    async def execute(self, stmt) -> _DummyResult:
        self.executed.append(stmt)
        return _DummyResult()


class _DummyBegin:
    def __init__(self, conn: _DummyConn) -> None:
        self._conn = conn

    async def __aenter__(self) -> _DummyConn:
        return self._conn

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _DummyDialect:
    name = "postgresql"


class _DummyEngine:
    dialect = _DummyDialect()

    def __init__(self, conn: _DummyConn) -> None:
        self._conn = conn

    def begin(self) -> _DummyBegin:
        return _DummyBegin(self._conn)


class TestSqlAlchemyStoreStatements(unittest.IsolatedAsyncioTestCase):
    async def test_insert_upserts_on_namespace_and_key(self) -> None:
        conn = _DummyConn()
        store = SqlAlchemyStore(_DummyEngine(conn), "developers", Developer)

        previous = await store.insert("dev-1", _developer("dev-1"))

        self.assertIsNone(previous)
        sql = str(conn.executed[-1].compile(dialect=postgresql.dialect())).lower()
        self.assertIn("on conflict", sql)
        self.assertIn("do update", sql)
        self.assertIn("excluded.value", sql)
        self.assertIn("now()", sql)


class TestSqlAlchemyStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_url = f"sqlite+aiosqlite:///{os.path.join(self._tmp.name, 'registry.db')}"
        self.engine = create_engine(self.db_url)
        await create_schema(self.engine)
        self.store = SqlAlchemyStore(self.engine, "developers", Developer)

    async def asyncTearDown(self) -> None:
        await self.engine.dispose()
        self._tmp.cleanup()

    async def test_get_missing_key_returns_none(self) -> None:
        self.assertIsNone(await self.store.get("missing"))

    async def test_insert_then_get_returns_equal_record(self) -> None:
        developer = _developer("dev-1")

        await self.store.insert(developer.id, developer)

        self.assertEqual(await self.store.get("dev-1"), developer)

    async def test_insert_overwrites_and_returns_previous(self) -> None:
        first = _developer("dev-1", username="first")
        second = _developer("dev-1", username="second")

        self.assertIsNone(await self.store.insert("dev-1", first))
        previous = await self.store.insert("dev-1", second)

        self.assertEqual(previous, first)
        self.assertEqual((await self.store.get("dev-1")).username, "second")
        self.assertEqual(len(await self.store.values()), 1)

    async def test_remove_returns_removed_value(self) -> None:
        developer = _developer("dev-1")
        await self.store.insert(developer.id, developer)

        removed = await self.store.remove("dev-1")

        self.assertEqual(removed, developer)
        self.assertIsNone(await self.store.get("dev-1"))
        self.assertIsNone(await self.store.remove("dev-1"))

    async def test_values_are_ordered_by_key(self) -> None:
        for dev_id in ["c", "a", "b"]:
            await self.store.insert(dev_id, _developer(dev_id, username=dev_id))

        self.assertEqual([dev.id for dev in await self.store.values()], ["a", "b", "c"])

    async def test_namespaces_do_not_collide(self) -> None:
        languages = SqlAlchemyStore(self.engine, "languages", ProgrammingLanguage)
        await self.store.insert("same-key", _developer("same-key"))
        await languages.insert("same-key", ProgrammingLanguage(
            id="same-key", name="Rust", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ))

        self.assertEqual((await self.store.get("same-key")).username, "octocat")
        self.assertEqual((await languages.get("same-key")).name, "Rust")
        self.assertEqual(len(await self.store.values()), 1)

    async def test_records_survive_engine_restart(self) -> None:
        developer = _developer("dev-1")
        await self.store.insert(developer.id, developer)
        await self.engine.dispose()

        self.engine = create_engine(self.db_url)
        reopened = SqlAlchemyStore(self.engine, "developers", Developer)

        self.assertEqual(await reopened.get("dev-1"), developer)


class TestInMemoryStore(unittest.IsolatedAsyncioTestCase):
    async def test_contract_matches_sql_store(self) -> None:
        store = InMemoryStore()
        first = _developer("b", username="first")

        self.assertIsNone(await store.get("b"))
        self.assertIsNone(await store.insert("b", first))
        self.assertEqual(await store.insert("b", _developer("b", username="second")), first)
        await store.insert("a", _developer("a"))

        self.assertEqual([dev.id for dev in await store.values()], ["a", "b"])
        self.assertEqual((await store.remove("a")).id, "a")
        self.assertIsNone(await store.remove("a"))
