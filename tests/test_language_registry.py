import unittest
from datetime import datetime, timezone

from src.application.language_registry import LanguageRegistry
from src.domain.exceptions import ErrorKind
from src.domain.result import Ok
from src.infrastructure.database import InMemoryStore


class TestLanguageRegistry(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        ids = iter(["lang-1", "lang-2", "lang-3"])
        self.registry = LanguageRegistry(
            self.store,
            clock=lambda: datetime(2024, 5, 1, tzinfo=timezone.utc),
            id_factory=lambda: next(ids),
        )

    async def test_create_then_lookup_by_name(self) -> None:
        created = await self.registry.create("Rust")

        self.assertIsInstance(created, Ok)
        self.assertEqual(created.value.id, "lang-1")
        self.assertIsNone(created.value.updated_at)
        self.assertEqual((await self.registry.get_by_name("Rust")).unwrap(), created.value)
        self.assertEqual((await self.registry.get_by_id("lang-1")).unwrap(), created.value)

    async def test_unknown_name_is_not_found(self) -> None:
        await self.registry.create("Rust")

        result = await self.registry.get_by_name("Zig")

        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)
        self.assertIn("Zig", result.error.message)

    async def test_duplicate_name_conflicts(self) -> None:
        await self.registry.create("Rust")

        result = await self.registry.create("Rust")

        self.assertEqual(result.kind, ErrorKind.CONFLICT)
        self.assertEqual(len(await self.store.values()), 1)

    async def test_empty_name_is_invalid(self) -> None:
        self.assertEqual((await self.registry.create("")).kind, ErrorKind.VALIDATION)
        self.assertEqual((await self.registry.get_by_id("")).kind, ErrorKind.NOT_FOUND)

    async def test_list_returns_every_language(self) -> None:
        await self.registry.create("Rust")
        await self.registry.create("Python")

        names = sorted(language.name for language in (await self.registry.list()).unwrap())

        self.assertEqual(names, ["Python", "Rust"])

    def test_no_mutation_path_is_exposed(self) -> None:
        self.assertFalse(hasattr(self.registry, "update"))
        self.assertFalse(hasattr(self.registry, "delete"))
