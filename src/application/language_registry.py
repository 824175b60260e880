import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.application.guards import new_id, parse_payload, returns_result, utc_now
from src.application.indexes import ScanIndex, SecondaryIndex
from src.domain.exceptions import ConflictException, NotFoundException
from src.domain.models import LanguagePayload, ProgrammingLanguage
from src.infrastructure.database import KeyValueStore

logger = logging.getLogger(__name__)


class LanguageRegistry:
    """Owns the ProgrammingLanguage catalog. Create-only: there is no update or delete path."""

    def __init__(
            self,
            store: KeyValueStore[ProgrammingLanguage],
            clock: Callable[[], datetime] = utc_now,
            id_factory: Callable[[], str] = new_id,
            name_index: Optional[SecondaryIndex[ProgrammingLanguage]] = None,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.name_index = name_index or ScanIndex(store, lambda language: language.name)
        self._lock = asyncio.Lock()

    @returns_result("create language")
    async def create(self, name: str) -> ProgrammingLanguage:
        payload = parse_payload(LanguagePayload, name=name)

        async with self._lock:
            if await self.name_index.find(payload.name) is not None:
                logger.warning(f"Rejected language: {payload.name} already exists.")
                raise ConflictException("ProgrammingLanguage", "name", payload.name)

            language = ProgrammingLanguage(
                id=self.id_factory(),
                name=payload.name,
                created_at=self.clock(),
                updated_at=None,
            )
            await self.store.insert(language.id, language)

        logger.info(f"Created language {language.name} ({language.id}).")
        return language

    @returns_result("get language")
    async def get_by_id(self, language_id: str) -> ProgrammingLanguage:
        language = await self.store.get(language_id) if language_id else None
        if language is None:
            raise NotFoundException("ProgrammingLanguage", "id", language_id)
        return language

    @returns_result("get language by name")
    async def get_by_name(self, name: str) -> ProgrammingLanguage:
        language = await self.name_index.find(name)
        if language is None:
            raise NotFoundException("ProgrammingLanguage", "name", name)
        return language

    @returns_result("list languages")
    async def list(self) -> List[ProgrammingLanguage]:
        return await self.store.values()
