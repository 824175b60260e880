import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.application.guards import (
    new_id,
    parse_payload,
    require_owner,
    returns_result,
    utc_now,
)
from src.application.indexes import ScanIndex, SecondaryIndex
from src.domain.exceptions import ConflictException, NotFoundException
from src.domain.models import Developer, DeveloperPayload
from src.infrastructure.database import KeyValueStore

logger = logging.getLogger(__name__)


class DeveloperRegistry:
    """
    Owns the Developer collection.
    Usernames are unique at creation time; only the creating identity may update a profile.
    """

    def __init__(
            self,
            store: KeyValueStore[Developer],
            clock: Callable[[], datetime] = utc_now,
            id_factory: Callable[[], str] = new_id,
            username_index: Optional[SecondaryIndex[Developer]] = None,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.username_index = username_index or ScanIndex(store, lambda dev: dev.username)
        self._lock = asyncio.Lock()

    async def _require(self, developer_id: str) -> Developer:
        developer = await self.store.get(developer_id) if developer_id else None
        if developer is None:
            raise NotFoundException("Developer", "id", developer_id)
        return developer

    @returns_result("create developer")
    async def create(self, caller: str, username: str, email: str) -> Developer:
        payload = parse_payload(DeveloperPayload, username=username, email=email)

        async with self._lock:
            if await self.username_index.find(payload.username) is not None:
                logger.warning(f"Rejected developer: username {payload.username} is taken.")
                raise ConflictException("Developer", "username", payload.username)

            developer = Developer(
                id=self.id_factory(),
                owner=caller,
                username=payload.username,
                email=payload.email,
                created_at=self.clock(),
                updated_at=None,
            )
            await self.store.insert(developer.id, developer)

        logger.info(f"Created developer {developer.username} ({developer.id}).")
        return developer

    @returns_result("update developer")
    async def update(self, caller: str, developer_id: str, username: str, email: str) -> Developer:
        # Username uniqueness is only enforced at creation.
        payload = parse_payload(DeveloperPayload, username=username, email=email)

        async with self._lock:
            existing = await self._require(developer_id)
            require_owner(caller, existing.owner, "developer info", "update")

            updated = existing.model_copy(update={
                "username": payload.username,
                "email": payload.email,
                "updated_at": self.clock(),
            })
            await self.store.insert(existing.id, updated)

        logger.info(f"Updated developer {updated.id}.")
        return updated

    @returns_result("get developer")
    async def get_by_id(self, developer_id: str) -> Developer:
        return await self._require(developer_id)

    @returns_result("get developer by username")
    async def get_by_username(self, username: str) -> Developer:
        developer = await self.username_index.find(username)
        if developer is None:
            raise NotFoundException("Developer", "username", username)
        return developer

    @returns_result("list developers")
    async def list(self) -> List[Developer]:
        return await self.store.values()
