import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.application.developer_registry import DeveloperRegistry
from src.application.guards import new_id, parse_payload, require_owner, returns_result, utc_now
from src.application.indexes import ScanIndex, SecondaryIndex
from src.application.language_registry import LanguageRegistry
from src.domain.exceptions import ConflictException, NotFoundException
from src.domain.models import Repo, RepoPayload
from src.infrastructure.database import KeyValueStore

logger = logging.getLogger(__name__)

DELETED_MESSAGE = "Repo deleted successfully."


class RepoRegistry:
    """
    Owns the Repo collection and the listings derived from it.

    developer_id and language_id are stored as given: they are never checked
    against the other collections, so a repo may reference a developer or
    language that does not exist. Listings by language name or developer
    username resolve the name through the corresponding registry first.
    """

    def __init__(
            self,
            store: KeyValueStore[Repo],
            developers: DeveloperRegistry,
            languages: LanguageRegistry,
            clock: Callable[[], datetime] = utc_now,
            id_factory: Callable[[], str] = new_id,
            name_index: Optional[SecondaryIndex[Repo]] = None,
    ):
        self.store = store
        self.developers = developers
        self.languages = languages
        self.clock = clock
        self.id_factory = id_factory
        self.name_index = name_index or ScanIndex(store, lambda repo: repo.name)
        self._lock = asyncio.Lock()

    async def _require(self, repo_id: str) -> Repo:
        repo = await self.store.get(repo_id) if repo_id else None
        if repo is None:
            raise NotFoundException("Repo", "id", repo_id)
        return repo

    async def _filter(self, predicate: Callable[[Repo], bool]) -> List[Repo]:
        return [repo for repo in await self.store.values() if predicate(repo)]

    @returns_result("create repo")
    async def create(
        self, caller: str, developer_id: str, language_id: str, name: str, description: str,
    ) -> Repo:
        payload = parse_payload(
            RepoPayload,
            developer_id=developer_id,
            language_id=language_id,
            name=name,
            description=description,
        )

        async with self._lock:
            if await self.name_index.find(payload.name) is not None:
                logger.warning(f"Rejected repo: name {payload.name} is taken.")
                raise ConflictException("Repo", "name", payload.name)

            repo = Repo(
                id=self.id_factory(),
                owner=caller,
                created_at=self.clock(),
                updated_at=None,
                **payload.model_dump(),
            )
            await self.store.insert(repo.id, repo)

        logger.info(f"Created repo {repo.name} ({repo.id}) for {caller}.")
        return repo

    @returns_result("update repo")
    async def update(
        self, caller: str, repo_id: str, developer_id: str, language_id: str, name: str, description: str,
    ) -> Repo:
        # Full replace of the mutable fields; the name is not re-checked for uniqueness.
        payload = parse_payload(
            RepoPayload,
            developer_id=developer_id,
            language_id=language_id,
            name=name,
            description=description,
        )

        async with self._lock:
            existing = await self._require(repo_id)
            require_owner(caller, existing.owner, "repo", "update")

            updated = existing.model_copy(update={**payload.model_dump(), "updated_at": self.clock()})
            await self.store.insert(existing.id, updated)

        logger.info(f"Updated repo {updated.id}.")
        return updated

    @returns_result("delete repo")
    async def delete(self, caller: str, repo_id: str) -> str:
        async with self._lock:
            existing = await self._require(repo_id)
            require_owner(caller, existing.owner, "repo", "delete")
            await self.store.remove(existing.id)

        logger.info(f"Deleted repo {existing.id}.")
        return DELETED_MESSAGE

    @returns_result("get repo")
    async def get_by_id(self, repo_id: str) -> Repo:
        return await self._require(repo_id)

    @returns_result("list repos")
    async def list(self) -> List[Repo]:
        return await self.store.values()

    @returns_result("list my repos")
    async def list_mine(self, caller: str) -> List[Repo]:
        return await self._filter(lambda repo: repo.owner == caller)

    @returns_result("list repos by language")
    async def list_by_language_name(self, name: str) -> List[Repo]:
        language = (await self.languages.get_by_name(name)).unwrap()
        return await self._filter(lambda repo: repo.language_id == language.id)

    @returns_result("list repos by developer")
    async def list_by_developer_username(self, username: str) -> List[Repo]:
        developer = (await self.developers.get_by_username(username)).unwrap()
        return await self._filter(lambda repo: repo.developer_id == developer.id)
