import logging
from datetime import datetime
from typing import Callable, List

from sqlalchemy.ext.asyncio import AsyncEngine

from src.application.developer_registry import DeveloperRegistry
from src.application.guards import new_id, utc_now
from src.application.language_registry import LanguageRegistry
from src.application.repo_registry import RepoRegistry
from src.domain.models import Developer, ProgrammingLanguage, Repo
from src.domain.result import Result
from src.infrastructure.database import InMemoryStore, SqlAlchemyStore

logger = logging.getLogger(__name__)

DEVELOPERS_NAMESPACE = "developers"
LANGUAGES_NAMESPACE = "languages"
REPOS_NAMESPACE = "repos"


class RegistryService:
    """
    Operation surface of the registry.

    Every method returns a Result; the caller identity is passed explicitly
    to the operations that record or check ownership.
    """

    def __init__(
            self,
            developers: DeveloperRegistry,
            languages: LanguageRegistry,
            repos: RepoRegistry,
    ):
        self.developers = developers
        self.languages = languages
        self.repos = repos

    # Queries

    async def list_developers(self) -> Result[List[Developer]]:
        return await self.developers.list()

    async def list_languages(self) -> Result[List[ProgrammingLanguage]]:
        return await self.languages.list()

    async def list_repos(self) -> Result[List[Repo]]:
        return await self.repos.list()

    async def get_developer_by_id(self, id: str) -> Result[Developer]:
        return await self.developers.get_by_id(id)

    async def get_developer_by_username(self, username: str) -> Result[Developer]:
        return await self.developers.get_by_username(username)

    async def get_language_by_id(self, id: str) -> Result[ProgrammingLanguage]:
        return await self.languages.get_by_id(id)

    async def get_language_by_name(self, name: str) -> Result[ProgrammingLanguage]:
        return await self.languages.get_by_name(name)

    async def get_repo_by_id(self, id: str) -> Result[Repo]:
        return await self.repos.get_by_id(id)

    async def list_my_repos(self, caller: str) -> Result[List[Repo]]:
        return await self.repos.list_mine(caller)

    async def list_repos_by_language(self, language_name: str) -> Result[List[Repo]]:
        return await self.repos.list_by_language_name(language_name)

    async def list_repos_by_developer(self, username: str) -> Result[List[Repo]]:
        return await self.repos.list_by_developer_username(username)

    # Updates

    async def create_developer(self, caller: str, username: str, email: str) -> Result[Developer]:
        return await self.developers.create(caller, username, email)

    async def update_developer(self, caller: str, id: str, username: str, email: str) -> Result[Developer]:
        return await self.developers.update(caller, id, username, email)

    async def create_language(self, name: str) -> Result[ProgrammingLanguage]:
        return await self.languages.create(name)

    async def create_repo(
        self, caller: str, developer_id: str, language_id: str, name: str, description: str,
    ) -> Result[Repo]:
        return await self.repos.create(caller, developer_id, language_id, name, description)

    async def update_repo(
        self, caller: str, id: str, developer_id: str, language_id: str, name: str, description: str,
    ) -> Result[Repo]:
        return await self.repos.update(caller, id, developer_id, language_id, name, description)

    async def delete_repo(self, caller: str, id: str) -> Result[str]:
        return await self.repos.delete(caller, id)


def _wire(developer_store, language_store, repo_store, clock, id_factory) -> RegistryService:
    developers = DeveloperRegistry(developer_store, clock=clock, id_factory=id_factory)
    languages = LanguageRegistry(language_store, clock=clock, id_factory=id_factory)
    repos = RepoRegistry(repo_store, developers, languages, clock=clock, id_factory=id_factory)
    return RegistryService(developers=developers, languages=languages, repos=repos)


def build_service(
        engine: AsyncEngine,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
) -> RegistryService:
    """Builds a service whose three collections live in distinct namespaces of the database."""
    logger.info("Wiring registries against the database.")
    return _wire(
        SqlAlchemyStore(engine, DEVELOPERS_NAMESPACE, Developer),
        SqlAlchemyStore(engine, LANGUAGES_NAMESPACE, ProgrammingLanguage),
        SqlAlchemyStore(engine, REPOS_NAMESPACE, Repo),
        clock,
        id_factory,
    )


def build_in_memory_service(
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
) -> RegistryService:
    return _wire(InMemoryStore(), InMemoryStore(), InMemoryStore(), clock, id_factory)
