"""Abstract base class for issue-tracker clients."""

from abc import ABC, abstractmethod
from datetime import date
from types import TracebackType

from jira_release.models import Project, Version


class TrackerClient(ABC):
    async def __aenter__(self) -> "TrackerClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release network resources. No-op unless the client holds any."""

    @abstractmethod
    async def get_project(self, project_id_or_key: str) -> Project: ...

    @abstractmethod
    async def get_versions(self, project_id_or_key: str) -> list[Version]: ...

    @abstractmethod
    async def create_version(
        self,
        name: str,
        project_id: str,
        description: str,
        released: bool,
        release_date: date | None,
    ) -> Version: ...

    @abstractmethod
    async def edit_issue_fix_versions(self, issue_key: str, version_id: str) -> None: ...
