"""Shared pydantic models: the contract between the release host, the plugin and Jira."""

import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_VERSION_TEMPLATE = "v${version}"
DEFAULT_RELEASE_DESCRIPTION_TEMPLATE = "Automated release with jira-release"
DEFAULT_NETWORK_CONCURRENCY = 10


@runtime_checkable
class PluginLogger(Protocol):
    def info(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...


class _HostModel(BaseModel):
    """Accepts the host's camelCase keys as well as snake_case field names."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class PluginConfig(_HostModel):
    jira_host: str | None = None  # e.g. mycompany.atlassian.net
    project_id: str | None = None  # project key or numeric id
    ticket_prefixes: list[str] | None = None
    ticket_regex: str | None = None
    release_name_template: str = DEFAULT_VERSION_TEMPLATE
    release_description_template: str = DEFAULT_RELEASE_DESCRIPTION_TEMPLATE
    dry_run: bool = False
    released: bool = False
    set_release_date: bool = False
    network_concurrency: int = DEFAULT_NETWORK_CONCURRENCY


class CommitHash(_HostModel):
    short: str
    long: str


class Commit(_HostModel):
    message: str
    commit: CommitHash

    @property
    def short(self) -> str:
        return self.commit.short


class NextRelease(_HostModel):
    version: str
    notes: str | None = None
    git_tag: str
    git_head: str | None = None
    type: str  # major | minor | patch | prerelease


class LastRelease(_HostModel):
    version: str | None = None  # None on the very first release


class ReleaseContext(_HostModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    commits: list[Commit] = []
    next_release: NextRelease
    last_release: LastRelease = LastRelease()
    env: dict[str, str] = {}
    logger: PluginLogger = Field(default_factory=lambda: logging.getLogger("jira_release"), exclude=True)


class Project(_HostModel):
    id: str
    key: str
    name: str = ""


class Version(_HostModel):
    """A Jira fix version. Returned by lookups, creates, or fabricated in dry-run."""

    id: str
    name: str
    description: str | None = None
    released: bool = False
    release_date: str | None = None
