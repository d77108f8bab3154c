"""Jira REST API v2 client."""

import base64
from collections.abc import Mapping
from datetime import date

import httpx

from jira_release.errors import JiraApiError
from jira_release.models import PluginConfig, Project, ReleaseContext, Version
from jira_release.providers.base import TrackerClient

API_PATH = "/rest/api/2"


def resolve_auth_header(env: Mapping[str, str]) -> str:
    """Build the Basic auth header value from the host environment.

    Accepts:
    - JIRA_AUTH: base64 of "email:api-token"
    - JIRA_EMAIL + JIRA_API_TOKEN: encoded here
    """
    if env.get("JIRA_AUTH"):
        return f"Basic {env['JIRA_AUTH']}"
    if env.get("JIRA_EMAIL") and env.get("JIRA_API_TOKEN"):
        raw = f"{env['JIRA_EMAIL']}:{env['JIRA_API_TOKEN']}".encode()
        return f"Basic {base64.b64encode(raw).decode()}"
    raise RuntimeError("No Jira credentials. Set JIRA_AUTH, or JIRA_EMAIL and JIRA_API_TOKEN.")


def base_url(jira_host: str) -> str:
    host = jira_host.rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return f"{host}{API_PATH}"


class JiraClient(TrackerClient):
    def __init__(self, jira_host: str, auth_header: str, timeout: float = 30) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url(jira_host),
            headers={
                "Authorization": auth_header,
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, body: dict | None = None) -> httpx.Response:
        response = await self._client.request(method, path, json=body)
        if response.is_error:
            raise JiraApiError(response.status_code, response.text)
        return response

    async def get_project(self, project_id_or_key: str) -> Project:
        response = await self._request("GET", f"/project/{project_id_or_key}")
        return Project.model_validate(response.json())

    async def get_versions(self, project_id_or_key: str) -> list[Version]:
        response = await self._request("GET", f"/project/{project_id_or_key}/versions")
        return [Version.model_validate(node) for node in response.json()]

    async def create_version(
        self,
        name: str,
        project_id: str,
        description: str,
        released: bool,
        release_date: date | None,
    ) -> Version:
        body: dict = {
            "name": name,
            "projectId": int(project_id),
            "description": description,
            "released": released,
        }
        if release_date is not None:
            body["releaseDate"] = release_date.isoformat()
        response = await self._request("POST", "/version", body)
        return Version.model_validate(response.json())

    async def edit_issue_fix_versions(self, issue_key: str, version_id: str) -> None:
        # 204 No Content on success
        await self._request(
            "PUT",
            f"/issue/{issue_key}",
            {"update": {"fixVersions": [{"add": {"id": version_id}}]}},
        )


def make_client(config: PluginConfig, context: ReleaseContext) -> JiraClient:
    if not config.jira_host:
        raise RuntimeError("jira_host is required")
    return JiraClient(config.jira_host, resolve_auth_header(context.env))
