"""Shared test fixtures."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from jira_release.models import PluginConfig, ReleaseContext

JIRA_HOST = "test.atlassian.net"
API = f"https://{JIRA_HOST}/rest/api/2"


@pytest.fixture
def plugin_config() -> PluginConfig:
    return PluginConfig(
        jira_host=JIRA_HOST,
        project_id="TEST",
        ticket_prefixes=["TEST"],
    )


@pytest.fixture
def logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_context(logger: MagicMock) -> Callable[..., ReleaseContext]:
    def _make(
        *messages: str, env: dict | None = None, notes: str | None = "Release notes for v1.0.0"
    ) -> ReleaseContext:
        return ReleaseContext.model_validate(
            {
                "commits": [
                    {"message": message, "commit": {"short": f"abc{i:04d}", "long": f"abc{i:04d}" + "0" * 33}}
                    for i, message in enumerate(messages)
                ],
                "nextRelease": {
                    "version": "1.0.0",
                    "notes": notes,
                    "gitTag": "v1.0.0",
                    "gitHead": "a1b2c3d",
                    "type": "minor",
                },
                "lastRelease": {"version": "0.9.0"},
                "env": {"JIRA_AUTH": "dXNlckBleGFtcGxlLmNvbTp0b2tlbg=="} if env is None else env,
                "logger": logger,
            }
        )

    return _make


@pytest.fixture
def release_context(make_context: Callable[..., ReleaseContext]) -> ReleaseContext:
    return make_context("fix: TEST-123 fix", "feat: TEST-124 add")
