"""Jira fix-version release plugin: verify_conditions, publish and success hooks."""

from jira_release.notify import success
from jira_release.publish import publish
from jira_release.verify import verify_conditions

__all__ = ["publish", "success", "verify_conditions"]
