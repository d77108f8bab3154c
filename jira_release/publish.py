"""Publish hook: create or reuse the Jira fix version and attach the release's tickets."""

import asyncio
import json
from datetime import date
from typing import Any

from jira_release.errors import PluginConfigError
from jira_release.models import DEFAULT_NETWORK_CONCURRENCY, PluginConfig, ReleaseContext, Version
from jira_release.providers.base import TrackerClient
from jira_release.providers.jira import make_client
from jira_release.templates import render_release
from jira_release.tickets import get_tickets

DRY_RUN_VERSION_ID = "dry_run_id"

# Tickets named in commits that don't exist (404) or can't take the version (400).
TOLERATED_STATUS_CODES = frozenset({400, 404})


def _status_code(exc: BaseException) -> int | None:
    """Return the HTTP status carried by an error, if any.

    Checks a ``status_code`` attribute first, then a JSON error body of the
    form ``{"statusCode": 404, ...}`` passed as the exception message.
    """
    status = getattr(exc, "status_code", None)
    if status is not None:
        return status
    if exc.args and isinstance(exc.args[0], str):
        try:
            parsed: Any = json.loads(exc.args[0])
        except ValueError:
            return None
        if isinstance(parsed, dict):
            return parsed.get("statusCode")
    return None


async def find_or_create_version(
    config: PluginConfig,
    context: ReleaseContext,
    jira: TrackerClient,
    project_id: str,
    name: str,
    description: str,
) -> Version:
    remote_versions = await jira.get_versions(project_id)
    context.logger.info(f"Looking for version with name '{name}'")
    existing = next((version for version in remote_versions if version.name == name), None)
    if existing is not None:
        context.logger.info(f"Found existing release '{existing.id}'")
        return existing

    context.logger.info("No existing release found, creating new")
    if config.dry_run:
        context.logger.info("dry-run: making a fake release")
        new_version = Version(id=DRY_RUN_VERSION_ID, name=name, description=description)
    else:
        new_version = await jira.create_version(
            name=name,
            project_id=project_id,
            description=description,
            released=config.released,
            release_date=date.today() if config.set_release_date else None,
        )

    context.logger.info(f"Made new release '{new_version.id}'")
    return new_version


async def edit_issue_fix_versions(
    config: PluginConfig,
    context: ReleaseContext,
    jira: TrackerClient,
    version_name: str,
    version_id: str,
    issue_key: str,
) -> None:
    try:
        context.logger.info(f"Adding issue {issue_key} to '{version_name}'")
        if not config.dry_run:
            await jira.edit_issue_fix_versions(issue_key, version_id)
    except Exception as exc:
        status_code = _status_code(exc)
        if status_code not in TOLERATED_STATUS_CODES:
            raise
        context.logger.error(f"Unable to update issue {issue_key} statusCode: {status_code}")


async def _edit_all(
    config: PluginConfig,
    context: ReleaseContext,
    jira: TrackerClient,
    version: Version,
    tickets: list[str],
) -> None:
    # 0 falls back to the default
    limit = asyncio.Semaphore(config.network_concurrency or DEFAULT_NETWORK_CONCURRENCY)

    async def _edit(issue_key: str) -> None:
        async with limit:
            await edit_issue_fix_versions(config, context, jira, version.name, version.id, issue_key)

    tasks = [asyncio.create_task(_edit(issue_key)) for issue_key in tickets]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def publish(config: PluginConfig | dict, context: ReleaseContext) -> None:
    config = PluginConfig.model_validate(config)
    try:
        context.logger.info("Jira publish step started")
        tickets = get_tickets(config, context)
        if not tickets:
            context.logger.info("No Jira tickets found in commits, skipping release creation")
            return

        context.logger.info(f"Found tickets: {', '.join(tickets)}")
        version_name, version_description = render_release(config, context.next_release)
        context.logger.info(f"Using jira release '{version_name}'")

        if not config.project_id:
            raise PluginConfigError("EINVALIDPROJECTID", "config.projectId must be a non-empty string")

        async with make_client(config, context) as jira:
            project = await jira.get_project(config.project_id)
            version = await find_or_create_version(
                config, context, jira, project.id, version_name, version_description
            )
            await _edit_all(config, context, jira, version, tickets)

        context.logger.info("Jira release creation completed successfully")
    except Exception as exc:
        context.logger.error(f"Error in Jira publish step: {exc}")
        raise
