"""verifyConditions hook: reject unusable configuration before the release starts."""

import re

from jira_release.errors import PluginConfigError
from jira_release.models import PluginConfig, ReleaseContext
from jira_release.providers.jira import make_client, resolve_auth_header
from jira_release.templates import placeholders


def check_config(config: PluginConfig, context: ReleaseContext) -> None:
    """Validate options and credentials without touching the network."""
    if not config.jira_host:
        raise PluginConfigError("EINVALIDJIRAHOST", "config.jiraHost must be a non-empty string")
    if not config.project_id:
        raise PluginConfigError("EINVALIDPROJECTID", "config.projectId must be a non-empty string")

    if config.ticket_prefixes is None and config.ticket_regex is None:
        raise PluginConfigError(
            "EINVALIDTICKETCONFIG",
            "Either config.ticketPrefixes or config.ticketRegex must be passed",
        )
    if config.ticket_prefixes is not None and config.ticket_regex is not None:
        raise PluginConfigError(
            "EINVALIDTICKETCONFIG",
            "config.ticketPrefixes and config.ticketRegex cannot be passed at the same time",
        )
    if config.ticket_prefixes is not None:
        if not config.ticket_prefixes or not all(prefix.strip() for prefix in config.ticket_prefixes):
            raise PluginConfigError(
                "EINVALIDTICKETPREFIXES",
                "config.ticketPrefixes must be a non-empty list of non-empty strings",
            )
    if config.ticket_regex is not None:
        try:
            re.compile(config.ticket_regex)
        except re.error as exc:
            raise PluginConfigError("EINVALIDTICKETREGEX", f"config.ticketRegex is not a valid regex: {exc}") from exc

    if "version" not in placeholders(config.release_name_template):
        raise PluginConfigError(
            "EINVALIDVERSIONTEMPLATE",
            "config.releaseNameTemplate must be a string containing ${version} or <%= version %>",
        )

    if config.network_concurrency < 1:
        raise PluginConfigError(
            "EINVALIDNETWORKCONCURRENCY",
            "config.networkConcurrency must be a number greater than 0",
        )

    try:
        resolve_auth_header(context.env)
    except RuntimeError as exc:
        raise PluginConfigError("EINVALIDJIRAAUTH", str(exc)) from exc


async def verify_conditions(config: PluginConfig | dict, context: ReleaseContext) -> None:
    config = PluginConfig.model_validate(config)
    check_config(config, context)

    # A project lookup proves both the credentials and the project key.
    async with make_client(config, context) as jira:
        project = await jira.get_project(config.project_id)
    context.logger.info(f"Verified access to Jira project {project.key}")
