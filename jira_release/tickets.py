"""Ticket key extraction from commit messages."""

import re

from jira_release.models import PluginConfig, ReleaseContext


def build_patterns(config: PluginConfig) -> list[re.Pattern[str]]:
    """Return the patterns used on the publish path.

    A configured ``ticket_regex`` is used unmodified. Otherwise each prefix gets
    its own word-bounded ``PREFIX-<digits>`` pattern.
    """
    if config.ticket_regex is not None:
        return [re.compile(config.ticket_regex, re.IGNORECASE)]
    return [re.compile(rf"\b{re.escape(prefix)}-(\d+)\b", re.IGNORECASE) for prefix in config.ticket_prefixes or []]


def notification_pattern(config: PluginConfig) -> re.Pattern[str] | None:
    """Return the single pattern the release notification uses, or None if unconfigured.

    Prefixes are joined into one alternation and are not word-bounded, so
    ``XTEST-1`` also yields ``TEST-1`` here while the publish path skips it.
    """
    if config.ticket_regex:
        return re.compile(config.ticket_regex, re.IGNORECASE)
    if config.ticket_prefixes:
        alternation = "|".join(re.escape(prefix) for prefix in config.ticket_prefixes)
        return re.compile(rf"({alternation})-\d+", re.IGNORECASE)
    return None


def get_tickets(config: PluginConfig, context: ReleaseContext) -> list[str]:
    """Collect the distinct ticket keys referenced by the release's commits."""
    patterns = build_patterns(config)
    tickets: set[str] = set()
    for commit in context.commits:
        for pattern in patterns:
            for match in pattern.finditer(commit.message):
                tickets.add(match.group(0))
                context.logger.info(f"Found ticket {match.group(0)} in commit: {commit.short}")
    return list(tickets)


def get_notification_tickets(config: PluginConfig, context: ReleaseContext) -> list[str]:
    pattern = notification_pattern(config)
    if pattern is None:
        return []
    # dict keeps first-seen order for display
    tickets: dict[str, None] = {}
    for commit in context.commits:
        for match in pattern.finditer(commit.message):
            tickets.setdefault(match.group(0))
    return list(tickets)
