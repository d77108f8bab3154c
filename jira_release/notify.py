"""Success hook: post a release card to a Teams-style chat webhook.

Best effort only. A failed notification is logged and never fails the release.
"""

import json
from collections.abc import Callable

import httpx
from pydantic import BaseModel, ConfigDict

from jira_release.models import PluginConfig, PluginLogger, ReleaseContext
from jira_release.tickets import get_notification_tickets

WEBHOOK_ENV_VAR = "TEAMS_WEBHOOK_URL"
NOTES_LIMIT = 1000


class ReleaseSummary(BaseModel):
    """Everything the notification formats render, gathered once per release."""

    model_config = ConfigDict(frozen=True)

    project_id: str | None
    version: str
    previous_version: str | None
    type: str
    git_tag: str
    commit_count: int
    tickets: list[str]
    notes: str | None

    @property
    def previous_label(self) -> str:
        return self.previous_version or "None"

    @property
    def tickets_label(self) -> str:
        return ", ".join(self.tickets) if self.tickets else "None"

    @property
    def short_notes(self) -> str | None:
        if not self.notes:
            return None
        if len(self.notes) > NOTES_LIMIT:
            return self.notes[: NOTES_LIMIT - 3] + "..."
        return self.notes


def summarize(config: PluginConfig, context: ReleaseContext) -> ReleaseSummary:
    return ReleaseSummary(
        project_id=config.project_id,
        version=context.next_release.version,
        previous_version=context.last_release.version,
        type=context.next_release.type,
        git_tag=context.next_release.git_tag,
        commit_count=len(context.commits),
        tickets=get_notification_tickets(config, context),
        notes=context.next_release.notes,
    )


def _facts(summary: ReleaseSummary) -> list[tuple[str, str]]:
    return [
        ("Version", summary.version),
        ("Previous version", summary.previous_label),
        ("Type", summary.type),
        ("Git tag", summary.git_tag),
        ("Commits", str(summary.commit_count)),
        ("Related tickets", summary.tickets_label),
    ]


def build_adaptive_card(summary: ReleaseSummary) -> dict:
    """Power Automate / Teams workflow webhook format."""
    body: list[dict] = [
        {
            "type": "TextBlock",
            "size": "Large",
            "weight": "Bolder",
            "text": f"🚀 Release {summary.version} published",
        },
        {"type": "TextBlock", "text": f"JIRA Project: {summary.project_id}", "wrap": True},
        {
            "type": "FactSet",
            "facts": [{"title": title, "value": value} for title, value in _facts(summary)],
        },
    ]
    if summary.short_notes:
        body.append({"type": "TextBlock", "size": "Medium", "weight": "Bolder", "text": "Release Notes"})
        body.append({"type": "TextBlock", "text": summary.short_notes, "wrap": True})
    return {
        "type": "message",
        "attachments": [
            {
                "contentType": "application/vnd.microsoft.card.adaptive",
                "content": {
                    "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
                    "type": "AdaptiveCard",
                    "version": "1.2",
                    "body": body,
                },
            }
        ],
    }


def build_message_card(summary: ReleaseSummary) -> dict:
    """Legacy Office 365 connector format."""
    sections: list[dict] = [
        {
            "activityTitle": f"🚀 Release {summary.version} published",
            "activitySubtitle": f"JIRA Project: {summary.project_id}",
            "facts": [{"name": name, "value": value} for name, value in _facts(summary)],
            "markdown": True,
        }
    ]
    if summary.short_notes:
        sections.append({"activityTitle": "Release Notes", "activitySubtitle": summary.short_notes, "markdown": True})
    return {
        "@type": "MessageCard",
        "@context": "http://schema.org/extensions",
        "themeColor": "0076D7",
        "summary": f"Release {summary.version} published",
        "sections": sections,
    }


def build_text_message(summary: ReleaseSummary) -> dict:
    text = (
        f"**🚀 Release {summary.version} published**\n\n"
        f"**Project:** {summary.project_id}\n"
        f"**Version:** {summary.version}\n"
        f"**Previous version:** {summary.previous_label}\n"
        f"**Type:** {summary.type}\n"
        f"**Commits:** {summary.commit_count}\n"
        f"**Related tickets:** {summary.tickets_label}\n\n"
    )
    if summary.notes:
        text += f"**Release Notes:**\n\n{summary.notes}"
    return {"text": text}


PayloadBuilder = Callable[[ReleaseSummary], dict]

# Tried in order until the webhook accepts one.
FORMATS: list[tuple[str, PayloadBuilder]] = [
    ("adaptive card", build_adaptive_card),
    ("MessageCard", build_message_card),
    ("plain text", build_text_message),
]


async def send_with_fallback(
    client: httpx.AsyncClient,
    webhook_url: str,
    summary: ReleaseSummary,
    logger: PluginLogger,
    formats: list[tuple[str, PayloadBuilder]] = FORMATS,
) -> str | None:
    """Post each format in turn. Returns the name of the accepted format, or None."""
    for name, build in formats:
        try:
            response = await client.post(webhook_url, json=build(summary))
            response.raise_for_status()
        except Exception as exc:
            logger.error(f"Teams notification using {name} format failed: {exc}")
            continue
        logger.info(f"Teams notification sent successfully using {name} format")
        return name

    logger.error("Teams notification failed: all notification formats were rejected")
    return None


async def success(config: PluginConfig | dict, context: ReleaseContext) -> None:
    webhook_url = context.env.get(WEBHOOK_ENV_VAR)
    if not webhook_url:
        context.logger.info(f"No {WEBHOOK_ENV_VAR} environment variable found, skipping Teams notification")
        return

    try:
        config = PluginConfig.model_validate(config)
        summary = summarize(config, context)
        context.logger.info(f"Sending Teams notification for release {summary.version}")
        context.logger.info(f"Teams message payload: {json.dumps(build_adaptive_card(summary), indent=2)}")

        if config.dry_run:
            context.logger.info("Dry run - Teams notification would be sent here")
            return

        async with httpx.AsyncClient(timeout=30) as client:
            await send_with_fallback(client, webhook_url, summary, context.logger)
    except Exception as exc:
        context.logger.error(f"Error in Teams notification: {exc}")
