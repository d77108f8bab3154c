"""Tests for the release notification sender."""

import asyncio
import json
from collections.abc import Callable
from unittest.mock import MagicMock, patch

import httpx
from pytest_httpx import HTTPXMock

from jira_release.models import PluginConfig, ReleaseContext
from jira_release.notify import (
    FORMATS,
    NOTES_LIMIT,
    ReleaseSummary,
    build_adaptive_card,
    build_message_card,
    build_text_message,
    send_with_fallback,
    success,
    summarize,
)

WEBHOOK = "https://example.webhook.office.com/webhookb2/abc"


def _summary(**overrides) -> ReleaseSummary:
    values = {
        "project_id": "TEST",
        "version": "1.0.0",
        "previous_version": "0.9.0",
        "type": "minor",
        "git_tag": "v1.0.0",
        "commit_count": 2,
        "tickets": ["TEST-123", "TEST-124"],
        "notes": "Release notes",
    }
    values.update(overrides)
    return ReleaseSummary(**values)


def _sent_payloads(httpx_mock: HTTPXMock) -> list[dict]:
    return [json.loads(request.content) for request in httpx_mock.get_requests()]


class TestSummary:
    def test_from_context(self, plugin_config: PluginConfig, release_context: ReleaseContext) -> None:
        summary = summarize(plugin_config, release_context)
        assert summary.version == "1.0.0"
        assert summary.previous_version == "0.9.0"
        assert summary.git_tag == "v1.0.0"
        assert summary.commit_count == 2
        assert summary.tickets == ["TEST-123", "TEST-124"]

    def test_labels_when_empty(self) -> None:
        summary = _summary(previous_version=None, tickets=[])
        assert summary.previous_label == "None"
        assert summary.tickets_label == "None"

    def test_notes_truncated(self) -> None:
        summary = _summary(notes="x" * 1500)
        assert len(summary.short_notes) == NOTES_LIMIT
        assert summary.short_notes.endswith("...")

    def test_notes_at_limit_untouched(self) -> None:
        assert _summary(notes="y" * NOTES_LIMIT).short_notes == "y" * NOTES_LIMIT


class TestPayloads:
    def test_adaptive_card(self) -> None:
        card = build_adaptive_card(_summary())
        content = card["attachments"][0]["content"]
        assert content["type"] == "AdaptiveCard"
        facts = {f["title"]: f["value"] for f in content["body"][2]["facts"]}
        assert facts == {
            "Version": "1.0.0",
            "Previous version": "0.9.0",
            "Type": "minor",
            "Git tag": "v1.0.0",
            "Commits": "2",
            "Related tickets": "TEST-123, TEST-124",
        }
        assert content["body"][-1]["text"] == "Release notes"

    def test_adaptive_card_without_notes(self) -> None:
        content = build_adaptive_card(_summary(notes=None))["attachments"][0]["content"]
        assert len(content["body"]) == 3

    def test_message_card(self) -> None:
        card = build_message_card(_summary())
        assert card["@type"] == "MessageCard"
        assert card["sections"][0]["activitySubtitle"] == "JIRA Project: TEST"
        assert card["sections"][1]["activityTitle"] == "Release Notes"

    def test_text_message_keeps_full_notes(self) -> None:
        text = build_text_message(_summary(notes="z" * 1500))["text"]
        assert "**Related tickets:** TEST-123, TEST-124" in text
        assert "z" * 1500 in text

    def test_format_order(self) -> None:
        assert [name for name, _ in FORMATS] == ["adaptive card", "MessageCard", "plain text"]


class TestSuccess:
    def test_no_webhook_no_request(
        self,
        plugin_config: PluginConfig,
        make_context: Callable[..., ReleaseContext],
        httpx_mock: HTTPXMock,
        logger: MagicMock,
    ) -> None:
        asyncio.run(success(plugin_config, make_context("fix: TEST-1", env={})))
        assert httpx_mock.get_requests() == []
        logger.info.assert_called_once_with(
            "No TEAMS_WEBHOOK_URL environment variable found, skipping Teams notification"
        )

    def test_primary_format_sent(
        self, plugin_config: PluginConfig, make_context: Callable[..., ReleaseContext], httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=202)
        asyncio.run(success(plugin_config, make_context("fix: TEST-1", env={"TEAMS_WEBHOOK_URL": WEBHOOK})))
        payloads = _sent_payloads(httpx_mock)
        assert len(payloads) == 1
        assert payloads[0]["type"] == "message"

    def test_falls_back_to_message_card(
        self,
        plugin_config: PluginConfig,
        make_context: Callable[..., ReleaseContext],
        httpx_mock: HTTPXMock,
        logger: MagicMock,
    ) -> None:
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=400)
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=200)
        asyncio.run(success(plugin_config, make_context("fix: TEST-1", env={"TEAMS_WEBHOOK_URL": WEBHOOK})))
        payloads = _sent_payloads(httpx_mock)
        assert [p.get("@type") for p in payloads] == [None, "MessageCard"]
        logger.info.assert_any_call("Teams notification sent successfully using MessageCard format")

    def test_all_formats_fail_does_not_raise(
        self,
        plugin_config: PluginConfig,
        make_context: Callable[..., ReleaseContext],
        httpx_mock: HTTPXMock,
        logger: MagicMock,
    ) -> None:
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=500)
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=500)
        httpx_mock.add_exception(httpx.ConnectError("webhook unreachable"), url=WEBHOOK)
        asyncio.run(success(plugin_config, make_context("fix: TEST-1", env={"TEAMS_WEBHOOK_URL": WEBHOOK})))
        assert len(httpx_mock.get_requests()) == 3
        assert "text" in _sent_payloads(httpx_mock)[2]
        logger.error.assert_any_call("Teams notification failed: all notification formats were rejected")

    def test_dry_run_sends_nothing(
        self,
        make_context: Callable[..., ReleaseContext],
        httpx_mock: HTTPXMock,
        logger: MagicMock,
    ) -> None:
        config = PluginConfig(project_id="TEST", ticket_prefixes=["TEST"], dry_run=True)
        asyncio.run(success(config, make_context("fix: TEST-1", env={"TEAMS_WEBHOOK_URL": WEBHOOK})))
        assert httpx_mock.get_requests() == []
        logger.info.assert_any_call("Sending Teams notification for release 1.0.0")
        logger.info.assert_any_call("Dry run - Teams notification would be sent here")

    def test_unexpected_error_swallowed(
        self,
        plugin_config: PluginConfig,
        make_context: Callable[..., ReleaseContext],
        logger: MagicMock,
    ) -> None:
        with patch("jira_release.notify.summarize", side_effect=ValueError("bad context")):
            asyncio.run(success(plugin_config, make_context("fix: TEST-1", env={"TEAMS_WEBHOOK_URL": WEBHOOK})))
        logger.error.assert_called_once_with("Error in Teams notification: bad context")

    def test_invalid_webhook_url_tries_every_format(
        self,
        plugin_config: PluginConfig,
        make_context: Callable[..., ReleaseContext],
        httpx_mock: HTTPXMock,
        logger: MagicMock,
    ) -> None:
        env = {"TEAMS_WEBHOOK_URL": "https://example.com/\x00hook"}
        asyncio.run(success(plugin_config, make_context("fix: TEST-1", env=env)))
        assert httpx_mock.get_requests() == []
        failed = [c.args[0] for c in logger.error.call_args_list if "format failed" in c.args[0]]
        assert len(failed) == len(FORMATS)
        logger.error.assert_called_with("Teams notification failed: all notification formats were rejected")


class TestSendWithFallback:
    def test_builder_error_falls_through(self, httpx_mock: HTTPXMock, logger: MagicMock) -> None:
        httpx_mock.add_response(url=WEBHOOK, method="POST", status_code=200)

        def broken(summary: ReleaseSummary) -> dict:
            raise ValueError("cannot render")

        async def send() -> str | None:
            async with httpx.AsyncClient() as client:
                formats = [("broken", broken), ("plain text", build_text_message)]
                return await send_with_fallback(client, WEBHOOK, _summary(), logger, formats)

        assert asyncio.run(send()) == "plain text"
        assert len(httpx_mock.get_requests()) == 1
        logger.error.assert_called_once_with("Teams notification using broken format failed: cannot render")
