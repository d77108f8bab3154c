"""jira-release CLI: run the plugin hooks outside a release host."""

import asyncio
import json
import logging
import os
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any

import httpx
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from jira_release.errors import JiraReleaseError, PluginConfigError
from jira_release.models import PluginConfig, ReleaseContext
from jira_release.notify import success
from jira_release.publish import publish
from jira_release.settings import get_settings, load_plugin_config
from jira_release.tickets import get_tickets
from jira_release.verify import verify_conditions

app = typer.Typer(help="jira-release: attach released tickets to a Jira fix version", no_args_is_help=True)

ContextOpt = Annotated[
    Path,
    typer.Option(
        "--context",
        "-c",
        exists=True,
        dir_okay=False,
        help="Release context JSON (commits, nextRelease, lastRelease)",
    ),
]
ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", help="Plugin options TOML file (default: .jira-release.toml)"),
]
DryRunOpt = Annotated[
    bool,
    typer.Option("--dry-run", help="Force dryRun on, whatever the config file says"),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _logger(level: str) -> logging.Logger:
    logger = logging.getLogger("jira_release")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(show_path=False, markup=False))
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger


def load_context(path: Path, logger: logging.Logger) -> ReleaseContext:
    """Read the host-shaped context file; env always comes from this process."""
    try:
        data = json.loads(path.read_text())
        return ReleaseContext.model_validate({**data, "env": dict(os.environ), "logger": logger})
    except (ValueError, ValidationError) as exc:
        rprint(f"[red]Invalid release context in {path}:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc


def _load(context_path: Path, config_path: Path | None, dry_run: bool) -> tuple[PluginConfig, ReleaseContext]:
    settings = get_settings()
    config = load_plugin_config(
        config_path or settings.config_path,
        dry_run=True if dry_run else settings.dry_run,
    )
    return config, load_context(context_path, _logger(settings.log_level))


def _run(hook: Coroutine[Any, Any, None]) -> None:
    try:
        asyncio.run(hook)
    except PluginConfigError as exc:
        rprint(f"[red]{escape(exc.code)}:[/red] {escape(exc.message)}")
        raise typer.Exit(1) from exc
    except (JiraReleaseError, httpx.HTTPError, RuntimeError) as exc:
        rprint(f"[red]error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("verify")
def verify_cmd(context: ContextOpt, config: ConfigOpt = None) -> None:
    """Check options, credentials and project access."""
    plugin_config, release_context = _load(context, config, False)
    _run(verify_conditions(plugin_config, release_context))
    rprint("[green]✓[/green] Configuration verified")


@app.command("publish")
def publish_cmd(context: ContextOpt, config: ConfigOpt = None, dry_run: DryRunOpt = False) -> None:
    """Create or reuse the fix version and attach the release's tickets."""
    plugin_config, release_context = _load(context, config, dry_run)
    _run(publish(plugin_config, release_context))
    rprint(f"[green]✓[/green] Published release {release_context.next_release.version} to Jira")


@app.command("notify")
def notify_cmd(context: ContextOpt, config: ConfigOpt = None, dry_run: DryRunOpt = False) -> None:
    """Post the release card to TEAMS_WEBHOOK_URL (never fails)."""
    plugin_config, release_context = _load(context, config, dry_run)
    _run(success(plugin_config, release_context))


@app.command("tickets")
def tickets_cmd(context: ContextOpt, config: ConfigOpt = None) -> None:
    """List the ticket keys found in the release's commits."""
    plugin_config, release_context = _load(context, config, False)
    tickets = sorted(get_tickets(plugin_config, release_context))

    if not tickets:
        rprint("[dim]No tickets found.[/dim]")
        return

    table = Table(title=f"Tickets in {release_context.next_release.version}")
    table.add_column("Ticket", style="cyan")
    for ticket in tickets:
        table.add_row(ticket)
    rprint(table)


@app.command("config-show")
def config_show(config: ConfigOpt = None) -> None:
    """Show resolved plugin options (masks credentials)."""
    settings = get_settings()
    plugin_config = load_plugin_config(config or settings.config_path, dry_run=settings.dry_run)

    def mask(val: str | None) -> str:
        if not val:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{escape(val[-5:])}"

    table = Table(title="jira-release Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for name, value in plugin_config.model_dump(by_alias=True).items():
        table.add_row(name, "[dim](not set)[/dim]" if value is None else escape(str(value)))
    table.add_row("JIRA_AUTH", mask(os.environ.get("JIRA_AUTH")))
    table.add_row("JIRA_EMAIL", os.environ.get("JIRA_EMAIL") or "[dim](not set)[/dim]")
    table.add_row("JIRA_API_TOKEN", mask(os.environ.get("JIRA_API_TOKEN")))
    table.add_row("TEAMS_WEBHOOK_URL", mask(os.environ.get("TEAMS_WEBHOOK_URL")))

    rprint(table)
