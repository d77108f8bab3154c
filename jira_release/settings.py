"""CLI settings and plugin-option loading from .jira-release.toml."""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from jira_release.models import PluginConfig

CONFIG_PATH = Path(".jira-release.toml")
TOML_SECTION = "jira-release"


class JiraReleaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JIRA_RELEASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: Path = CONFIG_PATH
    dry_run: bool | None = None  # overrides dryRun from the config file when set
    log_level: str = "INFO"


@lru_cache(maxsize=4)
def _load_toml(path: Path) -> dict:
    """Load the plugin config file as plain Python values, empty if missing."""
    if not path.exists():
        return {}
    with path.open() as f:
        return tomlkit.load(f).unwrap()


def _plugin_section(document: Mapping) -> dict:
    """Options live either under [jira-release] or at the top level of the file."""
    section = document.get(TOML_SECTION)
    if isinstance(section, Mapping):
        return dict(section)
    return {k: v for k, v in document.items() if not isinstance(v, Mapping)}


def load_plugin_config(path: Path, dry_run: bool | None = None) -> PluginConfig:
    """Build a PluginConfig from the TOML file at path.

    Credentials are never read from the file; they come from JIRA_AUTH or
    JIRA_EMAIL/JIRA_API_TOKEN in the environment.
    """
    try:
        config = PluginConfig.model_validate(_plugin_section(_load_toml(path)))
    except ValidationError as exc:
        typer.echo(f"Invalid plugin configuration in {path}:\n{exc}")
        raise typer.Exit(1) from exc
    if dry_run is not None:
        config = config.model_copy(update={"dry_run": dry_run})
    return config


def get_settings() -> JiraReleaseSettings:
    return JiraReleaseSettings()
