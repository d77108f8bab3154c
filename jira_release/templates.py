"""Release name and description templates.

Two placeholder spellings are accepted so existing host configs keep working:
``${version}`` and ``<%= version %>``.
"""

import re

from jira_release.errors import TemplateRenderError
from jira_release.models import NextRelease, PluginConfig

_PLACEHOLDER = re.compile(r"\$\{\s*(\w+)\s*\}|<%=\s*(\w+)\s*%>")


def placeholders(template: str) -> set[str]:
    """Names of the variables a template refers to, in either spelling."""
    return {match.group(1) or match.group(2) for match in _PLACEHOLDER.finditer(template)}


def render(template: str, **variables: str) -> str:
    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name not in variables:
            raise TemplateRenderError(f"Template variable '{name}' is not defined in {template!r}")
        return variables[name]

    return _PLACEHOLDER.sub(_substitute, template)


def render_release(config: PluginConfig, next_release: NextRelease) -> tuple[str, str]:
    """Return the (name, description) of the Jira version for this release."""
    name = render(config.release_name_template, version=next_release.version)
    description = render(
        config.release_description_template,
        version=next_release.version,
        notes=next_release.notes or "",
    )
    return name, description
