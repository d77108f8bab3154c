"""Error types raised by the plugin."""


class JiraReleaseError(Exception):
    """Base class for all plugin errors."""


class PluginConfigError(JiraReleaseError):
    """Invalid plugin configuration, reported back to the release host."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class JiraApiError(JiraReleaseError):
    """Non-2xx response from the Jira REST API."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Jira API returned {status_code}: {body}" if body else f"Jira API returned {status_code}")
        self.status_code = status_code
        self.body = body


class TemplateRenderError(JiraReleaseError):
    """A template referenced a variable that was not supplied."""
