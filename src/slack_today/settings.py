from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError

DEFAULT_API_BASE_URL = "https://api.todoist.com/rest/v2"
DEFAULT_SYNC_BASE_URL = "https://api.todoist.com/sync/v9"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODOIST_API_TOKEN: Todoist API token (required at request time)
    - SLACK_SIGNING_SECRET: Slack app signing secret (required at request time)
    - ALLOWED_USER_IDS: comma-separated Slack user ids allowed to run the command
    - ACCESS_CONTACT: email address or Slack handle that denied callers should contact
      for access (required at request time)
    - TODOIST_PROJECT_NAME: optional project; scopes the filter and enables the
      "completed today" section
    - TODOIST_FILTER: Todoist filter query for active tasks (derived by default)
    - TASKS_TIMEZONE: IANA zone for "today" boundaries and clock rendering (default UTC)
    - CLOCK_FORMAT: '12h' (default) or '24h'
    - TODOIST_API_BASE_URL / TODOIST_SYNC_BASE_URL: upstream endpoints
    - TODOIST_TIMEOUT_SECONDS: per-request upstream timeout (default 10)
    - LOG_LEVEL: logging level name (default INFO)
    """

    todoist_api_token: Optional[str]
    slack_signing_secret: Optional[str]
    allowed_user_ids: FrozenSet[str] = field(default_factory=frozenset)
    access_contact: Optional[str] = None
    project_name: Optional[str] = None
    task_filter: str = "today"
    timezone: str = "UTC"
    clock_format: str = "12h"
    todoist_api_base_url: str = DEFAULT_API_BASE_URL
    todoist_sync_base_url: str = DEFAULT_SYNC_BASE_URL
    request_timeout: float = 10.0
    log_level: str = "INFO"

    def require_secrets(self) -> None:
        """Raise ConfigurationError unless both upstream secrets are present."""
        missing = [
            name
            for name, value in (
                ("TODOIST_API_TOKEN", self.todoist_api_token),
                ("SLACK_SIGNING_SECRET", self.slack_signing_secret),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    def validate(self) -> None:
        """
        Per-request configuration check: both secrets, the access contact shown
        to denied callers, and a resolvable timezone. Raises ConfigurationError.
        """
        self.require_secrets()
        if not self.access_contact or not self.access_contact.strip():
            raise ConfigurationError("Missing required environment variable: ACCESS_CONTACT")
        self.tzinfo  # raises on an unknown zone

    @property
    def tzinfo(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown TASKS_TIMEZONE: {self.timezone!r}") from e


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_user_ids(value: str) -> FrozenSet[str]:
    """Parse a comma-separated allow-list, ignoring blanks."""
    return frozenset(u.strip() for u in value.split(",") if u.strip())


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def default_filter(project_name: Optional[str]) -> str:
    """Todoist filter for today's tasks, scoped to a project when one is set."""
    if project_name:
        return f"today & #{project_name}"
    return "today"


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    project = _get_optional("TODOIST_PROJECT_NAME")

    clock = _get_env("CLOCK_FORMAT", "12h").strip().lower()
    if clock not in {"12h", "24h"}:
        # Fallback to 12h if unsupported
        clock = "12h"

    return Settings(
        todoist_api_token=_get_optional("TODOIST_API_TOKEN"),
        slack_signing_secret=_get_optional("SLACK_SIGNING_SECRET"),
        allowed_user_ids=_parse_user_ids(_get_env("ALLOWED_USER_IDS", "")),
        access_contact=_get_optional("ACCESS_CONTACT"),
        project_name=project,
        task_filter=_get_env("TODOIST_FILTER", default_filter(project)).strip(),
        timezone=_get_env("TASKS_TIMEZONE", "UTC").strip(),
        clock_format=clock,
        todoist_api_base_url=_get_env("TODOIST_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        todoist_sync_base_url=_get_env("TODOIST_SYNC_BASE_URL", DEFAULT_SYNC_BASE_URL).rstrip("/"),
        request_timeout=_parse_float(_get_env("TODOIST_TIMEOUT_SECONDS", "10"), 10.0),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
