import pytest

from slack_today.errors import ConfigurationError
from slack_today.settings import DEFAULT_API_BASE_URL, Settings, get_settings

ENV_VARS = [
    "TODOIST_API_TOKEN",
    "SLACK_SIGNING_SECRET",
    "ALLOWED_USER_IDS",
    "ACCESS_CONTACT",
    "TODOIST_PROJECT_NAME",
    "TODOIST_FILTER",
    "TASKS_TIMEZONE",
    "CLOCK_FORMAT",
    "TODOIST_API_BASE_URL",
    "TODOIST_SYNC_BASE_URL",
    "TODOIST_TIMEOUT_SECONDS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestGetSettings:
    def test_defaults(self):
        s = get_settings()
        assert s.todoist_api_token is None
        assert s.allowed_user_ids == frozenset()
        assert s.access_contact is None
        assert s.task_filter == "today"
        assert s.timezone == "UTC"
        assert s.clock_format == "12h"
        assert s.todoist_api_base_url == DEFAULT_API_BASE_URL
        assert s.request_timeout == 10.0

    def test_values_from_env(self, monkeypatch):
        monkeypatch.setenv("TODOIST_API_TOKEN", "tok")
        monkeypatch.setenv("SLACK_SIGNING_SECRET", "sec")
        monkeypatch.setenv("ALLOWED_USER_IDS", "U1, U2,,")
        monkeypatch.setenv("TODOIST_PROJECT_NAME", "Work")
        monkeypatch.setenv("CLOCK_FORMAT", "24H")
        monkeypatch.setenv("TODOIST_API_BASE_URL", "https://example.test/rest/v2/")
        s = get_settings()
        assert s.allowed_user_ids == frozenset({"U1", "U2"})
        assert s.project_name == "Work"
        assert s.task_filter == "today & #Work"
        assert s.clock_format == "24h"
        assert s.todoist_api_base_url == "https://example.test/rest/v2"
        s.require_secrets()

    def test_explicit_filter_wins(self, monkeypatch):
        monkeypatch.setenv("TODOIST_PROJECT_NAME", "Work")
        monkeypatch.setenv("TODOIST_FILTER", "(today | overdue) & #Work")
        assert get_settings().task_filter == "(today | overdue) & #Work"

    def test_unsupported_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("CLOCK_FORMAT", "sundial")
        monkeypatch.setenv("TODOIST_TIMEOUT_SECONDS", "soon")
        s = get_settings()
        assert s.clock_format == "12h"
        assert s.request_timeout == 10.0


class TestValidation:
    def test_missing_secrets(self):
        with pytest.raises(ConfigurationError) as info:
            Settings(todoist_api_token=None, slack_signing_secret=" ").require_secrets()
        assert "TODOIST_API_TOKEN" in str(info.value)
        assert "SLACK_SIGNING_SECRET" in str(info.value)

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError):
            Settings(todoist_api_token="t", slack_signing_secret="s", timezone="Mars/Olympus").tzinfo

    def test_access_contact_required(self):
        s = Settings(todoist_api_token="t", slack_signing_secret="s", access_contact="  ")
        with pytest.raises(ConfigurationError) as info:
            s.validate()
        assert "ACCESS_CONTACT" in str(info.value)

    def test_validate_accepts_complete_settings(self):
        Settings(
            todoist_api_token="t",
            slack_signing_secret="s",
            access_contact="owner@example.com",
            timezone="Europe/Berlin",
        ).validate()

    def test_validate_rejects_unknown_timezone(self):
        s = Settings(
            todoist_api_token="t", slack_signing_secret="s", access_contact="owner@example.com", timezone="Nowhere/Land"
        )
        with pytest.raises(ConfigurationError):
            s.validate()
