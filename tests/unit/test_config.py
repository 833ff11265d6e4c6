# tests/unit/test_config.py
import pytest
from pydantic import ValidationError
from pr_review_agent.config import Settings


@pytest.mark.unit
def test_settings_loads_from_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "test-secret")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("PR_NUMBER", "42")
    monkeypatch.setenv("FAIL_ON_ERROR", "true")

    settings = Settings(_env_file=None)

    assert settings.github_token == "test-token"
    assert settings.github_webhook_secret == "test-secret"
    assert settings.gemini_api_key == "test-gemini-key"
    assert settings.pr_number == 42
    assert settings.fail_on_error is True


@pytest.mark.unit
def test_settings_defaults(monkeypatch):
    for name in ("AI_PROVIDER", "GITHUB_API_URL", "LOG_LEVEL", "FAIL_ON_ERROR"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None, github_token="x")

    assert settings.ai_provider == "gemini"
    assert settings.github_api_url == "https://api.github.com"
    assert settings.log_level == "INFO"
    assert settings.fail_on_error is False


@pytest.mark.unit
def test_settings_filters(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "x")
    monkeypatch.setenv("INCLUDE_EXTENSIONS", ".ts,.js")
    monkeypatch.setenv("EXCLUDE_PATHS", "vendor,dist/")

    filters = Settings(_env_file=None).filters()

    assert filters.include_extensions == [".ts", ".js"]
    assert filters.exclude_paths == ["vendor/", "dist/"]
    assert filters.include_paths == []


@pytest.mark.unit
def test_settings_require_github_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    assert "github_token" in str(exc_info.value)
