# src/pr_review_agent/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pr_review_agent.models.config import ReviewFilters


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # GitHub
    github_token: str
    github_api_url: str = "https://api.github.com"
    github_webhook_secret: str | None = None

    # One-shot target
    repo_owner: str | None = None
    repo_name: str | None = None
    pr_number: int | None = None

    # LLM Providers
    ai_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str | None = None
    openai_api_key: str | None = None
    openai_model: str | None = None
    openai_base_url: str | None = None

    # File filters, comma separated
    include_extensions: str = ""
    exclude_extensions: str = ""
    include_paths: str = ""
    exclude_paths: str = ""

    fail_on_error: bool = False
    log_level: str = "INFO"

    def filters(self) -> ReviewFilters:
        return ReviewFilters(
            include_extensions=self.include_extensions,
            exclude_extensions=self.exclude_extensions,
            include_paths=self.include_paths,
            exclude_paths=self.exclude_paths,
        )
