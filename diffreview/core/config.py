from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _action_input(name: str) -> AliasChoices:
    """Accept both the GitHub Action input variable and the plain env name."""
    return AliasChoices(f"INPUT_{name}", name)


class Settings(BaseSettings):  # type: ignore[misc]
    """Process-wide configuration, read once at startup and never mutated."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    # GitHub
    github_token: SecretStr | None = Field(
        default=None, validation_alias=_action_input("GITHUB_TOKEN")
    )
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias="GITHUB_API_URL"
    )
    github_event_path: str | None = Field(default=None, validation_alias="GITHUB_EVENT_PATH")
    github_event_name: str | None = Field(default=None, validation_alias="GITHUB_EVENT_NAME")

    # LLM Providers
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai", validation_alias=_action_input("LLM_PROVIDER")
    )
    openai_api_key: SecretStr | None = Field(
        default=None, validation_alias=_action_input("OPENAI_API_KEY")
    )
    openai_api_model: str = Field(
        default="gpt-4o-mini", validation_alias=_action_input("OPENAI_API_MODEL")
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None, validation_alias=_action_input("ANTHROPIC_API_KEY")
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514", validation_alias=_action_input("ANTHROPIC_MODEL")
    )
    max_output_tokens: int = Field(
        default=1500, gt=0, validation_alias=_action_input("MAX_OUTPUT_TOKENS")
    )

    # Review Settings
    exclude: str = Field(default="", validation_alias=_action_input("EXCLUDE"))
    extra_instructions: str = Field(
        default="", validation_alias=_action_input("EXTRA_INSTRUCTIONS")
    )
    review_profile: Literal["default", "java-spring"] = Field(
        default="default", validation_alias=_action_input("REVIEW_PROFILE")
    )
    context_line_numbers: Literal["old", "new"] = Field(
        default="old", validation_alias=_action_input("CONTEXT_LINE_NUMBERS")
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    return Settings()
