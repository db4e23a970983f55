from diffreview.core.config import Settings
from diffreview.core.exceptions import ConfigurationError
from diffreview.services.llm.anthropic import AnthropicReviewer
from diffreview.services.llm.base import (
    Finding,
    OutcomeStatus,
    Reviewer,
    ReviewOutcome,
    parse_review_payload,
)
from diffreview.services.llm.openai import OpenAIReviewer


def get_reviewer(settings: Settings) -> Reviewer:
    """Create the reviewer for the configured provider."""
    if settings.llm_provider == "anthropic":
        if settings.anthropic_api_key is None:
            raise ConfigurationError("ANTHROPIC_API_KEY is required for the anthropic provider")
        return AnthropicReviewer(
            model=settings.anthropic_model,
            api_key=settings.anthropic_api_key.get_secret_value(),
            max_tokens=settings.max_output_tokens,
        )

    if settings.openai_api_key is None:
        raise ConfigurationError("OPENAI_API_KEY is required for the openai provider")
    return OpenAIReviewer(
        model=settings.openai_api_model,
        api_key=settings.openai_api_key.get_secret_value(),
        max_tokens=settings.max_output_tokens,
    )


__all__ = [
    "AnthropicReviewer",
    "Finding",
    "OpenAIReviewer",
    "OutcomeStatus",
    "Reviewer",
    "ReviewOutcome",
    "get_reviewer",
    "parse_review_payload",
]
