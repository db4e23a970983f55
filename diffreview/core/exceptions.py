from typing import Any


class DiffReviewError(Exception):
    """Base exception for diffreview."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class GitHubError(DiffReviewError):
    """Errors related to GitHub API interactions."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, details)


class GitHubAuthenticationError(GitHubError):
    """GitHub authentication failed."""

    pass


class GitHubRateLimitError(GitHubError):
    """GitHub API rate limit exceeded."""

    def __init__(self, reset_at: int, message: str = "Rate limit exceeded") -> None:
        self.reset_at = reset_at
        super().__init__(message, {"reset_at": reset_at}, status_code=403)


class GitHubNotFoundError(GitHubError):
    """Requested GitHub resource not found."""

    pass


class GitHubValidationError(GitHubError):
    """GitHub rejected the request payload (HTTP 422)."""

    pass


class DiffParseError(DiffReviewError):
    """Error parsing diff content."""

    pass


class LLMError(DiffReviewError):
    """Errors related to LLM interactions."""

    pass


class LLMProviderUnavailableError(LLMError):
    """LLM provider is not available or configured."""

    pass


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response into expected format."""

    pass


class ReviewError(DiffReviewError):
    """Errors during the review process."""

    pass


class ConfigurationError(DiffReviewError):
    """Invalid or missing configuration."""

    pass
