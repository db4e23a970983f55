"""Reading the pull_request event that triggered a workflow run."""

from pathlib import Path

from pydantic import ValidationError

from diffreview.core.exceptions import ConfigurationError
from diffreview.services.github.models import WebhookPullRequestEvent

SUPPORTED_ACTIONS = frozenset({"opened", "synchronize"})


def load_event(path: str | Path | None) -> WebhookPullRequestEvent:
    """Parse the event payload file written by the Actions runner."""
    if not path:
        raise ConfigurationError("GITHUB_EVENT_PATH is not set")

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read event payload: {e}", {"path": str(path)}) from e

    try:
        return WebhookPullRequestEvent.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(
            "Event payload is not a pull_request event",
            {"path": str(path), "errors": e.errors(include_url=False)},
        ) from e


def is_reviewable(event: WebhookPullRequestEvent) -> bool:
    return event.action in SUPPORTED_ACTIONS
