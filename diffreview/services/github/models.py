from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PullRequestContext(BaseModel):
    """PR-level facts a review run needs; fixed for the whole run."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pull_number: int
    title: str = ""
    description: str = ""
    commit_id: str = ""


class ReviewComment(BaseModel):
    """A review comment to post on a PR."""

    path: str
    line: int
    body: str
    side: Literal["LEFT", "RIGHT"] = "RIGHT"


class Review(BaseModel):
    """A complete review to submit."""

    commit_id: str
    body: str = ""
    event: Literal["APPROVE", "REQUEST_CHANGES", "COMMENT"] = "COMMENT"
    comments: list[ReviewComment] = Field(default_factory=list)


class WebhookPullRequestEvent(BaseModel):
    """Parsed pull_request event payload (the file at GITHUB_EVENT_PATH)."""

    action: str
    number: int
    repository: dict[str, Any]

    @property
    def owner(self) -> str:
        owner = self.repository.get("owner", {})
        if isinstance(owner, dict):
            return str(owner.get("login", ""))
        return ""

    @property
    def repo_name(self) -> str:
        return str(self.repository.get("name", ""))
