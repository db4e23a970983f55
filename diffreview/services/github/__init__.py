from diffreview.services.github.client import GitHubClient
from diffreview.services.github.models import PullRequestContext, Review, ReviewComment

__all__ = ["GitHubClient", "PullRequestContext", "Review", "ReviewComment"]
