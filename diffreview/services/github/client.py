"""GitHub API client with metrics instrumentation."""

import time
from typing import Any

import httpx
import structlog

from diffreview.core.exceptions import (
    GitHubAuthenticationError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubValidationError,
)
from diffreview.core.metrics import record_github_api_call
from diffreview.services.github.models import PullRequestContext, Review

logger = structlog.get_logger()

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
COMMITS_PER_PAGE = 100


class GitHubClient:
    """Client for interacting with GitHub API."""

    def __init__(self, token: str, base_url: str = "https://api.github.com") -> None:
        self.token = token
        self.base_url = base_url
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github.v3+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _extract_endpoint_name(self, endpoint: str) -> str:
        """
        Extract a normalized endpoint name for metrics.

        Converts:
            /repos/owner/repo/pulls/123 -> pulls
            /repos/owner/repo/pulls/123/commits -> pulls_commits
            /repos/owner/repo/pulls/123/reviews -> pulls_reviews
        """
        parts = endpoint.strip("/").split("/")

        # Skip 'repos', owner, repo parts
        if len(parts) >= 3 and parts[0] == "repos":
            parts = parts[3:]

        parts = [p for p in parts if not p.isdigit()]

        return "_".join(parts) if parts else "unknown"

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any] | str:
        """Make an authenticated request to GitHub API."""
        client = await self._get_client()
        endpoint_name = self._extract_endpoint_name(endpoint)

        logger.debug("GitHub API request", method=method, endpoint=endpoint)

        start_time = time.perf_counter()
        status_code = 0
        rate_limit_remaining = None
        rate_limit_reset = None

        try:
            response = await client.request(method, endpoint, **kwargs)
            status_code = response.status_code

            if "X-RateLimit-Remaining" in response.headers:
                rate_limit_remaining = int(response.headers["X-RateLimit-Remaining"])
            if "X-RateLimit-Reset" in response.headers:
                rate_limit_reset = int(response.headers["X-RateLimit-Reset"])

            if response.status_code == 401:
                raise GitHubAuthenticationError("Invalid GitHub token", status_code=401)

            if response.status_code == 403:
                if "rate limit" in response.text.lower():
                    raise GitHubRateLimitError(reset_at=rate_limit_reset or 0)
                raise GitHubAuthenticationError("Access forbidden", status_code=403)

            if response.status_code == 404:
                raise GitHubNotFoundError(f"Resource not found: {endpoint}", status_code=404)

            if response.status_code == 422:
                raise GitHubValidationError(
                    "GitHub rejected the request",
                    details={"response": response.text},
                    status_code=422,
                )

            if response.status_code >= 400:
                raise GitHubError(
                    f"GitHub API error: {response.status_code}",
                    details={"response": response.text},
                    status_code=response.status_code,
                )

            # Handle diff responses (plain text)
            headers = kwargs.get("headers", {})
            if isinstance(headers, dict) and DIFF_MEDIA_TYPE in headers.get("Accept", ""):
                return response.text

            result: dict[str, Any] | list[Any] = response.json()
            return result

        except httpx.HTTPError as e:
            raise GitHubError(f"GitHub request failed: {e}") from e

        finally:
            duration_seconds = time.perf_counter() - start_time
            record_github_api_call(
                endpoint=endpoint_name,
                method=method,
                status_code=status_code,
                duration_seconds=duration_seconds,
                rate_limit_remaining=rate_limit_remaining,
                rate_limit_reset=rate_limit_reset,
            )

    async def list_pull_request_commits(
        self,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> list[dict[str, Any]]:
        """Fetch every commit of a PR, following pagination to the last page."""
        commits: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/pulls/{pr_number}/commits",
                params={"per_page": COMMITS_PER_PAGE, "page": page},
            )
            if not isinstance(data, list):
                raise GitHubError("Unexpected response format")

            commits.extend(data)
            if len(data) < COMMITS_PER_PAGE:
                return commits
            page += 1

    async def get_pull_request_context(
        self,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> PullRequestContext:
        """Fetch title, description and the latest commit of a pull request."""
        data = await self._request("GET", f"/repos/{owner}/{repo}/pulls/{pr_number}")

        if not isinstance(data, dict):
            raise GitHubError("Unexpected response format")

        commits = await self.list_pull_request_commits(owner, repo, pr_number)
        if not commits:
            raise GitHubError(
                "Pull request has no commits",
                details={"pr_number": pr_number},
            )

        return PullRequestContext(
            owner=owner,
            repo=repo,
            pull_number=pr_number,
            title=data.get("title") or "",
            description=data.get("body") or "",
            commit_id=commits[-1]["sha"],
        )

    async def get_pull_request_diff(
        self,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> str | None:
        """Fetch the raw diff for a PR, or None when GitHub returns nothing."""
        diff = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls/{pr_number}",
            headers={"Accept": DIFF_MEDIA_TYPE},
        )

        if not isinstance(diff, str):
            raise GitHubError("Unexpected response format for diff")

        return diff or None

    async def create_review(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        review: Review,
    ) -> dict[str, Any]:
        """Submit a review on a pull request."""
        payload: dict[str, Any] = {
            "commit_id": review.commit_id,
            "body": review.body,
            "event": review.event,
        }

        if review.comments:
            payload["comments"] = [
                {
                    "path": c.path,
                    "line": c.line,
                    "body": c.body,
                    "side": c.side,
                }
                for c in review.comments
            ]

        data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews",
            json=payload,
        )

        if not isinstance(data, dict):
            raise GitHubError("Unexpected response format")

        logger.info(
            "Review submitted",
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            comment_count=len(review.comments),
        )

        return data
