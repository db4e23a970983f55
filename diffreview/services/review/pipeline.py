"""Main review pipeline orchestration."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

import structlog

from diffreview.core.exceptions import GitHubError, ReviewError
from diffreview.core.metrics import record_review_completed
from diffreview.prompts.review import ReviewPromptBuilder
from diffreview.services.github.client import GitHubClient
from diffreview.services.github.models import PullRequestContext, Review, ReviewComment
from diffreview.services.llm.base import Reviewer
from diffreview.services.review.comment_mapper import CommentRecord, map_findings
from diffreview.services.review.diff_parser import DiffParser
from diffreview.services.review.file_filter import filter_files

logger = structlog.get_logger()

INVALID_POSITION_MESSAGE = "One or more comments have invalid positions or lines."


@dataclass
class PipelineResult:
    """Result of a review pipeline execution."""

    pr_number: int
    status: Literal["submitted", "skipped", "rejected"]
    comments: list[CommentRecord] = field(default_factory=list)
    files_reviewed: int = 0
    chunks_reviewed: int = 0
    review_posted: bool = False
    github_review_id: int | None = None

    @property
    def total_comments(self) -> int:
        return len(self.comments)


@dataclass
class _ReviewRun:
    comments: list[CommentRecord]
    files_reviewed: int
    chunks_reviewed: int


class ReviewPipeline:
    """Orchestrates the code review process."""

    def __init__(
        self,
        reviewer: Reviewer,
        github_client: GitHubClient | None = None,
        diff_parser: DiffParser | None = None,
        prompt_builder: ReviewPromptBuilder | None = None,
    ) -> None:
        self.reviewer = reviewer
        self.github = github_client
        self.diff_parser = diff_parser or DiffParser()
        self.prompt_builder = prompt_builder or ReviewPromptBuilder()

    async def review_diff(
        self,
        diff_text: str,
        pr: PullRequestContext,
        exclude_patterns: Sequence[str] = (),
        extra_instructions: str = "",
    ) -> list[CommentRecord]:
        """
        Review a raw unified diff and return the comments to post.

        Hunks are reviewed one at a time, files in diff order and hunks in file
        order; the returned comments keep that order. A hunk whose model call
        fails or is truncated contributes nothing.

        Raises:
            DiffParseError: If the diff cannot be parsed.
        """
        run = await self._review(diff_text, pr, exclude_patterns, extra_instructions)
        return run.comments

    async def _review(
        self,
        diff_text: str,
        pr: PullRequestContext,
        exclude_patterns: Sequence[str],
        extra_instructions: str,
    ) -> _ReviewRun:
        file_diffs = self.diff_parser.parse(diff_text)
        files = filter_files(file_diffs, exclude_patterns)
        logger.info(
            "Parsed diff",
            files_in_diff=len(file_diffs),
            files_to_review=len(files),
        )

        builder = self.prompt_builder.with_extension(extra_instructions)
        comments: list[CommentRecord] = []
        chunks_reviewed = 0

        for file_diff in files:
            logger.info("Reviewing file", path=file_diff.path, hunks=len(file_diff.hunks))
            for hunk in file_diff.hunks:
                prompt = builder.build(file_diff, hunk, pr)
                outcome = await self.reviewer.review(prompt)
                chunks_reviewed += 1
                logger.debug(
                    "Hunk reviewed",
                    path=file_diff.path,
                    hunk=hunk.header,
                    status=outcome.status.value,
                    findings=len(outcome.findings),
                )
                comments.extend(map_findings(file_diff.path, outcome.findings))

        return _ReviewRun(
            comments=comments,
            files_reviewed=len(files),
            chunks_reviewed=chunks_reviewed,
        )

    async def execute(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        exclude_patterns: Sequence[str] = (),
        extra_instructions: str = "",
        post_review: bool = True,
    ) -> PipelineResult:
        """
        Execute the full review pipeline for a pull request.

        Args:
            owner: Repository owner.
            repo: Repository name.
            pr_number: Pull request number.
            exclude_patterns: Globs of paths to leave out of the review.
            extra_instructions: Text appended to the reviewer policy.
            post_review: Whether to post the review to GitHub.

        Returns:
            PipelineResult with review details.

        Raises:
            GitHubError: If PR metadata or the diff cannot be fetched.
            DiffParseError: If the diff cannot be parsed.
        """
        if self.github is None:
            raise ReviewError("A GitHub client is required to review a pull request")

        logger.info(
            "Starting review pipeline",
            owner=owner,
            repo=repo,
            pr_number=pr_number,
        )

        # 1. Fetch PR details
        pr = await self.github.get_pull_request_context(owner, repo, pr_number)
        logger.info("Fetched PR", title=pr.title, commit_id=pr.commit_id)

        # 2. Fetch diff
        diff = await self.github.get_pull_request_diff(owner, repo, pr_number)
        if not diff:
            logger.info("No diff found")
            return self._finish(PipelineResult(pr_number=pr_number, status="skipped"))

        # 3. Review every hunk
        run = await self._review(diff, pr, exclude_patterns, extra_instructions)
        result = PipelineResult(
            pr_number=pr_number,
            status="skipped",
            comments=run.comments,
            files_reviewed=run.files_reviewed,
            chunks_reviewed=run.chunks_reviewed,
        )

        if not run.comments:
            logger.info("No comments to post.")
            return self._finish(result)

        if not post_review:
            logger.info("Dry run, review not posted", comments=len(run.comments))
            return self._finish(result)

        # 4. Post one batched review
        review = Review(
            commit_id=pr.commit_id,
            comments=[
                ReviewComment(path=c.path, line=c.line, body=c.body) for c in run.comments
            ],
        )
        try:
            response = await self.github.create_review(owner, repo, pr_number, review)
        except GitHubError as e:
            logger.error(
                "Error creating review comment",
                error=e.message,
                status_code=e.status_code,
            )
            if e.status_code == 422:
                logger.error(INVALID_POSITION_MESSAGE)
            result.status = "rejected"
            return self._finish(result)

        result.status = "submitted"
        result.review_posted = True
        result.github_review_id = response.get("id")
        logger.info("Posted review to GitHub", review_id=result.github_review_id)
        return self._finish(result)

    def _finish(self, result: PipelineResult) -> PipelineResult:
        record_review_completed(
            status=result.status,
            chunks_reviewed=result.chunks_reviewed,
            comments=result.total_comments,
        )
        return result

    async def close(self) -> None:
        """Clean up resources."""
        if self.github is not None:
            await self.github.close()
