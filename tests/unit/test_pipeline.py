from unittest.mock import AsyncMock, MagicMock

import pytest

from diffreview.core.exceptions import (
    DiffParseError,
    GitHubNotFoundError,
    GitHubValidationError,
    LLMError,
    ReviewError,
)
from diffreview.prompts.review import ReviewPromptBuilder
from diffreview.services.github.models import PullRequestContext, Review
from diffreview.services.llm.base import Completion
from diffreview.services.review.comment_mapper import CommentRecord
from diffreview.services.review.pipeline import PipelineResult, ReviewPipeline
from tests.fakes import FakeReviewer, reviews_json
from tests.fixtures.sample_diffs import (
    DELETED_FILE,
    MIXED_CHANGES,
    SIMPLE_MODIFICATION,
    SINGLE_LINE_ADDITION,
)


def _github_mock(pr: PullRequestContext, diff: str | None) -> MagicMock:
    github = MagicMock()
    github.get_pull_request_context = AsyncMock(return_value=pr)
    github.get_pull_request_diff = AsyncMock(return_value=diff)
    github.create_review = AsyncMock(return_value={"id": 777})
    github.close = AsyncMock()
    return github


class TestReviewDiff:
    """Reviewing a raw diff without touching GitHub."""

    @pytest.mark.asyncio
    async def test_single_addition_end_to_end(self, sample_pr: PullRequestContext) -> None:
        answer = reviews_json((5, "Use a named constant instead of a magic number."))
        reviewer = FakeReviewer([Completion(content=answer)])
        pipeline = ReviewPipeline(reviewer=reviewer)

        comments = await pipeline.review_diff(SINGLE_LINE_ADDITION, sample_pr)

        assert comments == [
            CommentRecord(
                path="a.py",
                line=5,
                body="Use a named constant instead of a magic number.",
            )
        ]
        assert len(reviewer.prompts) == 1
        assert ' +x = 1' in reviewer.prompts[0]
        assert 'in the file "a.py"' in reviewer.prompts[0]

    @pytest.mark.asyncio
    async def test_one_prompt_per_hunk_in_diff_order(self, sample_pr: PullRequestContext) -> None:
        reviewer = FakeReviewer(
            [
                Completion(content=reviews_json((1, "readme"))),
                Completion(content=reviews_json((2, "app first hunk"))),
                Completion(content=reviews_json((21, "app second hunk"))),
            ]
        )
        pipeline = ReviewPipeline(reviewer=reviewer)

        comments = await pipeline.review_diff(MIXED_CHANGES, sample_pr)

        assert [(c.path, c.line, c.body) for c in comments] == [
            ("docs/readme.md", 1, "readme"),
            ("src/app.ts", 2, "app first hunk"),
            ("src/app.ts", 21, "app second hunk"),
        ]
        assert len(reviewer.prompts) == 3

    @pytest.mark.asyncio
    async def test_deleted_files_are_never_prompted(self, sample_pr: PullRequestContext) -> None:
        reviewer = FakeReviewer()
        pipeline = ReviewPipeline(reviewer=reviewer)

        comments = await pipeline.review_diff(DELETED_FILE, sample_pr)

        assert comments == []
        assert reviewer.prompts == []

    @pytest.mark.asyncio
    async def test_excluded_files_are_skipped(self, sample_pr: PullRequestContext) -> None:
        reviewer = FakeReviewer()
        pipeline = ReviewPipeline(reviewer=reviewer)

        await pipeline.review_diff(MIXED_CHANGES, sample_pr, exclude_patterns=["*.md"])

        assert len(reviewer.prompts) == 2
        assert all('"src/app.ts"' in prompt for prompt in reviewer.prompts)

    @pytest.mark.asyncio
    async def test_failed_hunks_contribute_nothing(self, sample_pr: PullRequestContext) -> None:
        reviewer = FakeReviewer(
            [
                LLMError("connection reset"),
                Completion(content='{"reviews": [{"lineNumber": 2', truncated=True),
                Completion(content=reviews_json((21, "Pass arguments explicitly."))),
            ]
        )
        pipeline = ReviewPipeline(reviewer=reviewer)

        comments = await pipeline.review_diff(MIXED_CHANGES, sample_pr)

        assert comments == [
            CommentRecord(path="src/app.ts", line=21, body="Pass arguments explicitly.")
        ]

    @pytest.mark.asyncio
    async def test_boolean_line_token_is_dropped(self, sample_pr: PullRequestContext) -> None:
        answer = reviews_json((True, "Nowhere to anchor."), (5, "Name the constant."))
        pipeline = ReviewPipeline(reviewer=FakeReviewer([Completion(content=answer)]))

        comments = await pipeline.review_diff(SINGLE_LINE_ADDITION, sample_pr)

        assert comments == [CommentRecord(path="a.py", line=5, body="Name the constant.")]

    @pytest.mark.asyncio
    async def test_quoted_path_reaches_comments(self, sample_pr: PullRequestContext) -> None:
        diff = (
            'diff --git "a/caf\\303\\251.py" "b/caf\\303\\251.py"\n'
            '--- "a/caf\\303\\251.py"\n'
            '+++ "b/caf\\303\\251.py"\n'
            "@@ -1 +1 @@\n"
            "-x = 1\n"
            "+x = 2\n"
        )
        answer = reviews_json((1, "Explain the new value."))
        pipeline = ReviewPipeline(reviewer=FakeReviewer([Completion(content=answer)]))

        comments = await pipeline.review_diff(diff, sample_pr)

        assert comments == [CommentRecord(path="café.py", line=1, body="Explain the new value.")]

    @pytest.mark.asyncio
    async def test_extra_instructions_reach_every_prompt(
        self, sample_pr: PullRequestContext
    ) -> None:
        reviewer = FakeReviewer()
        pipeline = ReviewPipeline(reviewer=reviewer)

        await pipeline.review_diff(
            MIXED_CHANGES, sample_pr, extra_instructions="- Flag any use of eval."
        )

        assert len(reviewer.prompts) == 3
        assert all("- Flag any use of eval." in prompt for prompt in reviewer.prompts)

    @pytest.mark.asyncio
    async def test_new_side_context_numbers(self, sample_pr: PullRequestContext) -> None:
        reviewer = FakeReviewer()
        pipeline = ReviewPipeline(
            reviewer=reviewer,
            prompt_builder=ReviewPromptBuilder(context_side="new"),
        )

        await pipeline.review_diff(SIMPLE_MODIFICATION, sample_pr)

        assert "6  def main():" in reviewer.prompts[0]

    @pytest.mark.asyncio
    async def test_parse_error_propagates(self, sample_pr: PullRequestContext) -> None:
        pipeline = ReviewPipeline(reviewer=FakeReviewer())

        with pytest.raises(DiffParseError):
            await pipeline.review_diff("--- a/x\n+++ b/x\n@@ broken @@\n+y", sample_pr)


class TestExecute:
    """Full pull request runs against a mocked GitHub client."""

    @pytest.mark.asyncio
    async def test_submits_one_batched_review(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, MIXED_CHANGES)
        reviewer = FakeReviewer(
            [
                Completion(content=reviews_json((1, "Title case."))),
                Completion(content=reviews_json((2, "Name the constant."))),
            ]
        )
        pipeline = ReviewPipeline(reviewer=reviewer, github_client=github)

        result = await pipeline.execute("owner", "repo", 42)

        assert isinstance(result, PipelineResult)
        assert result.status == "submitted"
        assert result.review_posted is True
        assert result.github_review_id == 777
        assert result.files_reviewed == 2
        assert result.chunks_reviewed == 3
        assert result.total_comments == 2

        github.create_review.assert_awaited_once()
        owner, repo, number, review = github.create_review.await_args.args
        assert (owner, repo, number) == ("owner", "repo", 42)
        assert isinstance(review, Review)
        assert review.commit_id == "abc123def456"
        assert review.event == "COMMENT"
        assert [(c.path, c.line) for c in review.comments] == [
            ("docs/readme.md", 1),
            ("src/app.ts", 2),
        ]

    @pytest.mark.asyncio
    async def test_no_comments_skips_submission(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, MIXED_CHANGES)
        pipeline = ReviewPipeline(reviewer=FakeReviewer(), github_client=github)

        result = await pipeline.execute("owner", "repo", 42)

        assert result.status == "skipped"
        assert result.chunks_reviewed == 3
        github.create_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_diff_is_skipped(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, None)
        reviewer = FakeReviewer()
        pipeline = ReviewPipeline(reviewer=reviewer, github_client=github)

        result = await pipeline.execute("owner", "repo", 42)

        assert result.status == "skipped"
        assert reviewer.prompts == []
        github.create_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dry_run_does_not_post(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, SINGLE_LINE_ADDITION)
        reviewer = FakeReviewer([Completion(content=reviews_json((5, "Name it.")))])
        pipeline = ReviewPipeline(reviewer=reviewer, github_client=github)

        result = await pipeline.execute("owner", "repo", 42, post_review=False)

        assert result.status == "skipped"
        assert result.comments == [CommentRecord(path="a.py", line=5, body="Name it.")]
        github.create_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_review_is_reported(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, SINGLE_LINE_ADDITION)
        github.create_review.side_effect = GitHubValidationError(
            "GitHub rejected the request", status_code=422
        )
        reviewer = FakeReviewer([Completion(content=reviews_json((500, "Out of range.")))])
        pipeline = ReviewPipeline(reviewer=reviewer, github_client=github)

        result = await pipeline.execute("owner", "repo", 42)

        assert result.status == "rejected"
        assert result.review_posted is False
        assert result.github_review_id is None

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, SINGLE_LINE_ADDITION)
        github.get_pull_request_context.side_effect = GitHubNotFoundError(
            "Resource not found", status_code=404
        )
        pipeline = ReviewPipeline(reviewer=FakeReviewer(), github_client=github)

        with pytest.raises(GitHubNotFoundError):
            await pipeline.execute("owner", "repo", 42)

    @pytest.mark.asyncio
    async def test_requires_github_client(self) -> None:
        pipeline = ReviewPipeline(reviewer=FakeReviewer())

        with pytest.raises(ReviewError):
            await pipeline.execute("owner", "repo", 42)

    @pytest.mark.asyncio
    async def test_close_closes_github_client(self, sample_pr: PullRequestContext) -> None:
        github = _github_mock(sample_pr, None)
        pipeline = ReviewPipeline(reviewer=FakeReviewer(), github_client=github)

        await pipeline.close()

        github.close.assert_awaited_once()
