"""Command line entry point, also used as the GitHub Action runner."""

import asyncio
import json
from dataclasses import asdict
from pathlib import Path

import structlog
import typer
from pydantic import ValidationError

from diffreview.core.config import Settings, get_settings
from diffreview.core.exceptions import ConfigurationError, DiffReviewError
from diffreview.core.logging import configure_logging
from diffreview.core.metrics import write_metrics_textfile
from diffreview.prompts.review import ReviewPromptBuilder, get_prompt_template
from diffreview.services.github.client import GitHubClient
from diffreview.services.github.events import is_reviewable, load_event
from diffreview.services.github.models import PullRequestContext
from diffreview.services.llm import get_reviewer
from diffreview.services.review.file_filter import parse_exclude_patterns
from diffreview.services.review.pipeline import ReviewPipeline

logger = structlog.get_logger()

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

app = typer.Typer(add_completion=False, help="Review pull request diffs with a language model")


def _version_callback(value: bool) -> None:
    if value:
        from diffreview import __version__

        typer.echo(f"diffreview {__version__}")
        raise typer.Exit()


def build_pipeline(settings: Settings, github_client: GitHubClient | None = None) -> ReviewPipeline:
    """Wire a pipeline from settings."""
    return ReviewPipeline(
        reviewer=get_reviewer(settings),
        github_client=github_client,
        prompt_builder=ReviewPromptBuilder(
            template=get_prompt_template(settings.review_profile),
            context_side=settings.context_line_numbers,
        ),
    )


def _github_client(settings: Settings) -> GitHubClient:
    if settings.github_token is None:
        raise ConfigurationError("GITHUB_TOKEN is required to review a pull request")
    return GitHubClient(
        token=settings.github_token.get_secret_value(),
        base_url=settings.github_api_url,
    )


async def review_local_diff(
    settings: Settings,
    diff_file: Path,
    title: str,
    description: str,
) -> int:
    """Review a diff file and print the resulting comments as JSON."""
    try:
        diff_text = diff_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read diff file: {e}", {"path": str(diff_file)}) from e

    pipeline = build_pipeline(settings)
    pr = PullRequestContext(
        owner="local",
        repo=diff_file.stem,
        pull_number=0,
        title=title,
        description=description,
    )
    comments = await pipeline.review_diff(
        diff_text,
        pr,
        exclude_patterns=parse_exclude_patterns(settings.exclude),
        extra_instructions=settings.extra_instructions,
    )
    if not comments:
        logger.info("No comments to post.")
    typer.echo(json.dumps([asdict(c) for c in comments], indent=2))
    return EXIT_SUCCESS


async def review_pull_request(
    settings: Settings,
    owner: str | None,
    repo: str | None,
    pr_number: int | None,
    dry_run: bool,
) -> int:
    """Review a PR given explicitly or through the Actions event payload."""
    if owner is None or repo is None or pr_number is None:
        event = load_event(settings.github_event_path)
        if not is_reviewable(event):
            logger.info(
                "Unsupported event",
                event_name=settings.github_event_name,
                action=event.action,
            )
            return EXIT_SUCCESS
        owner, repo, pr_number = event.owner, event.repo_name, event.number

    pipeline = build_pipeline(settings, github_client=_github_client(settings))
    try:
        result = await pipeline.execute(
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            exclude_patterns=parse_exclude_patterns(settings.exclude),
            extra_instructions=settings.extra_instructions,
            post_review=not dry_run,
        )
    finally:
        await pipeline.close()

    logger.info(
        "Review finished",
        status=result.status,
        files_reviewed=result.files_reviewed,
        chunks_reviewed=result.chunks_reviewed,
        comments=result.total_comments,
    )
    if dry_run:
        typer.echo(json.dumps([asdict(c) for c in result.comments], indent=2))
    return EXIT_SUCCESS


@app.command()
def review(
    owner: str | None = typer.Option(None, "--owner", help="Repository owner."),
    repo: str | None = typer.Option(None, "--repo", help="Repository name."),
    pr_number: int | None = typer.Option(None, "--pr", help="Pull request number."),
    diff_file: Path | None = typer.Option(
        None,
        "--diff-file",
        help="Review a local unified diff instead of a pull request.",
    ),
    title: str = typer.Option("", "--title", help="PR title used with --diff-file."),
    description: str = typer.Option(
        "", "--description", help="PR description used with --diff-file."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print comments instead of posting."),
    metrics_file: Path | None = typer.Option(
        None,
        "--metrics-file",
        help="Write Prometheus metrics to this file when the run ends.",
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit."
    ),
) -> None:
    """
    Review a pull request and post one batched review.

    Without --owner/--repo/--pr the pull request is read from the GitHub
    Actions event payload (GITHUB_EVENT_PATH).
    """
    explicit_pr = [owner, repo, pr_number]
    if diff_file is None and any(v is not None for v in explicit_pr):
        if any(v is None for v in explicit_pr):
            raise typer.BadParameter("--owner, --repo and --pr must be given together")

    try:
        settings = get_settings()
    except ValidationError as e:
        typer.echo(f"ERROR: invalid configuration: {e}", err=True)
        raise typer.Exit(EXIT_FAILURE) from e

    configure_logging(settings.log_level, settings.log_format)

    try:
        if diff_file is not None:
            exit_code = asyncio.run(review_local_diff(settings, diff_file, title, description))
        else:
            exit_code = asyncio.run(
                review_pull_request(settings, owner, repo, pr_number, dry_run)
            )
    except DiffReviewError as e:
        logger.error("Review failed", error=e.message, details=e.details)
        exit_code = EXIT_FAILURE
    finally:
        if metrics_file is not None:
            write_metrics_textfile(str(metrics_file))

    raise typer.Exit(exit_code)
