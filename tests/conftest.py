"""Pytest configuration and fixtures."""

import os
from collections.abc import Iterator

import pytest

from diffreview.core.config import get_settings
from diffreview.services.github.models import PullRequestContext
from tests.fakes import FakeReviewer

# =============================================================================
# Environment Setup
# =============================================================================

# Keep a developer's real credentials and inputs out of the test run.
for _name in (
    "GITHUB_TOKEN",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_MODEL",
    "ANTHROPIC_MODEL",
    "MAX_OUTPUT_TOKENS",
    "LLM_PROVIDER",
    "EXCLUDE",
    "EXTRA_INSTRUCTIONS",
    "REVIEW_PROFILE",
    "CONTEXT_LINE_NUMBERS",
    "GITHUB_EVENT_PATH",
    "GITHUB_EVENT_NAME",
    "GITHUB_API_URL",
    "LOG_LEVEL",
    "LOG_FORMAT",
):
    os.environ.pop(_name, None)
    os.environ.pop(f"INPUT_{_name}", None)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_pr() -> PullRequestContext:
    return PullRequestContext(
        owner="owner",
        repo="repo",
        pull_number=42,
        title="Add input validation",
        description="Validates user input before processing.",
        commit_id="abc123def456",
    )


@pytest.fixture
def fake_reviewer() -> FakeReviewer:
    return FakeReviewer()
