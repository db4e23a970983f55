"""
Prometheus metrics for diffreview.

This module provides:
- LLM metrics (requests by outcome, tokens, latency per model/provider)
- Review metrics (chunks reviewed, findings dropped, comments produced)
- GitHub API metrics (request count, latency, rate limit)

A one-shot CLI run has no scrape endpoint, so the registry can be flushed to a
node-exporter textfile with ``write_metrics_textfile``.
"""

import time

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client import write_to_textfile

# =============================================================================
# LLM Metrics
# =============================================================================

LLM_REQUESTS_TOTAL = Counter(
    "diffreview_llm_requests_total",
    "Total number of LLM API requests",
    ["provider", "model", "status"],  # status: ok, empty, truncated, error
)

LLM_TOKENS_TOTAL = Counter(
    "diffreview_llm_tokens_total",
    "Total number of tokens processed",
    ["provider", "model", "direction"],  # direction: input, output
)

LLM_REQUEST_DURATION_SECONDS = Histogram(
    "diffreview_llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["provider", "model"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0, 100.0),
)

# =============================================================================
# Review Metrics
# =============================================================================

REVIEW_CHUNKS_TOTAL = Counter(
    "diffreview_review_chunks_total",
    "Number of diff hunks sent for review",
)

REVIEW_FINDINGS_DROPPED_TOTAL = Counter(
    "diffreview_review_findings_dropped_total",
    "Findings dropped because their line number could not be parsed",
)

REVIEW_COMMENTS_TOTAL = Counter(
    "diffreview_review_comments_total",
    "Review comments produced",
)

REVIEWS_TOTAL = Counter(
    "diffreview_reviews_total",
    "Pipeline runs by terminal state",
    ["status"],  # status: submitted, skipped, rejected
)

# =============================================================================
# GitHub API Metrics
# =============================================================================

GITHUB_API_REQUESTS_TOTAL = Counter(
    "diffreview_github_api_requests_total",
    "Total number of GitHub API requests",
    ["endpoint", "method", "status_code"],
)

GITHUB_API_DURATION_SECONDS = Histogram(
    "diffreview_github_api_duration_seconds",
    "GitHub API request duration in seconds",
    ["endpoint", "method"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

GITHUB_RATE_LIMIT_REMAINING = Gauge(
    "diffreview_github_rate_limit_remaining",
    "Remaining GitHub API rate limit",
)

GITHUB_RATE_LIMIT_RESET_SECONDS = Gauge(
    "diffreview_github_rate_limit_reset_seconds",
    "Seconds until GitHub rate limit resets",
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_llm_request(
    provider: str,
    model: str,
    status: str,
    duration_seconds: float,
    tokens_input: int = 0,
    tokens_output: int = 0,
) -> None:
    """
    Record metrics for an LLM API request.

    Args:
        provider: LLM provider name (openai, anthropic)
        model: Model identifier
        status: Review outcome status (ok, empty, truncated, error)
        duration_seconds: Request duration
        tokens_input: Number of input/prompt tokens
        tokens_output: Number of output/completion tokens
    """
    LLM_REQUESTS_TOTAL.labels(provider=provider, model=model, status=status).inc()
    LLM_REQUEST_DURATION_SECONDS.labels(provider=provider, model=model).observe(
        duration_seconds
    )

    if tokens_input > 0:
        LLM_TOKENS_TOTAL.labels(provider=provider, model=model, direction="input").inc(
            tokens_input
        )
    if tokens_output > 0:
        LLM_TOKENS_TOTAL.labels(provider=provider, model=model, direction="output").inc(
            tokens_output
        )


def record_review_completed(status: str, chunks_reviewed: int, comments: int) -> None:
    """Record the terminal state of one pipeline run."""
    REVIEWS_TOTAL.labels(status=status).inc()
    REVIEW_CHUNKS_TOTAL.inc(chunks_reviewed)
    REVIEW_COMMENTS_TOTAL.inc(comments)


def record_finding_dropped() -> None:
    REVIEW_FINDINGS_DROPPED_TOTAL.inc()


def record_github_api_call(
    endpoint: str,
    method: str,
    status_code: int,
    duration_seconds: float,
    rate_limit_remaining: int | None = None,
    rate_limit_reset: int | None = None,
) -> None:
    """
    Record metrics for a GitHub API call.

    Args:
        endpoint: API endpoint (e.g., "pulls", "pulls_reviews")
        method: HTTP method
        status_code: Response status code (0 when no response was received)
        duration_seconds: Request duration
        rate_limit_remaining: Remaining rate limit (if available)
        rate_limit_reset: Rate limit reset timestamp (if available)
    """
    GITHUB_API_REQUESTS_TOTAL.labels(
        endpoint=endpoint,
        method=method,
        status_code=str(status_code),
    ).inc()

    GITHUB_API_DURATION_SECONDS.labels(endpoint=endpoint, method=method).observe(
        duration_seconds
    )

    if rate_limit_remaining is not None:
        GITHUB_RATE_LIMIT_REMAINING.set(rate_limit_remaining)

    if rate_limit_reset is not None:
        reset_in_seconds = max(0, rate_limit_reset - int(time.time()))
        GITHUB_RATE_LIMIT_RESET_SECONDS.set(reset_in_seconds)


def write_metrics_textfile(path: str, registry: CollectorRegistry = REGISTRY) -> None:
    """Dump the registry in Prometheus text format (textfile collector)."""
    write_to_textfile(path, registry)
