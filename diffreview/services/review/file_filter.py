"""Drop deleted files and paths matching exclusion globs before review."""

from collections.abc import Iterable, Sequence

import structlog
from wcmatch import glob

from diffreview.services.review.diff_parser import FileDiff

logger = structlog.get_logger()

# `*` stays within a path segment, `**` crosses segments, `{a,b}` expands, and a
# pattern without a slash also matches the basename (so "*.md" hits docs/x.md).
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.MATCHBASE | glob.DOTGLOB


def parse_exclude_patterns(raw: str | None) -> list[str]:
    """Split a comma-separated pattern list, trimming blanks."""
    if not raw:
        return []
    return [pattern.strip() for pattern in raw.split(",") if pattern.strip()]


def is_excluded(path: str, patterns: Sequence[str]) -> bool:
    return bool(patterns) and glob.globmatch(path, list(patterns), flags=GLOB_FLAGS)


def filter_files(files: Iterable[FileDiff], exclude_patterns: Sequence[str] = ()) -> list[FileDiff]:
    """
    Keep files that still exist after the change and match no exclusion pattern.

    Order is preserved and entries are returned as-is.
    """
    kept = []
    for file_diff in files:
        if file_diff.is_deletion:
            logger.debug("Skipping deleted file", path=file_diff.old_path)
            continue
        if is_excluded(file_diff.path, exclude_patterns):
            logger.debug("Skipping excluded file", path=file_diff.path)
            continue
        kept.append(file_diff)
    return kept
