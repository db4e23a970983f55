"""Review service package."""

from diffreview.services.review.comment_mapper import CommentRecord, map_findings
from diffreview.services.review.diff_parser import DiffLine, DiffParser, FileDiff, Hunk, LineType
from diffreview.services.review.file_filter import filter_files, parse_exclude_patterns

__all__ = [
    "CommentRecord",
    "DiffLine",
    "DiffParser",
    "FileDiff",
    "Hunk",
    "LineType",
    "filter_files",
    "map_findings",
    "parse_exclude_patterns",
]
