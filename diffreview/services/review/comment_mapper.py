"""Turn model findings into platform comment coordinates."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from diffreview.core.metrics import record_finding_dropped
from diffreview.services.llm.base import Finding

logger = structlog.get_logger()


@dataclass(frozen=True)
class CommentRecord:
    """A comment GitHub can anchor: file path, new-file line, markdown body."""

    path: str
    line: int
    body: str


def parse_line_number(token: str) -> int | None:
    """
    Parse a finding's line token.

    Returns None unless the token is a finite, integral number.
    """
    text = str(token).strip()
    try:
        return int(text)
    except ValueError:
        pass

    try:
        value = float(text)
    except ValueError:
        return None

    if not math.isfinite(value) or not value.is_integer():
        return None
    return int(value)


def map_findings(path: str, findings: Iterable[Finding]) -> list[CommentRecord]:
    """
    Build comment records for one file.

    Findings with an unusable line number are logged and skipped; the rest of
    the batch is unaffected. Line numbers are not checked against the file.
    """
    comments = []
    for finding in findings:
        line = parse_line_number(finding.line_number)
        if line is None:
            logger.warning(
                "Dropping finding with invalid line number",
                path=path,
                line_number=finding.line_number,
            )
            record_finding_dropped()
            continue

        logger.info("Commenting on line", path=path, line=line)
        comments.append(CommentRecord(path=path, line=line, body=finding.review_comment))
    return comments
