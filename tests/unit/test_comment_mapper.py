import pytest

from diffreview.services.llm.base import Finding
from diffreview.services.review.comment_mapper import (
    CommentRecord,
    map_findings,
    parse_line_number,
)


class TestParseLineNumber:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("5", 5),
            (" 12 ", 12),
            ("7.0", 7),
            ("0", 0),
            ("-3", -3),
        ],
    )
    def test_valid_tokens(self, token: str, expected: int) -> None:
        assert parse_line_number(token) == expected

    @pytest.mark.parametrize("token", ["not-a-number", "", "4.5", "nan", "inf", "12-14"])
    def test_invalid_tokens(self, token: str) -> None:
        assert parse_line_number(token) is None


class TestMapFindings:
    def test_maps_in_order(self) -> None:
        findings = [
            Finding(line_number="5", review_comment="Use a named constant."),
            Finding(line_number="9", review_comment="Handle the empty case."),
        ]

        comments = map_findings("a.py", findings)

        assert comments == [
            CommentRecord(path="a.py", line=5, body="Use a named constant."),
            CommentRecord(path="a.py", line=9, body="Handle the empty case."),
        ]

    def test_bad_line_is_dropped_and_siblings_kept(self) -> None:
        findings = [
            Finding(line_number="not-a-number", review_comment="Lost."),
            Finding(line_number="3", review_comment="Kept."),
        ]

        comments = map_findings("src/app.ts", findings)

        assert comments == [CommentRecord(path="src/app.ts", line=3, body="Kept.")]

    def test_line_is_not_checked_against_hunk(self) -> None:
        comments = map_findings("a.py", [Finding(line_number="9999", review_comment="Far away.")])

        assert comments[0].line == 9999

    def test_body_passed_through_verbatim(self) -> None:
        body = "Prefer:\n\n```python\nvalue = compute()\n```"

        comments = map_findings("a.py", [Finding(line_number="1", review_comment=body)])

        assert comments[0].body == body

    def test_no_findings(self) -> None:
        assert map_findings("a.py", []) == []
