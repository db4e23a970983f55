import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from diffreview.core.exceptions import DiffParseError

DEV_NULL = "/dev/null"

ContextSide = Literal["old", "new"]


class LineType(str, Enum):
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"


@dataclass
class DiffLine:
    """A single line in a diff."""

    type: LineType
    content: str
    old_line_no: int | None = None
    new_line_no: int | None = None

    def __str__(self) -> str:
        prefix = {
            LineType.CONTEXT: " ",
            LineType.ADDITION: "+",
            LineType.DELETION: "-",
        }[self.type]
        return f"{prefix}{self.content}"

    def resolved_line_number(self, context_side: ContextSide = "old") -> int | None:
        """
        Line number used to anchor this line in a review prompt.

        Additions resolve to the new file, deletions to the old file (the only
        side they exist on). Context lines default to the old (left) side;
        pass ``context_side="new"`` to number them against the new file.
        """
        if self.type == LineType.ADDITION:
            return self.new_line_no
        if self.type == LineType.DELETION:
            return self.old_line_no
        return self.new_line_no if context_side == "new" else self.old_line_no


@dataclass
class Hunk:
    """A hunk (section) of changes in a diff."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str  # The @@ line
    lines: list[DiffLine] = field(default_factory=list)


@dataclass
class FileDiff:
    """Parsed diff for a single file."""

    path: str
    status: Literal["added", "modified", "deleted", "renamed"]
    old_path: str | None = None
    hunks: list[Hunk] = field(default_factory=list)

    @property
    def is_deletion(self) -> bool:
        """True when the change removes the file entirely."""
        return self.path == DEV_NULL


def _unquote_path(path: str, prefix: str = "") -> str:
    """
    Decode a path as git prints it in headers.

    Paths with non-ASCII or special characters come wrapped in double quotes
    with C-style escapes, and bytes as octal (``"b/caf\\303\\251.py"``). The
    ``a/``/``b/`` prefix sits inside the quotes.
    """
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        path = (
            path[1:-1]
            .encode("utf-8")
            .decode("unicode_escape")
            .encode("latin-1")
            .decode("utf-8")
        )
    if prefix and path.startswith(prefix):
        path = path[len(prefix) :]
    return path


_QUOTED = r'"(?:[^"\\]|\\.)*"'


class DiffParser:
    """Parser for unified diff format (git-style or plain)."""

    # Regex patterns
    FILE_HEADER_PATTERN = re.compile(
        rf"^diff --git (?P<old>{_QUOTED}|a/.*?) (?P<new>{_QUOTED}|b/.*)$"
    )
    OLD_FILE_PATTERN = re.compile(rf"^--- ({_QUOTED}|[^\t]*)(?:\t.*)?$")
    NEW_FILE_PATTERN = re.compile(rf"^\+\+\+ ({_QUOTED}|[^\t]*)(?:\t.*)?$")
    HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
    RENAME_FROM_PATTERN = re.compile(r"^rename from (.*)$")
    RENAME_TO_PATTERN = re.compile(r"^rename to (.*)$")

    def parse(self, diff_text: str) -> list[FileDiff]:
        """
        Parse a unified diff into structured FileDiff objects.

        Hunk bodies are delimited by the line counts in their ``@@`` header, so
        a removed line such as ``--- separator`` is never read as a file header.

        Raises:
            DiffParseError: If a hunk header cannot be parsed or appears before
                any file header.
        """
        if not diff_text.strip():
            return []

        files: list[FileDiff] = []
        current_file: FileDiff | None = None
        current_hunk: Hunk | None = None
        old_line_no = 0
        new_line_no = 0
        old_remaining = 0
        new_remaining = 0

        # Only "\n" ends a line; form feeds and Unicode separators are content.
        for line_index, raw_line in enumerate(diff_text.split("\n"), start=1):
            line = raw_line[:-1] if raw_line.endswith("\r") else raw_line

            # Hunk body
            if current_hunk is not None and (old_remaining > 0 or new_remaining > 0):
                if line.startswith("\\"):
                    # "\ No newline at end of file"
                    continue
                if line.startswith("+"):
                    current_hunk.lines.append(
                        DiffLine(
                            type=LineType.ADDITION,
                            content=line[1:],
                            new_line_no=new_line_no,
                        )
                    )
                    new_line_no += 1
                    new_remaining -= 1
                    continue
                if line.startswith("-"):
                    current_hunk.lines.append(
                        DiffLine(
                            type=LineType.DELETION,
                            content=line[1:],
                            old_line_no=old_line_no,
                        )
                    )
                    old_line_no += 1
                    old_remaining -= 1
                    continue
                if line.startswith(" ") or line == "":
                    current_hunk.lines.append(
                        DiffLine(
                            type=LineType.CONTEXT,
                            content=line[1:],
                            old_line_no=old_line_no,
                            new_line_no=new_line_no,
                        )
                    )
                    old_line_no += 1
                    new_line_no += 1
                    old_remaining -= 1
                    new_remaining -= 1
                    continue
                # Hunk ended early; treat the line as a header below
                old_remaining = new_remaining = 0

            current_hunk = None

            if line.startswith("\\"):
                continue

            # New file diff starting
            file_match = self.FILE_HEADER_PATTERN.match(line)
            if file_match:
                current_file = FileDiff(
                    path=_unquote_path(file_match.group("new"), "b/"),
                    status="modified",  # Will be updated based on --- and +++ lines
                    old_path=_unquote_path(file_match.group("old"), "a/"),
                )
                files.append(current_file)
                continue

            # Hunk header
            if line.startswith("@@"):
                hunk_match = self.HUNK_HEADER_PATTERN.match(line)
                if hunk_match is None or current_file is None:
                    raise DiffParseError(
                        "Malformed hunk header" if hunk_match is None else "Hunk outside file",
                        details={"line": line_index, "content": line},
                    )
                old_start = int(hunk_match.group(1))
                old_count = int(hunk_match.group(2) or 1)
                new_start = int(hunk_match.group(3))
                new_count = int(hunk_match.group(4) or 1)

                current_hunk = Hunk(
                    old_start=old_start,
                    old_count=old_count,
                    new_start=new_start,
                    new_count=new_count,
                    header=line,
                )
                current_file.hunks.append(current_hunk)

                old_line_no = old_start
                new_line_no = new_start
                old_remaining = old_count
                new_remaining = new_count
                continue

            # Old file line (--- a/file); opens a new file in plain unified diffs
            old_match = self.OLD_FILE_PATTERN.match(line)
            if old_match:
                old_path = _unquote_path(old_match.group(1), "a/")
                if current_file is None or current_file.hunks:
                    current_file = FileDiff(path=old_path, status="modified", old_path=old_path)
                    files.append(current_file)
                if old_path == DEV_NULL:
                    current_file.status = "added"
                    current_file.old_path = None
                else:
                    current_file.old_path = old_path
                continue

            # New file line (+++ b/file)
            new_match = self.NEW_FILE_PATTERN.match(line)
            if new_match and current_file:
                current_file.path = _unquote_path(new_match.group(1), "b/")
                if current_file.path == DEV_NULL:
                    current_file.status = "deleted"
                elif current_file.old_path and current_file.old_path != current_file.path:
                    current_file.status = "renamed"
                continue

            if current_file is None:
                continue

            if line.startswith("new file mode"):
                current_file.status = "added"
            elif line.startswith("deleted file mode"):
                current_file.status = "deleted"
                current_file.path = DEV_NULL
            elif rename_from := self.RENAME_FROM_PATTERN.match(line):
                current_file.old_path = _unquote_path(rename_from.group(1))
                current_file.status = "renamed"
            elif rename_to := self.RENAME_TO_PATTERN.match(line):
                current_file.path = _unquote_path(rename_to.group(1))
                current_file.status = "renamed"

        return files
