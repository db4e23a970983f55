"""Prompts for code review."""

from dataclasses import dataclass, replace
from typing import Literal

from diffreview.services.github.models import PullRequestContext
from diffreview.services.review.diff_parser import ContextSide, FileDiff, Hunk

ReviewProfile = Literal["default", "java-spring"]

REVIEW_BASE_POLICY = """Your task is to review pull requests. Instructions:
- Provide the response in following JSON format:  {"reviews": [{"lineNumber":  <line_number>, "reviewComment": "<review comment>"}]}
- Do not give positive comments or compliments.
- Provide comments and suggestions ONLY if there is something to improve, otherwise "reviews" should be an empty array.
- Write the comment in GitHub Markdown format.
- Use the given description only for the overall context and only comment the code.
- Never comment on the pull request title or description.
- IMPORTANT: NEVER suggest adding comments or documentation to the code.
- Never comment on file formatting and linting issues.
- Always propose a code solution to the issue.
- Don't check package imports or dependency declarations."""

JAVA_SPRING_HINTS = """Additional context for Java and Spring code:
- Prefer constructor injection over field injection with @Autowired.
- Flag transactional boundaries that are missing or placed on private or self-invoked methods.
- Flag blocking calls inside reactive (Mono/Flux) pipelines.
- Flag JPA queries that can trigger N+1 selects or load unbounded result sets.
- Flag resources (streams, connections) not closed with try-with-resources.
- Flag mutable state in singleton-scoped beans."""


@dataclass(frozen=True)
class PromptTemplate:
    """Reviewer policy: fixed rules, optional domain hints, caller extension."""

    base_policy: str = REVIEW_BASE_POLICY
    domain_hints: str = ""
    extension_text: str = ""

    def render_policy(self) -> str:
        parts = [self.base_policy]
        if self.domain_hints:
            parts.append(self.domain_hints)
        if self.extension_text:
            parts.append(self.extension_text)
        return "\n".join(parts)


PROFILES: dict[str, PromptTemplate] = {
    "default": PromptTemplate(),
    "java-spring": PromptTemplate(domain_hints=JAVA_SPRING_HINTS),
}


def get_prompt_template(profile: ReviewProfile = "default", extension_text: str = "") -> PromptTemplate:
    """Look up a review profile and attach the caller's extra instructions."""
    return replace(PROFILES[profile], extension_text=extension_text)


def annotate_hunk(hunk: Hunk, context_side: ContextSide = "old") -> str:
    """Prefix every hunk line with its resolved line number."""
    annotated = []
    for line in hunk.lines:
        line_no = line.resolved_line_number(context_side)
        annotated.append(f"{line_no if line_no is not None else ''} {line}")
    return "\n".join(annotated)


def build_review_prompt(
    file_diff: FileDiff,
    hunk: Hunk,
    pr: PullRequestContext,
    template: PromptTemplate | None = None,
    context_side: ContextSide = "old",
) -> str:
    """Build the instruction payload for one hunk of one file."""
    template = template or PromptTemplate()

    return f"""{template.render_policy()}

Review the following code diff in the file "{file_diff.path}" and take the pull request title and description into account when writing the response.

Pull request title: {pr.title}
Pull request description:

---
{pr.description}
---

Git diff to review:

```diff
{hunk.header}
{annotate_hunk(hunk, context_side)}
```
"""


class ReviewPromptBuilder:
    """Builds per-hunk prompts from one fixed template and numbering choice."""

    def __init__(
        self,
        template: PromptTemplate | None = None,
        context_side: ContextSide = "old",
    ) -> None:
        self.template = template or PromptTemplate()
        self.context_side = context_side

    def with_extension(self, extension_text: str) -> "ReviewPromptBuilder":
        """Return a builder whose policy ends with ``extension_text``."""
        if not extension_text:
            return self
        return ReviewPromptBuilder(
            template=replace(self.template, extension_text=extension_text),
            context_side=self.context_side,
        )

    def build(self, file_diff: FileDiff, hunk: Hunk, pr: PullRequestContext) -> str:
        return build_review_prompt(file_diff, hunk, pr, self.template, self.context_side)
