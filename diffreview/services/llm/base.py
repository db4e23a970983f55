import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationError,
)

from diffreview.core.exceptions import LLMError, LLMResponseParseError
from diffreview.core.metrics import record_llm_request

logger = structlog.get_logger()

# Output contract handed to the model. Both levels reject unknown keys.
REVIEW_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "reviews": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "lineNumber": {
                        "type": "integer",
                        "description": "The line number being reviewed",
                    },
                    "reviewComment": {
                        "type": "string",
                        "description": "The comment for the review",
                    },
                },
                "required": ["lineNumber", "reviewComment"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["reviews"],
    "additionalProperties": False,
}

TRUNCATION_MESSAGE = (
    "The maximum context length has been exceeded. "
    "Please reduce the length of the code snippets."
)


class OutcomeStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    TRUNCATED = "truncated"
    ERROR = "error"


@dataclass(frozen=True)
class Finding:
    """A (line, comment) pair as returned by the model, not yet validated."""

    line_number: str
    review_comment: str


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of reviewing one prompt: findings, or why there are none."""

    status: OutcomeStatus
    findings: tuple[Finding, ...] = ()
    error: str | None = None

    @classmethod
    def from_findings(cls, findings: list[Finding]) -> "ReviewOutcome":
        status = OutcomeStatus.OK if findings else OutcomeStatus.EMPTY
        return cls(status=status, findings=tuple(findings))


@dataclass
class Completion:
    """Raw model answer before validation."""

    content: str | dict[str, Any] | None
    truncated: bool = False
    input_tokens: int = 0
    output_tokens: int = 0


class ReviewItem(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # `true` must stay a bool (mapped to "True" and dropped), never line 1.
    line_number: StrictBool | StrictInt | StrictFloat | str = Field(alias="lineNumber")
    review_comment: str = Field(alias="reviewComment")


class ReviewPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reviews: list[ReviewItem]


def parse_review_payload(content: str | dict[str, Any] | None) -> list[Finding]:
    """
    Validate model output against the review schema.

    Raises:
        LLMResponseParseError: If the content is not JSON or breaks the schema.
    """
    try:
        if isinstance(content, dict):
            payload = ReviewPayload.model_validate(content)
        else:
            payload = ReviewPayload.model_validate_json((content or "").strip() or "{}")
    except ValidationError as e:
        raise LLMResponseParseError(
            "Model output does not match the review schema",
            details={
                "content": str(content)[:500],
                "errors": e.errors(include_url=False, include_input=False),
            },
        ) from e

    return [
        Finding(line_number=str(item.line_number), review_comment=item.review_comment)
        for item in payload.reviews
    ]


class Reviewer(ABC):
    """
    Capability interface: prompt in, ReviewOutcome out.

    ``review`` never raises for failures local to one prompt; truncation,
    transport errors and schema violations all come back as an outcome with
    no findings.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier."""
        pass

    @abstractmethod
    async def _complete(self, prompt: str) -> Completion:
        """Send the prompt; raise LLMError on transport failure."""
        pass

    async def review(self, prompt: str) -> ReviewOutcome:
        start_time = time.perf_counter()
        completion: Completion | None = None

        try:
            completion = await self._complete(prompt)
            if completion.truncated:
                logger.warning(TRUNCATION_MESSAGE, provider=self.name, model=self.model)
                outcome = ReviewOutcome(status=OutcomeStatus.TRUNCATED)
            else:
                outcome = ReviewOutcome.from_findings(parse_review_payload(completion.content))
        except LLMError as e:
            logger.error(
                "Review request failed",
                provider=self.name,
                model=self.model,
                error=e.message,
                content=e.details.get("content"),
            )
            outcome = ReviewOutcome(status=OutcomeStatus.ERROR, error=e.message)

        record_llm_request(
            provider=self.name,
            model=self.model,
            status=outcome.status.value,
            duration_seconds=time.perf_counter() - start_time,
            tokens_input=completion.input_tokens if completion else 0,
            tokens_output=completion.output_tokens if completion else 0,
        )
        return outcome
