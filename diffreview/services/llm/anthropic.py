from typing import Any

import structlog

from diffreview.core.exceptions import LLMError, LLMProviderUnavailableError, LLMResponseParseError
from diffreview.services.llm.base import REVIEW_RESPONSE_SCHEMA, Completion, Reviewer

logger = structlog.get_logger()

DEFAULT_MAX_TOKENS = 1500
REVIEW_TOOL_NAME = "submit_review"


class AnthropicReviewer(Reviewer):
    """
    Anthropic Claude reviewer.

    The review schema is exposed as the input schema of a single tool and the
    model is forced to call it, so the tool input is the structured answer.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Any = None,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self.max_tokens = max_tokens
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Any:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise LLMProviderUnavailableError("Anthropic API key not configured")

            import anthropic

            self._client = anthropic.AsyncAnthropic(api_key=self._api_key, max_retries=0)
        return self._client

    def build_request(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "max_tokens": self.max_tokens,
            "temperature": 0,
            "system": prompt,
            "messages": [{"role": "user", "content": "Review the diff above."}],
            "tools": [
                {
                    "name": REVIEW_TOOL_NAME,
                    "description": "Submit the review findings for the diff.",
                    "input_schema": REVIEW_RESPONSE_SCHEMA,
                }
            ],
            "tool_choice": {"type": "tool", "name": REVIEW_TOOL_NAME},
        }

    async def _complete(self, prompt: str) -> Completion:
        client = self._get_client()

        logger.debug("Sending review request to Anthropic", model=self._model)

        import anthropic

        try:
            message = await client.messages.create(**self.build_request(prompt))
        except anthropic.APIError as e:
            raise LLMError(f"Anthropic API error: {e}") from e

        usage = message.usage
        input_tokens = usage.input_tokens if usage else 0
        output_tokens = usage.output_tokens if usage else 0

        if message.stop_reason == "max_tokens":
            return Completion(
                content=None,
                truncated=True,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        tool_input = next(
            (
                block.input
                for block in message.content
                if block.type == "tool_use" and block.name == REVIEW_TOOL_NAME
            ),
            None,
        )
        if not isinstance(tool_input, dict):
            raise LLMResponseParseError(
                "Anthropic response did not call the review tool",
                details={"content": str(message.content)[:500]},
            )

        return Completion(
            content=tool_input,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
