from typing import Any

import structlog

from diffreview.core.exceptions import LLMError, LLMProviderUnavailableError, LLMResponseParseError
from diffreview.services.llm.base import REVIEW_RESPONSE_SCHEMA, Completion, Reviewer

logger = structlog.get_logger()

DEFAULT_MAX_TOKENS = 1500


class OpenAIReviewer(Reviewer):
    """OpenAI chat completions reviewer with a strict JSON schema response."""

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
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Any:
        """Lazy initialization of the OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise LLMProviderUnavailableError("OpenAI API key not configured")

            import openai

            # Failed calls degrade to "no findings"; the SDK must not retry them.
            self._client = openai.AsyncOpenAI(api_key=self._api_key, max_retries=0)
        return self._client

    def build_request(self, prompt: str) -> dict[str, Any]:
        """Keyword arguments for ``chat.completions.create``."""
        return {
            "model": self._model,
            "temperature": 0,
            "max_tokens": self.max_tokens,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "response",
                    "strict": True,
                    "schema": REVIEW_RESPONSE_SCHEMA,
                },
            },
            "messages": [{"role": "system", "content": prompt}],
        }

    async def _complete(self, prompt: str) -> Completion:
        client = self._get_client()

        logger.debug("Sending review request to OpenAI", model=self._model)

        import openai

        try:
            response = await client.chat.completions.create(**self.build_request(prompt))
        except openai.APIError as e:
            raise LLMError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise LLMResponseParseError("OpenAI returned no choices")

        choice = response.choices[0]
        content = choice.message.content if choice.message else None
        usage = response.usage

        return Completion(
            content=content,
            truncated=choice.finish_reason == "length",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )
