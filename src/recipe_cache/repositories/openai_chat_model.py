"""OpenAI chat completion client.

Every LLM call (recipe generation and each enrichment step) goes through
`complete()`, so timeouts and logging are handled in one place.
"""

import logging
import time

from openai import AsyncOpenAI, OpenAIError

from recipe_cache.config import settings
from recipe_cache.errors import ProviderError

logger = logging.getLogger(__name__)


class OpenAIChatModel:
    """OpenAI implementation of the ChatModel protocol.

    Example:
        ```python
        model = OpenAIChatModel.create(model_name="gpt-4o-mini")
        text = await model.complete("You are a chef.", "Sarma", temperature=0.5)
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        default_temperature: float = 0.0,
        default_max_tokens: int = 500,
    ) -> None:
        """Initialize the chat client.

        Args:
            model_name: Chat model. Defaults to settings.enrichment_model.
            api_key: OpenAI API key. Defaults to settings.openai_api_key.
            timeout: Request timeout in seconds. Defaults to settings.llm_timeout.
            default_temperature: Temperature when a call doesn't set one.
            default_max_tokens: Completion limit when a call doesn't set one.
        """
        self._model_name = model_name or settings.enrichment_model
        self._api_key = api_key or settings.openai_api_key
        self._timeout = timeout or settings.llm_timeout
        self._default_temperature = default_temperature
        self._default_max_tokens = default_max_tokens
        self._client: AsyncOpenAI | None = None

    @classmethod
    def create(cls, model_name: str | None = None, **kwargs) -> "OpenAIChatModel":
        """Factory method to create OpenAIChatModel with defaults."""
        return cls(model_name=model_name, **kwargs)

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the async OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run one system + user exchange.

        Raises:
            ProviderError: If the OpenAI request fails
        """
        start_time = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=self._model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=self._default_temperature if temperature is None else temperature,
                max_tokens=max_tokens or self._default_max_tokens,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI chat error ({self._model_name}): {e}") from e

        logger.debug("LLM call %s took %.0fms", self._model_name, (time.time() - start_time) * 1000)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
