"""Ollama chat client for local development."""

import logging

import httpx

from recipe_cache.config import settings
from recipe_cache.errors import ProviderError

logger = logging.getLogger(__name__)


class OllamaChatModel:
    """Ollama implementation of the ChatModel protocol.

    Uses the non-streaming {base_url}/api/chat endpoint.
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        default_temperature: float = 0.0,
        default_max_tokens: int = 500,
    ) -> None:
        self._model_name = model_name or settings.enrichment_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout or settings.llm_timeout
        self._default_temperature = default_temperature
        self._default_max_tokens = default_max_tokens
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, model_name: str | None = None, **kwargs) -> "OllamaChatModel":
        """Factory method to create OllamaChatModel with defaults."""
        return cls(model_name=model_name, **kwargs)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
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
            ProviderError: If the Ollama API request fails
        """
        payload = {
            "model": self._model_name,
            "stream": False,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "options": {
                "temperature": self._default_temperature if temperature is None else temperature,
                "num_predict": max_tokens or self._default_max_tokens,
            },
        }
        try:
            response = await self.client.post(f"{self._base_url}/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama chat error ({self._model_name}): {e}") from e

        return (data.get("message") or {}).get("content") or ""

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
