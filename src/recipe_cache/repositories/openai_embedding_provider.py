"""OpenAI embedding provider.

Default provider for deployed environments. Uses the async OpenAI client so
embedding calls never block the event loop.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from recipe_cache.config import settings
from recipe_cache.errors import ProviderError

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider:
    """OpenAI implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAIEmbeddingProvider.create()
        embedding = await provider.encode("Punjene paprike")
        print(len(embedding))  # 1536
        ```
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            model_name: Embedding model. Defaults to settings.embedding_model.
            api_key: OpenAI API key. Defaults to settings.openai_api_key.
            timeout: Request timeout in seconds. Defaults to settings.embedding_timeout.
        """
        self._model_name = model_name or settings.embedding_model
        self._api_key = api_key or settings.openai_api_key
        self._timeout = timeout or settings.embedding_timeout
        self._client: AsyncOpenAI | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults.

        Args:
            model_name: Model name. If None, uses settings.

        Returns:
            Configured OpenAIEmbeddingProvider
        """
        return cls(model_name=model_name)

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the async OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self.MODEL_DIMENSIONS.get(self._model_name, 1536)

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            ProviderError: If the OpenAI request fails
        """
        vectors = await self.encode_batch([text])
        return vectors[0]

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one request.

        Raises:
            ProviderError: If the OpenAI request fails
        """
        if not texts:
            return []
        try:
            response = await self.client.embeddings.create(model=self._model_name, input=texts)
        except OpenAIError as e:
            raise ProviderError(f"OpenAI embedding error: {e}") from e

        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]

    async def is_available(self) -> bool:
        """Check if the embedding API answers."""
        try:
            _ = await self.encode("test")
            return True
        except Exception:
            logger.warning("OpenAI embeddings unavailable", exc_info=True)
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
