"""Ollama embedding provider for local development.

Needs neither an OpenAI key nor a model download inside the process:
`ollama pull nomic-embed-text && ollama serve` is enough.
"""

import logging

import httpx

from recipe_cache.config import settings
from recipe_cache.errors import ProviderError

logger = logging.getLogger(__name__)

_DEFAULT_DIMENSION = 768


class OllamaEmbeddingProvider:
    """Embeddings from Ollama's /api/embed endpoint.

    Batches go out as one request; inputs longer than the model context are
    truncated server-side.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(model_name="nomic-embed-text")
        vectors = await provider.encode_batch(["Sarma", "Punjene paprike"])
        ```
    """

    KNOWN_DIMENSIONS = {
        "nomic-embed-text": 768,
        "embeddinggemma": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._model_name = model_name or settings.embedding_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout or settings.embedding_timeout
        self._probed_dimension: int | None = None
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, model_name: str | None = None, base_url: str | None = None) -> "OllamaEmbeddingProvider":
        """Factory method using configured defaults."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def dimension(self) -> int:
        """Vector size; a probed size wins over the table of known models."""
        if self._probed_dimension is not None:
            return self._probed_dimension
        base_name = self._model_name.split(":", 1)[0]
        return self.KNOWN_DIMENSIONS.get(base_name, _DEFAULT_DIMENSION)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        (vector,) = await self.encode_batch([text])
        return vector

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in one request, preserving order.

        Raises:
            ProviderError: If Ollama is unreachable or answers with something unexpected
        """
        if not texts:
            return []

        payload = {"model": self._model_name, "input": texts, "truncate": True}
        try:
            response = await self.client.post(f"{self._base_url}/api/embed", json=payload)
            response.raise_for_status()
            vectors = response.json().get("embeddings") or []
        except httpx.ConnectError as e:
            raise ProviderError(f"Ollama not reachable at {self._base_url} (is `ollama serve` running?)") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ProviderError(f"Ollama model {self._model_name!r} not found, run `ollama pull`") from e
            raise ProviderError(f"Ollama embedding error: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama embedding error: {e}") from e

        if len(vectors) != len(texts):
            raise ProviderError(f"Ollama returned {len(vectors)} embeddings for {len(texts)} inputs")

        if self._probed_dimension is None:
            self._probed_dimension = len(vectors[0])
        return vectors

    async def is_available(self) -> bool:
        try:
            await self.encode("ping")
        except ProviderError:
            logger.warning("Ollama embeddings unavailable at %s", self._base_url, exc_info=True)
            return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
