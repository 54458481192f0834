"""Embedding provider protocol.

Every vector table holds vectors from exactly one model. Switching
EMBEDDING_PROVIDER or EMBEDDING_MODEL means re-creating the tables.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns recipe titles, enrichment inputs and recipe bodies into vectors.

    Implementations: OpenAIEmbeddingProvider (default), OllamaEmbeddingProvider,
    LocalEmbeddingProvider.
    """

    @property
    def dimension(self) -> int:
        """Vector size, used when creating a table (e.g. 1536 for text-embedding-3-small)."""
        ...

    @property
    def model_name(self) -> str: ...

    async def encode(self, text: str) -> list[float]:
        """Embed one text."""
        ...

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts with one provider call, in input order."""
        ...

    async def is_available(self) -> bool:
        """Cheap liveness probe for /health."""
        ...
