"""Repository layer for data access.

This layer abstracts external dependencies (Postgres, embedding APIs, chat
APIs) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (OpenAI → Ollama, pgvector → in-memory)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.

LocalEmbeddingProvider is not re-exported here because it needs the optional
sentence-transformers dependency; import it from its module.
"""

from recipe_cache.protocols import ChatModel, EmbeddingProvider, VectorTable

from .ollama_chat_model import OllamaChatModel
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .openai_chat_model import OpenAIChatModel
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .pgvector_repository import PgVectorRepository

__all__ = [
    "ChatModel",
    "EmbeddingProvider",
    "VectorTable",
    "OllamaChatModel",
    "OllamaEmbeddingProvider",
    "OpenAIChatModel",
    "OpenAIEmbeddingProvider",
    "PgVectorRepository",
]
