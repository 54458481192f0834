"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (pgvector → in-memory, OpenAI → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .chat_model import ChatModel
from .embedding_provider import EmbeddingProvider
from .vector_store import VectorTable

__all__ = [
    "ChatModel",
    "EmbeddingProvider",
    "VectorTable",
]
