"""Recipe Cache - semantic caching and enrichment for AI recipe generation.

This package provides a layered architecture around pgvector:

Layers:
    - protocols: Interface contracts (EmbeddingProvider, ChatModel, VectorTable)
    - repositories: Data access implementations (pgvector, OpenAI, Ollama)
    - services: Business logic (caches, enrichment, pipeline, similar recipes)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from recipe_cache.services import RecipeQuery

    outcome = await pipeline.generate(RecipeQuery("Punjene Paprike", generate_all=True))
    ```

For HTTP API:
    ```python
    from recipe_cache.api.app import app
    ```
"""

from recipe_cache.config import settings
from recipe_cache.entities import CacheMatchEntity, RecipeResult
from recipe_cache.errors import (
    ClassificationRejectedError,
    EnrichmentError,
    ProviderError,
    RecipeCacheError,
    RecipeGenerationError,
    UnparseableModelOutputError,
)
from recipe_cache.handlers import RecipeHandler
from recipe_cache.protocols import ChatModel, EmbeddingProvider, VectorTable
from recipe_cache.repositories import PgVectorRepository
from recipe_cache.services import (
    EnrichmentCache,
    EnrichmentService,
    RecipeCache,
    RecipePipeline,
    RecipeQuery,
    SimilarRecipesIndex,
    VectorStoreRegistry,
)

__all__ = [
    # Configuration
    "settings",
    # Protocols (interfaces)
    "ChatModel",
    "EmbeddingProvider",
    "VectorTable",
    # Services (business logic)
    "EnrichmentCache",
    "EnrichmentService",
    "RecipeCache",
    "RecipePipeline",
    "RecipeQuery",
    "SimilarRecipesIndex",
    "VectorStoreRegistry",
    # Handlers (HTTP)
    "RecipeHandler",
    # Repositories (data access)
    "PgVectorRepository",
    # Entities (domain models)
    "CacheMatchEntity",
    "RecipeResult",
    # Errors
    "RecipeCacheError",
    "UnparseableModelOutputError",
    "RecipeGenerationError",
    "EnrichmentError",
    "ClassificationRejectedError",
    "ProviderError",
]
