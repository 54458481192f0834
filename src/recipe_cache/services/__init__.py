"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from recipe_cache.services import RecipePipeline, RecipeQuery

    outcome = await pipeline.generate(RecipeQuery("Sarma", generate_all=True))
    ```
"""

from .background import DetachedTasks
from .enrichment_cache import EnrichmentCache
from .enrichment_service import EnrichmentService
from .pipeline import PipelineOutcome, PipelineStage, RecipePipeline, RecipeQuery
from .recipe_cache import RecipeCache
from .recipe_corpus import CorpusMatch, RecipeCorpus
from .similar_recipes import SimilarRecipesIndex
from .similarity_store import VectorSimilarityStore, VectorStoreRegistry

__all__ = [
    "CorpusMatch",
    "DetachedTasks",
    "EnrichmentCache",
    "EnrichmentService",
    "PipelineOutcome",
    "PipelineStage",
    "RecipeCache",
    "RecipeCorpus",
    "RecipePipeline",
    "RecipeQuery",
    "SimilarRecipesIndex",
    "VectorSimilarityStore",
    "VectorStoreRegistry",
]
