"""Semantic cache for complete generated recipes.

Keyed by the recipe query (title plus optional context). Titles are short
and paraphrase-prone, so the threshold is looser than the enrichment cache's.
Each row records whether the recipe was enriched; a query that asks for
enrichment only accepts enriched rows.
"""

import logging

from recipe_cache.config import settings
from recipe_cache.entities import RecipeResult
from recipe_cache.services.similarity_store import VectorStoreRegistry

logger = logging.getLogger(__name__)

TABLE_NAME = "recipe_embeddings"


class RecipeCache:
    """Generate-once cache for complete recipes."""

    def __init__(
        self,
        registry: VectorStoreRegistry,
        distance_threshold: float | None = None,
        table_name: str = TABLE_NAME,
    ) -> None:
        """Initialize the recipe cache.

        Args:
            registry: Store registry (required).
            distance_threshold: Maximum distance for a hit. Defaults to settings.
            table_name: Vector table holding recipe payloads.
        """
        self._registry = registry
        self._threshold = (
            settings.recipe_cache_threshold if distance_threshold is None else distance_threshold
        )
        self._table_name = table_name

    @property
    def threshold(self) -> float:
        return self._threshold

    async def check(self, query_text: str, require_enriched: bool = False) -> RecipeResult | None:
        """Return the cached recipe for a query, if a close enough one exists.

        Cached payloads without ingredients or directions are never returned.

        Args:
            query_text: Title plus context
            require_enriched: Only consider rows stored after enrichment

        Returns:
            The cached RecipeResult, or None on miss, unavailable store or error
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return None

        metadata_filter = {"enriched": True} if require_enriched else None
        try:
            matches = await store.similarity_search(query_text, k=1, metadata_filter=metadata_filter)
        except Exception:
            logger.exception("Recipe cache lookup failed")
            return None

        if not matches:
            return None
        best = matches[0]
        if best.distance > self._threshold:
            logger.debug("Recipe cache miss for %r (distance=%.4f)", query_text, best.distance)
            return None

        recipe_data = best.metadata.get("recipeData")
        if not isinstance(recipe_data, dict):
            return None
        result = RecipeResult.from_dict(recipe_data)
        if not result.is_complete:
            logger.warning("Ignoring incomplete cached recipe for %r", query_text)
            return None

        logger.info("Recipe cache hit for %r (distance=%.4f)", query_text, best.distance)
        return result

    async def store(self, query_text: str, result: RecipeResult, enriched: bool = True) -> str | None:
        """Insert a freshly generated recipe.

        Errors propagate; submit this through DetachedTasks on request paths.

        Args:
            query_text: Title plus context (the semantic key)
            result: The generated recipe
            enriched: Whether the enrichment steps ran for it

        Raises:
            ValueError: If the recipe lacks ingredients or directions

        Returns:
            The new row id, or None if caching is disabled
        """
        if not result.is_complete:
            raise ValueError("Refusing to cache a recipe without ingredients and directions")

        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return None
        return await store.insert(query_text, {"recipeData": result.to_dict(), "enriched": enriched})
