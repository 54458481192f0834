"""Curated reference recipes used for retrieval on recipe cache misses."""

import logging
from dataclasses import dataclass

from recipe_cache.entities import CorpusRecipe
from recipe_cache.services.similarity_store import VectorStoreRegistry

logger = logging.getLogger(__name__)

TABLE_NAME = "recipe_corpus"
DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class CorpusMatch:
    """A corpus recipe and its cosine distance to the query."""

    recipe: CorpusRecipe
    distance: float


def recipe_to_content(recipe: CorpusRecipe) -> str:
    """Text embedded for a corpus recipe."""
    parts = [recipe.title]
    if recipe.ingredients:
        parts.append("Ingredients:\n" + "\n".join(recipe.ingredients))
    if recipe.directions:
        parts.append("Directions:\n" + "\n".join(recipe.directions))
    return "\n\n".join(parts)


def format_reference(recipe: CorpusRecipe) -> str:
    """Compact form of a corpus recipe for use inside a generation prompt."""
    return (
        f"{recipe.title}\n"
        f"Ingredients: {'; '.join(recipe.ingredients)}\n"
        f"Directions: {' '.join(recipe.directions)}"
    )


class RecipeCorpus:
    """Read-mostly vector table of reference recipes."""

    def __init__(self, registry: VectorStoreRegistry, table_name: str = TABLE_NAME) -> None:
        self._registry = registry
        self._table_name = table_name

    async def query(self, text: str, k: int = DEFAULT_LIMIT) -> list[CorpusMatch]:
        """Find the k corpus recipes nearest to text.

        Returns:
            Matches closest first (empty if unavailable or on error)
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None or not text.strip():
            return []

        try:
            matches = await store.similarity_search(text, k)
        except Exception:
            logger.exception("Corpus query failed")
            return []

        return [
            CorpusMatch(recipe=CorpusRecipe.from_dict(match.metadata), distance=match.distance)
            for match in matches
        ]

    async def ingest(self, recipes: list[CorpusRecipe]) -> int:
        """Add recipes to the corpus, one row each.

        Errors propagate to the caller.

        Returns:
            Number of rows written
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return 0
        items = [(recipe_to_content(r), r.to_dict()) for r in recipes if r.title]
        count = await store.insert_many(items)
        logger.info("Ingested %d corpus recipes", count)
        return count

    async def count(self) -> int:
        """Number of corpus recipes (0 if the corpus is unavailable)."""
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return 0
        try:
            return await store.count()
        except Exception:
            logger.warning("Corpus count failed", exc_info=True)
            return 0
