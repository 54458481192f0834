"""Semantic cache for enrichment results (classify, summary, macro, pairing).

All four types share one table. Every lookup is filtered on the `type`
metadata key and every key carries a "[type] " prefix, so a classify lookup
can never return a summary entry.
"""

import logging
from typing import Any

from recipe_cache.config import settings
from recipe_cache.entities import EnrichmentType
from recipe_cache.services.similarity_store import VectorStoreRegistry

logger = logging.getLogger(__name__)

TABLE_NAME = "enrichment_cache"


class EnrichmentCache:
    """Near-duplicate cache for enrichment results.

    Example:
        ```python
        cache = EnrichmentCache(registry)
        hit = await cache.check(EnrichmentType.SUMMARY, summary_input)
        if hit is None:
            result = {"summary": await summarize(...)}
            await cache.store(EnrichmentType.SUMMARY, summary_input, result)
        ```
    """

    def __init__(
        self,
        registry: VectorStoreRegistry,
        distance_threshold: float | None = None,
        key_max_chars: int | None = None,
        table_name: str = TABLE_NAME,
    ) -> None:
        """Initialize the enrichment cache.

        Args:
            registry: Store registry (required).
            distance_threshold: Maximum distance for a hit. Defaults to settings.
            key_max_chars: Input prefix length used for the key. Defaults to settings.
            table_name: Vector table shared by all enrichment types.
        """
        self._registry = registry
        self._threshold = (
            settings.enrichment_cache_threshold if distance_threshold is None else distance_threshold
        )
        self._key_max_chars = key_max_chars or settings.enrichment_key_max_chars
        self._table_name = table_name

    @property
    def threshold(self) -> float:
        return self._threshold

    def build_key(self, kind: EnrichmentType, input_text: str) -> str:
        """Namespace and truncate an enrichment input."""
        return f"[{kind.value}] {input_text[: self._key_max_chars]}"

    async def check(self, kind: EnrichmentType, input_text: str) -> Any | None:
        """Look up a cached result for this type and input.

        Only the single nearest entry of the same type is considered.

        Returns:
            The cached result, or None on miss, unavailable store or error
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return None

        try:
            matches = await store.similarity_search(
                self.build_key(kind, input_text),
                k=1,
                metadata_filter={"type": kind.value},
            )
        except Exception:
            logger.exception("Enrichment cache lookup failed [%s]", kind.value)
            return None

        if not matches:
            return None
        best = matches[0]
        if best.distance > self._threshold or best.metadata.get("type") != kind.value:
            logger.debug("Enrichment cache miss [%s] (distance=%.4f)", kind.value, best.distance)
            return None

        logger.debug("Enrichment cache hit [%s] (distance=%.4f)", kind.value, best.distance)
        return best.metadata.get("result")

    async def store(self, kind: EnrichmentType, input_text: str, result: Any) -> str | None:
        """Insert a computed result under this type and input.

        Errors propagate; submit this through DetachedTasks on request paths.

        Returns:
            The new row id, or None if caching is disabled
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return None
        return await store.insert(
            self.build_key(kind, input_text),
            {"type": kind.value, "result": result},
        )
