"""Vector similarity store and its per-table registry.

`VectorSimilarityStore` pairs one vector table with the embedding provider:
callers pass text, the store embeds it. `VectorStoreRegistry` hands out one
store per logical table name, created lazily and memoised for the life of
the process.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy import Engine, text

from recipe_cache.config import create_db_engine, settings
from recipe_cache.entities import CacheMatchEntity
from recipe_cache.protocols import EmbeddingProvider, VectorTable
from recipe_cache.repositories import PgVectorRepository

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[str, int], VectorTable]


class VectorSimilarityStore:
    """Embedding-indexed table with insert and k-NN search.

    Blocking table calls run in a worker thread.
    """

    def __init__(self, repository: VectorTable, embedding_provider: EmbeddingProvider) -> None:
        """Initialize the store.

        Args:
            repository: The vector table backend (required).
            embedding_provider: Embedding generation service (required).
        """
        self._repository = repository
        self._embeddings = embedding_provider

    @property
    def table_name(self) -> str:
        return self._repository.table_name

    @property
    def repository(self) -> VectorTable:
        """Get the underlying table (for testing)."""
        return self._repository

    async def insert(self, content: str, metadata: dict[str, Any]) -> str:
        """Embed content and append a new immutable row.

        Args:
            content: The text to embed (the semantic key)
            metadata: JSON-serializable payload

        Returns:
            The new row id
        """
        vector = await self._embeddings.encode(content)
        return await asyncio.to_thread(self._repository.insert, content, vector, metadata)

    async def insert_many(self, items: list[tuple[str, dict[str, Any]]]) -> int:
        """Embed and append several rows with a single embedding request.

        Args:
            items: (content, metadata) pairs

        Returns:
            Number of rows written
        """
        if not items:
            return 0
        vectors = await self._embeddings.encode_batch([content for content, _ in items])
        rows = [(content, vector, metadata) for (content, metadata), vector in zip(items, vectors)]
        return await asyncio.to_thread(self._repository.insert_many, rows)

    async def similarity_search(
        self,
        query_text: str,
        k: int = 1,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[CacheMatchEntity]:
        """Find the k rows nearest to query_text.

        Args:
            query_text: Text to embed and search with
            k: Maximum number of matches
            metadata_filter: Exact metadata key/value pairs to require

        Returns:
            Matches sorted by distance, closest first (empty if the table is empty)
        """
        vector = await self._embeddings.encode(query_text)
        return await self.similarity_search_by_vector(vector, k, metadata_filter)

    async def similarity_search_by_vector(
        self,
        vector: list[float],
        k: int = 1,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[CacheMatchEntity]:
        """Find the k rows nearest to an already computed vector."""
        rows = await asyncio.to_thread(self._repository.find_by_vector, vector, k, metadata_filter)
        matches = [
            CacheMatchEntity(content=content, distance=distance, metadata=metadata)
            for content, metadata, distance in rows
        ]
        matches.sort(key=lambda m: m.distance)
        return matches

    async def stored_vector(self, metadata_filter: dict[str, Any]) -> list[float] | None:
        """Return the embedding already stored for a row matching the filter."""
        return await asyncio.to_thread(self._repository.find_vector, metadata_filter)

    async def truncate(self) -> None:
        """Remove every row (administrative re-index only)."""
        await asyncio.to_thread(self._repository.truncate)

    async def count(self) -> int:
        """Count rows in the table."""
        return await asyncio.to_thread(self._repository.count_all)

    async def is_healthy(self) -> bool:
        """Check if the backing table is reachable."""
        return await asyncio.to_thread(self._repository.health_check)


class VectorStoreRegistry:
    """One VectorSimilarityStore per logical table, created on first use.

    Owns the shared database engine. Without a database URL every lookup
    returns None, which callers treat as "cache disabled". Initialisation
    (connect, DDL, loading a local embedding model) runs in a worker thread,
    once per table at a time. A table that failed to initialise is not
    retried until `retry_cooldown` seconds have passed.

    Example:
        ```python
        registry = VectorStoreRegistry(embedding_provider, database_url=url)
        store = await registry.get_or_create_store("recipe_embeddings")
        if store is not None:
            await store.insert("Sarma", {"recipeData": {...}})
        ```
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        database_url: str | None = None,
        repository_factory: RepositoryFactory | None = None,
        engine: Engine | None = None,
        retry_cooldown: float | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            embedding_provider: Shared embedding provider for every store.
            database_url: Postgres connection string. None disables pgvector.
            repository_factory: Builds a table from (name, dimension). Replaces
                the pgvector backend, e.g. with in-memory tables in tests.
            engine: Pre-built SQLAlchemy engine to use instead of database_url.
            retry_cooldown: Seconds to wait before retrying a failed table.
                Defaults to settings.
        """
        self._embeddings = embedding_provider
        self._database_url = database_url
        self._repository_factory = repository_factory
        self._engine = engine
        self._retry_cooldown = settings.store_retry_cooldown if retry_cooldown is None else retry_cooldown
        self._extension_ensured = False
        self._ddl_lock = threading.Lock()
        self._stores: dict[str, VectorSimilarityStore] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._failed_at: dict[str, float] = {}

    @classmethod
    def create(cls, embedding_provider: EmbeddingProvider) -> "VectorStoreRegistry":
        """Factory method using the configured database URL."""
        return cls(embedding_provider=embedding_provider, database_url=settings.database_url)

    @property
    def enabled(self) -> bool:
        """True if stores can be created at all."""
        return bool(self._repository_factory or self._engine or self._database_url)

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embeddings

    @property
    def engine(self) -> Engine | None:
        """Lazily create the shared engine (connection pool)."""
        if self._engine is None and self._database_url:
            self._engine = create_db_engine(self._database_url)
        return self._engine

    def _ensure_extension(self, engine: Engine) -> None:
        """Provision the pgvector extension once per registry."""
        if self._extension_ensured:
            return
        with engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        self._extension_ensured = True

    def _build_repository(self, table_name: str) -> VectorTable | None:
        """Blocking: runs in a worker thread."""
        dimension = self._embeddings.dimension
        if self._repository_factory is not None:
            return self._repository_factory(table_name, dimension)

        engine = self.engine
        if engine is None:
            return None
        # CREATE EXTENSION races itself across concurrent transactions
        with self._ddl_lock:
            self._ensure_extension(engine)
            return PgVectorRepository.create(engine, table_name, dimension)

    def _cooling_down(self, table_name: str) -> bool:
        failed_at = self._failed_at.get(table_name)
        return failed_at is not None and time.monotonic() - failed_at < self._retry_cooldown

    async def get_or_create_store(self, table_name: str) -> VectorSimilarityStore | None:
        """Return the store for a table, initialising it on first use.

        Args:
            table_name: Logical (and physical) table name

        Returns:
            The memoised store, or None if no backend is configured or
            initialisation failed (recently)
        """
        store = self._stores.get(table_name)
        if store is not None:
            return store
        if not self.enabled or self._cooling_down(table_name):
            return None

        lock = self._locks.setdefault(table_name, asyncio.Lock())
        async with lock:
            # Another caller may have finished (or failed) while we waited
            store = self._stores.get(table_name)
            if store is not None:
                return store
            if self._cooling_down(table_name):
                return None

            try:
                repository = await asyncio.to_thread(self._build_repository, table_name)
            except Exception:
                logger.exception(
                    "Failed to init vector store [%s], retrying in %.0fs", table_name, self._retry_cooldown
                )
                self._failed_at[table_name] = time.monotonic()
                self._locks.pop(table_name, None)
                return None
            if repository is None:
                return None

            self._failed_at.pop(table_name, None)
            store = VectorSimilarityStore(repository, self._embeddings)
            self._stores[table_name] = store
            return store

    def active_stores(self) -> dict[str, VectorSimilarityStore]:
        """Stores created so far, by table name."""
        return dict(self._stores)

    def close(self) -> None:
        """Forget all stores and dispose of the connection pool."""
        self._stores.clear()
        self._locks.clear()
        self._failed_at.clear()
        if self._engine is not None:
            self._engine.dispose()
