"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from recipe_cache.config import configure_logging, settings
from recipe_cache.handlers import RecipeHandler
from recipe_cache.models import PipelineMetrics
from recipe_cache.protocols import ChatModel, EmbeddingProvider
from recipe_cache.repositories import (
    OllamaChatModel,
    OllamaEmbeddingProvider,
    OpenAIChatModel,
    OpenAIEmbeddingProvider,
)
from recipe_cache.services import (
    DetachedTasks,
    EnrichmentCache,
    EnrichmentService,
    RecipeCache,
    RecipeCorpus,
    RecipePipeline,
    SimilarRecipesIndex,
    VectorStoreRegistry,
)

logger = logging.getLogger(__name__)


def build_embedding_provider() -> EmbeddingProvider:
    """Create the embedding provider selected by EMBEDDING_PROVIDER.

    ⚠️ When switching providers or models, re-create the vector tables:
    vectors from different models are not comparable.
    """
    if settings.embedding_provider == "ollama":
        return OllamaEmbeddingProvider.create()
    if settings.embedding_provider == "local":
        # Needs the optional sentence-transformers dependency
        from recipe_cache.repositories.local_embedding_provider import LocalEmbeddingProvider

        return LocalEmbeddingProvider.create()
    return OpenAIEmbeddingProvider.create()


def build_chat_model(model_name: str) -> ChatModel:
    """Create the chat model selected by LLM_PROVIDER."""
    if settings.llm_provider == "ollama":
        return OllamaChatModel.create(model_name=model_name)
    return OpenAIChatModel.create(model_name=model_name)


def build_handler(
    embedding_provider: EmbeddingProvider,
    recipe_model: ChatModel,
    enrichment_model: ChatModel,
    registry: VectorStoreRegistry,
    tasks: DetachedTasks | None = None,
) -> RecipeHandler:
    """Wire caches, services and the pipeline into a handler.

    Args:
        embedding_provider: Shared embedding provider
        recipe_model: Chat model for recipe generation
        enrichment_model: Chat model for enrichment prompts
        registry: Vector store registry
        tasks: Detached write runner (a new one if omitted)

    Returns:
        The handler, with every service it needs
    """
    tasks = tasks or DetachedTasks()
    metrics = PipelineMetrics()
    similar_index = SimilarRecipesIndex(registry)
    corpus = RecipeCorpus(registry)
    enrichment = EnrichmentService(
        enrichment_model,
        EnrichmentCache(registry),
        tasks,
        similar_index=similar_index,
        metrics=metrics,
    )
    pipeline = RecipePipeline(
        recipe_model,
        RecipeCache(registry),
        enrichment,
        tasks,
        corpus=corpus,
        metrics=metrics,
    )
    return RecipeHandler(pipeline, enrichment, similar_index, corpus, registry, tasks)


def get_handler(request: Request) -> RecipeHandler:
    """Dependency injection for RecipeHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The RecipeHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "recipe_handler", None)
    if handler is None:
        raise RuntimeError("RecipeHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Providers (embeddings, chat models) and the vector store registry
    2. Caches, enrichment service and pipeline
    3. Handler (HTTP endpoints) - stored in app.state.recipe_handler

    Cleanup:
        Drains detached cache writes, then closes clients and the pool
    """
    configure_logging()

    embedding_provider = build_embedding_provider()
    recipe_model = build_chat_model(settings.recipe_model)
    enrichment_model = build_chat_model(settings.enrichment_model)
    registry = VectorStoreRegistry.create(embedding_provider)
    tasks = DetachedTasks()

    app.state.recipe_handler = build_handler(
        embedding_provider, recipe_model, enrichment_model, registry, tasks
    )
    app.state.tasks = tasks
    app.state.registry = registry

    logger.info("Embedding: %s (%s)", settings.embedding_provider, embedding_provider.model_name)
    logger.info("Chat models: %s / %s", recipe_model.model_name, enrichment_model.model_name)
    if registry.enabled:
        logger.info(
            "Vector cache enabled (recipe threshold %.2f, enrichment threshold %.2f)",
            settings.recipe_cache_threshold,
            settings.enrichment_cache_threshold,
        )
    else:
        logger.warning("POSTGRES_URL/DATABASE_URL not set, semantic caching disabled")

    yield

    await tasks.drain()
    for client in (embedding_provider, recipe_model, enrichment_model):
        close = getattr(client, "close", None)
        if close is not None:
            await close()
    registry.close()

    del app.state.recipe_handler
    del app.state.tasks
    del app.state.registry
    logger.info("Recipe cache service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[RecipeHandler, Depends(get_handler)]
