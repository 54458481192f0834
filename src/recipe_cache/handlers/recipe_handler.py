"""HTTP handlers for recipe generation and enrichment.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import asyncio
import json
import logging

from fastapi import HTTPException, status

from recipe_cache.dto import (
    ClassificationResponse,
    ClassifyRecipeRequest,
    GenerateRecipeRequest,
    GenerateSummaryRequest,
    HealthCheckResponse,
    IndexedRecipeItem,
    IngestCorpusRequest,
    IngestCorpusResponse,
    MacroResponse,
    PairingResponse,
    RecipeDetailsResponse,
    RecipeLinkItem,
    RecipeTextRequest,
    SimilarRecipesRequest,
    SimilarRecipesResponse,
    StatsResponse,
    SummaryResponse,
    SyncRecipesRequest,
    SyncRecipesResponse,
)
from recipe_cache.entities import Classification, CorpusRecipe, IndexedRecipe
from recipe_cache.errors import EnrichmentError, RecipeGenerationError
from recipe_cache.protocols import EmbeddingProvider
from recipe_cache.services import (
    DetachedTasks,
    EnrichmentService,
    RecipeCorpus,
    RecipePipeline,
    RecipeQuery,
    SimilarRecipesIndex,
    VectorStoreRegistry,
)
from recipe_cache.services.similar_recipes import recipe_to_search_text

logger = logging.getLogger(__name__)


def _to_indexed(item: IndexedRecipeItem) -> IndexedRecipe:
    return IndexedRecipe.from_dict(item.model_dump(by_alias=True, exclude_none=True))


class RecipeHandler:
    """HTTP handlers for the recipe service.

    This handler delegates business logic to the pipeline and services
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = RecipeHandler(pipeline, enrichment, similar_index, corpus, registry, tasks)

        @app.post("/generate-recipe-details", response_model=RecipeDetailsResponse)
        async def generate(request: GenerateRecipeRequest):
            return await handler.generate_recipe_details(request)
        ```
    """

    def __init__(
        self,
        pipeline: RecipePipeline,
        enrichment: EnrichmentService,
        similar_index: SimilarRecipesIndex,
        corpus: RecipeCorpus,
        registry: VectorStoreRegistry,
        tasks: DetachedTasks,
    ) -> None:
        """Initialize the recipe handler.

        Args:
            pipeline: Recipe generation pipeline (required).
            enrichment: Enrichment service (required).
            similar_index: Similar-recipes index (required).
            corpus: Reference recipe corpus (required).
            registry: Vector store registry, for health and stats (required).
            tasks: Detached write runner, for stats (required).
        """
        self._pipeline = pipeline
        self._enrichment = enrichment
        self._similar_index = similar_index
        self._corpus = corpus
        self._registry = registry
        self._tasks = tasks

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._registry.embedding_provider

    async def generate_recipe_details(self, request: GenerateRecipeRequest) -> RecipeDetailsResponse:
        """Handle POST /generate-recipe-details requests.

        Raises:
            HTTPException: 500 if ingredients and directions could not be generated
        """
        query = RecipeQuery(
            title=request.recipe_title,
            content=request.recipe_content,
            generate_all=request.generate_all,
            skip_macro_and_pairing=request.skip_macro_and_pairing,
        )
        try:
            outcome = await self._pipeline.generate(query)
        except RecipeGenerationError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to generate recipe details: {e}",
            ) from e

        return RecipeDetailsResponse(**outcome.result.to_dict(), fromCache=outcome.from_cache)

    async def classify_recipe(self, request: ClassifyRecipeRequest) -> ClassificationResponse:
        """Handle POST /classify-recipe requests.

        Raises:
            HTTPException: 500 if classification failed or was rejected
        """
        try:
            classification = await self._enrichment.classify(
                request.title, request.ingredients, request.directions
            )
        except EnrichmentError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to classify recipe: {e}",
            ) from e
        return ClassificationResponse(**classification.to_dict())

    async def generate_summary(self, request: GenerateSummaryRequest) -> SummaryResponse:
        """Handle POST /generate-summary requests."""
        classification = None
        if request.cuisine_type and request.diet and request.cooking_time and request.cooking_difficulty:
            classification = Classification(
                diet=list(request.diet),
                cuisine=request.cuisine_type,
                cooking_time=request.cooking_time,
                difficulty=request.cooking_difficulty,
            )
        try:
            summary = await self._enrichment.summarize(
                request.title,
                request.ingredients,
                request.directions,
                classification,
                cooking_time=request.cooking_time,
            )
        except EnrichmentError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to generate summary: {e}",
            ) from e
        return SummaryResponse(summary=summary)

    @staticmethod
    def _recipe_text(request: RecipeTextRequest) -> str:
        if isinstance(request.recipe, str):
            text = request.recipe
        else:
            text = json.dumps(request.recipe, ensure_ascii=False)
        if not text.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No recipe provided")
        return text

    async def macro_info(self, request: RecipeTextRequest) -> MacroResponse:
        """Handle POST /macro-info requests."""
        recipe_text = self._recipe_text(request)
        try:
            macros = await self._enrichment.macro_info(recipe_text)
        except EnrichmentError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get nutrition info: {e}",
            ) from e
        return MacroResponse(macros=macros)

    async def dish_pairing(self, request: RecipeTextRequest) -> PairingResponse:
        """Handle POST /dish-pairing requests."""
        recipe_text = self._recipe_text(request)
        try:
            pairing = await self._enrichment.pairing_with_links(recipe_text)
        except EnrichmentError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to suggest a pairing: {e}",
            ) from e

        links = [
            RecipeLinkItem(name=link.name, recipe_id=link.recipe_id, url=link.url)
            for link in pairing.recipe_links
        ]
        return PairingResponse(suggestion=pairing.suggestion, recipe_links=links or None)

    async def similar_recipes(self, request: SimilarRecipesRequest) -> SimilarRecipesResponse:
        """Handle POST /similar-recipes requests."""
        source = IndexedRecipe(
            id=request.recipe_id,
            recipe_title=request.recipe_title or "",
            ingredients=request.ingredients,
            directions=request.directions,
            recipe_summary=request.recipe_summary,
        )
        similar = await self._similar_index.query_similar(
            request.recipe_id,
            recipe_to_search_text(source),
            k=request.limit,
            source_title=request.recipe_title,
            use_stored_embedding=request.use_stored_embedding,
        )
        items = [
            IndexedRecipeItem.model_validate({**recipe.to_dict(), "username": recipe.username or "Anonymous Chef"})
            for recipe in similar
        ]
        return SimilarRecipesResponse(similar=items)

    async def sync_recipes(self, request: SyncRecipesRequest) -> SyncRecipesResponse:
        """Handle POST /admin/sync-recipes requests."""
        try:
            synced = await self._similar_index.sync(
                [_to_indexed(item) for item in request.recipes],
                full=request.full,
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Sync failed: {e}",
            ) from e
        return SyncRecipesResponse(synced=synced)

    async def ingest_corpus(self, request: IngestCorpusRequest) -> IngestCorpusResponse:
        """Handle POST /admin/corpus requests."""
        recipes = [CorpusRecipe.from_dict(item.model_dump()) for item in request.recipes]
        try:
            ingested = await self._corpus.ingest(recipes)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Corpus ingest failed: {e}",
            ) from e
        return IngestCorpusResponse(ingested=ingested, total=await self._corpus.count())

    async def get_stats(self) -> StatsResponse:
        """Handle GET /stats requests.

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            tables = {
                name: await store.count() for name, store in self._registry.active_stores().items()
            }
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

        return StatsResponse(
            metrics=self._pipeline.metrics.to_dict(),
            tables=tables,
            pending_writes=self._tasks.pending,
            failed_writes=self._tasks.failures,
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        stores = self._registry.active_stores().values()
        checks = await asyncio.gather(*(store.is_healthy() for store in stores))
        cache_healthy = self._registry.enabled and all(checks)
        embedding_healthy = await self.embedding_provider.is_available()

        if cache_healthy and embedding_healthy:
            health = "healthy"
        elif embedding_healthy:
            health = "degraded"
        else:
            health = "unhealthy"
        return HealthCheckResponse(
            status=health,
            cache_healthy=cache_healthy,
            embedding_healthy=embedding_healthy,
        )
