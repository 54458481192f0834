from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_cache.api.dependencies import HandlerDep, lifespan
from recipe_cache.config import settings
from recipe_cache.dto import (
    ClassificationResponse,
    ClassifyRecipeRequest,
    GenerateRecipeRequest,
    GenerateSummaryRequest,
    HealthCheckResponse,
    IngestCorpusRequest,
    IngestCorpusResponse,
    MacroResponse,
    PairingResponse,
    RecipeDetailsResponse,
    RecipeTextRequest,
    SimilarRecipesRequest,
    SimilarRecipesResponse,
    StatsResponse,
    SummaryResponse,
    SyncRecipesRequest,
    SyncRecipesResponse,
)

app = FastAPI(
    title="Recipe Cache API",
    description="Semantic caching and enrichment pipeline for AI recipe generation (pgvector)",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Recipe Cache API",
        "version": "0.1.0",
        "description": "Semantic caching and enrichment pipeline for AI recipe generation",
        "endpoints": {
            "recipes": "/generate-recipe-details",
            "enrichment": ["/classify-recipe", "/generate-summary", "/macro-info", "/dish-pairing"],
            "similar": "/similar-recipes",
            "stats": "/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post(
    "/generate-recipe-details",
    response_model=RecipeDetailsResponse,
    response_model_exclude_none=True,
)
async def generate_recipe_details(
    request: GenerateRecipeRequest, handler: HandlerDep
) -> RecipeDetailsResponse:
    """
    Generate a recipe, or return a semantically equivalent cached one.

    Args:
        request: Title, optional context and enrichment flags.

    Returns:
        Ingredients, directions, any enrichment fields and whether it came from cache.
    """
    return await handler.generate_recipe_details(request)


@app.post("/classify-recipe", response_model=ClassificationResponse)
async def classify_recipe(request: ClassifyRecipeRequest, handler: HandlerDep) -> ClassificationResponse:
    """Classify diet, cuisine, cooking time and difficulty."""
    return await handler.classify_recipe(request)


@app.post("/generate-summary", response_model=SummaryResponse)
async def generate_summary(request: GenerateSummaryRequest, handler: HandlerDep) -> SummaryResponse:
    """Write a short SEO description of a recipe."""
    return await handler.generate_summary(request)


@app.post("/macro-info", response_model=MacroResponse)
async def macro_info(request: RecipeTextRequest, handler: HandlerDep) -> MacroResponse:
    """Estimate calories and macros, total and per serving."""
    return await handler.macro_info(request)


@app.post("/dish-pairing", response_model=PairingResponse, response_model_exclude_none=True)
async def dish_pairing(request: RecipeTextRequest, handler: HandlerDep) -> PairingResponse:
    """Suggest a pairing, with links to saved recipes it mentions."""
    return await handler.dish_pairing(request)


@app.post("/similar-recipes", response_model=SimilarRecipesResponse, response_model_exclude_none=True)
async def similar_recipes(request: SimilarRecipesRequest, handler: HandlerDep) -> SimilarRecipesResponse:
    """Find saved recipes similar to a saved recipe."""
    return await handler.similar_recipes(request)


@app.post("/admin/sync-recipes", response_model=SyncRecipesResponse)
async def sync_recipes(request: SyncRecipesRequest, handler: HandlerDep) -> SyncRecipesResponse:
    """Re-index saved recipes for similar-recipe search."""
    return await handler.sync_recipes(request)


@app.post("/admin/corpus", response_model=IngestCorpusResponse)
async def ingest_corpus(request: IngestCorpusRequest, handler: HandlerDep) -> IngestCorpusResponse:
    """Add reference recipes to the corpus."""
    return await handler.ingest_corpus(request)


@app.get("/stats", response_model=StatsResponse)
async def get_stats(handler: HandlerDep) -> StatsResponse:
    """Get pipeline metrics and vector table sizes."""
    return await handler.get_stats()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "recipe_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
