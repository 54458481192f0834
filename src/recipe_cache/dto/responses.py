"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from .requests import CamelModel, IndexedRecipeItem


class RecipeDetailsResponse(CamelModel):
    """Response DTO for recipe generation.

    Enrichment fields are omitted when they were not requested or failed.
    """

    ingredients: list[str]
    directions: list[str]
    cuisine_type: str | None = None
    diet: list[str] | None = None
    cooking_time: str | None = None
    cooking_difficulty: str | None = None
    summary: str | None = None
    macro_info: dict[str, Any] | None = None
    dish_pairings: str | None = None
    from_cache: bool = Field(..., description="Served from the recipe cache or the corpus")


class ClassificationResponse(BaseModel):
    """Response DTO for recipe classification (snake_case keys)."""

    diet: list[str]
    cuisine: str
    cooking_time: str
    difficulty: str


class SummaryResponse(BaseModel):
    summary: str


class MacroResponse(BaseModel):
    """Response DTO for macro information."""

    macros: dict[str, Any] = Field(..., description="servings, total and per_serving values")


class RecipeLinkItem(CamelModel):
    """A dish from a pairing, linked to a saved recipe."""

    name: str
    recipe_id: str
    url: str


class PairingResponse(CamelModel):
    """Response DTO for dish pairing."""

    suggestion: str
    recipe_links: list[RecipeLinkItem] | None = None


class SimilarRecipesResponse(BaseModel):
    similar: list[IndexedRecipeItem]


class SyncRecipesResponse(BaseModel):
    synced: int = Field(..., ge=0)


class IngestCorpusResponse(BaseModel):
    """Response DTO for corpus ingestion."""

    ingested: int = Field(..., ge=0)
    total: int = Field(..., ge=0, description="Corpus size after ingestion")


class StatsResponse(CamelModel):
    """Response DTO for pipeline statistics."""

    metrics: dict[str, Any]
    tables: dict[str, int] = Field(..., description="Row count per vector table")
    pending_writes: int
    failed_writes: int


class HealthCheckResponse(CamelModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy', 'degraded' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the vector backend is reachable")
    embedding_healthy: bool | None = Field(
        None,
        description="Whether the embedding service is reachable",
    )
