"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    CamelModel,
    ClassifyRecipeRequest,
    CorpusRecipeItem,
    GenerateRecipeRequest,
    GenerateSummaryRequest,
    IndexedRecipeItem,
    IngestCorpusRequest,
    RecipeTextRequest,
    SimilarRecipesRequest,
    SyncRecipesRequest,
)
from .responses import (
    ClassificationResponse,
    HealthCheckResponse,
    IngestCorpusResponse,
    MacroResponse,
    PairingResponse,
    RecipeDetailsResponse,
    RecipeLinkItem,
    SimilarRecipesResponse,
    StatsResponse,
    SummaryResponse,
    SyncRecipesResponse,
)

__all__ = [
    "CamelModel",
    "GenerateRecipeRequest",
    "ClassifyRecipeRequest",
    "GenerateSummaryRequest",
    "RecipeTextRequest",
    "IndexedRecipeItem",
    "SimilarRecipesRequest",
    "SyncRecipesRequest",
    "CorpusRecipeItem",
    "IngestCorpusRequest",
    "RecipeDetailsResponse",
    "ClassificationResponse",
    "SummaryResponse",
    "MacroResponse",
    "RecipeLinkItem",
    "PairingResponse",
    "SimilarRecipesResponse",
    "SyncRecipesResponse",
    "IngestCorpusResponse",
    "StatsResponse",
    "HealthCheckResponse",
]
