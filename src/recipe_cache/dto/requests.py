"""Request DTOs for API endpoints.

JSON bodies use camelCase keys; snake_case field names are accepted too.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


# Rejects empty and whitespace-only text, stores it stripped
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """Base model reading and writing camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateRecipeRequest(CamelModel):
    """Request DTO for generating (or fetching) a recipe.

    The handler converts this to a RecipeQuery for the pipeline.
    """

    recipe_title: Title = Field(..., description="Title of the dish")
    recipe_content: str = Field("", description="Optional description or context")
    generate_all: bool = Field(
        False,
        description="Also classify, summarize, compute macros and suggest pairings",
    )
    skip_macro_and_pairing: bool = Field(False, description="Skip macros and pairings when enriching")


class ClassifyRecipeRequest(CamelModel):
    """Request DTO for recipe classification."""

    title: Title = Field(..., description="Recipe title")
    ingredients: list[str] = Field(..., description="Ingredient lines", min_length=1)
    directions: list[str] = Field(..., description="Direction steps", min_length=1)


class GenerateSummaryRequest(CamelModel):
    """Request DTO for the SEO summary."""

    title: Title = Field(..., description="Recipe title")
    ingredients: list[str] = Field(..., min_length=1)
    directions: list[str] = Field(..., min_length=1)
    cuisine_type: str | None = None
    diet: list[str] | None = None
    cooking_time: str | None = None
    cooking_difficulty: str | None = None


class RecipeTextRequest(CamelModel):
    """Request DTO for macro and pairing endpoints.

    `recipe` is free text, or any JSON object describing the recipe.
    """

    recipe: str | dict[str, Any] = Field(..., description="Recipe text or object")


class IndexedRecipeItem(CamelModel):
    """A saved recipe as sent to (and returned from) the similar-recipes index."""

    id: str = Field(..., min_length=1)
    recipe_title: str = "Untitled"
    user_id: str = ""
    cuisine_type: str | None = None
    cooking_difficulty: str | None = None
    cooking_time: str | None = None
    diet: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    directions: list[str] = Field(default_factory=list)
    image_url: str | None = Field(None, alias="imageURL")
    recipe_summary: str | None = None
    username: str | None = None


class SimilarRecipesRequest(CamelModel):
    """Request DTO for similar recipes of a saved recipe."""

    recipe_id: str = Field(..., description="Source recipe id (never returned)", min_length=1)
    recipe_title: str | None = Field(None, description="Drop same-title variants of this title")
    ingredients: list[str] = Field(default_factory=list)
    directions: list[str] = Field(default_factory=list)
    recipe_summary: str | None = None
    limit: int = Field(6, ge=1, le=12)
    use_stored_embedding: bool = Field(
        True,
        description="Reuse the source recipe's indexed embedding when it exists",
    )


class SyncRecipesRequest(CamelModel):
    """Request DTO for re-indexing saved recipes."""

    recipes: list[IndexedRecipeItem]
    full: bool = Field(True, description="Replace the whole index (truncate before the first batch)")


class CorpusRecipeItem(CamelModel):
    """A reference recipe for the corpus."""

    title: str = Field(..., min_length=1)
    ingredients: list[str] = Field(..., min_length=1)
    directions: list[str] = Field(..., min_length=1)
    cuisine: str | None = None
    region: str | None = None


class IngestCorpusRequest(CamelModel):
    """Request DTO for corpus ingestion."""

    recipes: list[CorpusRecipeItem] = Field(..., min_length=1)
