"""Domain entities for internal representation.

These are pure dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .cache_match import CacheMatchEntity
from .enrichment import (
    Classification,
    EnrichmentType,
    PairingSuggestion,
    RecipeLink,
    display_cooking_time,
)
from .recipe import CorpusRecipe, IndexedRecipe, RecipeResult

__all__ = [
    "CacheMatchEntity",
    "Classification",
    "CorpusRecipe",
    "EnrichmentType",
    "IndexedRecipe",
    "PairingSuggestion",
    "RecipeLink",
    "RecipeResult",
    "display_cooking_time",
]
