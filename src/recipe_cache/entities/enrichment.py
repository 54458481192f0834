"""Enrichment domain entities and classification rules."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from recipe_cache.errors import ClassificationRejectedError


class EnrichmentType(str, Enum):
    """Namespaces of the enrichment cache."""

    CLASSIFY = "classify"
    SUMMARY = "summary"
    MACRO = "macro"
    PAIRING = "pairing"


MAIN_DIET_CATEGORIES = ("vegan", "vegetarian", "pescetarian", "omnivore", "carnivore", "keto")
FORBIDDEN_DIET_VALUES = ("none", "standard")
ALLOWED_DIFFICULTIES = ("easy", "medium", "hard")
ALLOWED_COOKING_TIMES = ("15 minutes", "30 minutes", "45 minutes", "1 hour", "2 hours")

# Display durations for classification cooking_time values
COOKING_TIME_DISPLAY = {
    "15 minutes": "15 min",
    "30 minutes": "30 min",
    "45 minutes": "45 min",
    "1 hour": "1 hour",
    "2 hours": "1.5 hours",
}


def display_cooking_time(value: str) -> str:
    """Map a classification cooking_time to its display string.

    Values outside the table pass through unchanged.
    """
    return COOKING_TIME_DISPLAY.get(value, value)


@dataclass(frozen=True)
class Classification:
    """A validated recipe classification."""

    diet: list[str]
    cuisine: str
    cooking_time: str
    difficulty: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "diet": list(self.diet),
            "cuisine": self.cuisine,
            "cooking_time": self.cooking_time,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Classification":
        """Validate a raw classification payload.

        Raises:
            ClassificationRejectedError: If any classification rule is broken
        """
        if not isinstance(data, dict):
            raise ClassificationRejectedError("Classification is not an object")

        diet = data.get("diet")
        cuisine = data.get("cuisine")
        cooking_time = data.get("cooking_time")
        difficulty = data.get("difficulty")

        if not diet or not isinstance(diet, list) or not all(isinstance(d, str) for d in diet):
            raise ClassificationRejectedError("Missing or invalid diet field")
        if not cuisine or not isinstance(cuisine, str):
            raise ClassificationRejectedError("Missing or invalid cuisine field")
        if not cooking_time or not isinstance(cooking_time, str):
            raise ClassificationRejectedError("Missing or invalid cooking_time field")
        if not difficulty or not isinstance(difficulty, str):
            raise ClassificationRejectedError("Missing or invalid difficulty field")

        lowered = [d.lower() for d in diet]
        if any(d in FORBIDDEN_DIET_VALUES for d in lowered):
            raise ClassificationRejectedError("Diet classification included forbidden words")

        main = [d for d in lowered if d in MAIN_DIET_CATEGORIES]
        if len(main) != 1:
            raise ClassificationRejectedError("Diet classification missing a clear single main category")

        if difficulty.lower() not in ALLOWED_DIFFICULTIES:
            raise ClassificationRejectedError("Invalid difficulty, must be easy, medium, or hard")

        if cooking_time.lower() not in ALLOWED_COOKING_TIMES:
            raise ClassificationRejectedError("Invalid cooking_time, must be one of the predefined durations")

        return cls(diet=list(diet), cuisine=cuisine, cooking_time=cooking_time, difficulty=difficulty)


@dataclass(frozen=True)
class RecipeLink:
    """A dish named in a pairing suggestion, resolved to a saved recipe."""

    name: str
    recipe_id: str
    url: str


@dataclass(frozen=True)
class PairingSuggestion:
    """Pairing text plus the recipe links resolved from it."""

    suggestion: str
    recipe_links: tuple[RecipeLink, ...] = ()
