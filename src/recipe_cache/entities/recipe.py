"""Recipe domain entities."""

from dataclasses import dataclass, field
from typing import Any

# camelCase keys used on the wire and inside cached recipeData payloads
_OPTIONAL_FIELDS = {
    "cuisine_type": "cuisineType",
    "cooking_time": "cookingTime",
    "cooking_difficulty": "cookingDifficulty",
    "diet": "diet",
    "summary": "summary",
    "macro_info": "macroInfo",
    "dish_pairings": "dishPairings",
}


@dataclass
class RecipeResult:
    """A generated recipe plus whatever enrichment succeeded.

    `ingredients` and `directions` must both be non-empty before the result
    is cached or returned; every other field is optional.
    """

    ingredients: list[str]
    directions: list[str]
    cuisine_type: str | None = None
    cooking_time: str | None = None
    cooking_difficulty: str | None = None
    diet: list[str] | None = None
    summary: str | None = None
    macro_info: dict[str, Any] | None = None
    dish_pairings: str | None = None

    @property
    def is_complete(self) -> bool:
        """True if both ingredients and directions are non-empty."""
        return bool(self.ingredients) and bool(self.directions)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase payload, omitting unset fields."""
        data: dict[str, Any] = {
            "ingredients": list(self.ingredients),
            "directions": list(self.directions),
        }
        for attr, key in _OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecipeResult":
        """Build a result from a camelCase payload (e.g. cached recipeData)."""
        ingredients = data.get("ingredients") or []
        directions = data.get("directions") or []
        kwargs = {attr: data.get(key) for attr, key in _OPTIONAL_FIELDS.items()}
        return cls(
            ingredients=[str(i) for i in ingredients] if isinstance(ingredients, list) else [],
            directions=[str(d) for d in directions] if isinstance(directions, list) else [],
            **kwargs,
        )


@dataclass
class IndexedRecipe:
    """A saved user recipe as stored in the similar-recipes index."""

    id: str
    recipe_title: str = ""
    user_id: str = ""
    cuisine_type: str | None = None
    cooking_difficulty: str | None = None
    cooking_time: str | None = None
    diet: list[str] = field(default_factory=list)
    ingredients: list[str] = field(default_factory=list)
    directions: list[str] = field(default_factory=list)
    image_url: str | None = None
    recipe_summary: str | None = None
    username: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KEYS = {
        "id": "id",
        "recipe_title": "recipeTitle",
        "user_id": "userId",
        "cuisine_type": "cuisineType",
        "cooking_difficulty": "cookingDifficulty",
        "cooking_time": "cookingTime",
        "diet": "diet",
        "ingredients": "ingredients",
        "directions": "directions",
        "image_url": "imageURL",
        "recipe_summary": "recipeSummary",
        "username": "username",
    }

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase metadata payload."""
        data = dict(self.extra)
        for attr, key in self._KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndexedRecipe":
        """Build a recipe from a camelCase payload; unknown keys go to `extra`."""
        known = set(cls._KEYS.values())
        kwargs = {attr: data[key] for attr, key in cls._KEYS.items() if data.get(key) is not None}
        kwargs["id"] = str(data.get("id") or "")
        for list_attr in ("diet", "ingredients", "directions"):
            if not isinstance(kwargs.get(list_attr, []), list):
                kwargs.pop(list_attr)
        return cls(**kwargs, extra={k: v for k, v in data.items() if k not in known})


@dataclass(frozen=True)
class CorpusRecipe:
    """A curated reference recipe used for retrieval before generation."""

    title: str
    ingredients: list[str]
    directions: list[str]
    cuisine: str | None = None
    region: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "ingredients": list(self.ingredients),
            "directions": list(self.directions),
            "cuisine": self.cuisine,
            "region": self.region,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CorpusRecipe":
        return cls(
            title=str(data.get("title") or ""),
            ingredients=list(data.get("ingredients") or []),
            directions=list(data.get("directions") or []),
            cuisine=data.get("cuisine"),
            region=data.get("region"),
        )
