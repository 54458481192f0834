"""Similar-recipes index over saved user recipes.

Used for "recipes like this" and for turning dish names mentioned in a
pairing suggestion into links to saved recipes. This is a recall-oriented
index: link resolution adds a lexical precision gate on top of the
nearest-neighbour search.
"""

import logging
import re

from recipe_cache.config import settings
from recipe_cache.entities import IndexedRecipe, RecipeLink
from recipe_cache.services.similarity_store import VectorStoreRegistry

logger = logging.getLogger(__name__)

TABLE_NAME = "recipe_index"
DEFAULT_LIMIT = 6
SYNC_BATCH_SIZE = 20

_NUMBERED_ITEM_RE = re.compile(r"^\d+[.)]\s*([A-Za-zÀ-ÿ\s\-']+?)(?=:|$)", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_PARENS_RE = re.compile(r"\(.*?\)")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_WORD_RE = re.compile(r"[a-zà-ÿ0-9']+")


def recipe_to_embedding_text(recipe: IndexedRecipe, max_chars: int | None = None) -> str:
    """Title, ingredients, directions and summary as one embedding text."""
    parts = []
    if recipe.recipe_title:
        parts.append(recipe.recipe_title)
    parts.extend(_body_parts(recipe))
    return "\n\n".join(parts)[: max_chars or settings.embedding_text_max_chars]


def recipe_to_search_text(recipe: IndexedRecipe, max_chars: int | None = None) -> str:
    """Search text without the title.

    Matches recipes with overlapping ingredients and techniques rather than
    same-name variants.
    """
    return "\n\n".join(_body_parts(recipe))[: max_chars or settings.embedding_text_max_chars]


def _body_parts(recipe: IndexedRecipe) -> list[str]:
    parts = []
    if recipe.ingredients:
        parts.append("Ingredients: " + ", ".join(recipe.ingredients))
    if recipe.directions:
        parts.append("Directions: " + " ".join(recipe.directions))
    if recipe.recipe_summary:
        parts.append(recipe.recipe_summary)
    return parts


def is_title_duplicate(source_title: str, candidate_title: str) -> bool:
    """True if two titles are the same dish once parentheses and punctuation go."""

    def normalize(title: str) -> str:
        return _NON_ALNUM_RE.sub("", _PARENS_RE.sub("", title.lower())).strip()

    return normalize(source_title) == normalize(candidate_title)


def extract_dish_names(text: str) -> list[str]:
    """Pull candidate dish names out of free text.

    Candidates are numbered-list items (up to a colon or line end) and
    **bold** spans, 2 to 60 characters long, in order of appearance.
    """
    names: dict[str, None] = {}
    for pattern in (_NUMBERED_ITEM_RE, _BOLD_RE):
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if 2 <= len(name) <= 60:
                names.setdefault(name, None)
    return list(names)


def titles_overlap(dish_name: str, recipe_title: str) -> bool:
    """Precision gate between a dish name and a matched recipe title.

    Accepts a substring match either way, or a shared word of three or more
    letters.
    """
    title = recipe_title.lower().strip()
    name = dish_name.lower().strip()
    if not title or not name:
        return False
    if title in name or name in title:
        return True
    title_words = {w for w in _WORD_RE.findall(title) if len(w) >= 3}
    name_words = {w for w in _WORD_RE.findall(name) if len(w) >= 3}
    return bool(title_words & name_words)


class SimilarRecipesIndex:
    """Vector index of saved recipes."""

    def __init__(
        self,
        registry: VectorStoreRegistry,
        distance_threshold: float | None = None,
        link_base_url: str | None = None,
        table_name: str = TABLE_NAME,
    ) -> None:
        """Initialize the index.

        Args:
            registry: Store registry (required).
            distance_threshold: Maximum distance for a similar recipe. Defaults to settings.
            link_base_url: Prefix for resolved recipe links. Defaults to settings.
            table_name: Vector table holding indexed recipes.
        """
        self._registry = registry
        self._threshold = (
            settings.similar_recipes_threshold if distance_threshold is None else distance_threshold
        )
        self._link_base_url = link_base_url or settings.recipe_link_base_url
        self._table_name = table_name

    async def index(self, recipe: IndexedRecipe) -> bool:
        """Add one recipe to the index. Never truncates.

        Returns:
            True if a row was written
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return False

        content = recipe_to_embedding_text(recipe)
        if not content.strip():
            return False
        await store.insert(content, {"recipeId": recipe.id, "recipe": recipe.to_dict()})
        return True

    async def index_many(self, recipes: list[IndexedRecipe], clear_first: bool = False) -> int:
        """Add recipes in one batch.

        Args:
            recipes: Recipes to index; ones with no text are skipped
            clear_first: Truncate the table before inserting (full re-sync)

        Returns:
            Number of rows written
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return 0

        if clear_first:
            await store.truncate()

        items = []
        for recipe in recipes:
            content = recipe_to_embedding_text(recipe)
            if content.strip():
                items.append((content, {"recipeId": recipe.id, "recipe": recipe.to_dict()}))
        if not items:
            return 0
        return await store.insert_many(items)

    async def sync(
        self,
        recipes: list[IndexedRecipe],
        full: bool = True,
        batch_size: int = SYNC_BATCH_SIZE,
    ) -> int:
        """Re-index recipes in batches.

        Args:
            recipes: Every recipe to index
            full: Truncate before the first batch, replacing the whole index
            batch_size: Recipes per embedding request

        Returns:
            Number of rows written
        """
        synced = 0
        for start in range(0, len(recipes), batch_size):
            batch = recipes[start : start + batch_size]
            synced += await self.index_many(batch, clear_first=full and start == 0)
            logger.info("Indexed %d/%d recipes", min(start + batch_size, len(recipes)), len(recipes))
        return synced

    async def query_similar(
        self,
        exclude_id: str,
        text: str,
        k: int = DEFAULT_LIMIT,
        source_title: str | None = None,
        use_stored_embedding: bool = False,
    ) -> list[IndexedRecipe]:
        """Find up to k recipes similar to a text, excluding the source recipe.

        Args:
            exclude_id: Id of the source recipe; never returned
            text: Text to search with
            k: Maximum number of recipes
            source_title: Also drop same-title variants of this title
            use_stored_embedding: Reuse the source recipe's indexed vector
                instead of embedding text, when one exists

        Returns:
            Distinct recipes, closest first (empty on any error)
        """
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None or k <= 0:
            return []

        fetch_limit = k * 2
        try:
            vector = None
            if use_stored_embedding:
                vector = await store.stored_vector({"recipeId": exclude_id})
            if vector is not None:
                matches = await store.similarity_search_by_vector(vector, fetch_limit)
            elif text.strip():
                matches = await store.similarity_search(text, fetch_limit)
            else:
                return []
        except Exception:
            logger.exception("Similar recipes search failed for %s", exclude_id)
            return []

        seen: set[str] = set()
        results: list[IndexedRecipe] = []
        for match in matches:
            if match.distance > self._threshold:
                break
            payload = match.metadata.get("recipe")
            recipe = IndexedRecipe.from_dict(payload) if isinstance(payload, dict) else None
            recipe_id = str(match.metadata.get("recipeId") or (recipe.id if recipe else "") or "")
            if not recipe_id or recipe_id == exclude_id or recipe_id in seen:
                continue
            if recipe is None:
                continue
            if source_title and recipe.recipe_title and is_title_duplicate(source_title, recipe.recipe_title):
                continue
            recipe.id = recipe_id
            seen.add(recipe_id)
            results.append(recipe)
            if len(results) >= k:
                break
        return results

    async def find_recipe_link(self, dish_name: str) -> IndexedRecipe | None:
        """Resolve a dish name to a saved recipe, if the nearest one really matches."""
        results = await self.query_similar("", dish_name, k=1)
        if not results:
            return None
        top = results[0]
        if titles_overlap(dish_name, top.recipe_title):
            return top
        return None

    async def resolve_recipe_links(self, suggestion: str) -> list[RecipeLink]:
        """Link the dishes named in a pairing suggestion to saved recipes.

        Best-effort: a failing candidate is skipped.
        """
        links: list[RecipeLink] = []
        seen: set[str] = set()
        for name in extract_dish_names(suggestion):
            if name.lower() in seen:
                continue
            try:
                match = await self.find_recipe_link(name)
            except Exception:
                logger.warning("Recipe link lookup failed for %r", name, exc_info=True)
                continue
            if match is None or match.id in seen:
                continue
            seen.add(name.lower())
            seen.add(match.id)
            links.append(RecipeLink(name=name, recipe_id=match.id, url=f"{self._link_base_url}{match.id}"))
        return links

    async def count(self) -> int:
        """Count indexed rows (0 if the index is unavailable)."""
        store = await self._registry.get_or_create_store(self._table_name)
        if store is None:
            return 0
        return await store.count()
