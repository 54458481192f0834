"""
Tests for the similar-recipes index and recipe link resolution.
"""

import asyncio

from conftest import Harness

from recipe_cache.entities import IndexedRecipe
from recipe_cache.services import SimilarRecipesIndex
from recipe_cache.services.similar_recipes import (
    extract_dish_names,
    is_title_duplicate,
    recipe_to_embedding_text,
    recipe_to_search_text,
    titles_overlap,
)


def _recipe(recipe_id: str, title: str, *ingredients: str) -> IndexedRecipe:
    return IndexedRecipe(
        id=recipe_id,
        recipe_title=title,
        ingredients=list(ingredients),
        directions=["Cook everything together."],
    )


SARMA = _recipe("sarma", "Sarma", "cabbage", "minced pork", "rice")
PAPRIKE = _recipe("paprike", "Punjene Paprike", "peppers", "minced pork", "rice")
BAKLAVA = _recipe("baklava", "Baklava", "filo", "walnuts", "honey")


def test_embedding_text_includes_title_but_search_text_does_not():
    recipe = IndexedRecipe(id="1", recipe_title="Sarma", ingredients=["cabbage"], recipe_summary="Rolls.")
    assert recipe_to_embedding_text(recipe) == "Sarma\n\nIngredients: cabbage\n\nRolls."
    assert recipe_to_search_text(recipe) == "Ingredients: cabbage\n\nRolls."


def test_query_excludes_source_and_orders_by_similarity():
    harness = Harness()

    async def scenario():
        await harness.similar_index.index_many([SARMA, PAPRIKE, BAKLAVA])
        return await harness.similar_index.query_similar("sarma", recipe_to_search_text(SARMA), k=6)

    results = asyncio.run(scenario())

    ids = [r.id for r in results]
    assert "sarma" not in ids
    assert ids[0] == "paprike"
    assert results[0].ingredients == PAPRIKE.ingredients


def test_query_deduplicates_ids_and_same_title_variants():
    harness = Harness()
    variant = _recipe("sarma-2", "SARMA (Cabbage Rolls)", "cabbage", "minced pork", "rice")

    async def scenario():
        await harness.similar_index.index_many([PAPRIKE, PAPRIKE, variant])
        return await harness.similar_index.query_similar(
            "sarma", recipe_to_search_text(SARMA), k=6, source_title="Sarma"
        )

    results = asyncio.run(scenario())
    assert [r.id for r in results] == ["paprike"]


def test_query_respects_k():
    harness = Harness()
    recipes = [_recipe(f"r{i}", f"Stew {i}", "beans", "onion") for i in range(5)]

    async def scenario():
        await harness.similar_index.index_many(recipes)
        return await harness.similar_index.query_similar("other", "Ingredients: beans, onion", k=2)

    assert len(asyncio.run(scenario())) == 2


def test_threshold_cuts_results():
    harness = Harness()
    strict = SimilarRecipesIndex(harness.registry, distance_threshold=0.0)

    async def scenario():
        await strict.index(BAKLAVA)
        return await strict.query_similar("sarma", recipe_to_search_text(SARMA))

    assert asyncio.run(scenario()) == []


def test_stored_embedding_is_reused():
    harness = Harness()

    async def scenario():
        await harness.similar_index.index_many([SARMA, PAPRIKE])
        calls_before = len(harness.embeddings.calls)
        results = await harness.similar_index.query_similar("sarma", "", use_stored_embedding=True)
        return results, len(harness.embeddings.calls) - calls_before

    results, new_calls = asyncio.run(scenario())
    assert [r.id for r in results] == ["paprike"]
    assert new_calls == 0


def test_search_failure_returns_empty():
    harness = Harness()
    harness.embeddings.fail = True
    assert asyncio.run(harness.similar_index.query_similar("sarma", "cabbage")) == []


def test_full_sync_truncates_once():
    harness = Harness()
    recipes = [_recipe(f"r{i}", f"Dish {i}", "salt") for i in range(45)]

    async def scenario():
        await harness.similar_index.index(SARMA)
        return await harness.similar_index.sync(recipes, batch_size=20)

    synced = asyncio.run(scenario())

    table = harness.table("recipe_index")
    assert synced == 45
    assert table.truncations == 1
    assert table.count_all() == 45


def test_incremental_sync_appends():
    harness = Harness()

    async def scenario():
        await harness.similar_index.index(SARMA)
        return await harness.similar_index.sync([PAPRIKE, BAKLAVA], full=False)

    assert asyncio.run(scenario()) == 2
    table = harness.table("recipe_index")
    assert table.truncations == 0
    assert table.count_all() == 3


def test_is_title_duplicate():
    assert is_title_duplicate("Sarma", "SARMA (Cabbage Rolls)")
    assert is_title_duplicate("Punjene paprike!", "punjene-paprike")
    assert not is_title_duplicate("Sarma", "Punjene Paprike")


def test_extract_dish_names():
    text = (
        "Pair it with:\n"
        "1. Shopska Salad: crisp and fresh\n"
        "2) Baklava\n"
        "Or try **Ajvar** with bread, and more **Baklava**."
    )
    assert extract_dish_names(text) == ["Shopska Salad", "Baklava", "Ajvar"]


def test_extract_dish_names_skips_too_long_or_short():
    assert extract_dish_names("**A** and **" + "x" * 61 + "**") == []


def test_titles_overlap():
    assert titles_overlap("Shopska Salad", "Shopska salad with feta")
    assert titles_overlap("Greek salad", "Shopska Salad")
    assert not titles_overlap("Plavac Mali", "Shopska Salad")
    assert titles_overlap("Fried egg", "Egg on toast")
    assert not titles_overlap("Ox tail", "Ox cheek")


def test_resolve_recipe_links_applies_precision_gate():
    harness = Harness()
    salad = _recipe("shopska", "Shopska Salad", "tomatoes", "cucumbers")
    cake = _recipe("cake", "Chocolate Cake", "chocolate", "flour")

    async def scenario():
        await harness.similar_index.index_many([salad, cake])
        return await harness.similar_index.resolve_recipe_links(
            "1. Shopska Salad: fresh\n2. Plavac Mali: a red wine\nFinish with **shopska salad**."
        )

    links = asyncio.run(scenario())
    assert [(link.name, link.recipe_id) for link in links] == [("Shopska Salad", "shopska")]
    assert links[0].url == "https://example.test/recipe/shopska"


def test_count():
    harness = Harness()

    async def scenario():
        await harness.similar_index.index_many([SARMA, PAPRIKE])
        return await harness.similar_index.count()

    assert asyncio.run(scenario()) == 2
