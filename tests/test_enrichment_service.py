"""
Tests for the cache-backed enrichment service.
"""

import asyncio
import json

import pytest
from conftest import CLASSIFICATION, MACROS, PAIRING, PAPRIKE_RECIPE, Harness, full_script

from recipe_cache import prompts
from recipe_cache.entities import EnrichmentType, IndexedRecipe
from recipe_cache.errors import ClassificationRejectedError, EnrichmentError
from recipe_cache.services.enrichment_service import validate_macros

RECIPE_TEXT = prompts.build_recipe_text(
    "Punjene Paprike", PAPRIKE_RECIPE["ingredients"], PAPRIKE_RECIPE["directions"]
)


def test_macro_info_is_cached():
    harness = Harness()

    async def scenario():
        first = await harness.enrichment.macro_info(RECIPE_TEXT)
        await harness.tasks.drain()
        second = await harness.enrichment.macro_info(RECIPE_TEXT)
        return first, second

    first, second = asyncio.run(scenario())

    assert first == MACROS
    assert second == MACROS
    assert len(harness.chat.calls_for(prompts.MACRO_SYSTEM_PROMPT)) == 1
    counters = harness.enrichment.metrics.enrichment["macro"]
    assert (counters.cache_hits, counters.cache_misses) == (1, 1)


def test_macro_sampling_settings():
    harness = Harness()

    async def scenario():
        await harness.enrichment.macro_info(RECIPE_TEXT)
        await harness.tasks.drain()

    asyncio.run(scenario())

    (call,) = harness.chat.calls_for(prompts.MACRO_SYSTEM_PROMPT)
    assert (call["temperature"], call["max_tokens"]) == prompts.MACRO_PARAMS


def test_incomplete_macros_are_rejected_and_not_cached():
    script = full_script()
    script[prompts.MACRO_SYSTEM_PROMPT] = json.dumps({"servings": 4, "total": MACROS["total"]})
    harness = Harness(script)

    async def scenario():
        with pytest.raises(EnrichmentError, match="nutrition"):
            await harness.enrichment.macro_info(RECIPE_TEXT)
        await harness.tasks.drain()

    asyncio.run(scenario())

    assert harness.table("enrichment_cache").count_all() == 0
    assert harness.enrichment.metrics.enrichment["macro"].failures == 1


def test_validate_macros():
    assert validate_macros(MACROS) is MACROS
    with pytest.raises(EnrichmentError):
        validate_macros({"servings": 0, "total": {}, "per_serving": {}})
    with pytest.raises(EnrichmentError):
        validate_macros(["not", "a", "dict"])


def test_unparseable_classification_is_an_enrichment_error():
    script = full_script()
    script[prompts.CLASSIFY_SYSTEM_PROMPT] = "I think it is Balkan."
    harness = Harness(script)

    with pytest.raises(EnrichmentError):
        asyncio.run(harness.enrichment.classify("Punjene Paprike", **PAPRIKE_RECIPE))


def test_rejected_classification_raises():
    script = full_script()
    script[prompts.CLASSIFY_SYSTEM_PROMPT] = json.dumps({**CLASSIFICATION, "difficulty": "impossible"})
    harness = Harness(script)

    with pytest.raises(ClassificationRejectedError):
        asyncio.run(harness.enrichment.classify("Punjene Paprike", **PAPRIKE_RECIPE))


def test_invalid_cached_classification_is_recomputed():
    harness = Harness()
    message = prompts.build_classify_input("Punjene Paprike", **PAPRIKE_RECIPE)

    async def scenario():
        await harness.enrichment_cache.store(
            EnrichmentType.CLASSIFY, message, {**CLASSIFICATION, "diet": ["standard"]}
        )
        return await harness.enrichment.classify("Punjene Paprike", **PAPRIKE_RECIPE)

    classification = asyncio.run(scenario())

    assert classification.diet == ["omnivore", "gluten-free"]
    assert len(harness.chat.calls_for(prompts.CLASSIFY_SYSTEM_PROMPT)) == 1


def test_summary_uses_classification_fields():
    harness = Harness()

    async def scenario():
        classification = await harness.enrichment.classify("Punjene Paprike", **PAPRIKE_RECIPE)
        return await harness.enrichment.summarize("Punjene Paprike", classification=classification, **PAPRIKE_RECIPE)

    asyncio.run(scenario())

    (call,) = harness.chat.calls_for(prompts.SUMMARY_SYSTEM_PROMPT)
    assert "Cuisine: Balkan" in call["user"]
    assert "Cooking Time: 2 hours" in call["user"]
    assert "Difficulty: medium" in call["user"]


def test_pairing_with_links_resolves_saved_recipes():
    script = full_script()
    script[prompts.PAIRING_SYSTEM_PROMPT] = "Serve with **Shopska Salad** and a glass of **Plavac Mali**."
    harness = Harness(script)
    saved = IndexedRecipe(
        id="r-shopska",
        recipe_title="Shopska Salad",
        ingredients=["tomatoes", "cucumbers", "sirene cheese"],
        directions=["Chop and toss."],
    )

    async def scenario():
        await harness.similar_index.index(saved)
        pairing = await harness.enrichment.pairing_with_links(RECIPE_TEXT)
        await harness.tasks.drain()
        return pairing

    pairing = asyncio.run(scenario())

    assert pairing.suggestion.startswith("Serve with")
    assert [(link.name, link.recipe_id) for link in pairing.recipe_links] == [("Shopska Salad", "r-shopska")]
    assert pairing.recipe_links[0].url == "https://example.test/recipe/r-shopska"


def test_pairing_without_saved_recipes_has_no_links():
    harness = Harness()

    async def scenario():
        pairing = await harness.enrichment.pairing_with_links(RECIPE_TEXT)
        await harness.tasks.drain()
        return pairing

    pairing = asyncio.run(scenario())

    assert pairing.suggestion == PAIRING
    assert pairing.recipe_links == ()


def test_pairing_failure_is_wrapped():
    script = full_script()
    script[prompts.PAIRING_SYSTEM_PROMPT] = RuntimeError("rate limited")
    harness = Harness(script)

    with pytest.raises(EnrichmentError, match="pairing"):
        asyncio.run(harness.enrichment.pairing(RECIPE_TEXT))
