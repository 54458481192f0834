"""
Tests for the recipe cache API.

The app's lifespan runs with providers and tables swapped for in-memory fakes.
"""

import json

import pytest
from conftest import CLASSIFICATION, MACROS, PAIRING, PAPRIKE_RECIPE, SUMMARY, Harness, full_script
from fastapi.testclient import TestClient

from recipe_cache import prompts
from recipe_cache.api import dependencies
from recipe_cache.api.app import app


def _client(monkeypatch, harness: Harness) -> TestClient:
    monkeypatch.setattr(dependencies, "build_embedding_provider", lambda: harness.embeddings)
    monkeypatch.setattr(dependencies, "build_chat_model", lambda model_name: harness.chat)
    monkeypatch.setattr(dependencies.VectorStoreRegistry, "create", lambda embedding_provider: harness.registry)
    return TestClient(app)


@pytest.fixture
def client(monkeypatch, harness):
    """Create a test client with the lifespan running."""
    with _client(monkeypatch, harness) as test_client:
        yield test_client


def drain(client: TestClient) -> None:
    """Wait for detached cache writes started by earlier requests."""
    client.portal.call(app.state.tasks.drain)


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Recipe Cache API"
    assert data["endpoints"]["recipes"] == "/generate-recipe-details"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "cacheHealthy": True, "embeddingHealthy": True}


def test_health_unhealthy_when_embeddings_down(client, harness):
    harness.embeddings.fail = True
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "unhealthy"


def test_generate_recipe_details(client):
    """Test a full generation, then a cached repeat."""
    body = {"recipeTitle": "Punjene Paprike", "generateAll": True}

    response = client.post("/generate-recipe-details", json=body)
    assert response.status_code == 200
    data = response.json()
    assert data["ingredients"] == PAPRIKE_RECIPE["ingredients"]
    assert data["cuisineType"] == "Balkan"
    assert data["cookingTime"] == "1.5 hours"
    assert data["cookingDifficulty"] == "medium"
    assert data["macroInfo"] == MACROS
    assert data["dishPairings"] == PAIRING
    assert data["summary"] == SUMMARY
    assert data["fromCache"] is False

    drain(client)
    cached = client.post("/generate-recipe-details", json={**body, "recipeTitle": "punjene paprike"})
    assert cached.status_code == 200
    assert cached.json()["fromCache"] is True
    assert cached.json()["ingredients"] == PAPRIKE_RECIPE["ingredients"]


def test_generate_without_enrichment_omits_fields(client):
    response = client.post("/generate-recipe-details", json={"recipeTitle": "Punjene Paprike"})
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"ingredients", "directions", "fromCache"}


def test_generate_invalid_json_is_500(monkeypatch):
    script = full_script()
    script[prompts.GENERATION_SYSTEM_PROMPT] = "Sorry, I cannot help with that."
    with _client(monkeypatch, Harness(script)) as client:
        response = client.post("/generate-recipe-details", json={"recipeTitle": "Sarma"})
    assert response.status_code == 500
    assert "Invalid JSON" in response.json()["detail"]


def test_generate_requires_title(client):
    response = client.post("/generate-recipe-details", json={"recipeContent": "something"})
    assert response.status_code == 422


def test_generate_rejects_blank_title(client, harness):
    response = client.post("/generate-recipe-details", json={"recipeTitle": "   "})
    assert response.status_code == 422
    assert harness.chat.calls == []


def test_classify_strips_title(client, harness):
    body = {"title": "  Punjene Paprike  ", **PAPRIKE_RECIPE}
    response = client.post("/classify-recipe", json=body)
    assert response.status_code == 200
    (call,) = harness.chat.calls_for(prompts.CLASSIFY_SYSTEM_PROMPT)
    assert "  Punjene Paprike  " not in call["user"]
    assert call["user"].startswith("Recipe: Punjene Paprike\n")


def test_classify_recipe(client):
    response = client.post(
        "/classify-recipe",
        json={"title": "Punjene Paprike", **PAPRIKE_RECIPE},
    )
    assert response.status_code == 200
    assert response.json() == CLASSIFICATION


def test_classify_rejected_is_500(monkeypatch):
    script = full_script()
    script[prompts.CLASSIFY_SYSTEM_PROMPT] = json.dumps({**CLASSIFICATION, "diet": ["none"]})
    with _client(monkeypatch, Harness(script)) as client:
        response = client.post("/classify-recipe", json={"title": "Sarma", **PAPRIKE_RECIPE})
    assert response.status_code == 500


def test_generate_summary(client):
    response = client.post(
        "/generate-summary",
        json={"title": "Punjene Paprike", **PAPRIKE_RECIPE, "cuisineType": "Balkan"},
    )
    assert response.status_code == 200
    assert response.json() == {"summary": SUMMARY}


def test_macro_info_accepts_text_or_object(client):
    response = client.post("/macro-info", json={"recipe": "Sarma with rice"})
    assert response.status_code == 200
    assert response.json() == {"macros": MACROS}

    response = client.post("/macro-info", json={"recipe": {"title": "Sarma", **PAPRIKE_RECIPE}})
    assert response.status_code == 200


def test_macro_info_empty_recipe_is_400(client):
    response = client.post("/macro-info", json={"recipe": "   "})
    assert response.status_code == 400


def test_dish_pairing_without_links(client):
    response = client.post("/dish-pairing", json={"recipe": "Sarma"})
    assert response.status_code == 200
    assert response.json() == {"suggestion": PAIRING}


def test_dish_pairing_with_links(monkeypatch):
    script = full_script()
    script[prompts.PAIRING_SYSTEM_PROMPT] = "Pour a glass of **Plavac Mali** alongside."
    with _client(monkeypatch, Harness(script)) as client:
        sync = client.post(
            "/admin/sync-recipes",
            json={"recipes": [{"id": "r1", "recipeTitle": "Plavac Mali Braise", "ingredients": ["wine"]}]},
        )
        assert sync.json() == {"synced": 1}

        response = client.post("/dish-pairing", json={"recipe": "Sarma"})

    assert response.status_code == 200
    (link,) = response.json()["recipeLinks"]
    assert link["name"] == "Plavac Mali"
    assert link["recipeId"] == "r1"
    assert link["url"].endswith("/r1")


def test_similar_recipes(client):
    recipes = [
        {"id": "sarma", "recipeTitle": "Sarma", "ingredients": ["cabbage", "pork", "rice"]},
        {"id": "paprike", "recipeTitle": "Punjene Paprike", "ingredients": ["peppers", "pork", "rice"]},
        {"id": "baklava", "recipeTitle": "Baklava", "ingredients": ["filo", "walnuts"], "username": "Ana"},
    ]
    assert client.post("/admin/sync-recipes", json={"recipes": recipes}).json() == {"synced": 3}

    response = client.post("/similar-recipes", json={"recipeId": "sarma", "limit": 2})
    assert response.status_code == 200
    similar = response.json()["similar"]
    assert [item["id"] for item in similar] == ["paprike", "baklava"]
    assert similar[0]["username"] == "Anonymous Chef"
    assert similar[1]["username"] == "Ana"


def test_similar_recipes_validates_limit(client):
    response = client.post("/similar-recipes", json={"recipeId": "sarma", "limit": 50})
    assert response.status_code == 422


def test_ingest_corpus(client):
    response = client.post(
        "/admin/corpus",
        json={"recipes": [{"title": "Sarma", "ingredients": ["cabbage"], "directions": ["Roll."]}]},
    )
    assert response.status_code == 200
    assert response.json() == {"ingested": 1, "total": 1}


def test_get_stats(client):
    client.post("/generate-recipe-details", json={"recipeTitle": "Punjene Paprike", "generateAll": True})
    drain(client)

    response = client.get("/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["metrics"]["recipe_cache_misses"] == 1
    assert data["tables"]["recipe_embeddings"] == 1
    assert data["tables"]["enrichment_cache"] == 4
    assert data["pendingWrites"] == 0
    assert data["failedWrites"] == 0
