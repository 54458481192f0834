"""
Pytest configuration and fakes for recipe cache tests.

Everything runs in memory: a bag-of-words embedding provider, vector tables
with exact cosine search, and a chat model scripted per system prompt.
"""

import hashlib
import json
import re
import uuid
from collections.abc import Callable
from typing import Any

import numpy as np
import pytest

from recipe_cache import prompts
from recipe_cache.services import (
    DetachedTasks,
    EnrichmentCache,
    EnrichmentService,
    RecipeCache,
    RecipeCorpus,
    RecipePipeline,
    SimilarRecipesIndex,
    VectorStoreRegistry,
)

_TOKEN_RE = re.compile(r"\w+")


class FakeEmbeddingProvider:
    """Hashed bag-of-words embeddings.

    Texts with the same words (any case or order) get identical vectors;
    `overrides` pins exact vectors for specific texts.
    """

    def __init__(self, dimension: int = 512) -> None:
        self._dimension = dimension
        self.overrides: dict[str, list[float]] = {}
        self.calls: list[str] = []
        self.fail = False

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-bag-of-words"

    def _vector(self, text: str) -> list[float]:
        if text in self.overrides:
            return list(self.overrides[text])
        vector = np.zeros(self._dimension)
        for token in _TOKEN_RE.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self._dimension
            vector[bucket] += 1.0
        norm = np.linalg.norm(vector)
        if norm == 0:
            vector[0] = 1.0
            norm = 1.0
        return (vector / norm).tolist()

    async def encode(self, text: str) -> list[float]:
        if self.fail:
            raise RuntimeError("embedding service down")
        self.calls.append(text)
        return self._vector(text)

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        if self.fail:
            raise RuntimeError("embedding service down")
        self.calls.extend(texts)
        return [self._vector(t) for t in texts]

    async def is_available(self) -> bool:
        return not self.fail


class InMemoryVectorTable:
    """VectorTable with exact cosine distance over a Python list."""

    def __init__(self, table_name: str) -> None:
        self._table_name = table_name
        self.rows: list[tuple[str, str, np.ndarray, dict[str, Any]]] = []
        self.truncations = 0

    @property
    def table_name(self) -> str:
        return self._table_name

    def insert(self, content: str, vector: list[float], metadata: dict[str, Any]) -> str:
        row_id = str(uuid.uuid4())
        # Round-trip through JSON like a JSONB column would
        self.rows.append((row_id, content, np.asarray(vector, dtype=float), json.loads(json.dumps(metadata))))
        return row_id

    def insert_many(self, rows: list[tuple[str, list[float], dict[str, Any]]]) -> int:
        for content, vector, metadata in rows:
            self.insert(content, vector, metadata)
        return len(rows)

    @staticmethod
    def _matches(metadata: dict[str, Any], metadata_filter: dict[str, Any] | None) -> bool:
        if not metadata_filter:
            return True
        return all(metadata.get(k) == v for k, v in metadata_filter.items())

    def find_by_vector(
        self,
        vector: list[float],
        limit: int = 1,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[tuple[str, dict[str, Any], float]]:
        query = np.asarray(vector, dtype=float)
        results = []
        for _, content, stored, metadata in self.rows:
            if not self._matches(metadata, metadata_filter):
                continue
            similarity = float(np.dot(query, stored) / (np.linalg.norm(query) * np.linalg.norm(stored)))
            results.append((content, metadata, max(0.0, 1.0 - similarity)))
        results.sort(key=lambda r: r[2])
        return results[:limit]

    def find_vector(self, metadata_filter: dict[str, Any]) -> list[float] | None:
        for _, _, stored, metadata in self.rows:
            if self._matches(metadata, metadata_filter):
                return stored.tolist()
        return None

    def truncate(self) -> None:
        self.rows.clear()
        self.truncations += 1

    def count_all(self) -> int:
        return len(self.rows)

    def health_check(self) -> bool:
        return True


Reply = str | Exception | Callable[[str], str]


class ScriptedChatModel:
    """Chat model answering from a {system_prompt: reply} script.

    A reply may be a string, an exception to raise, or a callable taking the
    user message. Every call is recorded.
    """

    def __init__(self, script: dict[str, Reply] | None = None, model_name: str = "scripted") -> None:
        self.script: dict[str, Reply] = dict(script or {})
        self.calls: list[dict[str, Any]] = []
        self._model_name = model_name

    @property
    def model_name(self) -> str:
        return self._model_name

    def calls_for(self, system_prompt: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["system"] == system_prompt]

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        self.calls.append(
            {"system": system_prompt, "user": user_content, "temperature": temperature, "max_tokens": max_tokens}
        )
        reply = self.script.get(system_prompt)
        if reply is None:
            raise RuntimeError("No scripted reply for this prompt")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(user_content)
        return reply


PAPRIKE_RECIPE = {
    "ingredients": [
        "6 bell peppers",
        "500 g ground beef",
        "100 g rice",
        "1 onion, chopped",
        "400 ml tomato passata",
    ],
    "directions": [
        "Hollow out the peppers.",
        "Mix the beef, rice and onion.",
        "Stuff the peppers with the filling.",
        "Simmer in tomato sauce for 1 hour.",
    ],
}

CLASSIFICATION = {
    "diet": ["omnivore", "gluten-free"],
    "cuisine": "Balkan",
    "cooking_time": "2 hours",
    "difficulty": "medium",
}

MACROS = {
    "servings": 4,
    "total": {"calories": 1800, "proteins": 110, "carbs": 160, "fats": 70},
    "per_serving": {"calories": 450, "proteins": 27.5, "carbs": 40, "fats": 17.5},
}

SUMMARY = "Balkan stuffed peppers filled with beef and rice, simmered in tomato sauce. Naturally gluten-free."
PAIRING = "A glass of Plavac Mali and a fresh shopska salad complement this dish."


def full_script() -> dict[str, Reply]:
    """Replies for a successful generate-all run."""
    return {
        prompts.GENERATION_SYSTEM_PROMPT: "```json\n" + json.dumps(PAPRIKE_RECIPE) + "\n```",
        prompts.CLASSIFY_SYSTEM_PROMPT: json.dumps(CLASSIFICATION),
        prompts.SUMMARY_SYSTEM_PROMPT: SUMMARY,
        prompts.MACRO_SYSTEM_PROMPT: json.dumps(MACROS),
        prompts.PAIRING_SYSTEM_PROMPT: PAIRING,
    }


class Harness:
    """All services wired against in-memory fakes."""

    def __init__(self, script: dict[str, Reply] | None = None) -> None:
        self.embeddings = FakeEmbeddingProvider()
        self.tables: dict[str, InMemoryVectorTable] = {}
        self.registry = VectorStoreRegistry(self.embeddings, repository_factory=self._table)
        self.chat = ScriptedChatModel(full_script() if script is None else script)
        self.tasks = DetachedTasks()
        self.enrichment_cache = EnrichmentCache(self.registry)
        self.recipe_cache = RecipeCache(self.registry)
        self.similar_index = SimilarRecipesIndex(self.registry, link_base_url="https://example.test/recipe/")
        self.corpus = RecipeCorpus(self.registry)
        self.enrichment = EnrichmentService(
            self.chat, self.enrichment_cache, self.tasks, similar_index=self.similar_index
        )
        self.pipeline = RecipePipeline(
            self.chat, self.recipe_cache, self.enrichment, self.tasks, corpus=self.corpus
        )

    def _table(self, table_name: str, dimension: int) -> InMemoryVectorTable:
        table = self.tables.get(table_name)
        if table is None:
            table = self.tables[table_name] = InMemoryVectorTable(table_name)
        return table

    def table(self, table_name: str) -> InMemoryVectorTable:
        return self._table(table_name, self.embeddings.dimension)


@pytest.fixture
def embeddings():
    return FakeEmbeddingProvider()


@pytest.fixture
def harness():
    """Services wired with a successful chat script."""
    return Harness()


def axis_vector(x: float, y: float, dimension: int = 512) -> list[float]:
    """A vector in the plane of the first two axes, for pinning exact distances."""
    vector = [0.0] * dimension
    vector[0] = x
    vector[1] = y
    return vector
