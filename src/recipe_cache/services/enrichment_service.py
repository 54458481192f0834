"""Enrichment capabilities: classification, summary, macros and pairing.

Each capability checks the enrichment cache first, calls the chat model on a
miss and submits the cache write as a detached task. Cached values are
validated again on the way out, so a bad row can never poison a response.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from recipe_cache import prompts
from recipe_cache.entities import Classification, EnrichmentType, PairingSuggestion
from recipe_cache.errors import EnrichmentError, RecipeCacheError
from recipe_cache.llm_output import parse_json_object
from recipe_cache.models import PipelineMetrics
from recipe_cache.protocols import ChatModel
from recipe_cache.services.background import DetachedTasks
from recipe_cache.services.enrichment_cache import EnrichmentCache
from recipe_cache.services.similar_recipes import SimilarRecipesIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

MACRO_REQUIRED_KEYS = ("servings", "total", "per_serving")


def validate_macros(data: Any) -> dict[str, Any]:
    """Check a macro payload has servings, totals and per-serving values.

    Raises:
        EnrichmentError: If a required key is missing or empty
    """
    if not isinstance(data, dict) or not all(data.get(key) for key in MACRO_REQUIRED_KEYS):
        raise EnrichmentError("Invalid nutrition data structure")
    return data


def _summary_from(payload: Any) -> str:
    summary = payload.get("summary") if isinstance(payload, dict) else None
    if not isinstance(summary, str) or not summary.strip():
        raise EnrichmentError("Empty summary")
    return summary.strip()


def _macros_from(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise EnrichmentError("Invalid nutrition data structure")
    return validate_macros(payload.get("macros"))


def _suggestion_from(payload: Any) -> str:
    suggestion = payload.get("suggestion") if isinstance(payload, dict) else None
    if not isinstance(suggestion, str) or not suggestion.strip():
        raise EnrichmentError("Empty pairing suggestion")
    return suggestion.strip()


class EnrichmentService:
    """Cache-backed enrichment calls shared by the pipeline and the API.

    Example:
        ```python
        service = EnrichmentService(chat_model, EnrichmentCache(registry), DetachedTasks())
        classification = await service.classify("Sarma", ingredients, directions)
        summary = await service.summarize("Sarma", ingredients, directions, classification)
        ```
    """

    def __init__(
        self,
        chat_model: ChatModel,
        cache: EnrichmentCache,
        tasks: DetachedTasks,
        similar_index: SimilarRecipesIndex | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the enrichment service.

        Args:
            chat_model: LLM used for every enrichment prompt (required).
            cache: Enrichment cache (required).
            tasks: Runner for detached cache writes (required).
            similar_index: Index used to link dishes named in pairings.
            metrics: Shared metrics; a private instance is used if omitted.
        """
        self._llm = chat_model
        self._cache = cache
        self._tasks = tasks
        self._similar_index = similar_index
        self._metrics = metrics or PipelineMetrics()

    @property
    def metrics(self) -> PipelineMetrics:
        return self._metrics

    async def _complete(self, system_prompt: str, user_content: str, params: tuple[float, int]) -> str:
        temperature, max_tokens = params
        start_time = time.time()
        try:
            return await self._llm.complete(
                system_prompt, user_content, temperature=temperature, max_tokens=max_tokens
            )
        finally:
            self._metrics.record_llm_call((time.time() - start_time) * 1000)

    async def _cached(
        self,
        kind: EnrichmentType,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        extract: Callable[[Any], T],
    ) -> T:
        """Return the cached value for key, or compute, store and return it.

        Args:
            kind: Enrichment namespace
            key: Cache input text
            compute: Produces the payload to cache on a miss
            extract: Validates a payload and turns it into the return value

        Raises:
            EnrichmentError: If computing or validating a fresh payload fails
        """
        cached = await self._cache.check(kind, key)
        if cached is not None:
            try:
                value = extract(cached)
            except RecipeCacheError as e:
                logger.warning("Discarding invalid cached %s result: %s", kind.value, e)
            else:
                self._metrics.record_enrichment(kind, hit=True)
                return value

        self._metrics.record_enrichment(kind, hit=False)
        try:
            payload = await compute()
            value = extract(payload)
        except EnrichmentError:
            self._metrics.record_enrichment_failure(kind)
            raise
        except Exception as e:
            self._metrics.record_enrichment_failure(kind)
            raise EnrichmentError(f"{kind.value} enrichment failed: {e}") from e

        self._tasks.submit(self._cache.store(kind, key, payload), f"{kind.value} cache write")
        return value

    async def classify(self, title: str, ingredients: list[str], directions: list[str]) -> Classification:
        """Classify diet, cuisine, cooking time and difficulty.

        Raises:
            ClassificationRejectedError: If the model output breaks the rules
            EnrichmentError: If the model call or parsing fails
        """
        message = prompts.build_classify_input(title, ingredients, directions)

        async def compute() -> dict[str, Any]:
            raw = await self._complete(prompts.CLASSIFY_SYSTEM_PROMPT, message, prompts.CLASSIFY_PARAMS)
            return parse_json_object(raw)

        classification = await self._cached(EnrichmentType.CLASSIFY, message, compute, Classification.from_dict)
        return classification

    async def summarize(
        self,
        title: str,
        ingredients: list[str],
        directions: list[str],
        classification: Classification | None = None,
        cooking_time: str | None = None,
    ) -> str:
        """Write a short SEO description of a recipe.

        Args:
            title: Recipe title
            ingredients: Ingredient lines
            directions: Direction steps
            classification: Classification fields to mention, if known
            cooking_time: Display cooking time; defaults to the classification's
        """
        message = prompts.build_summary_input(
            title,
            ingredients,
            directions,
            cuisine=classification.cuisine if classification else None,
            diet=classification.diet if classification else None,
            cooking_time=cooking_time or (classification.cooking_time if classification else None),
            difficulty=classification.difficulty if classification else None,
        )

        async def compute() -> dict[str, Any]:
            raw = await self._complete(prompts.SUMMARY_SYSTEM_PROMPT, message, prompts.SUMMARY_PARAMS)
            return {"summary": raw.strip()}

        return await self._cached(EnrichmentType.SUMMARY, message, compute, _summary_from)

    async def macro_info(self, recipe_text: str) -> dict[str, Any]:
        """Estimate servings plus total and per-serving calories and macros."""

        async def compute() -> dict[str, Any]:
            raw = await self._complete(prompts.MACRO_SYSTEM_PROMPT, recipe_text, prompts.MACRO_PARAMS)
            return {"macros": validate_macros(parse_json_object(raw))}

        return await self._cached(EnrichmentType.MACRO, recipe_text, compute, _macros_from)

    async def pairing(self, recipe_text: str) -> str:
        """Suggest a wine, side dish or dessert pairing."""

        async def compute() -> dict[str, Any]:
            raw = await self._complete(prompts.PAIRING_SYSTEM_PROMPT, recipe_text, prompts.PAIRING_PARAMS)
            return {"suggestion": raw.strip()}

        return await self._cached(EnrichmentType.PAIRING, recipe_text, compute, _suggestion_from)

    async def pairing_with_links(self, recipe_text: str) -> PairingSuggestion:
        """Pairing suggestion plus links to saved recipes for the dishes it names.

        Link resolution is best-effort and never fails the call.
        """
        suggestion = await self.pairing(recipe_text)
        if self._similar_index is None:
            return PairingSuggestion(suggestion=suggestion)
        try:
            links = await self._similar_index.resolve_recipe_links(suggestion)
        except Exception:
            logger.warning("Recipe link resolution failed", exc_info=True)
            links = []
        return PairingSuggestion(suggestion=suggestion, recipe_links=tuple(links))
