"""Recipe generation pipeline.

A small explicit state machine:

    START -> CHECK_CACHE -> END                      (recipe cache hit)
                         -> RETRIEVE_CORPUS -> END   (direct corpus match)
                                            -> GENERATE -> FAILED
                                                        -> ENRICH -> STORE_CACHE -> END

Only GENERATE can fail a run. Enrichment sub-steps degrade individually and
cache writes are detached from the response.
"""

import asyncio
import copy
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from recipe_cache import prompts
from recipe_cache.config import settings
from recipe_cache.entities import EnrichmentType, RecipeResult, display_cooking_time
from recipe_cache.errors import RecipeGenerationError, UnparseableModelOutputError
from recipe_cache.llm_output import clean_string_list, parse_json_object
from recipe_cache.models import PipelineMetrics
from recipe_cache.protocols import ChatModel
from recipe_cache.services.background import DetachedTasks
from recipe_cache.services.enrichment_service import EnrichmentService
from recipe_cache.services.recipe_cache import RecipeCache
from recipe_cache.services.recipe_corpus import RecipeCorpus, format_reference

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    START = "start"
    CHECK_CACHE = "check_cache"
    RETRIEVE_CORPUS = "retrieve_corpus"
    GENERATE = "generate"
    ENRICH = "enrich"
    STORE_CACHE = "store_cache"
    FAILED = "failed"
    END = "end"


TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.START: frozenset({PipelineStage.CHECK_CACHE}),
    PipelineStage.CHECK_CACHE: frozenset({PipelineStage.END, PipelineStage.RETRIEVE_CORPUS}),
    PipelineStage.RETRIEVE_CORPUS: frozenset({PipelineStage.END, PipelineStage.GENERATE}),
    PipelineStage.GENERATE: frozenset({PipelineStage.ENRICH, PipelineStage.FAILED}),
    PipelineStage.ENRICH: frozenset({PipelineStage.STORE_CACHE}),
    PipelineStage.STORE_CACHE: frozenset({PipelineStage.END}),
    PipelineStage.FAILED: frozenset(),
    PipelineStage.END: frozenset(),
}


@dataclass(frozen=True)
class RecipeQuery:
    """A request to generate (or fetch) a recipe."""

    title: str
    content: str = ""
    generate_all: bool = False
    skip_macro_and_pairing: bool = False

    def context(self, max_chars: int) -> str:
        """The stripped free-text context, truncated."""
        return (self.content or "").strip()[:max_chars]

    def cache_key(self, max_chars: int | None = None) -> str:
        """Title plus the start of the context, used for cache and corpus lookups."""
        context = self.context(max_chars or settings.query_context_max_chars)
        return f"{self.title} {context}".strip() if context else self.title.strip()


@dataclass
class PipelineState:
    """Mutable state carried through one pipeline run."""

    query: RecipeQuery
    stage: PipelineStage = PipelineStage.START
    result: RecipeResult | None = None
    from_cache: bool = False
    corpus_context: str = ""
    error: str | None = None
    trace: list[PipelineStage] = field(default_factory=lambda: [PipelineStage.START])

    def advance(self, stage: PipelineStage) -> None:
        """Move to stage, enforcing the transition table.

        Raises:
            RuntimeError: If the transition is not allowed
        """
        if stage not in TRANSITIONS[self.stage]:
            raise RuntimeError(f"Illegal pipeline transition {self.stage.value} -> {stage.value}")
        self.stage = stage
        self.trace.append(stage)


@dataclass(frozen=True)
class PipelineOutcome:
    """Final result of a run and the stages it went through."""

    result: RecipeResult
    from_cache: bool
    trace: tuple[PipelineStage, ...]


class RecipePipeline:
    """Generate-or-fetch orchestration for recipes.

    Example:
        ```python
        pipeline = RecipePipeline(chat_model, recipe_cache, enrichment, tasks)
        outcome = await pipeline.generate(RecipeQuery("Punjene Paprike", generate_all=True))
        outcome.result.ingredients, outcome.from_cache
        ```
    """

    def __init__(
        self,
        chat_model: ChatModel,
        recipe_cache: RecipeCache,
        enrichment: EnrichmentService,
        tasks: DetachedTasks,
        corpus: RecipeCorpus | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            chat_model: LLM used for recipe generation (required).
            recipe_cache: Cache of complete recipes (required).
            enrichment: Cache-backed enrichment service (required).
            tasks: Runner for detached cache writes (required).
            corpus: Reference corpus consulted on cache misses.
            metrics: Shared metrics; defaults to the enrichment service's.
        """
        self._llm = chat_model
        self._recipe_cache = recipe_cache
        self._enrichment = enrichment
        self._tasks = tasks
        self._corpus = corpus
        self._metrics = metrics or enrichment.metrics

    @property
    def metrics(self) -> PipelineMetrics:
        return self._metrics

    async def generate(self, query: RecipeQuery) -> PipelineOutcome:
        """Run the pipeline for one query.

        Raises:
            RecipeGenerationError: If no ingredients and directions could be produced
        """
        state = PipelineState(query=query)
        state.advance(PipelineStage.CHECK_CACHE)

        while state.stage not in (PipelineStage.END, PipelineStage.FAILED):
            step = self._steps()[state.stage]
            await step(state)

        if state.stage is PipelineStage.FAILED or state.result is None:
            raise RecipeGenerationError(state.error or "Recipe generation failed")

        logger.info(
            "Recipe pipeline for %r finished: %s",
            query.title,
            " -> ".join(stage.value for stage in state.trace),
        )
        return PipelineOutcome(result=state.result, from_cache=state.from_cache, trace=tuple(state.trace))

    def _steps(self) -> dict[PipelineStage, Callable[[PipelineState], Awaitable[None]]]:
        return {
            PipelineStage.CHECK_CACHE: self._check_cache,
            PipelineStage.RETRIEVE_CORPUS: self._retrieve_corpus,
            PipelineStage.GENERATE: self._generate,
            PipelineStage.ENRICH: self._enrich,
            PipelineStage.STORE_CACHE: self._store_cache,
        }

    async def _check_cache(self, state: PipelineState) -> None:
        start_time = time.time()
        cached = await self._recipe_cache.check(
            state.query.cache_key(), require_enriched=state.query.generate_all
        )
        lookup_time_ms = (time.time() - start_time) * 1000

        if cached is not None:
            self._metrics.record_hit(lookup_time_ms)
            state.result = cached
            state.from_cache = True
            state.advance(PipelineStage.END)
        else:
            self._metrics.record_miss(lookup_time_ms)
            state.advance(PipelineStage.RETRIEVE_CORPUS)

    async def _retrieve_corpus(self, state: PipelineState) -> None:
        if self._corpus is None:
            state.advance(PipelineStage.GENERATE)
            return

        matches = await self._corpus.query(state.query.cache_key(), settings.corpus_top_k)
        if matches and matches[0].distance < settings.corpus_direct_match_threshold:
            top = matches[0].recipe
            if top.ingredients and top.directions:
                logger.info("Direct corpus match for %r: %s", state.query.title, top.title)
                self._metrics.record_corpus_hit()
                state.result = RecipeResult(
                    ingredients=list(top.ingredients),
                    directions=list(top.directions),
                    cuisine_type=top.cuisine,
                )
                state.from_cache = True
                state.advance(PipelineStage.END)
                return

        references = [
            format_reference(match.recipe)
            for match in matches[: settings.corpus_top_k]
            if match.distance < settings.corpus_context_threshold
        ]
        state.corpus_context = "\n\n---\n\n".join(references)
        state.advance(PipelineStage.GENERATE)

    async def _generate(self, state: PipelineState) -> None:
        query = state.query
        user_prompt = prompts.build_generation_prompt(
            query.title,
            context=query.context(settings.prompt_context_max_chars),
            reference=state.corpus_context,
        )
        temperature, max_tokens = prompts.GENERATION_PARAMS

        start_time = time.time()
        failed = True
        try:
            raw = await self._llm.complete(
                prompts.GENERATION_SYSTEM_PROMPT,
                user_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
            )
            data = parse_json_object(raw)
            ingredients = clean_string_list(data.get("ingredients"))
            directions = clean_string_list(data.get("directions"))
            if not ingredients or not directions:
                state.error = "AI did not return valid ingredients or directions arrays"
            else:
                failed = False
        except UnparseableModelOutputError as e:
            logger.error("Unparseable recipe output for %r: %s", query.title, e)
            state.error = "Invalid JSON response from AI"
        except Exception as e:
            logger.exception("Recipe generation failed for %r", query.title)
            state.error = f"Recipe generation failed: {e}"
        finally:
            self._metrics.record_generation((time.time() - start_time) * 1000, failed=failed)

        if failed:
            state.advance(PipelineStage.FAILED)
            return

        state.result = RecipeResult(ingredients=ingredients, directions=directions)
        state.advance(PipelineStage.ENRICH)

    async def _attempt(self, kind: EnrichmentType, call: Awaitable[Any]) -> Any | None:
        """Await one enrichment call, absorbing its failure."""
        try:
            return await call
        except Exception as e:
            logger.warning("Enrichment step %s failed: %s", kind.value, e)
            return None

    async def _enrich(self, state: PipelineState) -> None:
        query = state.query
        result = state.result
        if not query.generate_all or result is None:
            state.advance(PipelineStage.STORE_CACHE)
            return

        ingredients, directions = result.ingredients, result.directions

        classification = await self._attempt(
            EnrichmentType.CLASSIFY,
            self._enrichment.classify(query.title, ingredients, directions),
        )
        if classification is not None:
            result.cooking_time = display_cooking_time(classification.cooking_time)
            result.cuisine_type = classification.cuisine
            result.cooking_difficulty = classification.difficulty
            result.diet = list(classification.diet)

        summary = await self._attempt(
            EnrichmentType.SUMMARY,
            self._enrichment.summarize(
                query.title, ingredients, directions, classification, cooking_time=result.cooking_time
            ),
        )
        if summary is not None:
            result.summary = summary

        if not query.skip_macro_and_pairing:
            recipe_text = prompts.build_recipe_text(query.title, ingredients, directions)
            macros, pairing = await asyncio.gather(
                self._attempt(EnrichmentType.MACRO, self._enrichment.macro_info(recipe_text)),
                self._attempt(EnrichmentType.PAIRING, self._enrichment.pairing(recipe_text)),
            )
            if macros is not None:
                result.macro_info = macros
            if pairing is not None:
                result.dish_pairings = pairing

        state.advance(PipelineStage.STORE_CACHE)

    async def _store_cache(self, state: PipelineState) -> None:
        result = state.result
        if not state.from_cache and result is not None and result.is_complete:
            self._tasks.submit(
                self._recipe_cache.store(
                    state.query.cache_key(), copy.deepcopy(result), enriched=state.query.generate_all
                ),
                f"recipe cache write for {state.query.title!r}",
            )
        state.advance(PipelineStage.END)
