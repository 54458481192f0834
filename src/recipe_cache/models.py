from dataclasses import dataclass, field

from recipe_cache.entities import EnrichmentType


@dataclass
class EnrichmentCounters:
    """Cache and failure counts for one enrichment type."""

    cache_hits: int = 0
    cache_misses: int = 0
    failures: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total

    def to_dict(self) -> dict[str, float | int]:
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "failures": self.failures,
            "hit_rate": self.hit_rate,
        }


@dataclass
class PipelineMetrics:
    """Track cache and LLM metrics for the recipe pipeline."""

    total_queries: int = 0
    recipe_cache_hits: int = 0
    recipe_cache_misses: int = 0
    corpus_direct_hits: int = 0
    generations: int = 0
    generation_failures: int = 0
    total_lookup_time_ms: float = 0.0
    total_llm_time_ms: float = 0.0
    llm_calls: int = 0
    enrichment: dict[str, EnrichmentCounters] = field(
        default_factory=lambda: {kind.value: EnrichmentCounters() for kind in EnrichmentType}
    )

    @property
    def hit_rate(self) -> float:
        """Calculate recipe cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.recipe_cache_hits / self.total_queries

    @property
    def avg_lookup_time_ms(self) -> float:
        """Calculate average recipe cache lookup time."""
        if self.total_queries == 0:
            return 0.0
        return self.total_lookup_time_ms / self.total_queries

    def record_hit(self, lookup_time_ms: float) -> None:
        """Record a recipe cache hit."""
        self.total_queries += 1
        self.recipe_cache_hits += 1
        self.total_lookup_time_ms += lookup_time_ms

    def record_miss(self, lookup_time_ms: float) -> None:
        """Record a recipe cache miss."""
        self.total_queries += 1
        self.recipe_cache_misses += 1
        self.total_lookup_time_ms += lookup_time_ms

    def record_corpus_hit(self) -> None:
        self.corpus_direct_hits += 1

    def record_generation(self, duration_ms: float, failed: bool = False) -> None:
        """Record a recipe generation call."""
        self.generations += 1
        if failed:
            self.generation_failures += 1
        self.record_llm_call(duration_ms)

    def record_llm_call(self, duration_ms: float) -> None:
        """Record an LLM API call."""
        self.llm_calls += 1
        self.total_llm_time_ms += duration_ms

    def record_enrichment(self, kind: EnrichmentType, hit: bool) -> None:
        counters = self.enrichment[kind.value]
        if hit:
            counters.cache_hits += 1
        else:
            counters.cache_misses += 1

    def record_enrichment_failure(self, kind: EnrichmentType) -> None:
        self.enrichment[kind.value].failures += 1

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "recipe_cache_hits": self.recipe_cache_hits,
            "recipe_cache_misses": self.recipe_cache_misses,
            "hit_rate": self.hit_rate,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
            "corpus_direct_hits": self.corpus_direct_hits,
            "generations": self.generations,
            "generation_failures": self.generation_failures,
            "total_llm_time_ms": self.total_llm_time_ms,
            "llm_calls": self.llm_calls,
            "enrichment": {kind: counters.to_dict() for kind, counters in self.enrichment.items()},
        }
