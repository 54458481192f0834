import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from sqlalchemy import Engine, create_engine

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Postgres + pgvector (Vercel/Neon expose POSTGRES_URL, Railway DATABASE_URL)
    database_url: str | None = os.getenv("POSTGRES_URL") or os.getenv("DATABASE_URL")
    db_connect_timeout: int = int(os.getenv("DB_CONNECT_TIMEOUT", "5"))
    # Seconds before a table whose initialisation failed is tried again
    store_retry_cooldown: float = float(os.getenv("STORE_RETRY_COOLDOWN", "30"))
    # Exhaustive filtered HNSW scans (pgvector >= 0.8)
    hnsw_iterative_scan: bool = os.getenv("HNSW_ITERATIVE_SCAN", "true").lower() == "true"

    # Cosine distance thresholds (0 = identical, 2 = opposite)
    recipe_cache_threshold: float = float(os.getenv("RECIPE_CACHE_THRESHOLD", "0.12"))
    enrichment_cache_threshold: float = float(os.getenv("ENRICHMENT_CACHE_THRESHOLD", "0.08"))
    similar_recipes_threshold: float = float(os.getenv("SIMILAR_RECIPES_THRESHOLD", "2.0"))

    # Reference corpus used on recipe cache misses
    corpus_direct_match_threshold: float = float(os.getenv("CORPUS_DIRECT_MATCH_THRESHOLD", "0.1"))
    corpus_context_threshold: float = float(os.getenv("CORPUS_CONTEXT_THRESHOLD", "0.3"))
    corpus_top_k: int = int(os.getenv("CORPUS_TOP_K", "3"))

    # Key and prompt truncation
    query_context_max_chars: int = 300
    prompt_context_max_chars: int = 500
    enrichment_key_max_chars: int = 2000
    embedding_text_max_chars: int = 8000

    # Embedding
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "openai")
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    embedding_timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "30"))

    # Chat models
    llm_provider: str = os.getenv("LLM_PROVIDER", "openai")
    recipe_model: str = os.getenv("RECIPE_MODEL", "gpt-4o-mini")
    enrichment_model: str = os.getenv("ENRICHMENT_MODEL", "gpt-4o-mini")
    llm_timeout: float = float(os.getenv("LLM_TIMEOUT", "60"))

    # Ollama
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Optional: OpenAI
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")

    # Links returned by the pairing endpoint
    recipe_link_base_url: str = os.getenv("RECIPE_LINK_BASE_URL", "https://www.babaselo.com/recipe/")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cache_enabled(self) -> bool:
        """Check if a vector database is configured.

        Returns:
            True if a connection string is available, False otherwise
        """
        return bool(self.database_url)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in (
            "recipe_cache_threshold",
            "enrichment_cache_threshold",
            "similar_recipes_threshold",
            "corpus_direct_match_threshold",
            "corpus_context_threshold",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 2:
                raise ValueError(f"{name.upper()} must be between 0 and 2 for cosine distance")

        if self.corpus_top_k < 1:
            raise ValueError(f"CORPUS_TOP_K must be positive, got {self.corpus_top_k}")

        if self.embedding_provider not in ("openai", "ollama", "local"):
            raise ValueError(
                f"EMBEDDING_PROVIDER must be one of ['openai', 'ollama', 'local'], "
                f"got {self.embedding_provider}"
            )

        if self.llm_provider not in ("openai", "ollama"):
            raise ValueError(f"LLM_PROVIDER must be one of ['openai', 'ollama'], got {self.llm_provider}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def normalize_database_url(url: str) -> str:
    """Point plain Postgres URLs at the psycopg (v3) driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def create_db_engine(url: str, connect_timeout: int | None = None) -> Engine:
    """Create the shared SQLAlchemy engine (connection pool) for vector tables.

    connect_timeout bounds how long an unreachable server can hold a connect.
    """
    return create_engine(
        normalize_database_url(url),
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=10,
        connect_args={"connect_timeout": connect_timeout or settings.db_connect_timeout},
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and scripts."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
