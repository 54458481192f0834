"""In-process sentence-transformers embeddings.

Requires the `local` extra: pip install "recipe-cache[local]"
"""

import asyncio
import logging
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from recipe_cache.config import settings

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """Runs a sentence-transformers model inside the API process.

    A multilingual model such as paraphrase-multilingual-MiniLM-L12-v2 copes
    with dish names typed in several languages. Encoding is CPU-bound and
    runs in a worker thread.
    """

    def __init__(self, model_name: str | None = None, batch_size: int = 32) -> None:
        self._model_name = model_name or settings.embedding_model
        self._batch_size = batch_size
        self._model: SentenceTransformer | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        return cls(model_name=model_name)

    @property
    def model(self) -> SentenceTransformer:
        """Load the model on first use."""
        if self._model is None:
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            logger.info("Loaded %s in %.2fs", self._model_name, time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    @property
    def model_name(self) -> str:
        return self._model_name

    def _encode(self, texts: list[str]) -> list[list[float]]:
        vectors = self.model.encode(
            texts,
            batch_size=self._batch_size,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        return np.asarray(vectors, dtype=np.float32).tolist()

    async def encode(self, text: str) -> list[float]:
        (vector,) = await asyncio.to_thread(self._encode, [text])
        return vector

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)

    async def is_available(self) -> bool:
        try:
            await asyncio.to_thread(lambda: self.model)
        except OSError:
            logger.warning("Embedding model %s could not be loaded", self._model_name, exc_info=True)
            return False
        return True
