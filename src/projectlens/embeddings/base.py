"""Embedder base class: lazy model loading, bounded concurrency, caching."""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from projectlens.embeddings.cache import EmbeddingCache
from projectlens.errors import EmbeddingError

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Convert text into unit-length vectors.

    Subclasses load their model in ``_load_model`` and embed one text in
    ``_embed_text``. The base class loads the model once per instance,
    runs batches on at most ``max_concurrency`` worker threads and returns
    vectors in input order.
    """

    def __init__(
        self,
        model_name: str,
        max_concurrency: int = 5,
        cache: Optional[EmbeddingCache] = None,
    ):
        """
        Args:
            model_name: Model identifier, also part of the cache key
            max_concurrency: Upper bound on simultaneous model invocations
            cache: Optional cache shared across calls
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.model_name = model_name
        self.max_concurrency = max_concurrency
        self.cache = cache
        self._loaded = False
        self._load_lock = threading.Lock()

    @abstractmethod
    def _load_model(self) -> None:
        """Load the model handle. Called at most once per instance."""

    @abstractmethod
    def _embed_text(self, text: str) -> list[float]:
        """Embed a single text with the loaded model."""

    def _ensure_model_loaded(self) -> None:
        """Load the model on first use."""
        if self._loaded:
            return
        with self._load_lock:
            if self._loaded:
                return
            logger.info("Loading embedding model %s", self.model_name)
            try:
                self._load_model()
            except Exception as e:
                raise EmbeddingError(f"Failed to load embedding model {self.model_name}: {e}") from e
            self._loaded = True

    def _embed_cached(self, text: str) -> list[float]:
        if self.cache is not None:
            cached = self.cache.get(self.model_name, text)
            if cached is not None:
                return cached
        try:
            vector = self._embed_text(text)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Failed to embed text ({len(text)} chars): {e}") from e
        if self.cache is not None:
            self.cache.put(self.model_name, text, vector)
        return vector

    def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Texts to embed

        Returns:
            One vector per text, in the same order as the input

        Raises:
            EmbeddingError: If the model fails to load or any text fails.
                            One failure aborts the whole batch.
        """
        if not texts:
            return []
        self._ensure_model_loaded()

        if self.max_concurrency == 1 or len(texts) == 1:
            return [self._embed_cached(t) for t in texts]

        workers = min(self.max_concurrency, len(texts))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed") as pool:
            # map() yields in submission order and re-raises the first failure
            return list(pool.map(self._embed_cached, texts))

    def embed_one(self, text: str) -> list[float]:
        """Embed a single text."""
        return self.embed([text])[0]
