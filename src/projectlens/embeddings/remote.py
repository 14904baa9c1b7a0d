"""Embeddings from the Hugging Face Inference API."""

from typing import Optional

import numpy as np
from huggingface_hub import InferenceClient

from projectlens.config import DEFAULT_EMBEDDING_MODEL
from projectlens.embeddings.base import Embedder
from projectlens.embeddings.cache import EmbeddingCache
from projectlens.errors import EmbeddingError


class InferenceAPIEmbedder(Embedder):
    """Embed text through the hosted feature-extraction endpoint."""

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        token: Optional[str] = None,
        max_concurrency: int = 5,
        cache: Optional[EmbeddingCache] = None,
        timeout: float = 30.0,
    ):
        super().__init__(model_name, max_concurrency=max_concurrency, cache=cache)
        self._token = token
        self._timeout = timeout
        self._client: Optional[InferenceClient] = None

    def _load_model(self) -> None:
        self._client = InferenceClient(token=self._token, timeout=self._timeout)

    def _embed_text(self, text: str) -> list[float]:
        output = np.asarray(
            self._client.feature_extraction(text, model=self.model_name),
            dtype=np.float32,
        )

        # Sentence models return [dim]; raw encoders return [tokens, dim] or [1, tokens, dim]
        while output.ndim > 1:
            output = output.mean(axis=0)
        if output.size == 0:
            raise EmbeddingError(f"Empty embedding returned by {self.model_name}")

        norm = float(np.linalg.norm(output))
        if norm > 0:
            output = output / norm
        return output.tolist()
