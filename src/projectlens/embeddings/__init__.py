"""Embeddings Module — Converts code and questions into comparable vectors.

Two backends share one base class (lazy model load, bounded concurrency,
input-order results, optional content-hash cache):
    - TransformerEmbedder: local model via transformers + torch
    - InferenceAPIEmbedder: Hugging Face Inference API

Usage:
    from projectlens.embeddings import TransformerEmbedder

    embedder = TransformerEmbedder(max_concurrency=5)
    vectors = embedder.embed(["def hello(): pass", "class Foo: ..."])
    query = embedder.embed_one("where is the greeting?")
"""

from projectlens.config import Settings
from projectlens.embeddings.base import Embedder
from projectlens.embeddings.cache import EmbeddingCache


def make_embedder(settings: Settings) -> Embedder:
    """Build the embedder selected by settings.embedding_backend."""
    cache = EmbeddingCache(settings.embedding_cache_size) if settings.embedding_cache else None
    backend = settings.embedding_backend

    if backend == "local":
        from projectlens.embeddings.code_embedder import TransformerEmbedder

        return TransformerEmbedder(
            settings.embedding_model,
            max_concurrency=settings.embed_concurrency,
            cache=cache,
        )
    if backend == "remote":
        from projectlens.embeddings.remote import InferenceAPIEmbedder

        return InferenceAPIEmbedder(
            settings.embedding_model,
            token=settings.hf_token,
            max_concurrency=settings.embed_concurrency,
            cache=cache,
        )
    raise ValueError(f"Unknown embedding backend: {backend!r} (expected 'local' or 'remote')")


__all__ = ["Embedder", "EmbeddingCache", "make_embedder"]
