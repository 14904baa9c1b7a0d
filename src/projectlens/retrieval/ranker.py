"""Cosine-similarity ranking of chunk embeddings against a query."""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from projectlens.chunking.chunker import Chunk
from projectlens.errors import RankingError


@dataclass(frozen=True)
class Match:
    """A ranked chunk."""

    score: float
    source_path: str
    text: str


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns NaN when either vector has zero magnitude. Finite results are
    clipped into [-1, 1] to absorb floating-point overshoot.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise RankingError(f"Dimension mismatch: {va.shape} vs {vb.shape}")

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return math.nan
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def validate_top_k(top_k: int) -> None:
    """Raise RankingError unless top_k is a positive integer."""
    if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
        raise RankingError(f"top_k must be a positive integer, got {top_k!r}")


def _scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / np.where(norms > 0, norms, 1.0), np.nan)
    return np.clip(scores, -1.0, 1.0)  # NaN passes through clip


def rank(
    candidates: Sequence[tuple[Sequence[float], Chunk]],
    query: Sequence[float],
    top_k: int = 3,
) -> list[Match]:
    """
    Return the top_k candidates most similar to the query.

    Args:
        candidates: (embedding, chunk) pairs
        query: Query embedding
        top_k: Number of matches to return (positive integer)

    Returns:
        min(top_k, len(candidates)) matches, descending by score. Ties keep
        candidate order; candidates with an undefined (NaN) score come last.

    Raises:
        RankingError: On invalid top_k, an empty candidate list, or vectors
                      of different dimensions
    """
    validate_top_k(top_k)
    if not candidates:
        raise RankingError("No candidates to rank")

    q = np.asarray(query, dtype=np.float64)
    if q.ndim != 1 or q.size == 0:
        raise RankingError(f"Query embedding must be a non-empty vector, got shape {q.shape}")

    dims = {len(vec) for vec, _ in candidates}
    if len(dims) != 1:
        raise RankingError(f"Candidate embeddings have mixed dimensions: {sorted(dims)}")
    (dim,) = dims
    if dim != q.size:
        raise RankingError(f"Candidate dimension {dim} does not match query dimension {q.size}")

    matrix = np.asarray([vec for vec, _ in candidates], dtype=np.float64)
    scores = _scores(matrix, q)

    # Python's sort is stable, so equal scores keep candidate order
    undefined = np.isnan(scores)
    order = sorted(
        range(len(candidates)),
        key=lambda i: (bool(undefined[i]), 0.0 if undefined[i] else -float(scores[i])),
    )

    return [
        Match(
            score=float(scores[i]),
            source_path=candidates[i][1].source_path,
            text=candidates[i][1].text,
        )
        for i in order[:top_k]
    ]
