"""Retrieval Module — Orchestrates loading, chunking, embedding and ranking.

Combines the Loader, Chunking and Embeddings modules into a single pipeline:
    1. Load source files → split into chunks
    2. Embed chunks and the question
    3. Rank chunks by cosine similarity
    4. Assemble the top matches into a prompt and ask the LLM

Usage:
    from projectlens.retrieval import CodebaseRetriever

    retriever = CodebaseRetriever(embedder)
    answer = retriever.answer_from_codebase("how does auth work?", Path("."), top_k=3)
"""

from projectlens.retrieval.ranker import Match, cosine_similarity, rank
from projectlens.retrieval.retriever import (
    CodebaseRetriever,
    RetrievalAnswer,
    answer_from_codebase,
)

__all__ = [
    "CodebaseRetriever",
    "Match",
    "RetrievalAnswer",
    "answer_from_codebase",
    "cosine_similarity",
    "rank",
]
