"""Retrieval pipeline: load, chunk, embed, rank, assemble, complete."""

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from projectlens.chunking.chunker import Chunk, chunk_file
from projectlens.config import Settings
from projectlens.embeddings.base import Embedder
from projectlens.errors import CompletionError, SourceLoadError
from projectlens.llm import provider
from projectlens.loader.file_loader import load_source_files
from projectlens.retrieval.ranker import Match, rank, validate_top_k

logger = logging.getLogger(__name__)


@dataclass
class RetrievalAnswer:
    """Everything produced by one question."""

    question: str
    matches: list[Match]
    context: str
    prompt: str
    answer: str


class CodebaseRetriever:
    """Answer questions about a project from its most relevant code chunks."""

    def __init__(
        self,
        embedder: Embedder,
        complete: Optional[Callable[[str], str]] = None,
        include_globs: Optional[list[str]] = None,
        exclude_globs: Optional[list[str]] = None,
        max_chunk_length: int = 1000,
    ):
        """
        Initialize the retriever.

        Args:
            embedder: Embedding client, built once and shared across calls
            complete: prompt -> text callable (default: configured LLM provider)
            include_globs: File patterns to load (default: code files)
            exclude_globs: File/directory patterns to skip
            max_chunk_length: Character budget per chunk
        """
        self.embedder = embedder
        self.complete = complete or provider.complete
        self.include_globs = include_globs
        self.exclude_globs = exclude_globs
        self.max_chunk_length = max_chunk_length

    @classmethod
    def from_settings(cls, settings: Settings, embedder: Optional[Embedder] = None) -> "CodebaseRetriever":
        """Build a retriever (and its embedder, unless given) from settings."""
        if embedder is None:
            from projectlens.embeddings import make_embedder

            embedder = make_embedder(settings)
        return cls(
            embedder,
            complete=functools.partial(
                provider.complete,
                model=settings.llm_model,
                provider=settings.llm_provider,
            ),
            include_globs=settings.include_globs,
            exclude_globs=settings.exclude_globs,
            max_chunk_length=settings.max_chunk_length,
        )

    def collect_chunks(self, project_root: Path | str) -> list[Chunk]:
        """
        Load the project's files and split them into chunks.

        Raises:
            SourceLoadError: If the root is invalid or no files match
        """
        files = load_source_files(project_root, self.include_globs, self.exclude_globs)
        if not files:
            raise SourceLoadError(f"No source files matched in {project_root}")

        chunks: list[Chunk] = []
        for source in files:
            # Whitespace-only chunks carry nothing to match on
            chunks.extend(c for c in chunk_file(source, self.max_chunk_length) if c.text.strip())

        if not chunks:
            raise SourceLoadError(f"Source files in {project_root} contain no text")

        logger.info("Split %d files into %d chunks", len(files), len(chunks))
        return chunks

    def search(self, question: str, project_root: Path | str, top_k: int = 3) -> list[Match]:
        """
        Find the top_k chunks most similar to the question.

        Raises:
            SourceLoadError, EmbeddingError, RankingError
        """
        validate_top_k(top_k)
        chunks = self.collect_chunks(project_root)

        logger.info("Embedding %d chunks", len(chunks))
        vectors = self.embedder.embed([c.text for c in chunks])
        query_vector = self.embedder.embed_one(question)

        matches = rank(list(zip(vectors, chunks)), query_vector, top_k)
        for m in matches:
            logger.debug("Match %.3f %s", m.score, m.source_path)
        return matches

    @staticmethod
    def build_prompt(question: str, matches: list[Match]) -> tuple[str, str]:
        """Return (context, prompt) for the matched chunks."""
        context = "\n\n".join(f"// {m.source_path}\n{m.text}" for m in matches)
        prompt = f"{context}\n\nQ: {question}\nA:"
        return context, prompt

    def ask(self, question: str, project_root: Path | str, top_k: int = 3) -> RetrievalAnswer:
        """
        Answer a question from the codebase.

        Retrieval failures propagate unchanged. A failed completion raises
        CompletionError carrying the gathered context and prompt.
        """
        matches = self.search(question, project_root, top_k)
        context, prompt = self.build_prompt(question, matches)

        try:
            answer = self.complete(prompt)
        except CompletionError as e:
            raise CompletionError(e.reason, context=context, prompt=prompt) from e
        except Exception as e:
            raise CompletionError(f"{type(e).__name__}: {e}", context=context, prompt=prompt) from e

        if not isinstance(answer, str):
            raise CompletionError(
                f"Completion returned {type(answer).__name__}, expected text",
                context=context,
                prompt=prompt,
            )

        return RetrievalAnswer(
            question=question,
            matches=matches,
            context=context,
            prompt=prompt,
            answer=answer,
        )

    def answer_from_codebase(self, question: str, project_root: Path | str, top_k: int = 3) -> str:
        """Answer a question and return the LLM's text verbatim."""
        return self.ask(question, project_root, top_k).answer


def answer_from_codebase(
    question: str,
    project_root: Path | str,
    top_k: int = 3,
    retriever: Optional[CodebaseRetriever] = None,
) -> str:
    """
    One-shot convenience wrapper around CodebaseRetriever.

    Builds a retriever from environment settings when none is given. Prefer
    holding a retriever so the embedding model is loaded only once.
    """
    if retriever is None:
        retriever = CodebaseRetriever.from_settings(Settings.from_env())
    return retriever.answer_from_codebase(question, project_root, top_k)
