"""Exception types raised by the retrieval pipeline.

Retrieval failures (could not gather context) and completion failures
(the LLM call failed) are kept in separate branches so callers can still
show the gathered context when only the final answer is missing.
"""

from typing import Optional


class ProjectLensError(Exception):
    """Base class for all ProjectLens errors."""


class RetrievalError(ProjectLensError):
    """Context could not be gathered from the codebase."""


class SourceLoadError(RetrievalError, IOError):
    """Project root missing or unreadable, or no files matched the filters."""


class EmbeddingError(RetrievalError):
    """Embedding backend unavailable, model failed to load, or a text failed to embed."""


class RankingError(RetrievalError, ValueError):
    """Malformed candidate set (empty, mismatched dimensions) or invalid top_k."""


class CompletionError(ProjectLensError):
    """The LLM completion call failed or returned no content.

    ``context`` and ``prompt`` are filled in by the orchestrator when the
    failure happens after retrieval succeeded.
    """

    def __init__(
        self,
        reason: str,
        context: Optional[str] = None,
        prompt: Optional[str] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.context = context
        self.prompt = prompt
