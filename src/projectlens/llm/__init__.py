"""LLM Module — The completion boundary used to answer questions."""

from projectlens.llm.provider import (
    Completion,
    CompletionFailure,
    CompletionResult,
    complete,
    llm_generate,
)

__all__ = [
    "Completion",
    "CompletionFailure",
    "CompletionResult",
    "complete",
    "llm_generate",
]
