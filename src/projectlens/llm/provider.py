"""LLM Provider — Toggle between Groq (cloud) and Ollama (local).

Usage:
    from projectlens.llm.provider import complete, llm_generate

    result = llm_generate("Explain this code")   # Completion | CompletionFailure
    text = complete("Explain this code")         # str, or raises CompletionError

Set LLM_PROVIDER=groq and provide GROQ_API_KEY (or an apikey.env file).
Default is "local" (Ollama).
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from projectlens.config import DEFAULT_LLM_MODEL
from projectlens.errors import CompletionError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful code assistant. Answer questions about the user's "
    "codebase using the code excerpts provided."
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Completion:
    """A successful completion."""

    text: str
    model: str
    provider: str


@dataclass(frozen=True)
class CompletionFailure:
    """A failed completion, with a human-readable reason."""

    reason: str
    model: str
    provider: str


CompletionResult = Union[Completion, CompletionFailure]


def _validate_text(raw: Any) -> Optional[str]:
    """Return stripped text, or None if the response carried no usable content."""
    if not isinstance(raw, str):
        return None
    # Strip chain-of-thought <think>...</think> blocks some models emit
    text = re.sub(r"<think>.*?</think>", "", raw, flags=re.DOTALL).strip()
    return text or None


# ---------------------------------------------------------------------------
# Provider backends
# ---------------------------------------------------------------------------

def _call_ollama(model: str, prompt: str, temperature: float) -> Any:
    """Call the local Ollama server and return the raw response text."""
    import ollama

    response = ollama.generate(
        model=model,
        prompt=prompt,
        system=SYSTEM_PROMPT,
        options={"temperature": temperature},
    )
    return response["response"]


def _call_groq(model: str, prompt: str, temperature: float) -> Any:
    """Call the Groq cloud API and return the raw message content."""
    from groq import Groq

    api_key = os.environ.get("GROQ_API_KEY")
    if not api_key:
        api_key = _load_api_key()

    client = Groq(api_key=api_key)
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
    )
    if not response.choices:
        return None
    return response.choices[0].message.content


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Model mapping: local Ollama names → Groq-supported equivalents
GROQ_MODEL_MAP = {
    "qwen2.5-coder:7b": "qwen/qwen3-32b",
    "deepseek-coder:6.7b": "qwen/qwen3-32b",
    "llama3": "llama-3.3-70b-versatile",
}


def _load_api_key() -> str:
    """Read the Groq API key from apikey.env in the working directory."""
    env_file = Path.cwd() / "apikey.env"
    if env_file.exists():
        for line in env_file.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                # Accepts: groq="gsk_..." or GROQ_API_KEY=gsk_...
                _, _, value = line.partition("=")
                value = value.strip().strip("\"'")
                if value.startswith("gsk_"):
                    return value

    raise CompletionError(
        "Groq API key not found. "
        "Set GROQ_API_KEY or create apikey.env with: groq=\"gsk_your_key_here\""
    )


def _resolve_model(model: str, provider: str) -> str:
    """Map local model names to Groq equivalents when needed."""
    if provider == "groq":
        return GROQ_MODEL_MAP.get(model, model)
    return model


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def llm_generate(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.2,
    provider: Optional[str] = None,
) -> CompletionResult:
    """
    Generate text from an LLM, using whichever backend is configured.

    The backend is chosen by the LLM_PROVIDER env var:
        "groq"  → Groq cloud API
        "local" → Ollama local server

    Args:
        prompt:      The prompt to send
        model:       Model name (default: PROJECTLENS_LLM_MODEL; auto-mapped for Groq)
        temperature: Sampling temperature (0.0 = deterministic)
        provider:    "groq" or "local" (default: LLM_PROVIDER)

    Returns:
        Completion on success, CompletionFailure if the call raised or the
        response had no text content. Never raises for backend failures.
    """
    provider = (provider or os.environ.get("LLM_PROVIDER", "local")).lower()
    model = model or os.environ.get("PROJECTLENS_LLM_MODEL", DEFAULT_LLM_MODEL)
    resolved_model = _resolve_model(model, provider)

    if provider not in ("groq", "local"):
        return CompletionFailure(f"Unknown LLM_PROVIDER: {provider!r}", resolved_model, provider)

    logger.debug("Sending %d-char prompt to %s (%s)", len(prompt), provider, resolved_model)
    try:
        if provider == "groq":
            raw = _call_groq(resolved_model, prompt, temperature)
        else:
            raw = _call_ollama(resolved_model, prompt, temperature)
    except Exception as e:
        logger.debug("Completion call failed", exc_info=True)
        return CompletionFailure(f"{type(e).__name__}: {e}", resolved_model, provider)

    text = _validate_text(raw)
    if text is None:
        return CompletionFailure("LLM returned no content", resolved_model, provider)
    return Completion(text, resolved_model, provider)


def complete(prompt: str, model: Optional[str] = None, provider: Optional[str] = None) -> str:
    """
    Complete a prompt with the configured LLM.

    model and provider fall back to the environment when not given.

    Raises:
        CompletionError: If the call failed or returned no content
    """
    result = llm_generate(prompt, model=model, provider=provider)
    if isinstance(result, CompletionFailure):
        raise CompletionError(result.reason)
    return result.text
