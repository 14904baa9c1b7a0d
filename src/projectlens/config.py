"""Runtime settings, read from environment variables.

Usage:
    from projectlens.config import Settings

    settings = Settings.from_env()
    settings.max_chunk_length  # 1000 unless PROJECTLENS_MAX_CHUNK_LENGTH is set
"""

import os
from dataclasses import dataclass, field

# Files the assistant treats as "the codebase"
DEFAULT_INCLUDE_PATTERNS: list[str] = [
    "*.ts", "*.js", "*.py", "*.tsx", "*.jsx", "*.json",
]

DEFAULT_EXCLUDE_PATTERNS: list[str] = [
    "node_modules/**",
    "dist/**",
    "build/**",
    ".next/**",
    ".git/**",
    ".venv/**",
    "venv/**",
    "__pycache__/**",
]

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_LLM_MODEL = "qwen2.5-coder:7b"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    """Configuration for one ProjectLens process."""

    llm_provider: str = "local"
    llm_model: str = DEFAULT_LLM_MODEL
    embedding_backend: str = "local"   # "local" (transformers) or "remote" (HF Inference API)
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embed_concurrency: int = 5
    max_chunk_length: int = 1000
    top_k: int = 3
    embedding_cache: bool = True
    embedding_cache_size: int = 50_000
    hf_token: str | None = None
    include_globs: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude_globs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            llm_provider=os.environ.get("LLM_PROVIDER", "local").lower(),
            llm_model=os.environ.get("PROJECTLENS_LLM_MODEL", DEFAULT_LLM_MODEL),
            embedding_backend=os.environ.get("PROJECTLENS_EMBEDDING_BACKEND", "local").lower(),
            embedding_model=os.environ.get("PROJECTLENS_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            embed_concurrency=_env_int("PROJECTLENS_EMBED_CONCURRENCY", 5),
            max_chunk_length=_env_int("PROJECTLENS_MAX_CHUNK_LENGTH", 1000),
            top_k=_env_int("PROJECTLENS_TOP_K", 3),
            embedding_cache=_env_bool("PROJECTLENS_EMBEDDING_CACHE", True),
            embedding_cache_size=_env_int("PROJECTLENS_EMBEDDING_CACHE_SIZE", 50_000),
            hf_token=os.environ.get("HF_TOKEN") or None,
        )
