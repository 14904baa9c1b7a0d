"""Shared fixtures: a deterministic embedder and a small sample project."""

import threading
from pathlib import Path

import pytest

from projectlens.embeddings.base import Embedder
from projectlens.embeddings.cache import EmbeddingCache


class KeywordEmbedder(Embedder):
    """Embeds text as keyword counts, one dimension per keyword.

    Deterministic and model-free, so retrieval results can be asserted.
    """

    KEYWORDS = ("auth", "render", "config")

    def __init__(self, max_concurrency: int = 2, cache: EmbeddingCache | None = None):
        super().__init__("keyword-test", max_concurrency=max_concurrency, cache=cache)
        self.load_count = 0
        self.embedded: list[str] = []
        self._record_lock = threading.Lock()

    def _load_model(self) -> None:
        self.load_count += 1

    def _embed_text(self, text: str) -> list[float]:
        with self._record_lock:
            self.embedded.append(text)
        lowered = text.lower()
        return [float(lowered.count(k)) for k in self.KEYWORDS]


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Three files: authentication, button rendering, config parsing."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "auth.js").write_text(
        "function authenticateUser(username, password) {\n"
        "  return checkPassword(username, password);\n"
        "}\n"
    )
    (tmp_path / "src" / "button.js").write_text(
        "function renderButton(label) {\n"
        "  return '<button>' + label + '</button>';\n"
        "}\n"
    )
    (tmp_path / "src" / "settings.py").write_text(
        "def parseConfig(text):\n"
        "    return json.loads(text)\n"
    )
    return tmp_path
