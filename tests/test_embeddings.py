"""Tests for the embeddings module."""

import threading
import time
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from projectlens.config import Settings
from projectlens.embeddings import EmbeddingCache, make_embedder
from projectlens.embeddings.base import Embedder
from projectlens.errors import EmbeddingError

from conftest import KeywordEmbedder


class SlowIndexEmbedder(Embedder):
    """Embeds "text-N" as [N], sleeping longer for earlier items so they finish last."""

    def __init__(self, max_concurrency: int, total: int):
        super().__init__("slow-test", max_concurrency=max_concurrency)
        self.total = total
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def _load_model(self) -> None:
        pass

    def _embed_text(self, text: str) -> list[float]:
        index = int(text.split("-")[1])
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.002 * (self.total - index))
        with self._lock:
            self.active -= 1
        return [float(index)]


class FailingEmbedder(KeywordEmbedder):
    def _embed_text(self, text: str) -> list[float]:
        if "boom" in text:
            raise RuntimeError("model crashed")
        return super()._embed_text(text)


class BrokenModelEmbedder(KeywordEmbedder):
    def _load_model(self) -> None:
        raise OSError("weights not found")


class TestEmbedderBase:
    """Tests for batching, ordering, loading and failure handling."""

    def test_results_follow_input_order(self):
        texts = [f"text-{i}" for i in range(20)]
        embedder = SlowIndexEmbedder(max_concurrency=4, total=20)

        vectors = embedder.embed(texts)

        assert vectors == [[float(i)] for i in range(20)]

    def test_concurrency_is_bounded(self):
        embedder = SlowIndexEmbedder(max_concurrency=3, total=15)

        embedder.embed([f"text-{i}" for i in range(15)])

        assert 1 <= embedder.peak <= 3

    def test_model_loaded_once(self, keyword_embedder):
        keyword_embedder.embed(["auth one", "render two", "config three"])
        keyword_embedder.embed_one("auth again")

        assert keyword_embedder.load_count == 1

    def test_model_loaded_once_across_threads(self):
        embedder = KeywordEmbedder(max_concurrency=4)
        threads = [threading.Thread(target=embedder.embed_one, args=(f"auth {i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert embedder.load_count == 1

    def test_empty_batch_does_not_load_model(self, keyword_embedder):
        assert keyword_embedder.embed([]) == []
        assert keyword_embedder.load_count == 0

    def test_embed_one(self, keyword_embedder):
        assert keyword_embedder.embed_one("auth auth render") == [2.0, 1.0, 0.0]

    def test_single_failure_aborts_batch(self):
        embedder = FailingEmbedder(max_concurrency=3)

        with pytest.raises(EmbeddingError, match="model crashed"):
            embedder.embed(["auth", "boom", "render"])

    def test_model_load_failure(self):
        embedder = BrokenModelEmbedder()

        with pytest.raises(EmbeddingError, match="weights not found"):
            embedder.embed(["auth"])

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            KeywordEmbedder(max_concurrency=0)

    def test_cache_skips_repeated_texts(self):
        cache = EmbeddingCache()
        embedder = KeywordEmbedder(cache=cache)

        first = embedder.embed(["auth", "render"])
        second = embedder.embed(["auth", "render"])

        assert first == second
        assert sorted(embedder.embedded) == ["auth", "render"]
        assert cache.hits == 2
        assert len(cache) == 2


class TestEmbeddingCache:
    """Tests for EmbeddingCache."""

    def test_get_put(self):
        cache = EmbeddingCache()
        assert cache.get("m", "text") is None

        cache.put("m", "text", [0.1, 0.2])

        assert cache.get("m", "text") == [0.1, 0.2]
        assert cache.hits == 1
        assert cache.misses == 1

    def test_model_is_part_of_key(self):
        cache = EmbeddingCache()
        cache.put("model-a", "text", [1.0])

        assert cache.get("model-b", "text") is None

    def test_returned_vectors_are_copies(self):
        cache = EmbeddingCache()
        cache.put("m", "t", [1.0])
        cache.get("m", "t").append(2.0)

        assert cache.get("m", "t") == [1.0]

    def test_eviction(self):
        cache = EmbeddingCache(max_entries=2)
        cache.put("m", "a", [1.0])
        cache.put("m", "b", [2.0])
        cache.put("m", "c", [3.0])

        assert len(cache) == 2
        assert cache.get("m", "a") is None
        assert cache.get("m", "c") == [3.0]

    def test_reads_refresh_recency(self):
        cache = EmbeddingCache(max_entries=2)
        cache.put("m", "a", [1.0])
        cache.put("m", "b", [2.0])
        cache.get("m", "a")
        cache.put("m", "c", [3.0])

        assert cache.get("m", "b") is None
        assert cache.get("m", "a") == [1.0]

    def test_clear(self):
        cache = EmbeddingCache()
        cache.put("m", "a", [1.0])
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0


class TestTransformerEmbedderMocked:
    """Tests for TransformerEmbedder with mocked transformers."""

    def test_mean_pooling_and_normalization(self):
        with patch("projectlens.embeddings.code_embedder.AutoTokenizer") as mock_tok, \
             patch("projectlens.embeddings.code_embedder.AutoModel") as mock_model:

            import torch

            # Third token is padding and must be ignored by the pooling
            mock_tok.from_pretrained.return_value.return_value = {
                "input_ids": torch.zeros(1, 3, dtype=torch.long),
                "attention_mask": torch.tensor([[1, 1, 0]]),
            }
            mock_output = MagicMock()
            mock_output.last_hidden_state = torch.tensor(
                [[[1.0, 0.0], [3.0, 0.0], [100.0, 100.0]]]
            )
            mock_model.from_pretrained.return_value.return_value = mock_output

            from projectlens.embeddings.code_embedder import TransformerEmbedder

            embedder = TransformerEmbedder(model_name="test-model", max_concurrency=1)
            vector = embedder.embed_one("def hello(): pass")

            assert vector == pytest.approx([1.0, 0.0], abs=1e-6)
            mock_tok.from_pretrained.assert_called_once_with("test-model")
            mock_model.from_pretrained.assert_called_once_with("test-model")
            mock_model.from_pretrained.return_value.eval.assert_called_once()

    def test_load_failure_is_embedding_error(self):
        with patch("projectlens.embeddings.code_embedder.AutoTokenizer") as mock_tok:
            mock_tok.from_pretrained.side_effect = OSError("no such model")

            from projectlens.embeddings.code_embedder import TransformerEmbedder

            embedder = TransformerEmbedder(model_name="missing/model")
            with pytest.raises(EmbeddingError, match="missing/model"):
                embedder.embed(["x"])


class TestInferenceAPIEmbedderMocked:
    """Tests for InferenceAPIEmbedder with a mocked InferenceClient."""

    def test_token_level_output_is_pooled_and_normalized(self):
        with patch("projectlens.embeddings.remote.InferenceClient") as mock_client:
            mock_client.return_value.feature_extraction.return_value = np.array(
                [[1.0, 0.0], [3.0, 0.0]]
            )

            from projectlens.embeddings.remote import InferenceAPIEmbedder

            embedder = InferenceAPIEmbedder(token="hf_test")
            vector = embedder.embed_one("hello")

            assert vector == pytest.approx([1.0, 0.0])
            mock_client.assert_called_once_with(token="hf_test", timeout=30.0)

    def test_sentence_level_output(self):
        with patch("projectlens.embeddings.remote.InferenceClient") as mock_client:
            mock_client.return_value.feature_extraction.return_value = np.array([3.0, 4.0])

            from projectlens.embeddings.remote import InferenceAPIEmbedder

            vector = InferenceAPIEmbedder().embed_one("hello")

            assert vector == pytest.approx([0.6, 0.8])

    def test_request_failure_is_embedding_error(self):
        with patch("projectlens.embeddings.remote.InferenceClient") as mock_client:
            mock_client.return_value.feature_extraction.side_effect = RuntimeError("503")

            from projectlens.embeddings.remote import InferenceAPIEmbedder

            with pytest.raises(EmbeddingError, match="503"):
                InferenceAPIEmbedder().embed(["a", "b"])


class TestMakeEmbedder:
    """Tests for make_embedder."""

    def test_local_backend(self):
        from projectlens.embeddings.code_embedder import TransformerEmbedder

        embedder = make_embedder(Settings(embedding_backend="local", embed_concurrency=2))

        assert isinstance(embedder, TransformerEmbedder)
        assert embedder.max_concurrency == 2
        assert embedder.cache is not None

    def test_remote_backend_without_cache(self):
        from projectlens.embeddings.remote import InferenceAPIEmbedder

        embedder = make_embedder(Settings(embedding_backend="remote", embedding_cache=False))

        assert isinstance(embedder, InferenceAPIEmbedder)
        assert embedder.cache is None

    def test_cache_size_from_environment(self, monkeypatch):
        monkeypatch.setenv("PROJECTLENS_EMBEDDING_CACHE_SIZE", "7")

        assert Settings.from_env().embedding_cache_size == 7

    def test_default_cache_is_bounded(self):
        embedder = make_embedder(Settings(embedding_backend="local"))

        assert embedder.cache.max_entries == 50_000

    def test_cache_size_limits_entries_across_edits(self):
        embedder = make_embedder(Settings(embedding_backend="local", embedding_cache_size=10))

        # Successive edits of one function each hash to a new key
        for i in range(100):
            embedder.cache.put(embedder.model_name, f"def handler():\n    return {i}", [float(i)])

        assert len(embedder.cache) == 10
        assert embedder.cache.get(embedder.model_name, "def handler():\n    return 99") == [99.0]
        assert embedder.cache.get(embedder.model_name, "def handler():\n    return 0") is None

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown embedding backend"):
            make_embedder(Settings(embedding_backend="quantum"))


class TestTransformerEmbedderIntegration:
    """Integration tests that load a real model.

    These are marked slow and can be skipped with: pytest -m "not slow"
    """

    @pytest.mark.slow
    def test_real_embedding(self):
        from projectlens.embeddings.code_embedder import TransformerEmbedder

        embedder = TransformerEmbedder()
        vector = embedder.embed_one("def hello(): return 'world'")

        assert len(vector) == TransformerEmbedder.EMBEDDING_DIM
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-4)
