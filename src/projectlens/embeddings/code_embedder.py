"""Local sentence embeddings with Hugging Face transformers."""

from typing import Optional

import torch
import torch.nn.functional as F
from transformers import AutoModel, AutoTokenizer

from projectlens.config import DEFAULT_EMBEDDING_MODEL
from projectlens.embeddings.base import Embedder
from projectlens.embeddings.cache import EmbeddingCache


class TransformerEmbedder(Embedder):
    """Mean-pooled, L2-normalized embeddings from a local transformer model."""

    # all-MiniLM-L6-v2 produces 384-dimensional embeddings
    EMBEDDING_DIM = 384
    MAX_TOKENS = 512

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        max_concurrency: int = 5,
        cache: Optional[EmbeddingCache] = None,
        device: str = "cpu",
    ):
        """
        Initialize the embedder. The model is not loaded until first use.

        Args:
            model_name: Hugging Face model id
            max_concurrency: Upper bound on simultaneous forward passes
            cache: Optional content-hash cache
            device: Torch device to run on
        """
        super().__init__(model_name, max_concurrency=max_concurrency, cache=cache)
        self._device = device
        self._tokenizer: Optional[AutoTokenizer] = None
        self._model: Optional[AutoModel] = None

    def _load_model(self) -> None:
        self._tokenizer = AutoTokenizer.from_pretrained(self.model_name)
        self._model = AutoModel.from_pretrained(self.model_name)
        self._model.to(self._device)
        self._model.eval()  # Set to evaluation mode

    def _embed_text(self, text: str) -> list[float]:
        tokens = self._tokenizer(
            text,
            return_tensors="pt",
            truncation=True,
            max_length=self.MAX_TOKENS,
            padding=True,
        )
        tokens = {k: v.to(self._device) for k, v in tokens.items()}

        with torch.no_grad():
            outputs = self._model(**tokens)

        # Mean pooling over real tokens only
        hidden = outputs.last_hidden_state
        mask = tokens["attention_mask"].unsqueeze(-1).to(hidden.dtype)
        summed = (hidden * mask).sum(dim=1)
        counts = mask.sum(dim=1).clamp(min=1e-9)
        pooled = summed / counts

        embedding = F.normalize(pooled, p=2, dim=1).squeeze(0)
        return embedding.cpu().tolist()
