"""
Embedding-backed comparator for semantic deduplication.

Encodes each composite text with a sentence-transformers model
(normalized embeddings), so cosine similarity is a plain dot product.
Embeddings are cached per text for the lifetime of the instance; create one
per selection run if the texts should not outlive the request.

Requires the ``embeddings`` extra (sentence-transformers).
"""

from typing import Any, Dict, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

DEFAULT_EMBED_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


class EmbeddingSimilarity:
    def __init__(
        self,
        model_name: str = DEFAULT_EMBED_MODEL,
        device: Optional[str] = None,
        model: Optional[Any] = None,
    ):
        self.model_name = model_name
        self.model = model if model is not None else SentenceTransformer(model_name, device=device)
        self._cache: Dict[str, np.ndarray] = {}

    def _embed(self, text: str) -> np.ndarray:
        vec = self._cache.get(text)
        if vec is None:
            encoded = self.model.encode([text], normalize_embeddings=True)
            vec = np.asarray(encoded, dtype=np.float32)[0]
            self._cache[text] = vec
        return vec

    def __call__(self, text_a: str, text_b: str) -> float:
        if not (text_a or "").strip() or not (text_b or "").strip():
            return 0.0
        # Because both vectors are normalized, cosine similarity == dot product
        score = float(np.dot(self._embed(text_a), self._embed(text_b)))
        return min(1.0, max(0.0, score))
