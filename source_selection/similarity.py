"""
Text similarity comparators used by semantic deduplication.

A comparator is any callable ``(text_a, text_b) -> float`` in [0, 1] that is
symmetric in its arguments. Two are shipped:

- LexicalSimilarity: cosine similarity of term-frequency vectors. No model,
  no network, fully deterministic. This is the default.
- EmbeddingSimilarity (see ``source_selection.embeddings``): cosine similarity
  of sentence-transformers embeddings.

GuardedComparator wraps whichever comparator the caller supplies for the
length of one selection run: it memoizes unordered pairs, clamps results into
[0, 1] and turns comparator faults into "not similar" (0.0) while counting
them. A failing comparator therefore never drops a source and never aborts a
run.
"""

import math
import re
from typing import Callable, Dict, List, Tuple

import numpy as np
from loguru import logger

from .core.errors import ScorerFailure

SimilarityFn = Callable[[str, str], float]

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _tokenize(text: str) -> List[str]:
    return _TOKEN_RE.findall((text or "").lower())


class LexicalSimilarity:
    """Cosine similarity over lower-cased alphanumeric term counts."""

    def __call__(self, text_a: str, text_b: str) -> float:
        tokens_a = _tokenize(text_a)
        tokens_b = _tokenize(text_b)
        if not tokens_a or not tokens_b:
            return 0.0

        vocab = sorted(set(tokens_a) | set(tokens_b))
        index = {tok: i for i, tok in enumerate(vocab)}

        vec_a = np.zeros(len(vocab), dtype=np.float64)
        vec_b = np.zeros(len(vocab), dtype=np.float64)
        for tok in tokens_a:
            vec_a[index[tok]] += 1.0
        for tok in tokens_b:
            vec_b[index[tok]] += 1.0

        denom = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
        if denom == 0.0:
            return 0.0
        return float(np.dot(vec_a, vec_b) / denom)
class GuardedComparator:
    """Run-scoped memoizing, fail-open wrapper around a comparator.

    A pair where either text is blank is never handed to the comparator: a
    missing title and body is not evidence that two sources are the same.
    """

    def __init__(self, similarity: SimilarityFn, log=None):
        self._similarity = similarity
        self._log = log if log is not None else logger
        self._cache: Dict[Tuple[str, str], float] = {}
        self.failures = 0
        self.evaluations = 0

    def __call__(self, text_a: str, text_b: str) -> float:
        if not (text_a or "").strip() or not (text_b or "").strip():
            return 0.0

        key = (text_a, text_b) if text_a <= text_b else (text_b, text_a)
        if key in self._cache:
            return self._cache[key]

        self.evaluations += 1
        try:
            value = float(self._similarity(text_a, text_b))
        except Exception as e:
            self.failures += 1
            fault = ScorerFailure(e, text_a, text_b)
            self._log.warning(f"[SIMILARITY] {fault} - treating pair as not similar")
            return 0.0

        if not math.isfinite(value):
            self.failures += 1
            self._log.warning(f"[SIMILARITY] Comparator returned {value!r} - treating pair as not similar")
            return 0.0

        value = min(1.0, max(0.0, value))
        self._cache[key] = value
        return value
