"""Tests for the comparators used by deduplication."""

import math

import numpy as np
import pytest

from source_selection.similarity import GuardedComparator, LexicalSimilarity


class TestLexicalSimilarity:
    def test_identical_text(self):
        assert LexicalSimilarity()("metformin dosing", "Metformin Dosing") == pytest.approx(1.0)

    def test_disjoint_text(self):
        assert LexicalSimilarity()("metformin", "insulin") == 0.0

    def test_empty_text_is_not_similar(self):
        sim = LexicalSimilarity()
        assert sim("", "") == 0.0
        assert sim("metformin", "") == 0.0

    def test_symmetric(self):
        sim = LexicalSimilarity()
        a = "gastrointestinal side effects of metformin"
        b = "metformin adverse effects in type 2 diabetes"
        assert sim(a, b) == sim(b, a)

    def test_known_value(self):
        # {a, b} vs {a, c}: one shared term out of two each
        assert LexicalSimilarity()("a b", "a c") == pytest.approx(0.5)


class TestGuardedComparator:
    def test_memoizes_unordered_pairs(self):
        calls = []

        def counting(a, b):
            calls.append((a, b))
            return 0.4

        guard = GuardedComparator(counting)
        assert guard("x", "y") == 0.4
        assert guard("y", "x") == 0.4
        assert len(calls) == 1
        assert guard.evaluations == 1

    def test_clamps_out_of_range(self):
        assert GuardedComparator(lambda a, b: 1.7)("a", "b") == 1.0
        assert GuardedComparator(lambda a, b: -0.2)("a", "b") == 0.0

    def test_exception_fails_open(self):
        def broken(a, b):
            raise RuntimeError("boom")

        guard = GuardedComparator(broken)

        assert guard("a", "b") == 0.0
        assert guard.failures == 1

    def test_failures_are_not_cached(self):
        outcomes = iter([RuntimeError("transient"), 0.9])

        def flaky(a, b):
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        guard = GuardedComparator(flaky)

        assert guard("a", "b") == 0.0
        assert guard("a", "b") == 0.9
        assert guard.failures == 1

    def test_nan_counts_as_failure(self):
        guard = GuardedComparator(lambda a, b: math.nan)

        assert guard("a", "b") == 0.0
        assert guard.failures == 1

    def test_numpy_scalar_accepted(self):
        assert GuardedComparator(lambda a, b: np.float32(0.5))("a", "b") == pytest.approx(0.5)

    @pytest.mark.parametrize("text_a, text_b", [("", ""), ("   ", "  "), ("metformin", ""), ("", "metformin")])
    def test_blank_text_skips_comparator(self, text_a, text_b):
        guard = GuardedComparator(lambda a, b: pytest.fail("comparator must not be called"))

        assert guard(text_a, text_b) == 0.0
        assert guard.evaluations == 0
        assert guard.failures == 0


class _StubModel:
    """Maps each text to a fixed unit vector; records encode calls."""

    def __init__(self, vectors):
        self.vectors = vectors
        self.calls = 0

    def encode(self, texts, normalize_embeddings=False):
        self.calls += 1
        return np.array([self.vectors[t] for t in texts], dtype=np.float32)


class TestEmbeddingSimilarity:
    @pytest.fixture
    def embedding_cls(self):
        pytest.importorskip("sentence_transformers")
        from source_selection.embeddings import EmbeddingSimilarity

        return EmbeddingSimilarity

    def test_dot_product_of_normalized_vectors(self, embedding_cls):
        model = _StubModel({"a": [1.0, 0.0], "b": [0.6, 0.8], "c": [0.0, 1.0]})
        sim = embedding_cls(model=model)

        assert sim("a", "b") == pytest.approx(0.6)
        assert sim("a", "c") == pytest.approx(0.0)

    def test_embeddings_are_cached(self, embedding_cls):
        model = _StubModel({"a": [1.0, 0.0], "b": [0.6, 0.8]})
        sim = embedding_cls(model=model)

        sim("a", "b")
        sim("b", "a")

        assert model.calls == 2

    def test_negative_similarity_clamped(self, embedding_cls):
        model = _StubModel({"a": [1.0, 0.0], "b": [-1.0, 0.0]})

        assert embedding_cls(model=model)("a", "b") == 0.0

    def test_empty_text(self, embedding_cls):
        model = _StubModel({})

        assert embedding_cls(model=model)("", "a") == 0.0
        assert model.calls == 0
