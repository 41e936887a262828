"""Tests for the individual selection steps run in isolation."""

import pytest

from source_selection.core.models import SelectionConfig, SelectionState
from source_selection.steps.budget import TokenBudgetStep
from source_selection.steps.deduplicate import SemanticDedupStep
from source_selection.steps.enrich import (
    EnrichSourcesStep,
    build_citation,
    enrich_source,
    estimate_tokens,
)
from source_selection.steps.filter_sort import FilterSortStep
from source_selection.steps.metrics import compute_quality_metrics
from source_selection.steps.size_policy import AdaptiveSizeStep, decide_window
from tests.conftest import make_ranked, make_selected


def _state(sources, **cfg):
    return SelectionState(selection_config=SelectionConfig(**cfg), ranked=sources)


class TestFilterSortStep:
    def test_floor_is_inclusive(self):
        state = _state([make_ranked(49.9), make_ranked(50), make_ranked(70)], min_relevance_score=50)

        out = FilterSortStep({}).run(state)

        assert [s.relevance_score for s in out.candidates] == [70, 50]
        assert out.qualified_count == 2

    def test_records_execution_log(self):
        state = _state([make_ranked(10), make_ranked(20)])

        out = FilterSortStep({"name": "filter"}).run(state)

        entry = out.execution_log[-1]
        assert entry["step"] == "filter"
        assert entry["items_before"] == 2
        assert entry["items_after"] == 2


class TestSizePolicy:
    def test_zero_candidates(self):
        assert decide_window(0, 0, 30, 35)[0] == 0

    def test_include_all(self):
        window, label = decide_window(30, 30, 30, 35)
        assert window == 30
        assert "all sources" in label

    def test_extension_capped_by_candidate_count(self):
        window, label = decide_window(32, 32, 30, 35)
        assert window == 32
        assert label == "Extended selection to 32 (many high-quality sources)"

    def test_standard(self):
        window, label = decide_window(50, 10, 30, 35)
        assert window == 30
        assert label == "Standard top-30 selection"

    def test_excess_candidates_are_discarded(self):
        state = _state([], base_limit=3, extended_limit=4, high_quality_threshold=99)
        state.candidates = [make_ranked(90 - i) for i in range(6)]

        out = AdaptiveSizeStep({}).run(state)

        assert len(out.candidates) == 3
        assert out.selection_limit == 3
        assert [s.relevance_score for s in out.candidates] == [90, 89, 88]

    def test_high_quality_threshold_is_inclusive(self):
        """A score equal to the threshold counts toward extension."""
        state = _state([], base_limit=2, extended_limit=3, high_quality_threshold=70)
        state.candidates = [make_ranked(70) for _ in range(4)]

        out = AdaptiveSizeStep({}).run(state)

        assert out.selection_limit == 3


class TestSemanticDedupStep:
    def test_lower_ranked_duplicate_is_dropped(self):
        state = _state([], semantic_similarity_threshold=0.9)
        state.candidates = [
            make_ranked(90, title="Same study", body="identical text", pmid="keep"),
            make_ranked(80, title="Same study", body="identical text", pmid="drop"),
        ]

        out = SemanticDedupStep({}).run(state)

        assert [s.source.pmid for s in out.candidates] == ["keep"]
        assert out.deduplicated_count == 1

    def test_threshold_is_inclusive(self):
        state = _state([], semantic_similarity_threshold=0.6)
        state.candidates = [make_ranked(90, title="a"), make_ranked(80, title="b")]
        step = SemanticDedupStep({})
        step.services = {"similarity": lambda a, b: 0.6}

        out = step.run(state)

        assert out.deduplicated_count == 1

    def test_compares_against_accepted_only(self):
        """A dropped source is never used as a reference for later ones."""
        state = _state([], semantic_similarity_threshold=0.5)
        state.candidates = [
            make_ranked(90, title="alpha"),
            make_ranked(80, title="beta"),
            make_ranked(70, title="gamma"),
        ]
        pairs = []

        def sim(a, b):
            pairs.append(frozenset((a, b)))
            return 1.0 if {a, b} == {"alpha", "beta"} else 0.0

        step = SemanticDedupStep({})
        step.services = {"similarity": sim}
        out = step.run(state)

        assert [s.source.title for s in out.candidates] == ["alpha", "gamma"]
        assert frozenset(("gamma", "beta")) not in pairs

    def test_disabled_passthrough(self):
        state = _state([], enable_semantic_dedup=False)
        state.candidates = [make_ranked(90, title="x"), make_ranked(80, title="x")]
        step = SemanticDedupStep({})
        step.services = {"similarity": lambda a, b: pytest.fail("comparator must not be called")}

        out = step.run(state)

        assert len(out.candidates) == 2


class TestEnrichment:
    def test_pubmed_citation(self):
        src = make_ranked(
            90,
            title="Metformin and GI tolerance",
            body="Abstract",
            authors=["Smith J", "Doe A"],
            journal="JAMA",
            pubdate="2024-03-01",
        )
        assert build_citation(src.source) == "Smith J et al. (2024). Metformin and GI tolerance. JAMA."

    def test_arxiv_citation(self):
        src = make_ranked(80, title="Glucose models", source_type="arxiv", authors=["Lee K"], published="2023-11-20")
        assert build_citation(src.source) == "Lee K et al. (2023). Glucose models. arXiv preprint."

    def test_medrxiv_citation(self):
        src = make_ranked(80, title="Preprint", source_type="medrxiv", authors="Chen, L.; Wu, M.", date="2025-01-05")
        assert build_citation(src.source) == "Chen, L.; Wu, M. et al. (2025). Preprint. medRxiv preprint."

    def test_trial_citation(self):
        src = make_ranked(80, title="SGLT2 trial", source_type="clinicaltrials", nct_id="NCT0001", start_date="2021-06")
        assert build_citation(src.source) == "SGLT2 trial. ClinicalTrials.gov ID: NCT0001. Started: 2021."

    def test_exa_citation_without_date(self):
        src = make_ranked(70, title="Diet guide", source_type="exa", domain="example.org")
        assert build_citation(src.source) == "Diet guide. example.org."

    def test_exa_summary_falls_back_to_snippet(self):
        src = make_ranked(70, title="Page", source_type="exa", snippet="short snippet")
        assert enrich_source(src).summary == "short snippet"

    def test_badge_defaults_and_upstream_override(self):
        web = enrich_source(make_ranked(70, title="Page", source_type="exa"))
        flagged = enrich_source(
            make_ranked(70, title="Page", source_type="exa", credibility_badge="needs_verification")
        )
        trial = enrich_source(make_ranked(70, title="Trial", source_type="clinicaltrials"))

        assert web.credibility_badge.value == "credible"
        assert flagged.credibility_badge.value == "needs_verification"
        assert trial.credibility_badge.value == "highly_credible"

    def test_token_estimate_is_stable(self):
        src = make_ranked(90, title="T", body="x" * 399)
        first = enrich_source(src)
        second = enrich_source(src)

        assert first.estimated_tokens == second.estimated_tokens
        assert first.estimated_tokens == estimate_tokens(first.citation, first.summary)

    def test_step_fills_enriched(self):
        state = _state([])
        state.candidates = [make_ranked(90, title="a"), make_ranked(80, title="b")]

        out = EnrichSourcesStep({}).run(state)

        assert [s.relevance_score for s in out.enriched] == [90, 80]


class TestTokenBudgetStep:
    def test_exact_fit_is_included(self):
        state = _state([], token_budget=200)
        state.enriched = [make_selected(90, "a", tokens=100), make_selected(80, "b", tokens=100)]

        out = TokenBudgetStep({}).run(state)

        assert out.total_tokens == 200
        assert len(out.selected) == 2

    def test_first_source_over_budget_selects_nothing(self):
        state = _state([], token_budget=50)
        state.enriched = [make_selected(90, "a", tokens=100), make_selected(80, "b", tokens=10)]

        out = TokenBudgetStep({}).run(state)

        assert out.selected == []
        assert out.total_tokens == 0


class TestQualityMetricsHelper:
    def test_empty(self):
        metrics = compute_quality_metrics([])
        assert (metrics.min_relevance, metrics.max_relevance, metrics.average_relevance) == (0, 0, 0)
        assert metrics.high_quality_count == 0

    def test_threshold_is_strict(self):
        metrics = compute_quality_metrics([make_selected(80, "a"), make_selected(80.5, "b")])
        assert metrics.high_quality_count == 1
