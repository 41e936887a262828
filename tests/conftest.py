"""Pytest fixtures and builders for the source selection test suite."""

from typing import Any, Dict, List, Optional

import pytest

from source_selection.core.models import RankedSource, SelectedSource


def make_ranked(
    score: float,
    title: Optional[str] = None,
    body: Optional[str] = None,
    source_type: str = "pubmed",
    **fields: Any,
) -> RankedSource:
    """Build a RankedSource, putting ``body`` under the provider's text field."""
    body_field = {
        "pubmed": "abstract",
        "medrxiv": "abstract",
        "arxiv": "summary",
        "clinicaltrials": "description",
        "exa": "text",
    }[source_type]
    record: Dict[str, Any] = dict(fields)
    if title is not None:
        record["title"] = title
    if body is not None:
        record[body_field] = body
    return RankedSource(source=record, relevance_score=score, reasoning="", source_type=source_type)


def make_selected(
    score: float,
    citation: str,
    summary: str = "",
    source_type: str = "pubmed",
    badge: str = "highly_credible",
    tokens: int = 100,
) -> SelectedSource:
    return SelectedSource(
        source={},
        relevance_score=score,
        source_type=source_type,
        citation=citation,
        summary=summary,
        credibility_badge=badge,
        estimated_tokens=tokens,
    )


@pytest.fixture
def descending_sources() -> List[RankedSource]:
    """50 PubMed sources scored 90, 89, ... 41."""
    return [
        make_ranked(90 - i, title=f"Article {i}", body=f"Abstract {i}", pmid=f"pmid{i}")
        for i in range(50)
    ]


@pytest.fixture
def near_duplicate_sources() -> List[RankedSource]:
    """Two metformin GI side-effect studies plus one unrelated insulin study."""
    return [
        make_ranked(
            90,
            title="Metformin side effects in diabetes",
            body="Study on gastrointestinal side effects of metformin in type 2 diabetes patients",
            pmid="1",
        ),
        make_ranked(
            88,
            title="Metformin adverse effects in diabetes",
            body="Research on gastrointestinal adverse effects of metformin in type 2 diabetes patients",
            pmid="2",
        ),
        make_ranked(
            85,
            title="Insulin resistance mechanisms",
            body="Different topic about insulin resistance pathways",
            pmid="3",
        ),
    ]


class RecordingObserver:
    """Observer double that records every event it receives."""

    def __init__(self):
        self.events: List[tuple] = []

    def on_run_start(self, name, run_id):
        self.events.append(("run_start", name))

    def on_step_start(self, step_name, config):
        self.events.append(("step_start", step_name))

    def on_step_end(self, step_name, duration, counts, state_json):
        self.events.append(("step_end", step_name, counts))

    def on_artifact(self, label, data):
        self.events.append(("artifact", label))

    def on_run_end(self, duration):
        self.events.append(("run_end",))

    def log_summary(self, summary_text):
        self.events.append(("summary", summary_text))


@pytest.fixture
def recording_observer() -> RecordingObserver:
    return RecordingObserver()
