"""
STEP 4: ENRICH SOURCES
----------------------
Turns each deduplicated RankedSource into a SelectedSource carrying a
citation line, the summary text, a credibility badge and a token estimate.

- Citations follow a short author/year/title/venue pattern per provider.
- The badge is the upstream ``credibility_badge`` when the record has one,
  otherwise the provider default.
- ``estimated_tokens = ceil((len(citation) + len(summary)) / 4)``: a pure
  function of the text, so the same source always costs the same.
"""

import math

from ..core.base import SelectionStep
from ..core.models import (
    ArxivRecord,
    ClinicalTrialRecord,
    CredibilityBadge,
    ExaRecord,
    MedrxivRecord,
    PubMedRecord,
    RankedSource,
    SelectedSource,
    SelectionState,
    SourceRecordBase,
    SourceType,
)
from ..core.records import record_body, record_title, record_year

CHARS_PER_TOKEN = 4

DEFAULT_BADGES = {
    SourceType.PUBMED: CredibilityBadge.HIGHLY_CREDIBLE,
    SourceType.ARXIV: CredibilityBadge.CREDIBLE,
    SourceType.MEDRXIV: CredibilityBadge.CREDIBLE,
    SourceType.CLINICAL_TRIALS: CredibilityBadge.HIGHLY_CREDIBLE,
    SourceType.EXA: CredibilityBadge.CREDIBLE,
}


def estimate_tokens(citation: str, summary: str) -> int:
    return math.ceil((len(citation) + len(summary)) / CHARS_PER_TOKEN)


def build_citation(record: SourceRecordBase) -> str:
    title = record_title(record) or "Untitled"
    year = record_year(record)

    if isinstance(record, PubMedRecord):
        author = record.authors[0] if record.authors else "Unknown"
        journal = record.journal or "PubMed"
        return f"{author} et al. ({year}). {title}. {journal}."
    if isinstance(record, ArxivRecord):
        author = record.authors[0] if record.authors else "Unknown"
        return f"{author} et al. ({year}). {title}. arXiv preprint."
    if isinstance(record, MedrxivRecord):
        author = record.authors or "Unknown"
        return f"{author} et al. ({year}). {title}. medRxiv preprint."
    if isinstance(record, ClinicalTrialRecord):
        return f"{title}. ClinicalTrials.gov ID: {record.nct_id or 'N/A'}. Started: {year or 'N/A'}."
    if isinstance(record, ExaRecord):
        domain = record.domain or "Web"
        published = f" Published: {year}." if year else ""
        return f"{title}. {domain}.{published}"
    raise TypeError(f"Unsupported source record: {type(record).__name__}")


def enrich_source(ranked: RankedSource) -> SelectedSource:
    record = ranked.source
    citation = build_citation(record)
    summary = record_body(record)
    badge = record.credibility_badge or DEFAULT_BADGES[ranked.source_type]

    return SelectedSource(
        source=record,
        relevance_score=ranked.relevance_score,
        reasoning=ranked.reasoning,
        source_type=ranked.source_type,
        citation=citation,
        summary=summary,
        credibility_badge=badge,
        estimated_tokens=estimate_tokens(citation, summary),
    )


class EnrichSourcesStep(SelectionStep):
    input_field = "candidates"
    output_field = "enriched"

    def execute(self, state: SelectionState) -> SelectionState:
        state.enriched = [enrich_source(s) for s in state.candidates]
        return state
