"""
Per-provider field access for source records.

Each record variant keeps its body text under a different name (abstract,
summary, description, text/snippet). Everything that needs "the title" or
"the body" of a source goes through here so the variants are handled in one
place. Missing fields are empty strings.
"""

import re
from typing import Optional

from .models import (
    ArxivRecord,
    ClinicalTrialRecord,
    ExaRecord,
    MedrxivRecord,
    PubMedRecord,
    SourceRecordBase,
)

_YEAR_RE = re.compile(r"^\s*(\d{4})")


def record_title(record: SourceRecordBase) -> str:
    return (record.title or "").strip()


def record_body(record: SourceRecordBase) -> str:
    if isinstance(record, (PubMedRecord, MedrxivRecord)):
        body = record.abstract
    elif isinstance(record, ArxivRecord):
        body = record.summary
    elif isinstance(record, ClinicalTrialRecord):
        body = record.description
    elif isinstance(record, ExaRecord):
        body = record.text or record.snippet
    else:
        raise TypeError(f"Unsupported source record: {type(record).__name__}")
    return (body or "").strip()


def record_date(record: SourceRecordBase) -> Optional[str]:
    if isinstance(record, PubMedRecord):
        return record.pubdate
    if isinstance(record, ArxivRecord):
        return record.published
    if isinstance(record, MedrxivRecord):
        return record.date
    if isinstance(record, ClinicalTrialRecord):
        return record.start_date
    if isinstance(record, ExaRecord):
        return record.published_date
    raise TypeError(f"Unsupported source record: {type(record).__name__}")


def record_year(record: SourceRecordBase) -> str:
    match = _YEAR_RE.match(record_date(record) or "")
    return match.group(1) if match else ""


def comparison_text(record: SourceRecordBase) -> str:
    """Composite title + body used for near-duplicate detection."""
    title = record_title(record)
    body = record_body(record)
    return f"{title} {body}".strip().lower()
