"""
Evidence source selection for LLM synthesis.

Reduces a ranked pool of retrieved documents (PubMed, arXiv, medRxiv,
ClinicalTrials.gov, web results) to a bounded, non-redundant,
token-budget-respecting subset and renders it as a citation-numbered prompt
block.
"""

from .core import (
    ArxivRecord,
    ClinicalTrialRecord,
    CredibilityBadge,
    ExaRecord,
    InvalidConfiguration,
    InvalidSourceData,
    MedrxivRecord,
    PubMedRecord,
    QualityMetrics,
    RankedSource,
    ScorerFailure,
    SelectedSource,
    SelectionCancelled,
    SelectionConfig,
    SelectionError,
    SelectionResult,
    SourceType,
)
from .formatting import format_sources_for_synthesis
from .selector import select_sources, select_sources_async
from .similarity import GuardedComparator, LexicalSimilarity

__version__ = "0.1.0"

__all__ = [
    "ArxivRecord",
    "ClinicalTrialRecord",
    "CredibilityBadge",
    "ExaRecord",
    "GuardedComparator",
    "InvalidConfiguration",
    "InvalidSourceData",
    "LexicalSimilarity",
    "MedrxivRecord",
    "PubMedRecord",
    "QualityMetrics",
    "RankedSource",
    "ScorerFailure",
    "SelectedSource",
    "SelectionCancelled",
    "SelectionConfig",
    "SelectionError",
    "SelectionResult",
    "SourceType",
    "format_sources_for_synthesis",
    "select_sources",
    "select_sources_async",
]
