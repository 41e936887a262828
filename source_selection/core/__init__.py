from .errors import (
    InvalidConfiguration,
    InvalidSourceData,
    ScorerFailure,
    SelectionCancelled,
    SelectionError,
)
from .models import (
    ArxivRecord,
    ClinicalTrialRecord,
    CredibilityBadge,
    ExaRecord,
    MedrxivRecord,
    PubMedRecord,
    QualityMetrics,
    RankedSource,
    SelectedSource,
    SelectionConfig,
    SelectionResult,
    SelectionState,
    SourceType,
)
