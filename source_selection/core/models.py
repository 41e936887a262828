import os
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidConfiguration


_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SourceType(str, Enum):
    PUBMED = "pubmed"
    ARXIV = "arxiv"
    MEDRXIV = "medrxiv"
    CLINICAL_TRIALS = "clinicaltrials"
    EXA = "exa"


class CredibilityBadge(str, Enum):
    """Trust label computed upstream. Selection only renders it.

    Values:
        HIGHLY_CREDIBLE: Peer-reviewed literature and registered trials.
        CREDIBLE: Preprints and reputable web sources.
        NEEDS_VERIFICATION: Content the upstream stage could not vouch for.
    """
    HIGHLY_CREDIBLE = "highly_credible"
    CREDIBLE = "credible"
    NEEDS_VERIFICATION = "needs_verification"


# -------------------------------------------------------------------------
# Provider records (one variant per source type)
# -------------------------------------------------------------------------
class SourceRecordBase(BaseModel):
    model_config = _WIRE

    title: Optional[str] = None
    url: Optional[str] = None
    credibility_badge: Optional[CredibilityBadge] = None


class PubMedRecord(SourceRecordBase):
    source_type: Literal[SourceType.PUBMED] = Field(SourceType.PUBMED, alias="source_type")
    pmid: Optional[str] = None
    abstract: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    journal: Optional[str] = None
    pubdate: Optional[str] = None
    doi: Optional[str] = None


class ArxivRecord(SourceRecordBase):
    source_type: Literal[SourceType.ARXIV] = Field(SourceType.ARXIV, alias="source_type")
    id: Optional[str] = None
    summary: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    published: Optional[str] = None


class MedrxivRecord(SourceRecordBase):
    source_type: Literal[SourceType.MEDRXIV] = Field(SourceType.MEDRXIV, alias="source_type")
    doi: Optional[str] = None
    abstract: Optional[str] = None
    authors: Optional[str] = None
    date: Optional[str] = None


class ClinicalTrialRecord(SourceRecordBase):
    source_type: Literal[SourceType.CLINICAL_TRIALS] = Field(
        SourceType.CLINICAL_TRIALS, alias="source_type"
    )
    nct_id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = None


class ExaRecord(SourceRecordBase):
    source_type: Literal[SourceType.EXA] = Field(SourceType.EXA, alias="source_type")
    id: Optional[str] = None
    text: Optional[str] = None
    snippet: Optional[str] = None
    domain: Optional[str] = None
    published_date: Optional[str] = None


SourceRecord = Annotated[
    Union[PubMedRecord, ArxivRecord, MedrxivRecord, ClinicalTrialRecord, ExaRecord],
    Field(discriminator="source_type"),
]


# -------------------------------------------------------------------------
# Ranked / selected sources
# -------------------------------------------------------------------------
class RankedSource(BaseModel):
    """A retrieved document plus the score the upstream ranker gave it.

    The outer ``source_type`` is the wire-level tag; it is copied onto the
    nested record so the record itself is a discriminated variant.
    """
    model_config = _WIRE

    source: SourceRecord
    relevance_score: float = Field(ge=0, le=100)
    reasoning: str = ""
    source_type: SourceType

    @model_validator(mode="before")
    @classmethod
    def _tag_source(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        tag = data.get("sourceType", data.get("source_type"))
        source = data.get("source")

        if isinstance(source, dict):
            source = dict(source)
            inner = source.pop("sourceType", None) or source.pop("source_type", None)
            tag = tag or inner
            if tag is not None:
                source["source_type"] = tag.value if isinstance(tag, SourceType) else tag
            data["source"] = source
        elif isinstance(source, BaseModel) and tag is None:
            tag = getattr(source, "source_type", None)

        if tag is not None and "sourceType" not in data and "source_type" not in data:
            data["source_type"] = tag
        return data

    @model_validator(mode="after")
    def _check_tag(self) -> "RankedSource":
        if self.source.source_type != self.source_type:
            raise ValueError(
                f"source_type {self.source_type.value!r} does not match "
                f"record type {self.source.source_type.value!r}"
            )
        return self


class SelectedSource(RankedSource):
    citation: str
    summary: str = ""
    credibility_badge: CredibilityBadge
    estimated_tokens: int = Field(ge=0)


class QualityMetrics(BaseModel):
    model_config = _WIRE

    min_relevance: float = 0.0
    max_relevance: float = 0.0
    average_relevance: float = 0.0
    high_quality_count: int = 0


class SelectionResult(BaseModel):
    model_config = _WIRE

    selected_sources: List[SelectedSource] = Field(default_factory=list)
    selected_count: int = 0
    total_sources: int = 0
    total_tokens: int = 0
    token_budget: Optional[int] = None
    deduplicated_count: int = 0
    similarity_failures: int = 0
    selection_strategy: str = ""
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)


# -------------------------------------------------------------------------
# Configuration
# -------------------------------------------------------------------------
class SelectionConfig(BaseModel):
    """Per-call selection knobs. Every field is independently overridable.

    The constructor, ``model_validate``, ``model_validate_json``,
    ``from_mapping`` and ``from_env`` all raise InvalidConfiguration. A dict
    nested inside another model (e.g. ``SelectionState(selection_config={...})``)
    is validated by pydantic directly and raises its ValidationError; build the
    config first when the error type matters.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid",
        loc_by_alias=False,
    )

    base_limit: int = Field(30, ge=0)
    extended_limit: int = Field(35, ge=0)
    high_quality_threshold: float = Field(70.0, ge=0, le=100)
    min_relevance_score: float = Field(0.0, ge=0, le=100)
    token_budget: Optional[int] = Field(None, gt=0)
    enable_semantic_dedup: bool = True
    semantic_similarity_threshold: float = Field(0.85, ge=0, le=1)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidConfiguration.from_validation_error(e) from e

    @classmethod
    def model_validate(cls, obj: Any, *args: Any, **kwargs: Any) -> "SelectionConfig":
        try:
            return super().model_validate(obj, *args, **kwargs)
        except ValidationError as e:
            raise InvalidConfiguration.from_validation_error(e) from e

    @classmethod
    def model_validate_json(cls, json_data: Any, *args: Any, **kwargs: Any) -> "SelectionConfig":
        try:
            return super().model_validate_json(json_data, *args, **kwargs)
        except ValidationError as e:
            raise InvalidConfiguration.from_validation_error(e) from e

    @model_validator(mode="after")
    def _check_limits(self) -> "SelectionConfig":
        if self.extended_limit < self.base_limit:
            raise ValueError(
                f"extended_limit ({self.extended_limit}) must be >= base_limit ({self.base_limit})"
            )
        return self

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SelectionConfig":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidConfiguration(
                f"Selection config must be a mapping, got {type(data).__name__}"
            )
        return cls(**dict(data))

    @classmethod
    def from_env(cls, prefix: str = "SOURCE_SELECTION_", environ: Optional[Mapping[str, str]] = None):
        """Build a config from ``{prefix}{FIELD_NAME}`` environment variables.

        Only variables that are present override the defaults; booleans accept
        1/0, true/false, yes/no.
        """
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(f"{prefix}{name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if name == "enable_semantic_dedup":
                lowered = raw.lower()
                if lowered in ("1", "true", "yes", "on"):
                    overrides[name] = True
                elif lowered in ("0", "false", "no", "off"):
                    overrides[name] = False
                else:
                    raise InvalidConfiguration(
                        f"{prefix}{name.upper()} must be a boolean, got {raw!r}", field=name
                    )
            else:
                overrides[name] = raw
        return cls(**overrides)


# -------------------------------------------------------------------------
# Pipeline state
# -------------------------------------------------------------------------
class SelectionState(BaseModel):
    """The 'Source of Truth' passing between selection steps. Request-scoped."""
    selection_config: SelectionConfig = Field(default_factory=SelectionConfig)
    ranked: List[RankedSource] = Field(default_factory=list)

    # Filter & sort -> size policy -> dedup
    candidates: List[RankedSource] = Field(default_factory=list)
    qualified_count: int = 0
    selection_limit: int = 0
    selection_strategy: str = ""
    deduplicated_count: int = 0
    similarity_failures: int = 0

    # Enrichment -> budget
    enriched: List[SelectedSource] = Field(default_factory=list)
    selected: List[SelectedSource] = Field(default_factory=list)
    total_tokens: int = 0

    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)

    execution_log: List[Dict[str, Any]] = Field(default_factory=list)

    def to_result(self) -> SelectionResult:
        return SelectionResult(
            selected_sources=list(self.selected),
            selected_count=len(self.selected),
            total_sources=len(self.ranked),
            total_tokens=self.total_tokens,
            token_budget=self.selection_config.token_budget,
            deduplicated_count=self.deduplicated_count,
            similarity_failures=self.similarity_failures,
            selection_strategy=self.selection_strategy,
            quality_metrics=self.quality_metrics,
        )
