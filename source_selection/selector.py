"""
Public entry points for source selection.

select_sources() runs the selection pipeline for one request:

1. Filter & sort         (drop below min_relevance_score, stable sort)
2. Adaptive size policy  (base window, extended window, or everything)
3. Semantic dedup        (injected comparator, fail-open)
4. Enrichment            (citation, summary, badge, token estimate)
5. Token budget          (greedy, stops at first overflow)
6. Quality metrics

Everything is request-scoped: the config, the comparator guard and the
orchestrator are built per call, so concurrent calls never share state.
"""

import asyncio
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from .core.errors import InvalidConfiguration, InvalidSourceData
from .core.logging import SelectionObserver
from .core.models import RankedSource, SelectionConfig, SelectionResult, SelectionState
from .core.orchestrator import SelectionOrchestrator
from .formatting import format_sources_for_synthesis
from .similarity import SimilarityFn

_RANKED_LIST = TypeAdapter(List[RankedSource])

ConfigLike = Union[SelectionConfig, Mapping[str, Any], None]


def resolve_config(config: ConfigLike) -> SelectionConfig:
    if isinstance(config, SelectionConfig):
        return config
    return SelectionConfig.from_mapping(config)


def coerce_sources(ranked_sources: Iterable[Any]) -> List[RankedSource]:
    if ranked_sources is None:
        return []
    items = list(ranked_sources)
    if all(isinstance(item, RankedSource) for item in items):
        return items
    try:
        return _RANKED_LIST.validate_python(items)
    except ValidationError as e:
        raise InvalidSourceData.from_validation_error(e) from e


def select_sources(
    ranked_sources: Iterable[Any],
    config: ConfigLike = None,
    similarity: Optional[SimilarityFn] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    pipeline: Optional[Dict[str, Any]] = None,
    observer: Optional[SelectionObserver] = None,
) -> SelectionResult:
    """
    Select the sources to hand to synthesis.

    Args:
        ranked_sources: RankedSource models or their dict/JSON-shaped form.
        config: SelectionConfig, a mapping of overrides, or None for defaults.
        similarity: Symmetric comparator ``(a, b) -> [0, 1]`` used for
            deduplication. Defaults to LexicalSimilarity.
        cancel_event: Checked between similarity comparisons.
        pipeline: Optional pipeline definition (see configs.DEFAULT_SELECTION_PIPELINE).
        observer: Optional observer receiving step events.

    Returns:
        SelectionResult (empty, not an error, when nothing qualifies).

    Raises:
        InvalidConfiguration: Config out of range. Raised before any work.
        InvalidSourceData: A ranked source failed validation.
        SelectionCancelled: cancel_event was set mid-run.
    """
    cfg = resolve_config(config)
    sources = coerce_sources(ranked_sources)

    orchestrator = SelectionOrchestrator(pipeline, observer=observer)
    orchestrator.log.info(
        f"[SOURCE-SELECTOR] Starting selection: {len(sources)} sources, "
        f"base limit={cfg.base_limit}, extended limit={cfg.extended_limit}"
    )

    state = SelectionState(selection_config=cfg, ranked=sources)
    services = {"similarity": similarity, "cancel_event": cancel_event}
    final_state = orchestrator.run(state, services=services)

    result = final_state.to_result()
    _log_result(result, orchestrator.log)
    return result


async def select_sources_async(
    ranked_sources: Iterable[Any],
    config: ConfigLike = None,
    similarity: Optional[SimilarityFn] = None,
    **kwargs: Any,
) -> SelectionResult:
    """Runs select_sources in a worker thread so a blocking comparator
    (e.g. a remote embedding call) does not stall the event loop."""
    return await asyncio.to_thread(select_sources, ranked_sources, config, similarity, **kwargs)


def _log_result(result: SelectionResult, log=logger) -> None:
    metrics = result.quality_metrics
    budget = result.token_budget if result.token_budget is not None else "unbounded"
    log.info(
        f"[SOURCE-SELECTOR] Selection complete: "
        f"{result.selected_count}/{result.total_sources} sources selected, "
        f"{result.total_tokens}/{budget} tokens used, "
        f"avg relevance={metrics.average_relevance:.1f}, "
        f"{metrics.high_quality_count} high-quality sources"
    )
    for idx, source in enumerate(result.selected_sources[:5], start=1):
        log.info(
            f"  {idx}. [{source.relevance_score:g}] {source.source_type.value}: "
            f"{source.citation[:60]}... ({source.estimated_tokens} tokens)"
        )


__all__ = [
    "InvalidConfiguration",
    "coerce_sources",
    "format_sources_for_synthesis",
    "resolve_config",
    "select_sources",
    "select_sources_async",
]
