"""
STEP 2: ADAPTIVE SIZE POLICY
----------------------------
Decides how many of the sorted candidates enter deduplication:

- at or below ``base_limit`` qualified sources: take them all.
- more than ``base_limit`` sources at or above ``high_quality_threshold``:
  extend the window to ``extended_limit`` (or the qualified count, if smaller).
- otherwise: the top ``base_limit``.

A score equal to ``high_quality_threshold`` counts as high quality. With a
strict cut, 50 sources scored 85, 84.5, ... against threshold 70 would have
only 30 high-quality sources, not more than the base limit of 30, and that
pool must extend.

Candidates past the window are discarded here. Later stages never backfill
from them.
"""

from ..core.base import SelectionStep
from ..core.models import SelectionState


def decide_window(qualified_count: int, high_quality_count: int, base_limit: int, extended_limit: int):
    """Returns (window_size, strategy_label)."""
    if qualified_count <= base_limit:
        return qualified_count, (
            f"Include all sources ({qualified_count} within base limit of {base_limit})"
        )
    if high_quality_count > base_limit:
        window = min(extended_limit, qualified_count)
        return window, f"Extended selection to {window} (many high-quality sources)"
    return base_limit, f"Standard top-{base_limit} selection"


class AdaptiveSizeStep(SelectionStep):
    def execute(self, state: SelectionState) -> SelectionState:
        cfg = state.selection_config
        candidates = state.candidates

        high_quality = sum(1 for s in candidates if s.relevance_score >= cfg.high_quality_threshold)
        window, strategy = decide_window(
            qualified_count=len(candidates),
            high_quality_count=high_quality,
            base_limit=cfg.base_limit,
            extended_limit=cfg.extended_limit,
        )

        if window > cfg.base_limit:
            self.log.info(
                f"[SOURCE-SELECTOR] Extended limit to {window} "
                f"({high_quality} high-quality sources available)"
            )

        state.candidates = candidates[:window]
        state.selection_limit = window
        state.selection_strategy = strategy

        self.log.info(
            f"[SOURCE-SELECTOR] Selected top {len(state.candidates)} sources "
            f"from {len(candidates)} qualified sources"
        )
        self.log_artifact("Window", {"size": window, "high_quality": high_quality, "strategy": strategy})
        return state
