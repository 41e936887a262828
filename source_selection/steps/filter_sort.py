"""
STEP 1: FILTER & SORT
---------------------
- Drops ranked sources scored below ``min_relevance_score``.
- Orders the rest by relevance, highest first. The sort is stable, so equal
  scores keep their input order and repeated runs are bit-identical.
"""

from ..core.base import SelectionStep
from ..core.models import SelectionState


class FilterSortStep(SelectionStep):
    input_field = "ranked"
    output_field = "candidates"

    def execute(self, state: SelectionState) -> SelectionState:
        floor = state.selection_config.min_relevance_score

        qualified = [s for s in state.ranked if s.relevance_score >= floor]
        dropped = len(state.ranked) - len(qualified)
        if dropped:
            self.log.info(
                f"[SOURCE-SELECTOR] Filtered out {dropped} sources below threshold ({floor:g})"
            )

        state.candidates = sorted(qualified, key=lambda s: s.relevance_score, reverse=True)
        state.qualified_count = len(state.candidates)
        return state
