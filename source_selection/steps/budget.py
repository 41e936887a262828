"""
STEP 5: TOKEN BUDGET
--------------------
Greedy, rank-ordered inclusion under ``token_budget``.

A source is included while ``running + estimated_tokens <= token_budget``.
The first source that would overflow ends the walk; smaller sources further
down are not tried. With no budget configured every enriched source is kept.
"""

from ..core.base import SelectionStep
from ..core.models import SelectionState


class TokenBudgetStep(SelectionStep):
    input_field = "enriched"
    output_field = "selected"

    def execute(self, state: SelectionState) -> SelectionState:
        budget = state.selection_config.token_budget

        selected = []
        running = 0
        for source in state.enriched:
            cost = source.estimated_tokens
            if budget is not None and running + cost > budget:
                self.log.warning(
                    f"[SOURCE-SELECTOR] Token budget reached: {running} + {cost} > {budget}, "
                    f"stopping at {len(selected)} sources"
                )
                break
            selected.append(source)
            running += cost

        state.selected = selected
        state.total_tokens = running
        return state
