"""
STEP 3: SEMANTIC DEDUPLICATION
------------------------------
Removes near-duplicate sources from the sized window, keeping the
higher-ranked member of every similar pair.

Algorithm
---------
Walk the window in rank order and keep an "accepted" list. Each candidate
is compared (title + body composite, see core.records.comparison_text)
against every accepted source; it is dropped as soon as one similarity is
>= ``semantic_similarity_threshold``, otherwise it is accepted. Since the walk
is in rank order, the dropped source is always the lower-ranked one.

Services (injected by the orchestrator)
---------------------------------------
- similarity: comparator ``(a, b) -> [0, 1]``. Defaults to LexicalSimilarity.
- cancel_event: optional ``threading.Event``; checked between comparisons.

Failure handling
----------------
Comparator faults are fail-open: the pair counts as "not similar", both
sources stay, and ``state.similarity_failures`` is incremented.

Disabled (``enable_semantic_dedup = False``) this step passes the window
through untouched.
"""

from typing import List

from ..core.base import SelectionStep
from ..core.errors import SelectionCancelled
from ..core.models import RankedSource, SelectionState
from ..core.records import comparison_text
from ..similarity import GuardedComparator, LexicalSimilarity


class SemanticDedupStep(SelectionStep):
    def execute(self, state: SelectionState) -> SelectionState:
        cfg = state.selection_config
        if not cfg.enable_semantic_dedup or len(state.candidates) < 2:
            return state

        threshold = cfg.semantic_similarity_threshold
        compare = GuardedComparator(self.services.get("similarity") or LexicalSimilarity(), log=self.log)
        cancel_event = self.services.get("cancel_event")

        accepted: List[RankedSource] = []
        accepted_texts: List[str] = []
        duplicates = 0

        for candidate in state.candidates:
            text = comparison_text(candidate.source)
            is_duplicate = False

            for kept, kept_text in zip(accepted, accepted_texts):
                if cancel_event is not None and cancel_event.is_set():
                    raise SelectionCancelled(
                        f"Selection cancelled during deduplication after {compare.evaluations} comparisons"
                    )
                similarity = compare(text, kept_text)
                if similarity >= threshold:
                    is_duplicate = True
                    self.log.debug(
                        f"[SOURCE-SELECTOR] Duplicate detected: similarity={similarity:.2f} "
                        f"(score {candidate.relevance_score:g} vs kept {kept.relevance_score:g}), "
                        f"keeping higher-scored source"
                    )
                    break

            if is_duplicate:
                duplicates += 1
            else:
                accepted.append(candidate)
                accepted_texts.append(text)

        if duplicates:
            self.log.info(
                f"[SOURCE-SELECTOR] Removed {duplicates} semantically similar sources, "
                f"{len(accepted)} remain"
            )
        if compare.failures:
            self.log.warning(
                f"[SOURCE-SELECTOR] {compare.failures} similarity comparisons failed; "
                f"affected pairs were kept"
            )

        state.candidates = accepted
        state.deduplicated_count = duplicates
        state.similarity_failures = compare.failures
        self.log_artifact(
            "Deduplication",
            {"removed": duplicates, "comparisons": compare.evaluations, "failures": compare.failures},
        )
        return state
