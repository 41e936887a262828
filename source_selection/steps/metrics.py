"""
STEP 6: QUALITY METRICS
-----------------------
Summary statistics over the final selection. ``high_quality_count`` uses a
fixed ``> 80`` cut that is independent of the configurable sizing threshold.
An empty selection yields all-zero metrics.
"""

import math
from typing import Sequence

from ..core.base import SelectionStep
from ..core.models import QualityMetrics, SelectedSource, SelectionState

HIGH_QUALITY_METRIC_THRESHOLD = 80.0


def compute_quality_metrics(sources: Sequence[SelectedSource]) -> QualityMetrics:
    scores = [s.relevance_score for s in sources]
    if not scores:
        return QualityMetrics()
    return QualityMetrics(
        min_relevance=min(scores),
        max_relevance=max(scores),
        average_relevance=math.fsum(scores) / len(scores),
        high_quality_count=sum(1 for v in scores if v > HIGH_QUALITY_METRIC_THRESHOLD),
    )


class QualityMetricsStep(SelectionStep):
    input_field = "selected"
    output_field = "selected"

    def execute(self, state: SelectionState) -> SelectionState:
        state.quality_metrics = compute_quality_metrics(state.selected)
        return state
