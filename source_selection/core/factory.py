from typing import Any, Dict

from ..steps.budget import TokenBudgetStep
from ..steps.deduplicate import SemanticDedupStep
from ..steps.enrich import EnrichSourcesStep
from ..steps.filter_sort import FilterSortStep
from ..steps.metrics import QualityMetricsStep
from ..steps.size_policy import AdaptiveSizeStep


class StepFactory:
    _registry = {
        "filter_sort": FilterSortStep,
        "size_policy": AdaptiveSizeStep,
        "deduplicate": SemanticDedupStep,
        "enrich": EnrichSourcesStep,
        "token_budget": TokenBudgetStep,
        "quality_metrics": QualityMetricsStep,
    }

    @classmethod
    def register(cls, name: str, step_class):
        cls._registry[name] = step_class

    @classmethod
    def create(cls, step_def: Dict[str, Any]):
        step_type = step_def["type"]
        step_config = dict(step_def.get("settings", {}))
        step_config.setdefault("name", step_type)

        step_class = cls._registry.get(step_type)
        if not step_class:
            raise ValueError(f"Step type '{step_type}' not registered.")

        return step_class(step_config)
