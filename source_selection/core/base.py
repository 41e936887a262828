import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from loguru import logger

from .logging import SelectionObserver
from .models import SelectionState


def _count(state: SelectionState, field: str) -> int:
    return len(getattr(state, field, None) or [])


class SelectionStep(ABC):
    # State lists this step reads from and writes to (for in/out counts)
    input_field = "candidates"
    output_field = "candidates"

    def __init__(self, step_config: Dict[str, Any]):
        self.config = step_config
        self.step_name = self.config.get("name", self.__class__.__name__)
        self.debug = self.config.get("debug", False)

        # Injected by the orchestrator before each run
        self.observer: Optional[SelectionObserver] = None
        self.services: Dict[str, Any] = {}
        self.log = logger

    def run(self, state: SelectionState) -> SelectionState:
        """
        The standard execution wrapper.
        Handles timing, logging events, and stats tracking.
        DO NOT OVERRIDE. Override execute() instead.
        """
        start_time = time.perf_counter()
        size_before = _count(state, self.input_field)

        if self.observer:
            self.observer.on_step_start(self.step_name, self.config)

        try:
            new_state = self.execute(state)
        except Exception as e:
            self.log.error(f"Step {self.step_name} failed: {e}")
            raise

        duration = time.perf_counter() - start_time
        size_after = _count(new_state, self.output_field)
        counts = {"in": size_before, "out": size_after}

        if self.observer:
            # Serialize state here so the logger stays decoupled from pydantic
            state_json = new_state.model_dump_json(indent=2, exclude={"ranked", "execution_log"})
            self.observer.on_step_end(self.step_name, duration, counts, state_json)

        new_state.execution_log.append({
            "step": self.step_name,
            "duration": duration,
            "items_before": size_before,
            "items_after": size_after,
        })

        return new_state

    def log_artifact(self, label: str, data: Any):
        """
        Call this inside your execute() method to log intermediate data.
        """
        if self.observer:
            self.observer.on_artifact(label, data)

    @abstractmethod
    def execute(self, state: SelectionState) -> SelectionState:
        pass
