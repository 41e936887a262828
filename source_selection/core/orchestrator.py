import copy
import io
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table

from ..configs import DEFAULT_SELECTION_PIPELINE
from .factory import StepFactory
from .logging import SelectionLogger, SelectionObserver
from .models import SelectionState


class SelectionOrchestrator:
    """
    Builds the selection steps from a pipeline definition and runs them.

    One orchestrator serves one request: the steps it builds hold the
    request's injected services (comparator, cancel event) and nothing is
    shared across instances.
    """

    def __init__(self, pipeline: Optional[Dict[str, Any]] = None, observer: Optional[SelectionObserver] = None):
        self.pipeline = copy.deepcopy(pipeline if pipeline is not None else DEFAULT_SELECTION_PIPELINE)
        self.name = self.pipeline.get("name", "Source_Selection")
        self.run_id = self.pipeline.get("run_id") or (
            datetime.now().strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:6]
        )
        self.debug = self.pipeline.get("debug", False)
        self.show_summary = self.pipeline.get("show_summary", False)

        # Records bound to run_id are the ones the debug file sink accepts
        self.log = logger.bind(run_id=self.run_id)

        # 1. Initialize the Logger Service
        self._owns_observer = observer is None
        self.logger = observer if observer is not None else SelectionLogger(
            self.run_id, debug=self.debug, log_dir=self.pipeline.get("log_dir")
        )

        # 2. Build Steps
        self.steps = []
        for step_def in self.pipeline.get("steps", []):
            settings = step_def.setdefault("settings", {})
            settings.setdefault("debug", self.debug)
            self.steps.append(StepFactory.create(step_def))

    def run(self, initial_state: SelectionState, services: Optional[Dict[str, Any]] = None) -> SelectionState:
        services = services or {}
        self.logger.on_run_start(self.name, self.run_id)

        total_start = time.perf_counter()
        state = initial_state
        try:
            for step in self.steps:
                step.observer = self.logger
                step.services = services
                step.log = self.log
                state = step.run(state)

            total_duration = time.perf_counter() - total_start
            self.logger.on_run_end(total_duration)
            self._print_and_log_summary(state, total_duration)
        finally:
            if self._owns_observer and isinstance(self.logger, SelectionLogger):
                self.logger.close()

        return state

    def _print_and_log_summary(self, state: SelectionState, total_duration: float):
        """
        Generates the Rich table, prints it when asked to, and logs it to file.
        """
        if not (self.show_summary or self.debug):
            return

        table = self._build_summary_table(state.execution_log, total_duration, len(state.selected))

        if self.show_summary:
            Console(stderr=True).print(table)

        # Render a wide, non-color copy for the log file
        string_buffer = io.StringIO()
        file_console = Console(file=string_buffer, no_color=True, width=150)
        file_console.print(table)
        self.logger.log_summary(string_buffer.getvalue())

    def _build_summary_table(self, log: List[Dict[str, Any]], total_duration: float, selected: int) -> Table:
        table = Table(
            title=f"SELECTION SUMMARY: {self.name}",
            title_justify="left",
            box=box.ROUNDED,
            show_header=True,
        )
        table.add_column("Step Name", justify="left", no_wrap=True)
        table.add_column("Duration", justify="right")
        table.add_column("In", justify="right")
        table.add_column("Out", justify="right")

        for entry in log:
            table.add_row(
                entry.get("step", "Unknown"),
                f"{float(entry.get('duration', 0.0)):.4f}s",
                str(entry.get("items_before", 0)),
                str(entry.get("items_after", 0)),
            )

        table.add_section()
        table.add_row("TOTAL", f"{total_duration:.4f}s", "", str(selected))
        return table
