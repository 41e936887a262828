import json
import os
import sys
import threading
from typing import Any, Dict, List, Optional, Protocol

from loguru import logger


class SelectionObserver(Protocol):
    def on_run_start(self, name: str, run_id: str): ...

    def on_step_start(self, step_name: str, config: Dict[str, Any]): ...

    def on_step_end(self, step_name: str, duration: float, counts: Dict[str, int], state_json: str): ...

    def on_artifact(self, label: str, data: Any): ...

    def on_run_end(self, duration: float): ...

    def log_summary(self, summary_text: str): ...


class SelectionLogger:
    """
    Loguru-backed observer for one selection run.

    With debug on, adds a DEBUG file sink under ``log_dir`` and an ERROR
    stderr sink. Both only accept records bound to this run's ``run_id``
    (``logger.bind(run_id=...)``), so concurrent runs keep separate files.
    Only the sinks added here are removed on close(); handlers owned by the
    host application are left alone.
    """

    def __init__(self, run_id: str, debug: bool = False, log_dir: Optional[str] = None):
        self.debug = debug
        self.run_id = run_id
        self.log_file = None
        self._sink_ids: List[int] = []
        self._lock = threading.RLock()

        if self.debug:
            log_dir = log_dir or os.environ.get("SOURCE_SELECTION_LOG_DIR") or os.path.join(os.getcwd(), "logs")
            os.makedirs(log_dir, exist_ok=True)
            self.log_file = os.path.join(log_dir, f"selection_debug_{run_id}.log")

            # Simple format: Time | Message
            fmt = "<green>{time:H:mm:ss}</green>\n{message}\n"
            run_filter = lambda record: record["extra"].get("run_id") == run_id

            self._sink_ids.append(logger.add(self.log_file, format=fmt, level="DEBUG", filter=run_filter))
            self._sink_ids.append(logger.add(sys.stderr, format=fmt, level="ERROR", filter=run_filter))

        self._log_ctx = logger.bind(run_id=run_id)

    def close(self):
        with self._lock:
            for sink_id in self._sink_ids:
                try:
                    logger.remove(sink_id)
                except ValueError:
                    pass
            self._sink_ids = []

    def _format_json(self, data: Any) -> str:
        try:
            s = json.dumps(data, indent=2, default=str)
            s = s.replace("\\n", "\n      ")
            return s
        except (TypeError, ValueError):
            return str(data)

    def _truncate_large_strings(self, obj: Any, max_len: int = 1000) -> Any:
        if isinstance(obj, str):
            if len(obj) > max_len:
                return obj[:max_len] + f"... [truncated {len(obj) - max_len} chars]"
            return obj
        if isinstance(obj, dict):
            return {k: self._truncate_large_strings(v, max_len) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._truncate_large_strings(i, max_len) for i in obj]
        return obj

    def _log(self, text: str):
        if not self.debug: return
        if not text.strip(): return
        self._log_ctx.debug(text)

    # -------------------------------------------------------------------------
    # PUBLIC EVENTS
    # -------------------------------------------------------------------------

    def on_run_start(self, name: str, run_id: str):
        if not self.debug: return
        divider = "=" * 80
        msg = f"{divider}\nLAUNCHING SELECTION: {name} (ID: {run_id})\n{divider}"
        self._log(msg)

    def on_step_start(self, step_name: str, config: Dict[str, Any]):
        safe_conf = {k: v for k, v in config.items() if k != "debug"}
        msg = (
            f"START STEP: {step_name}\n"
            f"--- SETTINGS ---\n"
            f"{self._format_json(safe_conf)}\n"
            f"----------------"
        )
        self._log(msg)

    def on_step_end(self, step_name: str, duration: float, counts: Dict[str, int], state_json: str):
        try:
            state_dict = json.loads(state_json)
            clean_json_str = self._format_json(self._truncate_large_strings(state_dict))
        except ValueError:
            clean_json_str = state_json

        stats = f"DURATION: {duration:.4f}s | IN: {counts.get('in', 0)} | OUT: {counts.get('out', 0)}"
        divider = "=" * 80
        msg = (
            f"--- OUTPUT STATE ---\n"
            f"{clean_json_str}\n"
            f"{divider}\n"
            f"FINISHED: {step_name} | {stats}\n"
            f"{divider}"
        )
        self._log(msg)

    def on_artifact(self, label: str, data: Any):
        if isinstance(data, (dict, list)):
            content = self._format_json(data)
        else:
            content = str(data)

        msg = f">>> [ARTIFACT] {label}\n{content}"
        self._log(msg)

    def on_run_end(self, duration: float):
        divider = "=" * 80
        msg = f"{divider}\nTOTAL SELECTION TIME: {duration:.4f}s\n{divider}"
        self._log(msg)

    def log_summary(self, summary_text: str):
        if not self.debug or not self.log_file: return
        try:
            with self._lock:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write("\n" + summary_text + "\n")
        except OSError as e:
            logger.error(f"Summary logging error: {e}")
