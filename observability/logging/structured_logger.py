"""
Structured Logger
=================

Run-event logging for the tabulation job.

Features:
- One JSON object per log line
- Optional JSON-lines event file per run
- Run context (run_id, job name) attached to every event in scope
- Helpers for pipeline, task, quality and profile events
"""

import json
import logging
import sys
import threading
import traceback
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_context = threading.local()

# LogRecord attributes that are not caller-supplied extras
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _current_context() -> Dict[str, Any]:
    return getattr(_context, "data", {})


class JsonFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if _current_context():
            entry["context"] = dict(_current_context())

        if self.include_extra:
            for key, value in vars(record).items():
                if key not in _RECORD_ATTRS:
                    entry[key] = value

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Event logger for report runs.

    Usage:
        events = StructuredLogger("vehicle_report", log_file="logs/events.jsonl")

        with events.context(run_id=new_trace_id(), job="vehicle_report"):
            events.log_pipeline_start("vehicle_report", run_id)
            events.info("Tables built", extra={"rows": 44})
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        enable_console: bool = True,
        log_file: Optional[str] = None,
        json_format: bool = True
    ):
        """
        Args:
            name: Logger name (one per job)
            level: Log level
            enable_console: Also write events to stdout
            log_file: Optional path of a JSON-lines event file
            json_format: JSON console output; plain text otherwise
        """
        self.name = name
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        # Events stay out of the root logger's human-readable output
        self._logger.propagate = False
        self.close()

        if enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(JsonFormatter() if json_format else logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            self._add_handler(console, level)

        if log_file:
            self._add_handler(logging.FileHandler(log_file), level, JsonFormatter())

    def _add_handler(self, handler: logging.Handler, level: int, formatter: Optional[logging.Formatter] = None):
        handler.setLevel(level)
        if formatter is not None:
            handler.setFormatter(formatter)
        self._logger.addHandler(handler)

    @property
    def handlers(self):
        return self._logger.handlers

    def close(self):
        """Flush and detach all handlers."""
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

    @contextmanager
    def context(self, **fields):
        """Attach fields to every event logged inside the block."""
        previous = dict(_current_context())
        _context.data = {**previous, **fields}
        try:
            yield
        finally:
            _context.data = previous

    def _log(self, level: int, message: str, extra: Optional[Dict] = None, exception: Optional[BaseException] = None):
        self._logger.log(level, message, extra=dict(extra or {}), exc_info=exception)

    def info(self, message: str, extra: Optional[Dict] = None):
        self._log(logging.INFO, message, extra)

    def error(self, message: str, extra: Optional[Dict] = None, exception: Optional[BaseException] = None):
        self._log(logging.ERROR, message, extra, exception)

    def _event(self, level: int, message: str, event: str, **fields):
        self._log(level, message, extra={"event": event, **fields})

    def log_pipeline_start(self, pipeline_name: str, run_id: str, config: Optional[Dict] = None):
        self._event(
            logging.INFO, f"Pipeline started: {pipeline_name}", "pipeline_start",
            pipeline_name=pipeline_name, run_id=run_id, config=config
        )

    def log_pipeline_end(
        self,
        pipeline_name: str,
        run_id: str,
        status: str,
        duration_seconds: float,
        rows_processed: int = 0
    ):
        """Failed runs are logged at ERROR."""
        self._event(
            logging.INFO if status == "success" else logging.ERROR,
            f"Pipeline completed: {pipeline_name} ({status})", "pipeline_end",
            pipeline_name=pipeline_name, run_id=run_id, status=status,
            duration_seconds=duration_seconds, rows_processed=rows_processed
        )

    def log_task_end(self, task_name: str, run_id: str, status: str, duration_seconds: float):
        self._event(
            logging.INFO if status == "success" else logging.ERROR,
            f"Task completed: {task_name} ({status})", "task_end",
            task_name=task_name, run_id=run_id, status=status, duration_seconds=duration_seconds
        )

    def log_quality_check(self, check_name: str, table_name: str, passed: bool, details: Optional[Dict] = None):
        """Failed checks are logged at WARNING."""
        self._event(
            logging.INFO if passed else logging.WARNING,
            f"Quality check {'passed' if passed else 'failed'}: {check_name}", "quality_check",
            check_name=check_name, table_name=table_name, passed=passed, details=details
        )

    def log_data_profile(self, table_name: str, row_count: int, column_count: int, completeness_score: float):
        self._event(
            logging.INFO, f"Data profile: {table_name}", "data_profile",
            table_name=table_name, row_count=row_count,
            column_count=column_count, completeness_score=completeness_score
        )


def new_trace_id() -> str:
    """Short random id for a run."""
    return uuid.uuid4().hex[:8]
