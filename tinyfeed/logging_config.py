"""JSON-lines diagnostics for tinyfeed.

Every record is one JSON object on stderr, tagged with the run's execution id
and the component that emitted it. stdout is left to the rendered page.
"""

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any, TextIO

COMPONENTS = ("main", "feed_processor", "normalizer", "renderer")


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    CONTEXT_FIELDS = (
        "execution_id",
        "component",
        "source",
        "item_link",
        "error",
        "metrics",
        "success",
        "duration_seconds",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in self.CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # json.dumps escapes newlines, so a record never spans two lines
        return json.dumps(entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Component logger that stamps each record with the run's context."""

    def __init__(self, execution_id: str, component: str = "main"):
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"tinyfeed.{component}")
        self._started: float | None = None

    def log(self, level: int, message: str, **fields: Any) -> None:
        fields.update(execution_id=self.execution_id, component=self.component)
        self.logger.log(level, message, extra=fields)

    def debug(self, message: str, **fields: Any) -> None:
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(logging.ERROR, message, **fields)

    def log_execution_start(self, **fields: Any) -> None:
        self._started = time.monotonic()
        self.info(f"Starting {self.component} execution", **fields)

    def log_execution_end(self, success: bool = True, **fields: Any) -> None:
        """Log the end of a step, with its duration when a start was logged."""
        if self._started is not None:
            fields["duration_seconds"] = round(time.monotonic() - self._started, 3)
        self.info(f"Completed {self.component} execution", success=success, **fields)

    def log_feed_processing(self, source: str, items_count: int) -> None:
        self.info(
            f"Processed feed: {items_count} items found",
            source=source,
            items_count=items_count,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Execution metrics", metrics=metrics)


def setup_structured_logging(
    log_level: str = "WARNING", stream: TextIO | None = None
) -> None:
    """Route all tinyfeed loggers to one JSON handler.

    Args:
        log_level: One of DEBUG, INFO, WARNING or ERROR
        stream: Destination stream, defaults to the current ``sys.stderr``
    """
    level = logging.getLevelName(log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("tinyfeed").setLevel(level)
    for component in COMPONENTS:
        logger = logging.getLogger(f"tinyfeed.{component}")
        logger.setLevel(level)
        logger.propagate = True


def new_execution_id() -> str:
    """Return a timestamp based identifier for one run."""
    return f"run_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Return a logger for ``component``, minting an execution id if needed."""
    return ExecutionLogger(execution_id or new_execution_id(), component)
