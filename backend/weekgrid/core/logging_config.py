from __future__ import annotations

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

trace_logger = logging.getLogger("weekgrid.trace")

# Engine events that signal a degraded result rather than routine progress.
WARNING_EVENTS = frozenset({"cascade.round_limit"})


def setup_logging(level: str = "INFO") -> None:
    """Attach a console handler to the root logger once."""
    root = logging.getLogger()
    root.setLevel(level)

    # Prevent duplicate handlers
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(console)


def logging_trace_hook(event: str, fields: dict[str, Any]) -> None:
    """Trace hook that forwards engine events to the ``weekgrid.trace`` logger."""
    level = logging.WARNING if event in WARNING_EVENTS else logging.DEBUG
    if not trace_logger.isEnabledFor(level):
        return
    rendered = " ".join(f"{key}={value}" for key, value in fields.items())
    trace_logger.log(level, "%s %s", event, rendered)
