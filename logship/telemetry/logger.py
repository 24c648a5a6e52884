"""Structured shipping event logging.

Responsibilities:
- Emit concise, deterministic request-level logs through `loguru`.
- Keep secrets and record values out of every emitted line.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class ShipLogger:
    """Emit deterministic event lines for each ingestion request."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(
            self._sink, format="{message}", level=level, colorize=False
        )

    def _emit(self, level: str, event: str, **context: object) -> None:
        """Emit one structured shipping log line."""

        line = f"[ship] level={level} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_request_start(self, log_type: str, content_length: int) -> None:
        """Emit a request-start event."""

        self._emit("INFO", "start", log_type=log_type, content_length=content_length)

    def log_request_complete(self, log_type: str, status: int) -> None:
        """Emit a request-accepted event."""

        self._emit("INFO", "complete", log_type=log_type, status=status)

    def log_request_failure(
        self,
        log_type: str,
        error_type: str,
        status: int | None = None,
    ) -> None:
        """Emit a request-failure event without sensitive payload details."""

        context: dict[str, object] = {"log_type": log_type, "error_type": error_type}
        if status is not None:
            context["status"] = status
        self._emit("ERROR", "failure", **context)
