"""Logging for swarm-mcp.

All output goes to stderr (stdout carries MCP JSON-RPC) through Loguru.
Operations are wrapped in a LogSpan, which emits one structured record
with timing and attributes when the span closes.

Example:
    with LogSpan(span="file.read", uri="src/main.wasp") as s:
        ...
        s.add(size=1234)
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

__all__ = ["LogSpan", "configure_logging", "logger"]

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <7}</level> | "
    "<cyan>{extra[service]}</cyan> | {message}"
)

# Remove Loguru's default stderr handler so nothing is printed before
# configure_logging() decides on level and format.
logger.remove()
logger.configure(extra={"service": "swarm-mcp"})


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Path | str | None = None,
) -> None:
    """Configure Loguru sinks.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        fmt: "text" for human-readable lines, "json" for serialized records
        log_file: Optional file sink, rotated at 10 MB
    """
    logger.remove()
    serialize = fmt == "json"

    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{message}" if serialize else _TEXT_FORMAT,
        serialize=serialize,
        backtrace=False,
        diagnose=False,
    )

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=level.upper(),
            format="{message}" if serialize else _TEXT_FORMAT,
            serialize=serialize,
            rotation="10 MB",
            retention=5,
            backtrace=False,
            diagnose=False,
        )


class LogSpan:
    """A structured logging span with timing and attributes."""

    def __init__(self, span: str, level: str = "DEBUG", **attrs: Any) -> None:
        """Initialize a log span.

        Args:
            span: Span name (e.g., "file.write")
            level: Level used when the span closes without error
            **attrs: Initial attributes to log
        """
        self.span = span
        self.level = level
        self.attrs: dict[str, Any] = dict(attrs)
        self.start_time = time.monotonic()
        self.error: str | None = None

    def add(self, key: str | None = None, value: Any = None, **attrs: Any) -> LogSpan:
        """Add attributes to the span.

        Args:
            key: Attribute name (optional if using kwargs)
            value: Attribute value (required if key is provided)
            **attrs: Bulk attribute additions

        Returns:
            Self for method chaining
        """
        if key is not None:
            self.attrs[key] = value
        self.attrs.update(attrs)
        return self

    @property
    def elapsed_ms(self) -> float:
        return round((time.monotonic() - self.start_time) * 1000, 2)

    def __enter__(self) -> LogSpan:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None:
            self.error = f"{type(exc).__name__}: {exc}"
        self._emit()

    def _emit(self) -> None:
        """Emit the span record."""
        record = {"span": self.span, "elapsed_ms": self.elapsed_ms, **self.attrs}
        bound = logger.bind(**record)

        if self.error:
            bound.bind(error=self.error).error(f"{self.span} failed: {self.error}")
        else:
            bound.log(self.level, self._summary(record))

    @staticmethod
    def _summary(record: dict[str, Any]) -> str:
        parts = [f"{k}={v}" for k, v in record.items() if k != "span"]
        return f"{record['span']} " + " ".join(parts)
