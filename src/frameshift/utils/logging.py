"""Standardized logging for conversions.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message (key=value fields)
- CI/JSON mode: {"level":"...","ts":"...","msg":"...", ...notice fields}

Records logged from a ConversionNotice carry its kind as a `kind: ` prefix.
"""

import json
import logging
import sys
from collections import Counter
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

from frameshift.models.notice import ConversionNotice

LOGGER_NAME = "frameshift"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


def _notice_tag(record: logging.LogRecord) -> str:
    """Return "kind: " for records logged from a conversion notice."""
    extra = getattr(record, "extra_data", None) or {}
    kind = extra.get("kind")
    return f"{kind}: " if kind else ""


class HumanFormatter(logging.Formatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        message = _notice_tag(record) + record.getMessage()
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{record.levelname}]{Colors.RESET} {message}"
        return f"[{record.levelname}] {message}"


class VerboseFormatter(logging.Formatter):
    """Formatter for verbose output with timestamps.

    Format: [LEVEL][HH:MM:SS] message, followed by any structured fields
    as key=value pairs.
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with timestamp."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        message = _notice_tag(record) + record.getMessage()

        extra = {
            key: value
            for key, value in (getattr(record, "extra_data", None) or {}).items()
            if key != "kind"
        }
        if extra:
            fields = " ".join(f"{key}={value}" for key, value in extra.items())
            message = f"{message} ({fields})"

        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{record.levelname}]{Colors.RESET}[{timestamp}] {message}"
        return f"[{record.levelname}][{timestamp}] {message}"


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"WARNING","ts":"2026-01-31T19:45:23+00:00","msg":"...","kind":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "msg": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)

        return json.dumps(log_entry, default=str)


class FrameshiftLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(
        self,
        level: int,
        msg: str,
        **kwargs: Any,
    ) -> None:
        """Log a message with additional structured data.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Additional data to include in JSON output
        """
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(
            self.name,
            level,
            "(unknown)",
            0,
            msg,
            (),
            None,
        )
        if kwargs:
            record.extra_data = kwargs  # type: ignore
        self.handle(record)

    def notice(self, notice: ConversionNotice, level: int = logging.WARNING) -> None:
        """Log a conversion notice with its kind, stage and details as fields."""
        self.structured(
            level,
            notice.message,
            kind=notice.kind.value,
            stage=notice.stage,
            **notice.details,
        )


def summarize_notices(notices: list[ConversionNotice]) -> str:
    """Summarize notices by kind, most frequent first.

    >>> summarize_notices([])
    'no notices'
    """
    if not notices:
        return "no notices"
    counts = Counter(n.kind.value for n in notices)
    parts = ", ".join(f"{count} {kind}" for kind, count in counts.most_common())
    return f"{len(notices)} notice(s): {parts}"


logging.setLoggerClass(FrameshiftLogger)


def get_logger(name: str = LOGGER_NAME) -> FrameshiftLogger:
    """Get a frameshift logger instance.

    Args:
        name: Logger name

    Returns:
        Configured FrameshiftLogger instance
    """
    return logging.getLogger(name)  # type: ignore


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure logging with the specified mode.

    Log output goes to stderr by default so that converted source printed
    on stdout stays clean.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    use_colors = _is_tty(stream)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    elif mode == LogMode.VERBOSE:
        formatter = VerboseFormatter(use_colors=use_colors)
    else:
        formatter = HumanFormatter(use_colors=use_colors)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Enable verbose mode with timestamps
        quiet: Suppress info messages (warnings and errors only)
        ci: Enable JSON output for CI/CD
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
