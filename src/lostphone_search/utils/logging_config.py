"""Logging configuration for lost phone search."""

import logging
import sys
from typing import Any, Iterable, Optional

# Third party loggers kept at WARNING unless logging is set below it
NOISY_LOGGERS = ("sklearn", "asyncio")

# Context values longer than this are shortened in log lines
MAX_CONTEXT_VALUE_LENGTH = 60


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS
) -> None:
    """
    Set up logging for the lost phone search package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string
        include_timestamp: Whether to include timestamps
        quiet_loggers: Logger names raised to WARNING
    """
    numeric_level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(name)s - %(levelname)s - %(message)s"
        if include_timestamp:
            format_string = "%(asctime)s - " + format_string

    logging.basicConfig(
        level=numeric_level,
        format=format_string,
        stream=sys.stdout,
        force=True
    )
    logging.getLogger("lostphone_search").setLevel(numeric_level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info(f"Logging configured with level: {level.upper()}")


def _context_value(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_CONTEXT_VALUE_LENGTH:
        text = text[:MAX_CONTEXT_VALUE_LENGTH - 3] + "..."
    return text


class StructuredLogger:
    """Logger that appends ``key=value`` request context to messages."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.context = {}

    def with_context(self, **kwargs) -> 'StructuredLogger':
        """Return a logger carrying additional context; None values are dropped."""
        new_logger = StructuredLogger(self.logger.name)
        new_logger.context = {
            **self.context,
            **{k: v for k, v in kwargs.items() if v is not None}
        }
        return new_logger

    def format_message(self, message: str) -> str:
        if not self.context:
            return message

        context_str = " ".join(f"{k}={_context_value(v)}" for k, v in self.context.items())
        return f"{message} [{context_str}]"

    def debug(self, message: str) -> None:
        self.logger.debug(self.format_message(message))

    def info(self, message: str) -> None:
        self.logger.info(self.format_message(message))

    def warning(self, message: str) -> None:
        self.logger.warning(self.format_message(message))

    def error(self, message: str) -> None:
        self.logger.error(self.format_message(message))
