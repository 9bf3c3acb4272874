"""Utility modules for lost phone search."""

from .clock import SystemClock, ManualClock
from .text_processing import TextProcessor
from .validators import validate_record, validate_records_batch, validate_request
from .logging_config import setup_logging, StructuredLogger

__all__ = [
    "SystemClock",
    "ManualClock",
    "TextProcessor",
    "validate_record",
    "validate_records_batch",
    "validate_request",
    "setup_logging",
    "StructuredLogger",
]
