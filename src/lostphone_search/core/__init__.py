"""Core search components for lost phone search."""

from .engine import PhoneSearchEngine
from .filters import FilterBuilder
from .optimizer import SearchCache
from .exceptions import (
    PhoneSearchError,
    ValidationError,
    MissingCriteriaError,
    StoreError,
    ConfigurationError
)

__all__ = [
    "PhoneSearchEngine",
    "FilterBuilder",
    "SearchCache",
    "PhoneSearchError",
    "ValidationError",
    "MissingCriteriaError",
    "StoreError",
    "ConfigurationError"
]
