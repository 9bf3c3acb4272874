"""Custom exceptions for lost phone search."""

from typing import List, Optional


class PhoneSearchError(Exception):
    """Base exception for lost phone search operations."""
    pass


class ValidationError(PhoneSearchError):
    """Exception raised when request or filter parameters are invalid.

    Every violation found is kept in ``errors`` so callers can report
    them all at once.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class MissingCriteriaError(PhoneSearchError):
    """Exception raised when a search has no usable criterion."""
    pass


class StoreError(PhoneSearchError):
    """Exception raised when the record store fails to scan a category."""

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.category = category


class ConfigurationError(PhoneSearchError):
    """Exception raised for configuration issues."""
    pass
