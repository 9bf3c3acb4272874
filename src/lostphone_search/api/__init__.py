"""Service API for lost phone search."""

from .service import PhoneSearchService

__all__ = ["PhoneSearchService"]
