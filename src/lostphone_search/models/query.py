"""Search request model with advanced filter set."""

import math
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field, fields, replace
from pydantic import BaseModel, ConfigDict, Field, field_validator

DateInput = Union[str, date, None]


class SearchType(str, Enum):
    """How the free-text query is interpreted."""
    PHONE = "phone"
    IMEI = "imei"
    EMAIL = "email"
    GENERAL = "general"


@dataclass
class FilterSet:
    """
    Advanced filters applied on top of the text query.

    Attributes:
        date_from: Earliest report creation date (ISO string or date)
        date_to: Latest report creation date, inclusive
        time_range: Named relative window, overrides explicit dates
        statuses: Allowed lifecycle statuses
        device_types: Allowed device types
        brands: Allowed brands
        country: Partial country match
        region: Partial region/state match
        city: Partial city match
        imei: Partial IMEI match
        phone_number: Partial phone number match
    """
    date_from: DateInput = None
    date_to: DateInput = None
    time_range: Optional[str] = None
    statuses: List[str] = field(default_factory=list)
    device_types: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    imei: Optional[str] = None
    phone_number: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return bool(self.country or self.region or self.city)

    @property
    def has_date(self) -> bool:
        return bool(self.date_from or self.date_to or self.time_range)

    def active(self) -> Dict[str, Any]:
        """Filters that carry a value, keyed by field name."""
        result = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, str):
                value = value.strip()
            if value:
                result[item.name] = value
        return result

    def is_empty(self) -> bool:
        return not self.active()

    def without_location(self) -> "FilterSet":
        return replace(self, country=None, region=None, city=None)


@dataclass
class SearchRequest:
    """
    Search request over lost and found reports.

    Attributes:
        query: Free-text query
        search_type: Interpretation of the query (phone/imei/email/general)
        fuzzy: Re-rank candidates by edit-distance similarity
        phonetic: Filter candidates by phonetic code match
        threshold: Minimum similarity percentage (0-100)
        lat: Center latitude for geospatial search
        lon: Center longitude for geospatial search
        radius_km: Geospatial search radius
        filters: Advanced filter set (location filters live here too)
        page: 1-based page number
        page_size: Results per page
        use_cache: Whether to read and write the result cache
        caller_ip: Reported to analytics only
        user_agent: Reported to analytics only
    """
    query: str = ""
    search_type: SearchType = SearchType.GENERAL
    fuzzy: bool = True
    phonetic: bool = False
    threshold: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    radius_km: Optional[float] = None
    filters: FilterSet = field(default_factory=FilterSet)
    page: int = 1
    page_size: int = 50
    use_cache: bool = True
    caller_ip: Optional[str] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        """Coerce loosely typed inputs."""
        self.query = self.query or ""
        self.search_type = SearchType(self.search_type or SearchType.GENERAL)
        if self.filters is None:
            self.filters = FilterSet()

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


def _split_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


def _lenient_number(value: Any) -> Any:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return value if isinstance(value, (int, float)) else number


class SearchRequestModel(BaseModel):
    """Pydantic model parsing raw query-string style search parameters."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: str = Field("", description="Search query text")
    type: SearchType = Field(SearchType.GENERAL, description="Search type")
    fuzzy: bool = Field(True, description="Enable fuzzy matching")
    phonetic: bool = Field(False, description="Enable phonetic matching")
    threshold: Optional[float] = Field(None, description="Similarity threshold (0-100)")
    lat: Optional[float] = Field(None, description="Center latitude")
    lon: Optional[float] = Field(None, description="Center longitude")
    radius: Optional[float] = Field(None, description="Search radius in km")
    page: Optional[float] = Field(None, description="Page number")
    limit: Optional[float] = Field(None, description="Results per page")
    cache: bool = Field(True, description="Use the result cache")
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    date_from: Optional[str] = Field(None, alias="dateFrom")
    date_to: Optional[str] = Field(None, alias="dateTo")
    time_range: Optional[str] = Field(None, alias="timeRange")
    status: List[str] = Field(default_factory=list)
    device_type: List[str] = Field(default_factory=list, alias="deviceType")
    brand: List[str] = Field(default_factory=list)
    imei: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    caller_ip: Optional[str] = None
    user_agent: Optional[str] = None

    @field_validator("query", mode="before")
    @classmethod
    def validate_query(cls, v: Any) -> str:
        """Treat a missing query as empty text."""
        return "" if v is None else str(v).strip()

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v: Any) -> Any:
        """Unknown or missing types fall back to a general search."""
        if not v or str(v).lower() not in {t.value for t in SearchType}:
            return SearchType.GENERAL
        return str(v).lower()

    @field_validator("status", "device_type", "brand", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> List[str]:
        """Accept comma separated strings as well as lists."""
        return _split_list(v)

    @field_validator("threshold", "lat", "lon", "radius", "page", "limit", mode="before")
    @classmethod
    def validate_numbers(cls, v: Any) -> Any:
        """Unparsable numbers are treated as absent."""
        return _lenient_number(v)

    def to_request(self) -> SearchRequest:
        """Convert to SearchRequest dataclass."""
        return SearchRequest(
            query=self.query,
            search_type=self.type,
            fuzzy=self.fuzzy,
            phonetic=self.phonetic,
            threshold=self.threshold,
            lat=self.lat,
            lon=self.lon,
            radius_km=self.radius,
            filters=FilterSet(
                date_from=self.date_from or None,
                date_to=self.date_to or None,
                time_range=self.time_range or None,
                statuses=self.status,
                device_types=self.device_type,
                brands=self.brand,
                country=self.country or None,
                region=self.region or None,
                city=self.city or None,
                imei=self.imei or None,
                phone_number=self.phone_number or None,
            ),
            page=int(self.page) if self.page is not None else 1,
            page_size=int(self.limit) if self.limit is not None else 50,
            use_cache=self.cache,
            caller_ip=self.caller_ip,
            user_agent=self.user_agent,
        )
