"""Lost and found phone record model."""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


class RecordCategory(str, Enum):
    """The two parallel record collections."""
    LOST = "lost"
    FOUND = "found"

    @property
    def source(self) -> str:
        """Provenance tag attached to search results."""
        return f"{self.value}_phones"


class RecordStatus(str, Enum):
    """Lifecycle status of a report."""
    LOST = "lost"
    FOUND = "found"
    RETURNED = "returned"
    CLAIMED = "claimed"


class RecordField(str, Enum):
    """Category neutral record attributes usable in predicates and ordering."""
    ID = "id"
    PHONE_NUMBER = "phone_number"
    IMEI = "imei"
    EMAIL = "email"
    BRAND = "brand"
    MODEL = "model"
    COLOR = "color"
    DEVICE_TYPE = "device_type"
    DESCRIPTION = "description"
    LOCATION = "location"
    COUNTRY = "country"
    REGION = "region"
    CITY = "city"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    EVENT_DATE = "event_date"
    REPORTER_NAME = "reporter_name"
    REPORTER_CONTACT = "reporter_contact"
    STATUS = "status"
    CREATED_AT = "created_at"


@dataclass(frozen=True)
class CategoryFields:
    """Maps record fields onto one category's table and column names."""
    table: str
    overrides: Dict[RecordField, str]

    def column(self, record_field: RecordField) -> str:
        return self.overrides.get(RecordField(record_field), RecordField(record_field).value)

    @classmethod
    def for_category(cls, category: RecordCategory) -> "CategoryFields":
        return CATEGORY_FIELDS[RecordCategory(category)]


CATEGORY_FIELDS: Dict[RecordCategory, CategoryFields] = {
    RecordCategory.LOST: CategoryFields(
        table="lost_phones",
        overrides={
            RecordField.LOCATION: "location_lost",
            RecordField.REGION: "region_state",
            RecordField.EVENT_DATE: "date_lost",
            RecordField.REPORTER_NAME: "contact_name",
            RecordField.REPORTER_CONTACT: "contact_phone",
        },
    ),
    RecordCategory.FOUND: CategoryFields(
        table="found_phones",
        overrides={
            RecordField.LOCATION: "location_found",
            RecordField.REGION: "region_state",
            RecordField.EVENT_DATE: "date_found",
            RecordField.REPORTER_NAME: "finder_name",
            RecordField.REPORTER_CONTACT: "finder_contact",
        },
    ),
}


def valid_coordinates(latitude: Any, longitude: Any) -> bool:
    """Check that a latitude/longitude pair is numeric and in range."""
    if latitude is None or longitude is None:
        return False
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


@dataclass
class PhoneRecord:
    """
    A lost-or-found device report.

    Field names are category neutral; ``CategoryFields`` maps the location
    label, reporter and event date attributes onto the column names used
    by each category (``location_lost`` vs ``location_found`` and so on).

    Attributes:
        id: Store identity
        category: Lost or found collection the record belongs to
        reporter_name: Owner (lost) or finder (found) name
        reporter_contact: Owner or finder contact
        phone_number: Phone number of the device
        imei: Device IMEI
        email: Account email associated with the device
        location: Free-text label of where the device was lost/found
        event_date: Date the device was lost/found
        created_at: Report creation timestamp
    """
    id: int
    category: RecordCategory
    reporter_name: str
    reporter_contact: Optional[str] = None
    phone_number: Optional[str] = None
    imei: Optional[str] = None
    email: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    device_type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    event_date: Optional[date] = None
    status: RecordStatus = RecordStatus.LOST
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        """Validate record invariants."""
        self.category = RecordCategory(self.category)
        self.status = RecordStatus(str(getattr(self.status, "value", self.status)).lower())
        if not (self.reporter_name or "").strip():
            raise ValueError("Reporter name cannot be empty")
        if not any((value or "").strip() for value in (self.phone_number, self.imei, self.email)):
            raise ValueError("Record needs a phone number, IMEI or email")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be given together")
        if self.latitude is not None:
            if not valid_coordinates(self.latitude, self.longitude):
                raise ValueError(
                    f"Invalid coordinates: {self.latitude}, {self.longitude}"
                )
            self.latitude = float(self.latitude)
            self.longitude = float(self.longitude)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def columns(self) -> CategoryFields:
        return CategoryFields.for_category(self.category)

    def value_of(self, record_field: RecordField) -> Any:
        """Read a field by its category neutral name."""
        return getattr(self, RecordField(record_field).value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary using the category's column names."""
        columns = self.columns
        data: Dict[str, Any] = {}
        for record_field in RecordField:
            value = self.value_of(record_field)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[columns.column(record_field)] = value
        return data
