"""Pytest configuration and shared fixtures."""

import pytest
from datetime import date, datetime
from typing import List, Optional, Sequence, Set

from lostphone_search.api.service import PhoneSearchService
from lostphone_search.analytics import InMemorySearchAnalytics
from lostphone_search.config import SearchSettings
from lostphone_search.core.engine import PhoneSearchEngine
from lostphone_search.core.optimizer import SearchCache
from lostphone_search.models.record import PhoneRecord, RecordCategory, RecordStatus
from lostphone_search.store.memory import InMemoryRecordStore
from lostphone_search.utils.clock import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    """Clock frozen at 2024-06-15 12:00."""
    return ManualClock(datetime(2024, 6, 15, 12, 0, 0))


@pytest.fixture
def lost_iphone() -> PhoneRecord:
    """Lost iPhone reported in Manila; the newest lost report."""
    return PhoneRecord(
        id=1,
        category=RecordCategory.LOST,
        reporter_name="Maria Santos",
        reporter_contact="09171234567",
        phone_number="555-123-4567",
        brand="Apple",
        model="iPhone 13",
        color="black",
        device_type="smartphone",
        description="Black iPhone with cracked screen",
        location="SM Mall of Asia",
        country="Philippines",
        region="Metro Manila",
        city="Manila",
        latitude=14.5995,
        longitude=120.9842,
        event_date=date(2024, 6, 9),
        status=RecordStatus.LOST,
        created_at=datetime(2024, 6, 10, 9, 0, 0),
    )


@pytest.fixture
def lost_galaxy() -> PhoneRecord:
    """Lost Samsung in New York whose number is one digit off the iPhone's."""
    return PhoneRecord(
        id=2,
        category=RecordCategory.LOST,
        reporter_name="John Smith",
        reporter_contact="john.smith@example.com",
        phone_number="5551234568",
        imei="356938035643809",
        email="john.smith@example.com",
        brand="Samsung",
        model="Galaxy S21",
        color="blue",
        device_type="smartphone",
        description="Blue Samsung phone in leather case",
        location="Central Park",
        country="USA",
        region="New York",
        city="New York",
        latitude=40.7829,
        longitude=-73.9654,
        event_date=date(2024, 6, 4),
        status=RecordStatus.LOST,
        created_at=datetime(2024, 6, 5, 15, 30, 0),
    )


@pytest.fixture
def found_pixel() -> PhoneRecord:
    """Found Pixel in Quezon City, about 11 km from the iPhone."""
    return PhoneRecord(
        id=1,
        category=RecordCategory.FOUND,
        reporter_name="Robert Garcia",
        reporter_contact="robert.garcia@example.com",
        imei="490154203237518",
        brand="Google",
        model="Pixel 7",
        color="white",
        device_type="smartphone",
        description="Found a Pixel near the station",
        location="Quezon City Station",
        country="Philippines",
        region="Metro Manila",
        city="Quezon City",
        latitude=14.6760,
        longitude=121.0437,
        event_date=date(2024, 6, 12),
        status=RecordStatus.FOUND,
        created_at=datetime(2024, 6, 12, 18, 0, 0),
    )


@pytest.fixture
def sample_records(lost_iphone, lost_galaxy, found_pixel) -> List[PhoneRecord]:
    """Two lost reports and one found report."""
    return [lost_iphone, lost_galaxy, found_pixel]


class RecordingStore(InMemoryRecordStore):
    """In-memory store that counts scans and can fail chosen categories."""

    def __init__(
        self,
        records: Optional[Sequence[PhoneRecord]] = None,
        fail_categories: Optional[Set[RecordCategory]] = None
    ):
        super().__init__(records)
        self.fail_categories = set(fail_categories or ())
        self.scans = []

    async def scan(self, category, predicate, order=None, limit=None):
        self.scans.append((category, predicate, order, limit))
        if category in self.fail_categories:
            raise RuntimeError(f"{category.value} table unavailable")
        if order is None:
            return await super().scan(category, predicate, limit=limit)
        return await super().scan(category, predicate, order, limit)


class FailingAnalytics(InMemorySearchAnalytics):
    """Analytics sink whose every write fails."""

    async def record(self, event):
        raise RuntimeError("analytics database locked")


@pytest.fixture
def settings() -> SearchSettings:
    """Default settings independent of the environment."""
    return SearchSettings(_env_file=None)


@pytest.fixture
def store(sample_records) -> RecordingStore:
    """In-memory store seeded with the sample records."""
    return RecordingStore(sample_records)


@pytest.fixture
def analytics(clock) -> InMemorySearchAnalytics:
    """In-memory analytics on the test clock."""
    return InMemorySearchAnalytics(clock=clock)


@pytest.fixture
async def engine(store, analytics, clock, settings):
    """Search engine over the seeded in-memory store."""
    engine = PhoneSearchEngine(
        store=store,
        cache=SearchCache(ttl_seconds=600, clock=clock),
        analytics=analytics,
        clock=clock,
        settings=settings,
    )
    yield engine
    await engine.close()


@pytest.fixture
async def search_service(sample_records, clock, analytics, settings):
    """Initialized service over a SQLite store seeded with the sample records."""
    async with PhoneSearchService.create(
        records=sample_records,
        settings=settings,
        analytics=analytics,
        clock=clock,
        log_level="WARNING"  # Reduce test output
    ) as service:
        yield service
