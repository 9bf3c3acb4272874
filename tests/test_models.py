"""Test data models."""

import pytest
from datetime import datetime

from lostphone_search.models.query import FilterSet, SearchRequest, SearchRequestModel, SearchType
from lostphone_search.models.record import (
    CategoryFields,
    PhoneRecord,
    RecordCategory,
    RecordField,
    RecordStatus,
)
from lostphone_search.models.result import SearchResult


class TestPhoneRecord:
    """Test PhoneRecord model."""

    def test_valid_record(self, lost_iphone):
        """Test creating a valid record."""
        assert lost_iphone.category is RecordCategory.LOST
        assert lost_iphone.status is RecordStatus.LOST
        assert lost_iphone.has_coordinates

    def test_coercion(self):
        """Test string categories and statuses are coerced."""
        record = PhoneRecord(
            id=7, category="found", reporter_name="Ann", email="ann@example.com", status="Returned"
        )

        assert record.category is RecordCategory.FOUND
        assert record.status is RecordStatus.RETURNED
        assert not record.has_coordinates

    def test_identifier_required(self):
        """Test at least one identifier is required."""
        with pytest.raises(ValueError, match="phone number, IMEI or email"):
            PhoneRecord(id=1, category="lost", reporter_name="Ann", phone_number="  ")

    def test_reporter_required(self):
        """Test the reporter name is required."""
        with pytest.raises(ValueError, match="Reporter name"):
            PhoneRecord(id=1, category="lost", reporter_name="", imei="123")

    def test_coordinates_together(self):
        """Test latitude without longitude is rejected."""
        with pytest.raises(ValueError, match="together"):
            PhoneRecord(id=1, category="lost", reporter_name="Ann", imei="123", latitude=14.6)

    def test_coordinates_in_range(self):
        """Test out of range coordinates are rejected."""
        with pytest.raises(ValueError, match="Invalid coordinates"):
            PhoneRecord(
                id=1, category="lost", reporter_name="Ann", imei="123",
                latitude=91.0, longitude=0.0,
            )

    def test_to_dict_uses_category_columns(self, lost_iphone, found_pixel):
        """Test serialization uses each category's column names."""
        lost = lost_iphone.to_dict()
        found = found_pixel.to_dict()

        assert lost["location_lost"] == "SM Mall of Asia"
        assert lost["contact_name"] == "Maria Santos"
        assert lost["contact_phone"] == "09171234567"
        assert lost["date_lost"] == "2024-06-09"
        assert found["location_found"] == "Quezon City Station"
        assert found["finder_name"] == "Robert Garcia"
        assert found["finder_contact"] == "robert.garcia@example.com"
        assert found["region_state"] == "Metro Manila"
        assert found["status"] == "found"
        assert found["created_at"] == "2024-06-12T18:00:00"
        assert "category" not in found


class TestCategoryFields:
    """Test the category field mapping."""

    def test_column_names(self):
        """Test logical fields resolve per category."""
        lost = CategoryFields.for_category(RecordCategory.LOST)
        found = CategoryFields.for_category("found")

        assert lost.table == "lost_phones"
        assert found.table == "found_phones"
        assert lost.column(RecordField.LOCATION) == "location_lost"
        assert found.column(RecordField.LOCATION) == "location_found"
        assert found.column(RecordField.REPORTER_CONTACT) == "finder_contact"
        assert found.column(RecordField.BRAND) == "brand"

    def test_source_tags(self):
        """Test provenance tags."""
        assert RecordCategory.LOST.source == "lost_phones"
        assert RecordCategory.FOUND.source == "found_phones"


class TestSearchRequest:
    """Test SearchRequest model."""

    def test_defaults(self):
        """Test request defaults."""
        request = SearchRequest()

        assert request.search_type is SearchType.GENERAL
        assert request.fuzzy
        assert not request.phonetic
        assert request.filters.is_empty()
        assert not request.has_coordinates

    def test_filter_set_helpers(self):
        """Test filter set helpers."""
        filters = FilterSet(city="Manila", brands=["apple"], date_from="2024-01-01")

        assert filters.has_location
        assert filters.has_date
        assert set(filters.active()) == {"city", "brands", "date_from"}

        stripped = filters.without_location()
        assert not stripped.has_location
        assert stripped.brands == ["apple"]
        assert filters.city == "Manila"

    def test_blank_filters_inactive(self):
        """Test whitespace-only filters do not count as active."""
        assert FilterSet(city="  ", statuses=[]).is_empty()


class TestSearchRequestModel:
    """Test parsing raw query parameters."""

    def test_raw_parameters(self):
        """Test query-string style values are parsed."""
        model = SearchRequestModel.model_validate({
            "query": "  iPhone ",
            "type": "PHONE",
            "fuzzy": "false",
            "phonetic": "true",
            "threshold": "85",
            "lat": "14.6",
            "lon": "120.98",
            "radius": "5",
            "page": "2",
            "limit": "20",
            "status": "lost,found",
            "deviceType": "smartphone",
            "dateFrom": "2024-01-01",
            "timeRange": "last_week",
            "phoneNumber": "555",
        })
        request = model.to_request()

        assert request.query == "iPhone"
        assert request.search_type is SearchType.PHONE
        assert request.fuzzy is False
        assert request.phonetic is True
        assert request.threshold == 85.0
        assert (request.lat, request.lon, request.radius_km) == (14.6, 120.98, 5.0)
        assert (request.page, request.page_size) == (2, 20)
        assert request.filters.statuses == ["lost", "found"]
        assert request.filters.device_types == ["smartphone"]
        assert request.filters.date_from == "2024-01-01"
        assert request.filters.time_range == "last_week"
        assert request.filters.phone_number == "555"

    def test_lenient_values(self):
        """Test unknown types and unparsable numbers fall back to defaults."""
        request = SearchRequestModel.model_validate({
            "type": "serial", "threshold": "high", "lat": "", "page": "x",
        }).to_request()

        assert request.search_type is SearchType.GENERAL
        assert request.threshold is None
        assert request.lat is None
        assert request.page == 1
        assert request.page_size == 50

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", "NaN", float("inf"), float("nan")])
    def test_non_finite_numbers(self, value):
        """Test infinite and NaN numbers are treated as absent."""
        request = SearchRequestModel.model_validate({
            "page": value, "limit": value, "threshold": value, "lat": value, "lon": value,
        }).to_request()

        assert request.page == 1
        assert request.page_size == 50
        assert request.threshold is None
        assert request.lat is None and request.lon is None

    def test_field_names_accepted(self):
        """Test snake case names work as well as aliases."""
        request = SearchRequestModel(date_to="2024-06-01", device_type=["tablet"]).to_request()

        assert request.filters.date_to == "2024-06-01"
        assert request.filters.device_types == ["tablet"]


class TestSearchResult:
    """Test SearchResult model."""

    def test_to_dict(self, found_pixel):
        """Test flattened result annotations."""
        result = SearchResult(
            record=found_pixel, source=RecordCategory.FOUND,
            similarity_score=87.5555, matched_field="finder_name", distance_km=10.88,
        )
        data = result.to_dict()

        assert data["source"] == "found_phones"
        assert data["similarity_score"] == 87.56
        assert data["matched_field"] == "finder_name"
        assert data["distance_km"] == 10.88

    def test_plain_result_has_no_annotations(self, lost_iphone):
        """Test unscored results omit score and distance."""
        data = SearchResult(record=lost_iphone, source="lost").to_dict()

        assert data["source"] == "lost_phones"
        assert "similarity_score" not in data
        assert "distance_km" not in data

    def test_invalid_score(self, lost_iphone):
        """Test scores outside 0-100 are rejected."""
        with pytest.raises(ValueError, match="Similarity score"):
            SearchResult(record=lost_iphone, source="lost", similarity_score=101)

    def test_negative_distance(self, lost_iphone):
        """Test negative distances are rejected."""
        with pytest.raises(ValueError, match="Distance"):
            SearchResult(record=lost_iphone, source="lost", distance_km=-0.5)
