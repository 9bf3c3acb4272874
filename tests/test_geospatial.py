"""Test distance computation and proximity filtering."""

import math
import pytest

from lostphone_search.core.geospatial import (
    EARTH_RADIUS_KM,
    bounding_box,
    extract_coordinates,
    filter_by_location,
    filter_by_proximity,
    haversine_km,
    parse_location,
)


def destination(lat, lon, bearing_deg, distance_km):
    """Point reached from (lat, lon) along a great circle."""
    phi1 = math.radians(lat)
    lam1 = math.radians(lon)
    theta = math.radians(bearing_deg)
    delta = distance_km / EARTH_RADIUS_KM

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    lon2 = (math.degrees(lam2) + 540) % 360 - 180
    return math.degrees(phi2), lon2


class TestHaversine:
    """Test great-circle distance."""

    def test_one_degree_on_equator(self):
        """Test one degree of longitude at the equator."""
        assert haversine_km(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)

    def test_zero_distance(self):
        """Test a point is at distance zero from itself."""
        assert haversine_km(14.5995, 120.9842, 14.5995, 120.9842) == pytest.approx(0.0)

    def test_manila_example(self):
        """Test a short hop inside Manila."""
        distance = haversine_km(14.60, 120.98, 14.5995, 120.9842)
        assert 0.3 < distance < 1.0

    @pytest.mark.parametrize("coords", [
        (None, 0, 0, 0),
        (0, None, 0, 0),
        (91, 0, 0, 0),
        (0, 0, 0, 181),
        ("north", 0, 0, 0),
        (float("nan"), 0, 0, 0),
    ])
    def test_invalid_coordinates_are_infinite(self, coords):
        """Test invalid coordinates never raise."""
        assert haversine_km(*coords) == math.inf

    def test_zero_coordinates_are_valid(self):
        """Test the equator/prime meridian origin is a real location."""
        assert haversine_km(0, 0, 0, 0) == 0.0


class TestBoundingBox:
    """Test bounding box derivation."""

    def test_box_around_center(self):
        """Test the box is centered on the search point."""
        box = bounding_box(14.60, 120.98, 10)

        assert box.min_lat < 14.60 < box.max_lat
        assert box.min_lon < 120.98 < box.max_lon
        assert box.max_lat - 14.60 == pytest.approx(10 / 111.32, rel=0.01)

    @pytest.mark.parametrize("center", [
        (0.0, 0.0),
        (14.60, 120.98),
        (-33.87, 151.21),
        (60.17, 24.94),
        (78.22, 15.65),
        (-16.5, 179.9),
    ])
    @pytest.mark.parametrize("radius", [0.1, 5, 50, 500])
    def test_circle_inside_box(self, center, radius):
        """Test every point strictly inside the circle lies inside the box."""
        lat, lon = center
        box = bounding_box(lat, lon, radius)

        for bearing in range(0, 360, 15):
            for fraction in (0.5, 0.999):
                point = destination(lat, lon, bearing, radius * fraction)
                assert haversine_km(lat, lon, *point) < radius
                assert box.contains(*point), (bearing, fraction, point, box)

    def test_polar_cap_spans_all_longitudes(self):
        """Test a circle around a pole covers every longitude."""
        box = bounding_box(89.99, 0.0, 50)

        assert box.max_lat == 90.0
        assert (box.min_lon, box.max_lon) == (-180.0, 180.0)


class TestCoordinateParsing:
    """Test coordinate extraction."""

    def test_parse_location(self):
        """Test parsing a lat,lon string."""
        coords = parse_location(" 14.5995, 120.9842 ")

        assert coords.lat == pytest.approx(14.5995)
        assert coords.lon == pytest.approx(120.9842)

    @pytest.mark.parametrize("value", ["", "14.5", "a,b", "95,10", "1,2,3", None, 42])
    def test_parse_location_rejects(self, value):
        """Test malformed or out of range strings."""
        assert parse_location(value) is None

    def test_extract_from_record(self, lost_iphone, found_pixel):
        """Test records expose coordinates directly."""
        assert extract_coordinates(lost_iphone) == (14.5995, 120.9842)
        assert extract_coordinates(found_pixel).lat == pytest.approx(14.6760)

    def test_extract_from_mapping(self):
        """Test mapping records may carry a coordinate string."""
        assert extract_coordinates({"coordinates": "10.5,20.25"}) == (10.5, 20.25)
        assert extract_coordinates({"latitude": 1.0, "longitude": 2.0}) == (1.0, 2.0)
        assert extract_coordinates({"latitude": 1.0}) is None
        assert extract_coordinates({"latitude": 100.0, "longitude": 2.0}) is None


class TestProximity:
    """Test proximity filtering."""

    def test_filter_and_sort(self, sample_records):
        """Test records are filtered by radius and sorted nearest first."""
        nearby = filter_by_proximity(sample_records, 14.60, 120.98, 20)

        assert [record.id for record, _ in nearby] == [1, 1]
        assert [record.category.value for record, _ in nearby] == ["lost", "found"]
        distances = [distance for _, distance in nearby]
        assert distances == sorted(distances)
        assert 0.3 < distances[0] < 1.0
        assert 10 < distances[1] < 12

    def test_distance_rounded(self, lost_iphone):
        """Test distances carry two decimals."""
        (_, distance), = filter_by_proximity([lost_iphone], 14.60, 120.98, 5)
        assert distance == round(distance, 2)

    def test_tight_radius_excludes(self, lost_iphone):
        """Test a record outside a tiny radius is dropped."""
        assert filter_by_proximity([lost_iphone], 14.60, 120.98, 0.1) == []

    def test_records_without_coordinates_dropped(self):
        """Test records lacking coordinates are silently skipped."""
        records = [
            {"id": 1, "latitude": 14.6, "longitude": 120.98},
            {"id": 2},
            {"id": 3, "coordinates": "14.601,120.981"},
        ]

        nearby = filter_by_proximity(records, 14.6, 120.98, 1)

        assert [record["id"] for record, _ in nearby] == [1, 3]

    def test_invalid_center(self, sample_records):
        """Test an invalid center yields nothing."""
        assert filter_by_proximity(sample_records, None, 120.98, 10) == []
        assert filter_by_proximity([], 14.6, 120.98, 10) == []


class TestLocationFallback:
    """Test city/region/country matching."""

    def test_partial_case_insensitive(self, sample_records):
        """Test partial labels match any case."""
        matched = filter_by_location(sample_records, city="quezon")
        assert [record.city for record in matched] == ["Quezon City"]

    def test_all_labels_anded(self, sample_records):
        """Test every supplied label must match."""
        matched = filter_by_location(sample_records, region="metro manila", country="philippines")
        assert len(matched) == 2

        assert filter_by_location(sample_records, city="manila", country="usa") == []
