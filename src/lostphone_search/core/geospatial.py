"""Distance computation and proximity filtering for report coordinates."""

import logging
import math
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

from ..models.record import valid_coordinates
from .similarity import field_value

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.32

# Mapping records may carry coordinates as a "lat,lon" string in one of these
COORDINATE_STRING_FIELDS = ("coordinates", "location_coordinates", "lat_lon", "position")


class Coordinates(NamedTuple):
    lat: float
    lon: float


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


def haversine_km(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> float:
    """
    Great-circle distance in kilometers.

    Missing, non-numeric or out-of-range coordinates give ``math.inf``.
    """
    if not (valid_coordinates(lat1, lon1) and valid_coordinates(lat2, lon2)):
        return math.inf

    phi1, lam1, phi2, lam2 = np.radians([float(lat1), float(lon1), float(lat2), float(lon2)])
    d_phi = phi2 - phi1
    d_lam = lam2 - lam1
    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lam / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return float(EARTH_RADIUS_KM * c)


def bounding_box(center_lat: float, center_lon: float, radius_km: float) -> BoundingBox:
    """
    Latitude/longitude rectangle enclosing a search circle.

    Offsets use 111.32 km per degree of latitude and scale longitude by
    ``cos(center_lat)``. The box is widened to the spherical cap extent
    where that is larger, and spans all longitudes when the cap reaches a
    pole or crosses the antimeridian. Callers must still sift candidates
    with ``haversine_km``; the box over-selects near its corners.
    """
    radius_km = max(0.0, float(radius_km))
    angular = radius_km / EARTH_RADIUS_KM
    cos_lat = math.cos(math.radians(center_lat))

    lat_offset = max(radius_km / KM_PER_DEGREE, math.degrees(angular))
    min_lat = max(-90.0, center_lat - lat_offset)
    max_lat = min(90.0, center_lat + lat_offset)

    if cos_lat <= math.sin(min(angular, math.pi / 2)) or max_lat >= 90.0 or min_lat <= -90.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    lon_offset = max(
        radius_km / (KM_PER_DEGREE * cos_lat),
        math.degrees(math.asin(math.sin(angular) / cos_lat)),
    )
    min_lon = center_lon - lon_offset
    max_lon = center_lon + lon_offset
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    return BoundingBox(min_lat, max_lat, min_lon, max_lon)


def parse_location(location: Any) -> Optional[Coordinates]:
    """Parse a ``"lat,lon"`` string into coordinates."""
    if not isinstance(location, str):
        return None
    parts = location.strip().split(",")
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0].strip())
        lon = float(parts[1].strip())
    except ValueError:
        return None
    if not valid_coordinates(lat, lon):
        return None
    return Coordinates(lat, lon)


def extract_coordinates(record: Any) -> Optional[Coordinates]:
    """
    Read usable coordinates from a record.

    Records expose ``latitude``/``longitude`` directly; mapping records may
    instead carry a ``"lat,lon"`` string field. Missing or out-of-range
    coordinates give ``None``.
    """
    if isinstance(record, dict):
        for field in COORDINATE_STRING_FIELDS:
            coords = parse_location(record.get(field))
            if coords:
                return coords

    lat = field_value(record, "latitude")
    lon = field_value(record, "longitude")
    if not valid_coordinates(lat, lon):
        return None
    return Coordinates(float(lat), float(lon))


def filter_by_proximity(
    records: Sequence[Any],
    center_lat: float,
    center_lon: float,
    radius_km: float = 10.0,
) -> List[Tuple[Any, float]]:
    """
    Keep records within ``radius_km`` of the center.

    Returns:
        ``(record, distance_km)`` pairs, distance rounded to two decimals,
        nearest first. Records without usable coordinates are dropped.
    """
    if not records or not valid_coordinates(center_lat, center_lon):
        return []

    located = []
    points = []
    for record in records:
        coords = extract_coordinates(record)
        if coords is not None:
            located.append(record)
            points.append(coords)

    if not located:
        return []

    center = np.radians([[float(center_lat), float(center_lon)]])
    distances = haversine_distances(center, np.radians(np.array(points, dtype=float)))[0]
    distances = distances * EARTH_RADIUS_KM

    results = [
        (record, round(float(distance), 2))
        for record, distance in zip(located, distances)
        if distance <= radius_km
    ]
    results.sort(key=lambda item: item[1])

    logger.debug(
        f"Proximity filter kept {len(results)} of {len(records)} records "
        f"within {radius_km} km"
    )
    return results


def filter_by_location(
    records: Sequence[Any],
    city: Optional[str] = None,
    region: Optional[str] = None,
    country: Optional[str] = None,
) -> List[Any]:
    """
    Partial, case-insensitive city/region/country match.

    Used when a search has no coordinates; a record lacking one of the
    attributes is not excluded on that attribute.
    """
    wanted = {"city": city, "region": region, "country": country}

    def matches(record: Any) -> bool:
        for field, needle in wanted.items():
            value = field_value(record, field)
            if needle and value and needle.lower() not in str(value).lower():
                return False
        return True

    return [record for record in records if matches(record)]
