"""
Domain services for the locations app implementing business logic
for airport lookups and distance-bounded searches.
"""
import logging
import math
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from django.db.models import Q

from .dtos import GeoPoint
from .models import Airport

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Mean earth radius in statute miles
EARTH_RADIUS_MILES = 3958.8

DEFAULT_RADIUS_MILES = 30


def _coerce_coordinate(value) -> Optional[float]:
    """Returns a finite float for value, or None when it is missing or unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class GeoService:
    """
    Domain Service that encapsulates all spatial business logic.
    Candidate rows are fetched by the caller; this class only measures
    and bounds them, so it is safe to call from any request.
    """

    @staticmethod
    def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """
        Great-circle (haversine) distance between two points.

        Args:
            lat1, lon1: First point in decimal degrees
            lat2, lon2: Second point in decimal degrees

        Returns:
            Distance in statute miles
        """
        dlat = math.radians(lat2 - lat1)
        dlon = math.radians(lon2 - lon1)

        a = math.sin(dlat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(
            dlon / 2) ** 2
        # Rounding can push a slightly past 1.0 for antipodal points
        a = min(1.0, max(0.0, a))
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return EARTH_RADIUS_MILES * c

    @staticmethod
    def point_distance(origin: GeoPoint, target) -> Optional[float]:
        """
        Distance from origin to target, or None when either side has a
        missing or non-finite coordinate.
        """
        if origin is None or target is None:
            return None
        lat1 = _coerce_coordinate(getattr(origin, 'latitude', None))
        lon1 = _coerce_coordinate(getattr(origin, 'longitude', None))
        lat2 = _coerce_coordinate(getattr(target, 'latitude', None))
        lon2 = _coerce_coordinate(getattr(target, 'longitude', None))
        if None in (lat1, lon1, lat2, lon2):
            return None
        distance = GeoService.distance_miles(lat1, lon1, lat2, lon2)
        return distance if math.isfinite(distance) else None

    @staticmethod
    def annotate_within_radius(
        items: Iterable[T],
        ref: GeoPoint,
        radius_miles: float,
        locate: Callable[[T], Optional[GeoPoint]],
    ) -> List[Tuple[T, float]]:
        """
        Pairs each item with its distance to ref, keeping those within the radius.

        Args:
            items: Candidate records already fetched by the caller
            ref: Reference point (usually an airport)
            radius_miles: Inclusive search radius in miles
            locate: Callable returning the GeoPoint of an item

        Returns:
            List of (item, distance) tuples sorted nearest first. The sort is
            stable, so equal distances keep the caller's input order.
        """
        radius = _coerce_coordinate(radius_miles)
        if radius is None:
            return []

        selected = []
        for item in items:
            try:
                point = locate(item)
            except (AttributeError, KeyError, TypeError, ValueError):
                point = None
            distance = GeoService.point_distance(ref, point)
            if distance is None:
                continue
            if distance <= radius:
                selected.append((item, distance))

        selected.sort(key=lambda pair: pair[1])
        return selected

    @staticmethod
    def filter_within_radius(
        items: Iterable[T],
        ref: GeoPoint,
        radius_miles: float,
        locate: Callable[[T], Optional[GeoPoint]],
    ) -> List[T]:
        """
        Filters items to those within radius_miles of ref, nearest first.
        Items without usable coordinates are dropped rather than compared.
        """
        return [item for item, _ in GeoService.annotate_within_radius(items, ref, radius_miles, locate)]

    @staticmethod
    def locate_record(record) -> Optional[GeoPoint]:
        """
        Default locator for model instances and dict rows exposing
        latitude/longitude.
        """
        if isinstance(record, dict):
            lat, lon = record.get('latitude'), record.get('longitude')
        else:
            lat, lon = getattr(record, 'latitude', None), getattr(record, 'longitude', None)
        if lat is None or lon is None:
            return None
        return GeoPoint(latitude=lat, longitude=lon)

    @staticmethod
    def is_location_valid(lat: float, lon: float) -> bool:
        """
        Validates if the coordinates fall within supported bounds.

        Args:
            lat: Latitude coordinate
            lon: Longitude coordinate

        Returns:
            Boolean indicating if coordinates are valid
        """
        lat = _coerce_coordinate(lat)
        lon = _coerce_coordinate(lon)
        if lat is None or lon is None:
            return False
        return -90 <= lat <= 90 and -180 <= lon <= 180


class AirportService:
    """Lookups against the airport reference table."""

    SEARCH_LIMIT = 10

    @staticmethod
    def resolve(code: str) -> Optional[Airport]:
        """
        Finds an airport by IATA or ICAO code, case-insensitively.

        Returns:
            Airport instance, or None when the code is unknown
        """
        if not code:
            return None
        code = code.strip().upper()
        return Airport.objects.filter(
            Q(iata_code__iexact=code) | Q(icao_code__iexact=code)
        ).first()

    @staticmethod
    def resolve_point(code: str) -> Optional[GeoPoint]:
        airport = AirportService.resolve(code)
        if airport is None:
            return None
        return GeoPoint(latitude=airport.latitude, longitude=airport.longitude)

    @staticmethod
    def search(query: str, limit: int = SEARCH_LIMIT) -> List[Airport]:
        """
        Matches airports by code, city or name for the search box.
        Returns the first `limit` airports when the query is empty.
        """
        queryset = Airport.objects.all()
        query = (query or '').strip()
        if query:
            queryset = queryset.filter(
                Q(iata_code__icontains=query)
                | Q(icao_code__icontains=query)
                | Q(city__icontains=query)
                | Q(name__icontains=query)
            )
        return list(queryset[:limit])


def parse_radius(value, default) -> Optional[float]:
    """
    Search radius in miles from a query parameter.
    Missing values fall back to default; anything not a positive finite
    number yields None.
    """
    if value in (None, ''):
        return float(default)
    radius = _coerce_coordinate(value)
    if radius is None or radius <= 0:
        return None
    return radius
