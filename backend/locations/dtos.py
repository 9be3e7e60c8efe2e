"""
Data Transfer Objects for geographic lookups.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    """Represents a geographic point (latitude, longitude) for airports and businesses"""
    latitude: float
    longitude: float
