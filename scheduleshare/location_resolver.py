"""
Location resolution for route segments.

This is not geocoding: the default resolver knows a handful of landmark names
and returns a fixed city-center point for everything else. Callers must treat
the coordinates as advisory.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple
from urllib.parse import quote

from scheduleshare.event_models import LocationCoordinate

# New York City center
DEFAULT_LATITUDE = 40.7128
DEFAULT_LONGITUDE = -74.0060
STARTING_POINT_ADDRESS = "Starting Point"

# (substring, latitude, longitude); first match wins
LANDMARKS: Tuple[Tuple[str, float, float], ...] = (
    ("Washington Square Park", 40.7308, -73.9976),
    ("Abingdon Square", 40.7378, -74.0057),
    ("Sheep Meadow", 40.7645, -73.9731),
    ("The Hugh", 40.7589, -73.9851),
    ("SHIPYARD", 40.7484, -74.0047),
)


class LocationResolver(ABC):
    """Turns a free-form location string into a coordinate."""

    @abstractmethod
    def resolve(self, address: Optional[str]) -> LocationCoordinate:
        """Always returns a coordinate; the address is carried through unchanged."""

    def starting_point(self) -> LocationCoordinate:
        """Origin used when the caller supplies no starting location."""
        return LocationCoordinate(
            latitude=DEFAULT_LATITUDE,
            longitude=DEFAULT_LONGITUDE,
            address=STARTING_POINT_ADDRESS,
        )


class LandmarkLocationResolver(LocationResolver):
    """Hard-coded landmark table with a fixed default point."""

    def __init__(
        self,
        landmarks: Sequence[Tuple[str, float, float]] = LANDMARKS,
        default: Tuple[float, float] = (DEFAULT_LATITUDE, DEFAULT_LONGITUDE),
    ):
        self.landmarks = tuple(landmarks)
        self.default = default

    def resolve(self, address: Optional[str]) -> LocationCoordinate:
        if address:
            for name, latitude, longitude in self.landmarks:
                if name in address:
                    return LocationCoordinate(latitude=latitude, longitude=longitude, address=address)
        latitude, longitude = self.default
        return LocationCoordinate(latitude=latitude, longitude=longitude, address=address)

    def starting_point(self) -> LocationCoordinate:
        latitude, longitude = self.default
        return LocationCoordinate(latitude=latitude, longitude=longitude, address=STARTING_POINT_ADDRESS)


def google_maps_url(coordinate: LocationCoordinate) -> str:
    return f"https://maps.google.com/?q={coordinate.latitude},{coordinate.longitude}"


def apple_maps_url(coordinate: LocationCoordinate) -> str:
    return f"http://maps.apple.com/?q={coordinate.latitude},{coordinate.longitude}"


def google_maps_search_url(address: str) -> str:
    """Search link for an address that has no trustworthy coordinate."""
    return f"https://maps.google.com/?q={quote(address)}"
