from scheduleshare.event_models import LocationCoordinate
from scheduleshare.location_resolver import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    LandmarkLocationResolver,
    apple_maps_url,
    google_maps_search_url,
    google_maps_url,
)


def test_known_landmark():
    coordinate = LandmarkLocationResolver().resolve("Picnic at Sheep Meadow, Central Park")
    assert (coordinate.latitude, coordinate.longitude) == (40.7645, -73.9731)
    assert coordinate.address == "Picnic at Sheep Meadow, Central Park"


def test_unknown_and_missing_use_default():
    resolver = LandmarkLocationResolver()
    for address in ("Somewhere in Queens", None, ""):
        coordinate = resolver.resolve(address)
        assert (coordinate.latitude, coordinate.longitude) == (DEFAULT_LATITUDE, DEFAULT_LONGITUDE)


def test_match_is_case_sensitive():
    coordinate = LandmarkLocationResolver().resolve("the shipyard")
    assert coordinate.latitude == DEFAULT_LATITUDE


def test_custom_table_and_default():
    resolver = LandmarkLocationResolver(landmarks=[("Big Ben", 51.5007, -0.1246)], default=(51.5072, -0.1276))
    assert resolver.resolve("Meet at Big Ben").latitude == 51.5007
    assert resolver.starting_point() == LocationCoordinate(51.5072, -0.1276, "Starting Point")


def test_map_links():
    coordinate = LocationCoordinate(40.7308, -73.9976)
    assert google_maps_url(coordinate) == "https://maps.google.com/?q=40.7308,-73.9976"
    assert apple_maps_url(coordinate) == "http://maps.apple.com/?q=40.7308,-73.9976"
    assert google_maps_search_url("The Hugh, NYC") == "https://maps.google.com/?q=The%20Hugh%2C%20NYC"
