"""Rank geocoder candidates so catalog stations come first."""

from typing import Optional, Sequence

from klroute.catalog import StationCatalog
from klroute.lines import line_color
from klroute.models import GeocodeMatch, GeocodeSuggestion, Station
from klroute.station_matcher import StationMatcher

MIN_QUERY_LENGTH = 2


def is_searchable(text: Optional[str]) -> bool:
    return bool(text) and len(text.strip()) >= MIN_QUERY_LENGTH


def rank_geocode_matches(matches: Sequence[GeocodeMatch], catalog: StationCatalog) -> list[GeocodeSuggestion]:
    """One candidate per station (a STOP-typed one preferred), stations first.

    Within each group STOP candidates lead; the order is otherwise stable.
    """
    matcher = StationMatcher(catalog)
    by_station: dict[str, tuple[GeocodeMatch, Station]] = {}
    others: list[GeocodeMatch] = []

    for match in matches:
        station = matcher.match(match.lat, match.lon, match.name)
        if station is None:
            others.append(match)
            continue
        existing = by_station.get(station.id)
        if existing is None or (match.type == "STOP" and existing[0].type != "STOP"):
            by_station[station.id] = (match, station)

    stations = sorted(by_station.values(), key=lambda pair: pair[0].type != "STOP")
    others = sorted(others, key=lambda m: m.type != "STOP")

    suggestions = []
    for match, station in stations:
        line = catalog.line_for_station(station.id)
        suggestions.append(GeocodeSuggestion(
            name=match.name,
            lat=match.lat,
            lng=match.lon,
            type=match.type,
            station_id=station.id,
            line_id=line.id if line else None,
            color=line_color(line.id) if line else None,
        ))
    for match in others:
        suggestions.append(GeocodeSuggestion(name=match.name, lat=match.lat, lng=match.lon, type=match.type))
    return suggestions
