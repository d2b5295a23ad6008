"""Resolve routing-engine leg endpoints to catalog stations."""

from typing import Optional

from klroute.catalog import StationCatalog
from klroute.models import Place, Station

# ~111 m; two points are "the same place" when both axes differ by strictly less
COORD_TOLERANCE = 0.001


def extract_station_code(stop_id: Optional[str]) -> Optional[str]:
    """Local station code from a provider-qualified stop id.

    "my-rail-kl_PY05" -> "PY05". Ids without an underscore suffix yield None.
    """
    if not stop_id:
        return None
    parts = stop_id.split("_")
    if len(parts) > 1:
        return parts[-1] or None
    return None


def _within_tolerance(a: float, b: float) -> bool:
    # Rounded so float noise cannot turn an exact 0.001 step into a match
    return round(abs(a - b), 9) < COORD_TOLERANCE


def coords_match(
    lat1: Optional[float],
    lon1: Optional[float],
    lat2: Optional[float],
    lon2: Optional[float],
) -> bool:
    """Tolerance comparison; missing coordinates count as 0."""
    return _within_tolerance(lat1 or 0.0, lat2 or 0.0) and _within_tolerance(lon1 or 0.0, lon2 or 0.0)


def places_match(a: Optional[Place], b: Optional[Place]) -> bool:
    if a is None or b is None:
        return False
    return coords_match(a.lat, a.lon, b.lat, b.lon)


class StationMatcher:
    """Matches endpoints by stop id, then coordinates, then exact name."""

    def __init__(self, catalog: StationCatalog):
        self.catalog = catalog

    def match(
        self,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        name: Optional[str] = None,
        stop_id: Optional[str] = None,
    ) -> Optional[Station]:
        code = extract_station_code(stop_id)
        if code:
            station = self.catalog.station_by_id(code)
            if station is not None:
                return station

        if lat is not None and lon is not None:
            for station in self.catalog.stations():
                if _within_tolerance(station.lat, lat) and _within_tolerance(station.lng, lon):
                    return station

        if name:
            wanted = name.lower()
            for station in self.catalog.stations():
                if station.name.lower() == wanted:
                    return station

        return None

    def match_place(self, place: Optional[Place], use_stop_id: bool = True) -> Optional[Station]:
        if place is None:
            return None
        return self.match(place.lat, place.lon, place.name, place.stop_id if use_stop_id else None)
