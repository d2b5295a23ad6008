"""Static rail network catalog: lines, their ordered stations, and the
cross-line relations between stations that share a physical location.

Relations are id-based (``interchangeStations`` / ``connectingStations``)
and resolved through the catalog, so a station never holds another
station object.
"""

import json
import logging
import os
from typing import Iterable, Optional

from pydantic import ValidationError

from klroute.lines import is_line_code
from klroute.models import Line, Station

logger = logging.getLogger("klroute.catalog")

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
DEFAULT_CATALOG_PATH = os.path.join(DATA_DIR, "rapidkl_lines.json")

_catalog = None


class CatalogError(ValueError):
    """Raised when catalog data is malformed or inconsistent."""


class StationCatalog:
    """Immutable lookup structure over a list of lines."""

    def __init__(self, lines: Iterable[Line]):
        self._lines: tuple[Line, ...] = tuple(lines)
        self._lines_by_id: dict[str, Line] = {}
        self._stations_by_id: dict[str, Station] = {}
        self._line_by_station: dict[str, Line] = {}
        self._sibling_cache: dict[tuple[str, Optional[str]], str] = {}

        for line in self._lines:
            if not is_line_code(line.id):
                raise CatalogError(f"Unknown line code '{line.id}'")
            if line.id in self._lines_by_id:
                raise CatalogError(f"Duplicate line '{line.id}'")
            self._lines_by_id[line.id] = line
            for station in line.stations:
                if station.id in self._stations_by_id:
                    raise CatalogError(f"Duplicate station id '{station.id}'")
                self._stations_by_id[station.id] = station
                self._line_by_station[station.id] = line

    @property
    def lines(self) -> tuple[Line, ...]:
        return self._lines

    def stations(self) -> list[Station]:
        """All stations in catalog order (line order, then station order)."""
        return [station for line in self._lines for station in line.stations]

    def station_by_id(self, station_id: Optional[str]) -> Optional[Station]:
        if not station_id:
            return None
        return self._stations_by_id.get(station_id)

    def line_by_id(self, line_id: Optional[str]) -> Optional[Line]:
        if not line_id:
            return None
        return self._lines_by_id.get(line_id)

    def line_for_station(self, station_id: Optional[str]) -> Optional[Line]:
        if not station_id:
            return None
        return self._line_by_station.get(station_id)

    def interchanges_of(self, station: Station) -> list[Station]:
        """Sibling stations on other lines; ids missing from the catalog are skipped."""
        return [s for s in map(self.station_by_id, station.interchange_stations) if s]

    def connections_of(self, station: Station) -> list[Station]:
        return [s for s in map(self.station_by_id, station.connecting_stations) if s]

    def station_id_for_line(self, station: Station, line_code: Optional[str]) -> str:
        """Pick the id, among the station and its interchange siblings, owned by ``line_code``.

        Falls back to the station's own id when no line is given or none matches.
        """
        key = (station.id, line_code)
        cached = self._sibling_cache.get(key)
        if cached is not None:
            return cached

        result = station.id
        if line_code:
            for candidate in (station.id, *station.interchange_stations):
                owner = self.line_for_station(candidate)
                if owner is not None and owner.id == line_code:
                    result = candidate
                    break

        self._sibling_cache[key] = result
        return result

    def __len__(self) -> int:
        return len(self._stations_by_id)


def load_catalog(path: str) -> StationCatalog:
    """Load a catalog from a JSON file of the form ``{"lines": [...]}``."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e

    raw_lines = raw.get("lines") if isinstance(raw, dict) else raw
    if not isinstance(raw_lines, list):
        raise CatalogError(f"Catalog {path} has no 'lines' list")

    try:
        lines = [Line.model_validate(entry) for entry in raw_lines]
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog {path}: {e}") from e

    catalog = StationCatalog(lines)
    logger.info(f"Catalog loaded from {path}: {len(catalog.lines)} lines, {len(catalog)} stations")
    return catalog


def get_catalog() -> StationCatalog:
    """Default catalog, read once from ``CATALOG_PATH`` or the bundled data file."""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog(os.getenv("CATALOG_PATH", DEFAULT_CATALOG_PATH))
    return _catalog
