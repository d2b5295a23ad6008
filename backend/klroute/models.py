from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LegMode(str, Enum):
    WALK = "WALK"
    BUS = "BUS"
    RAIL = "RAIL"


class InterchangeKind(str, Enum):
    NONE = "none"
    WALKING = "walking-interchange"
    TRANSIT = "transit-interchange"


class WireModel(BaseModel):
    """Base for shapes received from the routing engine (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Routing engine input ---


class Place(WireModel):
    lat: Optional[float] = None
    lon: Optional[float] = None
    name: Optional[str] = None
    stop_id: Optional[str] = Field(None, alias="stopId")


class IntermediateStop(WireModel):
    name: str = ""


class Leg(WireModel):
    mode: str  # WALK, BUS or RAIL
    from_: Optional[Place] = Field(None, alias="from")
    to: Optional[Place] = None
    duration: float = 0  # seconds
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    route_short_name: Optional[str] = Field(None, alias="routeShortName")
    headsign: Optional[str] = None
    intermediate_stops: list[IntermediateStop] = Field(default_factory=list, alias="intermediateStops")

    @property
    def is_walk(self) -> bool:
        return self.mode == LegMode.WALK.value


class Itinerary(WireModel):
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    duration: float = 0
    transfers: Optional[int] = None
    legs: list[Leg] = Field(default_factory=list)


class PlanResponse(WireModel):
    itineraries: list[Itinerary] = Field(default_factory=list)


class GeocodeMatch(WireModel):
    type: str = ""  # "STOP", "ADDRESS", "PLACE"
    name: str = ""
    id: Optional[str] = None
    lat: float
    lon: float


class Location(BaseModel):
    """A trip endpoint chosen by the user."""
    lat: float
    lng: float
    name: Optional[str] = None
    id: Optional[str] = None  # catalog station id, e.g. "PY05"


# --- Station catalog ---


class Station(WireModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    name: str
    lat: float
    lng: float
    interchange_stations: tuple[str, ...] = Field(default=(), alias="interchangeStations")
    connecting_stations: tuple[str, ...] = Field(default=(), alias="connectingStations")


class Line(WireModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str  # one of lines.LINE_CODES
    name: str
    type: str = ""  # "LRT", "MRT", "Monorail"
    color: str = ""
    stations: tuple[Station, ...] = ()


# --- Display output ---


class StationBadge(BaseModel):
    station_id: str
    line_id: str
    color: str


class EndpointLabel(BaseModel):
    text: str
    station_badge: Optional[StationBadge] = None


class DisplaySegment(BaseModel):
    index: int
    source_leg: Optional[Leg] = None  # None for the arrival segment
    is_walking: bool = False
    is_arrival: bool = False
    interchange: InterchangeKind = InterchangeKind.NONE
    resolved_line_id: Optional[str] = None
    line_name: Optional[str] = None
    icon: str = ""  # line icon URL or a generic marker: "walk", "bus", "rail", "pin"
    color: str = ""
    instruction: str = ""
    headsign: Optional[str] = None
    from_label: EndpointLabel
    to_label: Optional[EndpointLabel] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    intermediate_stops: list[str] = Field(default_factory=list)
    show_from_header: bool = False
    show_to_header: bool = False
    continues_from_previous: bool = False
    show_connector: bool = False
    is_final: bool = False

    @property
    def is_interchange(self) -> bool:
        return self.interchange != InterchangeKind.NONE


class TransitLegSummary(BaseModel):
    mode: str
    route_short_name: Optional[str] = None
    line_id: Optional[str] = None
    color: str


class ItinerarySummary(BaseModel):
    index: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: float = 0
    duration_text: str = ""
    transfers: Optional[int] = None
    transit_legs: list[TransitLegSummary] = Field(default_factory=list)
    walk_count: int = 0


# --- HTTP surface ---


class RouteSearchRequest(BaseModel):
    origin: Location
    destination: Location
    departure_time: Optional[str] = None  # ISO-8601


class RouteSearchResponse(BaseModel):
    routes: list[ItinerarySummary]
    origin: Location
    destination: Location


class RouteDetailResponse(BaseModel):
    summary: ItinerarySummary
    segments: list[DisplaySegment]


class LineSummary(BaseModel):
    id: str
    name: str
    type: str
    color: str
    icon: str
    station_count: int


class StationLink(BaseModel):
    id: str
    line_id: str
    color: str


class LineStationView(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    interchanges: list[StationLink] = Field(default_factory=list)
    connections: list[StationLink] = Field(default_factory=list)


class LineDetailResponse(BaseModel):
    id: str
    name: str
    type: str
    color: str
    icon: str
    stations: list[LineStationView]


class GeocodeSuggestion(BaseModel):
    name: str
    lat: float
    lng: float
    type: str = ""
    station_id: Optional[str] = None
    line_id: Optional[str] = None
    color: Optional[str] = None


class GeocodeResponse(BaseModel):
    suggestions: list[GeocodeSuggestion]
