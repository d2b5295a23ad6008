import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from klroute import motis_client
from klroute.catalog import StationCatalog, get_catalog
from klroute.geocode_ranking import rank_geocode_matches
from klroute.itinerary_display import build_display, parse_iso_time, summarize_itinerary
from klroute.lines import line_color, line_icon_url
from klroute.models import (
    GeocodeResponse,
    LineDetailResponse,
    LineStationView,
    LineSummary,
    PlanResponse,
    RouteDetailResponse,
    RouteSearchRequest,
    RouteSearchResponse,
    Station,
    StationLink,
)

logger = logging.getLogger("klroute.routes")

router = APIRouter()


def _get_state():
    from klroute.main import app_state
    return app_state


def _get_catalog() -> StationCatalog:
    catalog = _get_state().get("catalog")
    return catalog if catalog is not None else get_catalog()


def _parse_departure(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_iso_time(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid departure_time '{value}'")


async def _fetch_plan(request: RouteSearchRequest) -> PlanResponse:
    state = _get_state()
    try:
        return await motis_client.plan_with_retry(
            origin=request.origin,
            destination=request.destination,
            start_time=_parse_departure(request.departure_time),
            http_client=state.get("http_client"),
        )
    except motis_client.MotisError as e:
        logger.error(f"Route search failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to load route")


def _links(catalog: StationCatalog, stations: list[Station]) -> list[StationLink]:
    links = []
    for station in stations:
        line = catalog.line_for_station(station.id)
        links.append(StationLink(id=station.id, line_id=line.id, color=line_color(line.id)))
    return links


@router.get("/health")
async def health():
    return {"status": "ok", "service": "klroute API"}


@router.get("/lines", response_model=list[LineSummary])
async def list_lines():
    """All rail lines in the catalog."""
    catalog = _get_catalog()
    return [
        LineSummary(
            id=line.id,
            name=line.name,
            type=line.type,
            color=line.color or line_color(line.id),
            icon=line_icon_url(line.id),
            station_count=len(line.stations),
        )
        for line in catalog.lines
    ]


@router.get("/lines/{line_id}", response_model=LineDetailResponse)
async def get_line(line_id: str):
    """Ordered stations of a line with their interchange and connecting stations."""
    catalog = _get_catalog()
    line = catalog.line_by_id(line_id.upper())
    if not line:
        raise HTTPException(status_code=404, detail=f"Line '{line_id}' not found")

    stations = [
        LineStationView(
            id=station.id,
            name=station.name,
            lat=station.lat,
            lng=station.lng,
            interchanges=_links(catalog, catalog.interchanges_of(station)),
            connections=_links(catalog, catalog.connections_of(station)),
        )
        for station in line.stations
    ]
    return LineDetailResponse(
        id=line.id,
        name=line.name,
        type=line.type,
        color=line.color or line_color(line.id),
        icon=line_icon_url(line.id),
        stations=stations,
    )


@router.get("/geocode", response_model=GeocodeResponse)
async def geocode(q: str = Query(..., description="Free-text place or station name")):
    """Geocoder candidates with catalog stations ranked first."""
    state = _get_state()
    matches = await motis_client.geocode(q, http_client=state.get("http_client"))
    return GeocodeResponse(suggestions=rank_geocode_matches(matches, _get_catalog()))


@router.post("/routes", response_model=RouteSearchResponse)
async def search_routes(request: RouteSearchRequest):
    """Itinerary options between origin and destination."""
    data = await _fetch_plan(request)
    return RouteSearchResponse(
        routes=[summarize_itinerary(itin, idx) for idx, itin in enumerate(data.itineraries)],
        origin=request.origin,
        destination=request.destination,
    )


@router.post("/routes/{index}", response_model=RouteDetailResponse)
async def get_route_detail(index: int, request: RouteSearchRequest):
    """Display-ready steps for one itinerary."""
    data = await _fetch_plan(request)
    if index < 0 or index >= len(data.itineraries):
        raise HTTPException(status_code=404, detail="Route not found")

    itinerary = data.itineraries[index]
    if not itinerary.legs:
        raise HTTPException(status_code=404, detail="Route not found")

    segments = build_display(itinerary, request.destination, _get_catalog())
    return RouteDetailResponse(summary=summarize_itinerary(itinerary, index), segments=segments)
