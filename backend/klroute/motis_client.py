"""MOTIS (Transitous) client for itinerary planning and geocoding."""

import logging
import os
from datetime import datetime
from typing import Optional

import httpx
from pydantic import ValidationError

from klroute.geocode_ranking import is_searchable
from klroute.models import GeocodeMatch, Location, PlanResponse

logger = logging.getLogger("klroute.motis")

MOTIS_BASE_URL = None

# Feed prefix for catalog station ids in MOTIS stop ids
STOP_ID_PREFIX = "my-rail-kl_"

_PLAN_QUERY = {
    "arriveBy": "false",
    "detailedTransfers": "false",
    "transitModes": "WALK,BUS,RAIL",
    "fastestDirectFactor": "1.5",
    "joinInterlinedLegs": "false",
    "maxMatchingDistance": "250",
}


class MotisError(Exception):
    """Raised when the MOTIS API fails or returns an unusable answer."""


def _get_motis_url() -> str:
    global MOTIS_BASE_URL
    if MOTIS_BASE_URL is None:
        MOTIS_BASE_URL = os.getenv("MOTIS_BASE_URL", "https://api.transitous.org")
    return MOTIS_BASE_URL


def _get_timeout() -> float:
    return float(os.getenv("MOTIS_TIMEOUT", "10"))


def to_place_param(location: Location) -> str:
    """Station id when known (exact stop), otherwise "lat,lng"."""
    if location.id:
        return f"{STOP_ID_PREFIX}{location.id}"
    return f"{location.lat},{location.lng}"


async def _get(path: str, params: dict, http_client: Optional[httpx.AsyncClient]) -> httpx.Response:
    url = f"{_get_motis_url()}{path}"
    if http_client:
        resp = await http_client.get(url, params=params, timeout=_get_timeout())
    else:
        async with httpx.AsyncClient(timeout=_get_timeout()) as client:
            resp = await client.get(url, params=params)
    resp.raise_for_status()
    return resp


async def plan(
    origin: Location,
    destination: Location,
    start_time: Optional[datetime] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> PlanResponse:
    """Query MOTIS for itineraries between two locations."""
    params = dict(_PLAN_QUERY)
    params["fromPlace"] = to_place_param(origin)
    params["toPlace"] = to_place_param(destination)
    if start_time:
        params["time"] = start_time.isoformat()

    try:
        resp = await _get("/api/v1/plan", params, http_client)
        return PlanResponse.model_validate(resp.json())
    except httpx.TimeoutException as e:
        raise MotisError("MOTIS plan request timed out") from e
    except httpx.HTTPStatusError as e:
        raise MotisError(f"MOTIS API error: {e.response.status_code} {e.response.text[:200]}") from e
    except (httpx.HTTPError, ValueError, ValidationError) as e:
        raise MotisError(f"Failed to fetch routes from MOTIS API: {e}") from e


async def plan_with_retry(
    origin: Location,
    destination: Location,
    start_time: Optional[datetime] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> PlanResponse:
    """``plan`` retried once on failure."""
    try:
        return await plan(origin, destination, start_time, http_client)
    except MotisError as e:
        logger.warning(f"MOTIS plan failed, retrying once: {e}")
    return await plan(origin, destination, start_time, http_client)


async def geocode(text: str, http_client: Optional[httpx.AsyncClient] = None) -> list[GeocodeMatch]:
    """Free-text place lookup. Errors are logged and give no candidates."""
    if not is_searchable(text):
        return []

    try:
        resp = await _get("/api/v1/geocode", {"text": text.strip()}, http_client)
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Geocoding error: {e}")
        return []

    matches = []
    for raw in data or []:
        try:
            matches.append(GeocodeMatch.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"Skipping geocode candidate: {e}")
    return matches
