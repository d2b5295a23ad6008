"""Turn a filtered leg sequence into rider-facing display segments.

Each segment knows how it relates to its neighbours (continues from the
previous leg, is an interchange, is the last step), which headers the
renderer should draw, and which line identity (code, icon, color) to show,
including the correct sibling station code at multi-line interchanges.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from klroute.catalog import StationCatalog
from klroute.leg_filter import LegFilter
from klroute.line_identifier import LineIdentifier
from klroute.lines import (
    ARRIVAL_COLOR,
    LineStyle,
    line_color,
    style_for_line,
    style_for_mode,
)
from klroute.models import (
    DisplaySegment,
    EndpointLabel,
    InterchangeKind,
    Itinerary,
    ItinerarySummary,
    Leg,
    LegMode,
    Location,
    Place,
    StationBadge,
    TransitLegSummary,
)
from klroute.station_matcher import StationMatcher, coords_match, places_match

logger = logging.getLogger("klroute.itinerary_display")

UNKNOWN_PLACE = "Unknown"

# The arrival step is skipped only when the last leg ends on the destination point itself
DESTINATION_EPSILON = 1e-6


def format_duration(seconds: float) -> str:
    """3900 -> "1h 5m", 540 -> "9m"."""
    total = int(seconds or 0)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def parse_iso_time(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def format_time(value: Optional[str]) -> str:
    """ISO-8601 timestamp -> "08:05 AM" in the timestamp's own offset."""
    if not value:
        return ""
    try:
        return parse_iso_time(value).strftime("%I:%M %p")
    except ValueError:
        return value


def _classify_interchange(leg: Leg, prev_leg: Optional[Leg], next_leg: Optional[Leg]) -> InterchangeKind:
    if leg.is_walk:
        if (
            prev_leg is not None
            and next_leg is not None
            and not prev_leg.is_walk
            and not next_leg.is_walk
            and prev_leg.route_short_name
            and next_leg.route_short_name
            and prev_leg.route_short_name != next_leg.route_short_name
        ):
            return InterchangeKind.WALKING
        return InterchangeKind.NONE

    if (
        prev_leg is not None
        and not prev_leg.is_walk
        and prev_leg.route_short_name
        and leg.route_short_name
        and prev_leg.route_short_name != leg.route_short_name
    ):
        return InterchangeKind.TRANSIT
    return InterchangeKind.NONE


class ItineraryDisplayBuilder:
    def __init__(
        self,
        catalog: StationCatalog,
        matcher: Optional[StationMatcher] = None,
        identifier: Optional[LineIdentifier] = None,
    ):
        self.catalog = catalog
        self.matcher = matcher or StationMatcher(catalog)
        self.identifier = identifier or LineIdentifier()

    # --- line identity ---

    def leg_style(self, leg: Leg) -> LineStyle:
        """Icon/color for a ridden leg, falling back to a generic style by mode."""
        stop_id = (leg.to.stop_id if leg.to else None) or (leg.from_.stop_id if leg.from_ else None)
        line_id = self.identifier.identify(leg.route_short_name, stop_id)
        if line_id:
            return style_for_line(line_id)
        return style_for_mode(leg.mode)

    def station_badge(self, place: Optional[Place], route_short_name: Optional[str]) -> Optional[StationBadge]:
        """Badge for the line actually ridden at ``place``, if it is a catalog station."""
        station = self.matcher.match_place(place)
        if station is None:
            return None
        line_id = self.identifier.identify(route_short_name, place.stop_id)
        station_id = self.catalog.station_id_for_line(station, line_id)
        owner = self.catalog.line_for_station(station_id)
        if owner is None:
            return None
        return StationBadge(station_id=station_id, line_id=owner.id, color=line_color(owner.id))

    # --- segments ---

    def build(
        self,
        filtered_legs: Sequence[Leg],
        original_last_leg: Optional[Leg] = None,
        was_last_leg_filtered: bool = False,
        destination: Optional[Location] = None,
        itinerary_end_time: Optional[str] = None,
    ) -> list[DisplaySegment]:
        segments = []
        last_idx = len(filtered_legs) - 1
        arrival_needed = destination is not None and self._needs_arrival(
            filtered_legs, was_last_leg_filtered, destination
        )

        for idx, leg in enumerate(filtered_legs):
            prev_leg = filtered_legs[idx - 1] if idx > 0 else None
            next_leg = filtered_legs[idx + 1] if idx < last_idx else None
            # An interchange card already names the station this ride leaves from
            header_shown = (
                bool(segments)
                and segments[-1].interchange == InterchangeKind.WALKING
                and places_match(filtered_legs[idx - 2].to, leg.from_)
            )
            segments.append(
                self._leg_segment(idx, leg, prev_leg, next_leg, destination, arrival_needed, header_shown)
            )

        if arrival_needed:
            segments.append(
                self._arrival_segment(
                    len(segments), filtered_legs, original_last_leg, destination, itinerary_end_time
                )
            )
        return segments

    def _needs_arrival(self, filtered_legs: Sequence[Leg], was_last_leg_filtered: bool, destination: Location) -> bool:
        if not filtered_legs or was_last_leg_filtered:
            return True
        last_to = filtered_legs[-1].to
        if last_to is None:
            return True
        return not (
            abs((last_to.lat or 0.0) - destination.lat) < DESTINATION_EPSILON
            and abs((last_to.lon or 0.0) - destination.lng) < DESTINATION_EPSILON
        )

    def _leg_segment(
        self,
        idx: int,
        leg: Leg,
        prev_leg: Optional[Leg],
        next_leg: Optional[Leg],
        destination: Optional[Location],
        arrival_follows: bool,
        header_shown: bool = False,
    ) -> DisplaySegment:
        same_as_next = next_leg is not None and places_match(leg.to, next_leg.from_)
        same_as_prev = prev_leg is not None and places_match(leg.from_, prev_leg.to)
        prev_to_was_hidden = (
            same_as_prev and next_leg is not None and places_match(prev_leg.to, next_leg.from_)
        )

        interchange = _classify_interchange(leg, prev_leg, next_leg)
        walking_interchange = interchange == InterchangeKind.WALKING

        if walking_interchange:
            style = self.leg_style(next_leg)
        elif leg.is_walk:
            style = style_for_mode(LegMode.WALK.value)
        else:
            style = self.leg_style(leg)

        # At a walking interchange the header names the station the previous ride arrived at
        header_place = prev_leg.to if walking_interchange and prev_leg.to is not None else leg.from_
        header_route = prev_leg.route_short_name if walking_interchange else leg.route_short_name
        header_text = (header_place.name if header_place else None) or UNKNOWN_PLACE
        if header_place is None or (leg.is_walk and not walking_interchange and not header_place.stop_id):
            from_badge = None
        else:
            from_badge = self.station_badge(header_place, header_route)

        to_label = None
        if leg.to is not None:
            to_label = EndpointLabel(
                text=leg.to.name or UNKNOWN_PLACE,
                station_badge=self.station_badge(leg.to, leg.route_short_name),
            )

        # The destination is named once: by the arrival segment when there is one
        reaches_destination = (
            arrival_follows
            and destination is not None
            and leg.to is not None
            and coords_match(leg.to.lat, leg.to.lon, destination.lat, destination.lng)
        )
        is_last = next_leg is None

        departure_time = prev_leg.end_time if walking_interchange and prev_leg.end_time else leg.start_time

        return DisplaySegment(
            index=idx,
            source_leg=leg,
            is_walking=leg.is_walk,
            interchange=interchange,
            resolved_line_id=style.line_id,
            line_name=style.line_name,
            icon=style.icon,
            color=style.color,
            instruction=self._instruction(leg, next_leg, walking_interchange, style),
            headsign=None if leg.is_walk else leg.headsign,
            from_label=EndpointLabel(text=header_text, station_badge=from_badge),
            to_label=to_label,
            departure_time=departure_time,
            arrival_time=leg.end_time,
            intermediate_stops=[stop.name for stop in leg.intermediate_stops],
            show_from_header=(
                (idx == 0 or same_as_prev or prev_to_was_hidden or walking_interchange) and not header_shown
            ),
            show_to_header=not same_as_next and not reaches_destination,
            continues_from_previous=same_as_prev,
            show_connector=not is_last or arrival_follows,
            is_final=is_last and not arrival_follows,
        )

    def _instruction(self, leg: Leg, next_leg: Optional[Leg], walking_interchange: bool, style: LineStyle) -> str:
        if walking_interchange:
            target = style.line_name or (next_leg.to.name if next_leg.to else None)
            return f"Interchange to {target}" if target else "Interchange"
        if leg.is_walk:
            return f"Walk {format_duration(leg.duration)}"
        ride = style.line_name or leg.route_short_name or leg.mode.title()
        if leg.headsign:
            return f"{ride} towards {leg.headsign}"
        return ride

    def _arrival_segment(
        self,
        idx: int,
        filtered_legs: Sequence[Leg],
        original_last_leg: Optional[Leg],
        destination: Location,
        end_time: Optional[str],
    ) -> DisplaySegment:
        last_filtered = filtered_legs[-1] if filtered_legs else None
        name = (
            destination.name
            or (original_last_leg.to.name if original_last_leg and original_last_leg.to else None)
            or (last_filtered.to.name if last_filtered and last_filtered.to else None)
            or UNKNOWN_PLACE
        )

        station = self.matcher.match(destination.lat, destination.lng, name)
        owner = self.catalog.line_for_station(station.id) if station else None
        if owner is not None:
            style = style_for_line(owner.id)
            badge = StationBadge(station_id=station.id, line_id=owner.id, color=line_color(owner.id))
        else:
            style = LineStyle(icon="pin", color=ARRIVAL_COLOR)
            badge = None

        return DisplaySegment(
            index=idx,
            is_arrival=True,
            resolved_line_id=style.line_id,
            line_name=style.line_name,
            icon=style.icon,
            color=style.color,
            instruction=f"Arrive at {name}",
            from_label=EndpointLabel(text=name, station_badge=badge),
            arrival_time=end_time,
            show_from_header=True,
            is_final=True,
        )


def build_display(
    itinerary: Itinerary,
    destination: Optional[Location],
    catalog: StationCatalog,
    identifier: Optional[LineIdentifier] = None,
) -> list[DisplaySegment]:
    """Filter an itinerary's legs and build its display segments."""
    matcher = StationMatcher(catalog)
    result = LegFilter(matcher).filter(itinerary.legs)
    logger.debug(f"Kept {len(result.legs)} of {len(itinerary.legs)} legs")

    builder = ItineraryDisplayBuilder(catalog, matcher=matcher, identifier=identifier)
    return builder.build(
        result.legs,
        original_last_leg=itinerary.legs[-1] if itinerary.legs else None,
        was_last_leg_filtered=result.was_last_leg_filtered,
        destination=destination,
        itinerary_end_time=itinerary.end_time,
    )


def summarize_itinerary(itinerary: Itinerary, index: int = 0, identifier: Optional[LineIdentifier] = None) -> ItinerarySummary:
    """Condensed view of an itinerary for a results list."""
    identifier = identifier or LineIdentifier()
    transit_legs = []
    for leg in itinerary.legs:
        if leg.is_walk:
            continue
        stop_id = (leg.to.stop_id if leg.to else None) or (leg.from_.stop_id if leg.from_ else None)
        line_id = identifier.identify(leg.route_short_name, stop_id)
        transit_legs.append(TransitLegSummary(
            mode=leg.mode,
            route_short_name=leg.route_short_name,
            line_id=line_id,
            color=line_color(line_id) if line_id else style_for_mode(leg.mode).color,
        ))

    return ItinerarySummary(
        index=index,
        start_time=itinerary.start_time,
        end_time=itinerary.end_time,
        duration=itinerary.duration,
        duration_text=format_duration(itinerary.duration),
        transfers=itinerary.transfers,
        transit_legs=transit_legs,
        walk_count=sum(1 for leg in itinerary.legs if leg.is_walk),
    )
