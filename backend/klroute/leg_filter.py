"""Drop routing-engine artifacts from an itinerary's leg sequence.

Only WALK legs are ever dropped. A walk is judged against its neighbours
in the sequence, so the decision for one leg needs lookahead to the next.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from klroute.models import Leg
from klroute.station_matcher import StationMatcher, coords_match, places_match

logger = logging.getLogger("klroute.leg_filter")

# Walks shorter than this between the same spot are station-internal hops
SHORT_WALK_SECONDS = 180


@dataclass
class FilterResult:
    legs: list[Leg]
    was_last_leg_filtered: bool


class LegFilter:
    def __init__(self, matcher: StationMatcher):
        self.matcher = matcher

    def filter(self, legs: Sequence[Leg]) -> FilterResult:
        """Filter until no further leg is dropped.

        Dropping a leg can change another walk's neighbours, so a single
        pass is repeated on its own output; the result is a fixed point and
        filtering it again returns it unchanged.
        """
        kept = list(legs)
        while True:
            passed = self._filter_pass(kept)
            if len(passed) == len(kept):
                break
            kept = passed

        last = legs[-1] if legs else None
        was_last_leg_filtered = (
            last is not None
            and last.is_walk
            and not any(leg is last for leg in kept)
        )
        return FilterResult(legs=kept, was_last_leg_filtered=was_last_leg_filtered)

    def _filter_pass(self, legs: list[Leg]) -> list[Leg]:
        kept = []
        for idx, leg in enumerate(legs):
            next_leg = legs[idx + 1] if idx + 1 < len(legs) else None
            if self._keep(leg, idx, next_leg):
                kept.append(leg)
            else:
                logger.debug(
                    f"Dropping walk #{idx} {_place_name(leg.from_)} -> {_place_name(leg.to)} ({leg.duration:.0f}s)"
                )
        return kept

    def _keep(self, leg: Leg, idx: int, next_leg: Optional[Leg]) -> bool:
        if not leg.is_walk:
            return True
        if leg.from_ is None or leg.to is None:
            return True

        if idx == 0 and self._is_station_exit(leg):
            return False

        # Walk to a named ride: interchange connector, or the walk to the first stop
        if next_leg is not None and not next_leg.is_walk and next_leg.route_short_name:
            return True

        if idx == 0 and next_leg is not None and next_leg.from_ is not None and places_match(leg.to, next_leg.from_):
            return False

        from_station = self.matcher.match_place(leg.from_)
        to_station = self.matcher.match_place(leg.to)
        same_station = from_station is not None and to_station is not None and from_station.id == to_station.id
        very_close = places_match(leg.from_, leg.to)

        if leg.duration < SHORT_WALK_SECONDS and (same_station or very_close):
            return False
        return True

    def _is_station_exit(self, leg: Leg) -> bool:
        """Zero-distance "walk out of the station" at the start of a trip."""
        origin = self.matcher.match_place(leg.from_)
        if origin is None or not coords_match(leg.from_.lat, leg.from_.lon, origin.lat, origin.lng):
            return False
        destination = self.matcher.match_place(leg.to)
        if destination is not None and destination.id == origin.id:
            return True
        return places_match(leg.from_, leg.to)


def _place_name(place) -> str:
    return (place.name if place else None) or "?"


def filter_legs(legs: Sequence[Leg], matcher: StationMatcher) -> FilterResult:
    return LegFilter(matcher).filter(legs)
