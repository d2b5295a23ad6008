"""Resolve which RapidKL line a leg rides.

Two sources, most reliable first: the line prefix of a catalog station
code embedded in a stop id ("my-rail-kl_KG16" -> KG), then a substring
test over the route short name. The substring test is a heuristic and
accepts false positives (any route name containing "KG" reads as the
Kajang line); it sits behind ``RouteNameClassifier`` so a stricter
classifier can be passed in without touching callers.
"""

import re
from typing import Callable, Optional

from klroute.lines import LINE_CODES, LINE_KEYWORDS, is_line_code
from klroute.station_matcher import extract_station_code

RouteNameClassifier = Callable[[str], Optional[str]]

_LINE_PREFIX_RE = re.compile(r"^([A-Z]+)")


def line_code_from_stop_id(stop_id: Optional[str]) -> Optional[str]:
    code = extract_station_code(stop_id)
    if not code:
        return None
    m = _LINE_PREFIX_RE.match(code)
    if m and is_line_code(m.group(1)):
        return m.group(1)
    return None


def classify_route_name(route_short_name: str) -> Optional[str]:
    """First line whose code or keyword occurs in the uppercased route name."""
    text = route_short_name.upper()
    for code in LINE_CODES:
        if code in text or LINE_KEYWORDS[code] in text:
            return code
    return None


class LineIdentifier:
    def __init__(self, classifier: RouteNameClassifier = classify_route_name):
        self.classifier = classifier

    def identify(
        self,
        route_short_name: Optional[str] = None,
        station_stop_id: Optional[str] = None,
    ) -> Optional[str]:
        code = line_code_from_stop_id(station_stop_id)
        if code:
            return code
        if route_short_name:
            return self.classifier(route_short_name)
        return None


_default_identifier = LineIdentifier()


def identify_line(route_short_name: Optional[str] = None, station_stop_id: Optional[str] = None) -> Optional[str]:
    return _default_identifier.identify(route_short_name, station_stop_id)
