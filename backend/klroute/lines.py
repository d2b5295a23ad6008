"""RapidKL line taxonomy: codes, brand colors, icons and display names.

Icon assets are served by the web front end from https://myrapid.com.my
artwork; this module only hands out their paths.
"""

from dataclasses import dataclass
from typing import Optional

from klroute.models import LegMode

# Fixed line-code set, in the order route names are tested against it
LINE_CODES = ("AG", "SP", "KJ", "MR", "KG", "PY")

LINE_KEYWORDS = {
    "AG": "AMPANG",
    "SP": "SRI PETALING",
    "KJ": "KELANA",
    "MR": "MONORAIL",
    "KG": "KAJANG",
    "PY": "PUTRAJAYA",
}

LINE_COLORS = {
    "AG": "#FF8E10",  # Ampang Line - Orange
    "SP": "#8D0C06",  # Sri Petaling Line - Dark Red
    "KJ": "#ED0F4C",  # Kelana Jaya Line - Magenta
    "MR": "#81BC00",  # KL Monorail - Green
    "KG": "#008640",  # Kajang Line - Dark Green
    "PY": "#FBCD20",  # Putrajaya Line - Yellow
}

LINE_ICONS = {
    "AG": "/icons/rapidkl/icon_line_ampang.png",
    "SP": "/icons/rapidkl/icon_line_sri-petaling.png",
    "KJ": "/icons/rapidkl/icon_line_kelana-jaya.png",
    "MR": "/icons/rapidkl/icon_line_kl-monorail.png",
    "KG": "/icons/rapidkl/icon_line_kajang-01.png",
    "PY": "/icons/rapidkl/icon_line_putrajaya-01.png",
}

LINE_DISPLAY_NAMES = {
    "AG": "LRT Ampang",
    "SP": "LRT Sri Petaling",
    "KJ": "LRT Kelana Jaya",
    "MR": "KL Monorail",
    "KG": "MRT Kajang",
    "PY": "MRT Putrajaya",
}

STATION_ICONS = {
    "interchange": "/icons/rapidkl/icon_interchange-station.png",
    "connecting": "/icons/rapidkl/icon_connecting-station.png",
}

_DEFAULT_LINE = "AG"

WALK_COLOR = "#6B7280"
BUS_COLOR = "#10b981"
RAIL_COLOR = "#5995d8"
ARRIVAL_COLOR = "#60A5FA"


@dataclass(frozen=True)
class LineStyle:
    """Icon and color for one displayed segment."""
    icon: str
    color: str
    line_id: Optional[str] = None
    line_name: Optional[str] = None


def is_line_code(code: Optional[str]) -> bool:
    return code in LINE_COLORS


def line_color(line_id: str) -> str:
    return LINE_COLORS.get(line_id, LINE_COLORS[_DEFAULT_LINE])


def line_icon_url(line_id: str) -> str:
    return LINE_ICONS.get(line_id, LINE_ICONS[_DEFAULT_LINE])


def line_display_name(line_id: str) -> str:
    return LINE_DISPLAY_NAMES.get(line_id, LINE_DISPLAY_NAMES[_DEFAULT_LINE])


def style_for_line(line_id: str) -> LineStyle:
    return LineStyle(
        icon=line_icon_url(line_id),
        color=line_color(line_id),
        line_id=line_id,
        line_name=line_display_name(line_id),
    )


def style_for_mode(mode: str) -> LineStyle:
    """Generic style for a leg whose line could not be identified."""
    if mode == LegMode.WALK.value:
        return LineStyle(icon="walk", color=WALK_COLOR)
    if mode == LegMode.BUS.value:
        return LineStyle(icon="bus", color=BUS_COLOR)
    return LineStyle(icon="rail", color=RAIL_COLOR)
