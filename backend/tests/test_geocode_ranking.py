from klroute.geocode_ranking import is_searchable, rank_geocode_matches
from klroute.lines import LINE_COLORS
from klroute.models import GeocodeMatch
from network_helpers import BRAVO, GOLF, HOME


def _match(name, coords, type="PLACE"):
    return GeocodeMatch(type=type, name=name, lat=coords[0], lon=coords[1])


def test_is_searchable():
    assert not is_searchable(None)
    assert not is_searchable("")
    assert not is_searchable(" a ")
    assert is_searchable("KL")


def test_stations_come_first(catalog):
    suggestions = rank_geocode_matches([
        _match("Jalan Home 3", HOME, "ADDRESS"),
        _match("Golf", GOLF, "STOP"),
    ], catalog)
    assert [s.name for s in suggestions] == ["Golf", "Jalan Home 3"]
    golf, street = suggestions
    assert (golf.station_id, golf.line_id, golf.color) == ("KG21", "KG", LINE_COLORS["KG"])
    assert street.station_id is None


def test_one_candidate_per_station_prefers_stop(catalog):
    suggestions = rank_geocode_matches([
        _match("Golf Mall", (GOLF[0] + 0.0002, GOLF[1]), "ADDRESS"),
        _match("Golf", GOLF, "STOP"),
        _match("Golf Exit A", (GOLF[0], GOLF[1] + 0.0003), "PLACE"),
    ], catalog)
    assert len(suggestions) == 1
    assert suggestions[0].name == "Golf"
    assert suggestions[0].type == "STOP"


def test_stop_candidates_lead_within_group(catalog):
    suggestions = rank_geocode_matches([
        _match("Bravo Plaza", BRAVO, "PLACE"),
        _match("Golf", GOLF, "STOP"),
        _match("Home Cafe", HOME, "PLACE"),
        _match("Far Stop", (1.0, 100.0), "STOP"),
    ], catalog)
    assert [s.name for s in suggestions] == ["Golf", "Bravo Plaza", "Far Stop", "Home Cafe"]


def test_station_recognised_by_name(catalog):
    suggestions = rank_geocode_matches([_match("bravo", (1.0, 1.0))], catalog)
    assert suggestions[0].station_id == "PY13"


def test_empty(catalog):
    assert rank_geocode_matches([], catalog) == []
