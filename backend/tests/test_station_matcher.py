from klroute.station_matcher import coords_match, extract_station_code, places_match
from network_helpers import ALPHA, CENTRAL, place


class TestExtractStationCode:
    def test_provider_qualified_id(self):
        assert extract_station_code("my-rail-kl_PY05") == "PY05"

    def test_last_underscore_wins(self):
        assert extract_station_code("feed_sub_KG16") == "KG16"

    def test_no_underscore(self):
        assert extract_station_code("PY05") is None

    def test_missing(self):
        assert extract_station_code(None) is None
        assert extract_station_code("") is None


class TestCoordsMatch:
    def test_within_tolerance(self):
        assert coords_match(3.1, 101.6, 3.1009, 101.6009)

    def test_exact_boundary_is_not_a_match(self):
        assert not coords_match(0.0, 0.0, 0.001, 0.0)
        assert not coords_match(0.0, 0.0, 0.0, 0.001)
        assert not coords_match(3.1, 101.6, 3.101, 101.6)
        assert not coords_match(3.1, 101.6, 3.1, 101.601)

    def test_one_axis_off(self):
        assert not coords_match(3.1, 101.6, 3.1, 101.7)

    def test_places_match_requires_both_places(self):
        assert places_match(place(CENTRAL), place(CENTRAL))
        assert not places_match(place(CENTRAL), None)


class TestStationMatcher:
    def test_stop_id_takes_priority(self, matcher):
        # Coordinates say Alpha, stop id says Golf
        station = matcher.match(lat=ALPHA[0], lon=ALPHA[1], stop_id="my-rail-kl_KG21")
        assert station.id == "KG21"

    def test_unknown_stop_id_falls_back_to_coordinates(self, matcher):
        station = matcher.match(lat=ALPHA[0], lon=ALPHA[1], stop_id="my-rail-kl_ZZ1")
        assert station.id == "KJ13"

    def test_coordinates_first_match_in_catalog_order(self, matcher):
        station = matcher.match(lat=CENTRAL[0] + 0.0005, lon=CENTRAL[1] - 0.0005)
        assert station.id == "KJ14"

    def test_name_is_case_insensitive_exact(self, matcher):
        assert matcher.match(name="bravo").id == "PY13"
        assert matcher.match(name="Brav") is None

    def test_no_match(self, matcher):
        assert matcher.match(lat=1.0, lon=1.0, name="Jalan Ampang 12") is None
        assert matcher.match() is None

    def test_match_place(self, matcher):
        assert matcher.match_place(place(name="Golf")).id == "KG21"
        assert matcher.match_place(None) is None

    def test_match_place_without_stop_id(self, matcher):
        p = place(ALPHA, stop="KG21")
        assert matcher.match_place(p, use_stop_id=False).id == "KJ13"
