import pytest
from fastapi.testclient import TestClient

from klroute import motis_client
from klroute.main import app, app_state
from klroute.models import GeocodeMatch, Itinerary, PlanResponse
from network_helpers import BRAVO, CENTRAL, GOLF, HOME, build_test_catalog, place, ride, walk

ROUTE_REQUEST = {
    "origin": {"lat": HOME[0], "lng": HOME[1], "name": "Home"},
    "destination": {"lat": GOLF[0], "lng": GOLF[1], "name": "Golf"},
}


def _plan():
    central = lambda stop: place(CENTRAL, "Central", stop)  # noqa: E731
    return PlanResponse(itineraries=[
        Itinerary(
            start_time="2025-03-03T08:00:00+08:00",
            end_time="2025-03-03T08:40:00+08:00",
            duration=2400,
            transfers=1,
            legs=[
                walk(place(BRAVO, "Bravo"), place(BRAVO, "Bravo Entrance A"), 60),
                ride(place(BRAVO, "Bravo", "PY13"), central("PY14"), "PY", end_time="2025-03-03T08:15:00+08:00"),
                walk(central("PY14"), central("KG20"), 30),
                ride(central("KG20"), place(GOLF, "Golf", "KG21"), "KG"),
            ],
        ),
        Itinerary(duration=0, legs=[]),
    ])


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        app_state["catalog"] = build_test_catalog()
        yield test_client


@pytest.fixture
def planner(monkeypatch):
    calls = []

    async def fake_plan(origin, destination, start_time=None, http_client=None):
        calls.append({"origin": origin, "destination": destination, "start_time": start_time})
        return _plan()

    monkeypatch.setattr(motis_client, "plan_with_retry", fake_plan)
    return calls


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


class TestLines:
    def test_list(self, client):
        lines = client.get("/api/lines").json()
        assert [line["id"] for line in lines] == ["KJ", "PY", "KG"]
        assert lines[2]["station_count"] == 2

    def test_detail_resolves_interchanges(self, client):
        resp = client.get("/api/lines/kg")
        assert resp.status_code == 200
        central = resp.json()["stations"][0]
        assert [link["id"] for link in central["interchanges"]] == ["KJ14", "PY14"]
        assert [link["line_id"] for link in central["interchanges"]] == ["KJ", "PY"]

    def test_unknown_line(self, client):
        assert client.get("/api/lines/ZZ").status_code == 404


class TestRoutes:
    def test_search(self, client, planner):
        resp = client.post("/api/routes", json=ROUTE_REQUEST)
        assert resp.status_code == 200
        routes = resp.json()["routes"]
        assert len(routes) == 2
        assert [leg["line_id"] for leg in routes[0]["transit_legs"]] == ["PY", "KG"]
        assert routes[0]["duration_text"] == "40m"

    def test_departure_time_forwarded(self, client, planner):
        client.post("/api/routes", json={**ROUTE_REQUEST, "departure_time": "2025-03-03T08:00:00+08:00"})
        assert planner[0]["start_time"].hour == 8

    def test_utc_departure_time(self, client, planner):
        resp = client.post("/api/routes", json={**ROUTE_REQUEST, "departure_time": "2025-03-03T00:00:00Z"})
        assert resp.status_code == 200
        assert planner[0]["start_time"].utcoffset().total_seconds() == 0

    def test_bad_departure_time(self, client, planner):
        resp = client.post("/api/routes", json={**ROUTE_REQUEST, "departure_time": "tomorrow"})
        assert resp.status_code == 422

    def test_detail(self, client, planner):
        resp = client.post("/api/routes/0", json=ROUTE_REQUEST)
        assert resp.status_code == 200
        segments = resp.json()["segments"]
        assert [s["interchange"] for s in segments] == ["none", "walking-interchange", "none"]
        assert segments[1]["instruction"] == "Interchange to MRT Kajang"
        assert segments[1]["from_label"]["station_badge"]["station_id"] == "PY14"
        assert segments[0]["source_leg"]["from"]["name"] == "Bravo"
        assert segments[-1]["is_final"]

    def test_detail_index_out_of_range(self, client, planner):
        resp = client.post("/api/routes/5", json=ROUTE_REQUEST)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Route not found"

    def test_detail_without_legs(self, client, planner):
        assert client.post("/api/routes/1", json=ROUTE_REQUEST).status_code == 404

    def test_upstream_failure(self, client, monkeypatch):
        async def failing_plan(**kwargs):
            raise motis_client.MotisError("MOTIS API error: 503")

        monkeypatch.setattr(motis_client, "plan_with_retry", failing_plan)
        resp = client.post("/api/routes", json=ROUTE_REQUEST)
        assert resp.status_code == 502


def test_geocode_ranks_stations_first(client, monkeypatch):
    async def fake_geocode(text, http_client=None):
        return [
            GeocodeMatch(type="ADDRESS", name="Jalan Home 3", lat=HOME[0], lon=HOME[1]),
            GeocodeMatch(type="STOP", name="Golf", lat=GOLF[0], lon=GOLF[1]),
        ]

    monkeypatch.setattr(motis_client, "geocode", fake_geocode)
    suggestions = client.get("/api/geocode", params={"q": "golf"}).json()["suggestions"]
    assert [s["name"] for s in suggestions] == ["Golf", "Jalan Home 3"]
    assert suggestions[0]["station_id"] == "KG21"
