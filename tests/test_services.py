from types import SimpleNamespace

import pytest

import weather_api
from models import (
    AlertLevel,
    ConfidenceLevel,
    Coordinate,
    HazardLevel,
    RiskLevel,
    RouteGeometry,
    VehicleType,
)
from services import (
    AIAnalysisService,
    AIUnavailableError,
    AlertService,
    AnalysisService,
    RouteNotFoundError,
    StationService,
    WeatherService,
)
from services.ai_analysis_service import build_point_prompt, parse_ai_response, strip_code_fence
from services.location_service import LocationService
from services.station_service import parse_station, parse_stations
from tests.factories import flood_alert, snapshot, station

DA_NANG = Coordinate(lat=16.0544, lng=108.2022)
HUE = Coordinate(lat=16.4637, lng=107.5909)


def _record(station_id=1, **overrides):
    record = {
        "id": station_id,
        "lat": "16.05",
        "lon": "108.20",
        "commune_name": "Hòa Vang",
        "district_name": "Hòa Vang",
        "provinceName": "Đà Nẵng",
        "luongmuatd": 12.5,
        "luongmuadb": "30",
        "nguycoluquet": "Cao",
        "nguycosatlo": "Trung bình",
    }
    record.update(overrides)
    return record


# ==================== STATIONS ====================

def test_parse_station_maps_nchmf_fields() -> None:
    parsed = parse_station(_record())

    assert parsed.id == 1
    assert parsed.location == Coordinate(lat=16.05, lng=108.2)
    assert parsed.province == "Đà Nẵng"
    assert parsed.rainfall_now == 12.5
    assert parsed.rainfall_6h_forecast == 30.0
    assert parsed.flash_flood_risk == HazardLevel.HIGH
    assert parsed.landslide_risk == HazardLevel.MEDIUM
    assert parsed.distance_km is None


def test_parse_station_keeps_missing_current_rainfall() -> None:
    assert parse_station(_record(luongmuatd=None)).rainfall_now is None


def test_invalid_station_records_are_dropped_individually() -> None:
    records = [
        _record(1),
        _record(2, lat="not-a-number"),
        _record(3, nguycoluquet="Rất cao"),
        {"lat": 16.0},
        _record(5, lat=95.0),
        _record(6),
    ]

    assert [s.id for s in parse_stations(records)] == [1, 6]


def test_station_service_keeps_previous_snapshot_when_fetch_is_empty(monkeypatch) -> None:
    service = StationService(refresh_seconds=0)
    monkeypatch.setattr(weather_api, "fetch_nchmf_stations", lambda: [_record(1), _record(2)])
    assert len(service.refresh()) == 2

    monkeypatch.setattr(weather_api, "fetch_nchmf_stations", lambda: [])
    assert [s.id for s in service.refresh()] == [1, 2]


def test_station_service_find_nearby(monkeypatch) -> None:
    monkeypatch.setattr(
        weather_api, "fetch_nchmf_stations",
        lambda: [_record(1, lat=16.06, lon=108.21), _record(2, lat=21.0, lon=105.8)],
    )
    service = StationService()

    nearby = service.find_nearby(DA_NANG)
    summary = service.get_stations_summary()

    assert [s.id for s in nearby] == [1]
    assert nearby[0].distance_km < 2
    assert summary["total_stations"] == 2
    assert summary["generated_at"] is not None


# ==================== WEATHER ====================

class FakeElevationRepo:
    def __init__(self, stored=None):
        self.stored = dict(stored or {})
        self.saved = []

    def get_elevation(self, lat, lng):
        if (lat, lng) in self.stored:
            return True, self.stored[(lat, lng)]
        return False, None

    def save_elevation(self, lat, lng, elevation):
        self.saved.append((lat, lng, elevation))
        return True

    def cleanup_expired(self):
        return 0


def _flood_data(precip=0.0, forecast=0.0, accumulated=0.0):
    return {"discharge": 120.0, "precip": precip, "precip_forecast_6h": forecast, "precip_72h": accumulated}


def test_elevation_is_cached_in_memory(monkeypatch) -> None:
    calls = []

    def fake_elevation(coords):
        calls.append(coords)
        return 4.0

    monkeypatch.setattr(weather_api, "fetch_elevation", fake_elevation)
    repo = FakeElevationRepo()
    service = WeatherService(elevation_repo=repo, use_db_cache=True)

    assert service.get_elevation(DA_NANG) == 4.0
    assert service.get_elevation(DA_NANG) == 4.0
    assert len(calls) == 1
    assert repo.saved == [(DA_NANG.lat, DA_NANG.lng, 4.0)]


def test_db_cache_hit_skips_the_api(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_elevation", lambda coords: pytest.fail("API should not be called"))
    service = WeatherService(elevation_repo=FakeElevationRepo({(HUE.lat, HUE.lng): 6.0}))

    assert service.get_elevation(HUE) == 6.0


def test_unknown_elevation_is_not_cached(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(weather_api, "fetch_elevation", lambda coords: calls.append(coords))
    repo = FakeElevationRepo()
    service = WeatherService(elevation_repo=repo)

    assert service.get_elevation(DA_NANG) is None
    assert service.get_elevation(DA_NANG) is None
    assert len(calls) == 2
    assert repo.saved == []


def test_snapshot_combines_sources(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_elevation", lambda coords: 2.0)
    monkeypatch.setattr(weather_api, "fetch_flood_data", lambda coords: _flood_data(12.0, 8.0, 140.0))
    service = WeatherService(elevation_repo=FakeElevationRepo(), use_db_cache=False)

    result = service.get_snapshot(DA_NANG)

    assert result.elevation == 2.0
    assert result.precipitation == 12.0
    assert result.precip_forecast_6h == 8.0
    assert result.precip_72h == 140.0
    assert result.river_discharge == 120.0
    assert result.location_name == DA_NANG.label()


def test_snapshots_keep_input_order(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_elevation", lambda coords: coords.lat)
    monkeypatch.setattr(weather_api, "fetch_flood_data", lambda coords: _flood_data())
    service = WeatherService(elevation_repo=FakeElevationRepo(), use_db_cache=False)
    points = [Coordinate(lat=10 + i, lng=106) for i in range(8)]

    results = service.get_snapshots(points)

    assert [s.elevation for s in results] == [10 + i for i in range(8)]
    assert service.get_snapshots([]) == []


# ==================== AI ====================

def _fake_client(reply=None, error=None):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        if error is not None:
            raise error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, calls


def test_strip_code_fence() -> None:
    assert strip_code_fence('```json\n{"risk": "High"}\n```') == '{"risk": "High"}'
    assert strip_code_fence('  {"risk": "Low"} ') == '{"risk": "Low"}'


@pytest.mark.parametrize(
    "text,risk",
    [
        ('{"risk": "High", "advice": "Avoid travel."}', RiskLevel.HIGH),
        ('```json\n{"risk": "medium", "advice": "Careful."}\n```', RiskLevel.MEDIUM),
        ('{"risk": "Cao", "advice": "Tránh di chuyển."}', RiskLevel.HIGH),
    ],
)
def test_parse_ai_response(text, risk) -> None:
    assert parse_ai_response(text, "default").risk == risk


def test_parse_ai_response_uses_default_advice() -> None:
    assert parse_ai_response('{"risk": "Low"}', "Stay alert.").advice == "Stay alert."


@pytest.mark.parametrize("text", [None, "", "not json", "[1, 2]", '{"risk": "Extreme"}', '{"advice": "x"}'])
def test_parse_ai_response_rejects_unusable_answers(text) -> None:
    with pytest.raises(AIUnavailableError):
        parse_ai_response(text, "default")


def test_point_prompt_includes_inputs() -> None:
    prompt = build_point_prompt(
        snapshot(elevation=2.0, precipitation=15.0, precip_72h=120.0, location_name="Hội An"),
        VehicleType.MOTORCYCLE,
        [station(1, distance_km=4.2, flash_flood_risk=HazardLevel.HIGH)],
        language="en",
    )

    assert "Hội An" in prompt
    assert "MOTORCYCLE" in prompt
    assert "120.0 mm" in prompt
    assert "4.2km away" in prompt
    assert "Flash Flood Risk: HIGH" in prompt


def test_ai_service_evaluates_point() -> None:
    client, calls = _fake_client('{"risk": "High", "advice": "Move to higher ground."}')
    service = AIAnalysisService(client=client)

    result = service.evaluate_point(snapshot(elevation=2.0), language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.advice == "Move to higher ground."
    assert calls[0]["messages"][0]["role"] == "system"


def test_ai_service_wraps_client_errors() -> None:
    client, _ = _fake_client(error=RuntimeError("timeout"))

    with pytest.raises(AIUnavailableError):
        AIAnalysisService(client=client).evaluate_point(snapshot())


def test_unconfigured_ai_service_raises() -> None:
    service = AIAnalysisService()
    service.client = None

    assert not service.is_configured
    with pytest.raises(AIUnavailableError):
        service.evaluate_point(snapshot())


# ==================== ALERTS ====================

def test_alert_service_caches_gdacs(monkeypatch) -> None:
    calls = []

    def fake_fetch():
        calls.append(1)
        return [flood_alert("Orange")]

    monkeypatch.setattr(weather_api, "fetch_gdacs_flood_alerts", fake_fetch)
    service = AlertService()

    assert service.find_alert_for([Coordinate(lat=16.0, lng=108.0)]).alert_level == AlertLevel.ORANGE
    assert service.find_alert_for([Coordinate(lat=21.0, lng=105.8)]) is None
    assert len(calls) == 1

    service.invalidate_cache()
    service.get_flood_alerts()
    assert len(calls) == 2


def test_combined_alerts(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_gdacs_flood_alerts", lambda: [flood_alert("Red")])
    monkeypatch.setattr(weather_api, "fetch_vietnamese_warnings", lambda: [])

    combined = AlertService().get_combined_alerts()

    assert combined["total"] == 1
    assert combined["flood_alerts"][0]["alert_level"] == AlertLevel.RED


def test_location_search_short_query(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "search_places", lambda q, limit=5: pytest.fail("should not search"))

    assert LocationService().search("HN") == {"query": "HN", "total": 0, "results": []}


# ==================== ANALYSIS ====================

class FakeWeatherService:
    def __init__(self, point_snapshot=None, route_snapshots=None):
        self.point_snapshot = point_snapshot or snapshot()
        self.route_snapshots = route_snapshots

    def get_snapshot(self, coords, name=None):
        return self.point_snapshot.model_copy(update={"location_name": name or coords.label()})

    def get_snapshots(self, points):
        if self.route_snapshots is not None:
            return list(self.route_snapshots)
        return [self.point_snapshot for _ in points]


class FakeStationService:
    def __init__(self, stations=()):
        self.stations = tuple(stations)

    def find_nearby(self, target, radius_km=50, max_results=3):
        return list(self.stations)[:max_results]

    def get_stations(self):
        return self.stations


def _alert_service(monkeypatch, alerts=()):
    monkeypatch.setattr(weather_api, "fetch_gdacs_flood_alerts", lambda: list(alerts))
    return AlertService()


def _offline_ai():
    service = AIAnalysisService()
    service.client = None
    return service


def _analysis(monkeypatch, ai=None, alerts=(), stations=(), **weather):
    return AnalysisService(
        weather_service=FakeWeatherService(**weather),
        station_service=FakeStationService(stations),
        alert_service=_alert_service(monkeypatch, alerts),
        ai_service=ai or _offline_ai(),
    )


def test_point_without_ai_uses_rules(monkeypatch) -> None:
    service = _analysis(monkeypatch, point_snapshot=snapshot(elevation=2.0, precipitation=25.0))

    result = service.analyze_point(DA_NANG, language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert not result.from_ai
    assert not result.advice.startswith("Offline mode.")
    assert result.flood_alert_level is None


def test_point_with_unreachable_ai_is_prefixed(monkeypatch) -> None:
    client, _ = _fake_client(error=ConnectionError("refused"))
    service = _analysis(monkeypatch, ai=AIAnalysisService(client=client), point_snapshot=snapshot(elevation=2.0))

    result = service.analyze_point(DA_NANG, language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.advice.startswith("Unable to connect to AI. ")


def test_point_with_ai_keeps_local_confidence(monkeypatch) -> None:
    client, _ = _fake_client('{"risk": "Medium", "advice": "Watch water levels."}')
    service = _analysis(
        monkeypatch,
        ai=AIAnalysisService(client=client),
        stations=[station(1, distance_km=3.0)],
    )

    result = service.analyze_point(DA_NANG, VehicleType.CAR, language="en")

    assert result.from_ai
    assert result.risk == RiskLevel.MEDIUM
    assert result.advice == "Watch water levels."
    assert result.confidence == ConfidenceLevel.HIGH
    assert [s.id for s in result.nearby_stations] == [1]


def test_point_inside_red_alert_is_forced_high(monkeypatch) -> None:
    service = _analysis(
        monkeypatch,
        alerts=[flood_alert("Red")],
        point_snapshot=snapshot(elevation=50.0, precipitation=0.0),
    )

    result = service.analyze_point(Coordinate(lat=16.0, lng=108.0), language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.advice.startswith("⚠️ GDACS Red Alert")
    assert result.flood_alert_level == AlertLevel.RED


def test_point_inside_green_alert_is_reported_not_overridden(monkeypatch) -> None:
    service = _analysis(monkeypatch, alerts=[flood_alert("Green")], point_snapshot=snapshot(elevation=50.0))

    result = service.analyze_point(Coordinate(lat=16.0, lng=108.0))

    assert result.risk == RiskLevel.LOW
    assert result.flood_alert_level == AlertLevel.GREEN


def _route(n=20):
    return RouteGeometry(
        polyline=[Coordinate(lat=16.0 + i * 0.02, lng=108.0) for i in range(n)],
        distance_meters=16_000,
        duration_seconds=1_200,
    )


def test_route_not_found(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_route", lambda start, end: None)

    with pytest.raises(RouteNotFoundError):
        _analysis(monkeypatch).analyze_route(DA_NANG, HUE)


def test_route_without_ai_uses_fallback(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_route", lambda start, end: _route())
    route_snapshots = [snapshot(elevation=50.0) for _ in range(8)]
    route_snapshots[2] = snapshot(elevation=2.0)
    route_snapshots[5] = snapshot(elevation=50.0, precipitation=20.0, precip_forecast_6h=15.0)
    service = _analysis(monkeypatch, route_snapshots=route_snapshots)

    result = service.analyze_route(DA_NANG, HUE, language="en", start_name="Đà Nẵng")

    assert result.risk == RiskLevel.MEDIUM
    assert result.advice == "Offline mode. Drive carefully and avoid low-lying flooded areas."
    assert not result.from_ai
    assert [s.sequence_index for s in result.route.dangerous_segments] == [2, 5]
    assert [s.distance_from_start_km for s in result.route.dangerous_segments] == [4.0, 10.0]
    assert result.start.location_name == "Đà Nẵng"
    assert result.end.location_name == HUE.label()
    assert len(result.route.polyline) == 20


def test_route_with_ai_and_alert_at_destination(monkeypatch) -> None:
    monkeypatch.setattr(weather_api, "fetch_route", lambda start, end: _route())
    client, calls = _fake_client('{"risk": "Low", "advice": "Safe to travel."}')
    service = _analysis(
        monkeypatch,
        ai=AIAnalysisService(client=client),
        alerts=[flood_alert("Orange", bbox=(107.5, 16.4, 107.7, 16.5))],
    )

    result = service.analyze_route(DA_NANG, HUE, language="en")

    assert result.from_ai
    assert result.risk == RiskLevel.HIGH
    assert result.advice.endswith("Safe to travel.")
    assert result.flood_alert_level == AlertLevel.ORANGE
    assert len(calls) == 1
