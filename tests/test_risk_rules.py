import itertools

import pytest

from data.constants import (
    ADVICE_DEFAULT,
    ADVICE_HEAVY_RAIN,
    ADVICE_LOW_LYING,
    ADVICE_MEDIUM_ELEVATION,
    ADVICE_MESSAGES,
    ADVICE_SATURATED,
    ADVICE_SATURATED_LOWLAND,
    ADVICE_ACCUMULATION_LOW_ELEVATION,
    ADVICE_VERY_HEAVY_RAIN,
    AI_UNREACHABLE_PREFIX,
    VEHICLE_ADVICE,
)
from models import ConfidenceLevel, RiskLevel, VehicleType
from risk_rules import (
    apply_station_rainfall,
    assess,
    assess_offline,
    confidence_for,
    evaluate_segment_point,
    plain_number,
    run_cascade,
)
from tests.factories import snapshot, station

ELEVATIONS = [None, -5, 0, 2.9, 3, 9.9, 10, 50]
PRECIPITATIONS = [0, 5, 10, 10.1, 20, 20.1, 50]
PRECIP_72H = [0, 50, 50.1, 100, 100.1]
STATION_SETS = {
    "none": [],
    "within_15km": [station(1, distance_km=5.0, rainfall_now=0.0)],
    "beyond_15km": [station(2, distance_km=30.0, rainfall_now=40.0)],
}


def _en(key: str) -> str:
    return ADVICE_MESSAGES[key]["en"]


@pytest.mark.parametrize(
    "elevation,precipitation,precip_72h,stations_key",
    list(itertools.product(ELEVATIONS, PRECIPITATIONS, PRECIP_72H, STATION_SETS)),
)
def test_assess_is_total(elevation, precipitation, precip_72h, stations_key) -> None:
    result = assess(
        snapshot(elevation=elevation, precipitation=precipitation, precip_72h=precip_72h),
        nearby_stations=STATION_SETS[stations_key],
    )

    assert result.risk in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)
    assert result.confidence in (ConfidenceLevel.LOW, ConfidenceLevel.MEDIUM, ConfidenceLevel.HIGH)
    assert result.advice


@pytest.mark.parametrize("elevation", ELEVATIONS)
@pytest.mark.parametrize("precip_72h", PRECIP_72H)
def test_more_rain_never_lowers_risk(elevation, precip_72h) -> None:
    ranks = [
        run_cascade(snapshot(elevation=elevation, precipitation=p, precip_72h=precip_72h)).risk.rank
        for p in (10, 10.1, 15, 20, 20.1)
    ]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize("elevation", [3, 4.9, 5, 9.9])
@pytest.mark.parametrize("precipitation", [0, 10.1, 20.1])
def test_more_accumulation_never_lowers_risk_in_lowlands(elevation, precipitation) -> None:
    ranks = [
        run_cascade(snapshot(elevation=elevation, precipitation=precipitation, precip_72h=p)).risk.rank
        for p in (50, 50.1, 75, 100, 100.1)
    ]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize("elevation", [-5, 0, 2, 2.9])
def test_very_low_elevation_only_escalates_from_low(elevation) -> None:
    from_low = run_cascade(snapshot(elevation=elevation, precip_72h=0))
    from_medium = run_cascade(snapshot(elevation=elevation, precip_72h=60))
    from_high = run_cascade(snapshot(elevation=elevation, precip_72h=150))

    assert from_low.risk == RiskLevel.HIGH
    assert from_medium.risk == RiskLevel.MEDIUM
    assert from_high.risk == RiskLevel.HIGH
    assert {from_low.advice_key, from_medium.advice_key, from_high.advice_key} == {ADVICE_LOW_LYING}


def test_very_low_and_very_heavy_rain_without_stations() -> None:
    result = assess(snapshot(elevation=2, precipitation=25, precip_72h=10), language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert result.advice == _en(ADVICE_VERY_HEAVY_RAIN)


def test_no_data_at_all_is_low_with_low_confidence() -> None:
    result = assess(snapshot(elevation=None, precipitation=0, precip_72h=0), language="en")

    assert result.risk == RiskLevel.LOW
    assert result.confidence == ConfidenceLevel.LOW
    assert result.advice == _en(ADVICE_DEFAULT)


@pytest.mark.parametrize(
    "elevation,precipitation,precip_72h,risk,advice_key",
    [
        (5, 0, 100.1, RiskLevel.HIGH, ADVICE_SATURATED_LOWLAND),
        (50, 0, 100.1, RiskLevel.MEDIUM, ADVICE_SATURATED),
        (None, 0, 100.1, RiskLevel.MEDIUM, ADVICE_SATURATED),
        (4, 0, 50.1, RiskLevel.MEDIUM, ADVICE_ACCUMULATION_LOW_ELEVATION),
        (50, 0, 50.1, RiskLevel.LOW, ADVICE_DEFAULT),
        (2, 0, 150, RiskLevel.HIGH, ADVICE_LOW_LYING),
        (2, 0, 60, RiskLevel.MEDIUM, ADVICE_LOW_LYING),
        (8, 0, 0, RiskLevel.MEDIUM, ADVICE_MEDIUM_ELEVATION),
        (50, 15, 0, RiskLevel.MEDIUM, ADVICE_HEAVY_RAIN),
        (8, 15, 0, RiskLevel.MEDIUM, ADVICE_MEDIUM_ELEVATION),
        (50, 20.1, 100.1, RiskLevel.HIGH, ADVICE_VERY_HEAVY_RAIN),
        (3, 0, 0, RiskLevel.MEDIUM, ADVICE_MEDIUM_ELEVATION),
        (10, 10, 50, RiskLevel.LOW, ADVICE_DEFAULT),
    ],
)
def test_cascade_outcomes(elevation, precipitation, precip_72h, risk, advice_key) -> None:
    state = run_cascade(snapshot(elevation=elevation, precipitation=precipitation, precip_72h=precip_72h))

    assert state.risk == risk
    assert state.advice_key == advice_key


@pytest.mark.parametrize("elevation", [None, 2, 50])
def test_station_within_15km_gives_high_confidence(elevation) -> None:
    stations = [station(1, distance_km=12.0)]

    assert confidence_for(snapshot(elevation=elevation), stations) == ConfidenceLevel.HIGH
    assert assess(snapshot(elevation=elevation), nearby_stations=stations).confidence == ConfidenceLevel.HIGH


def test_distant_station_still_gives_high_confidence() -> None:
    result = assess(snapshot(elevation=None), nearby_stations=[station(1, distance_km=40.0)])

    assert result.confidence == ConfidenceLevel.HIGH


def test_close_station_rainfall_overrides_weather_api() -> None:
    result = assess(
        snapshot(elevation=50, precipitation=0),
        nearby_stations=[station(1, distance_km=5.0, rainfall_now=25.0)],
        language="en",
    )

    assert result.risk == RiskLevel.HIGH
    assert result.advice == _en(ADVICE_VERY_HEAVY_RAIN)


def test_distant_station_rainfall_is_ignored() -> None:
    result = assess(
        snapshot(elevation=50, precipitation=0),
        nearby_stations=[station(1, distance_km=20.0, rainfall_now=25.0)],
    )

    assert result.risk == RiskLevel.LOW


def test_station_rainfall_is_averaged_with_missing_as_zero() -> None:
    effective = apply_station_rainfall(
        snapshot(precipitation=1.0, precip_forecast_6h=1.0),
        [
            station(1, distance_km=3.0, rainfall_now=None, rainfall_6h_forecast=4.0),
            station(2, distance_km=9.0, rainfall_now=30.0, rainfall_6h_forecast=8.0),
            station(3, distance_km=25.0, rainfall_now=90.0, rainfall_6h_forecast=90.0),
        ],
    )

    assert effective.precipitation == pytest.approx(15.0)
    assert effective.precip_forecast_6h == pytest.approx(6.0)


def test_vehicle_note_only_added_when_at_risk() -> None:
    safe = assess(snapshot(elevation=50), VehicleType.MOTORCYCLE, language="en")
    risky = assess(snapshot(elevation=2), VehicleType.MOTORCYCLE, language="en")

    assert safe.advice == _en(ADVICE_DEFAULT)
    assert risky.advice == f"{_en(ADVICE_LOW_LYING)} {VEHICLE_ADVICE['motorcycle']['en']}"


def test_vehicle_does_not_change_risk() -> None:
    data = snapshot(elevation=8, precipitation=12)
    levels = {assess(data, vehicle).risk for vehicle in VehicleType}

    assert levels == {RiskLevel.MEDIUM}


def test_vietnamese_is_the_default_language() -> None:
    assert assess(snapshot(elevation=None)).advice == ADVICE_MESSAGES[ADVICE_DEFAULT]["vi"]


def test_offline_prefix() -> None:
    offline_en = assess_offline(snapshot(elevation=2), language="en")
    offline_vi = assess_offline(snapshot(elevation=2))
    unreachable = assess_offline(snapshot(elevation=2), language="en", prefix_table=AI_UNREACHABLE_PREFIX)

    assert offline_en.advice == "Offline mode. " + _en(ADVICE_LOW_LYING)
    assert offline_vi.advice.startswith("Chế độ ngoại tuyến. ")
    assert unreachable.advice.startswith("Unable to connect to AI. ")
    assert offline_en.risk == RiskLevel.HIGH


def test_segment_point_reasons_accumulate_in_order() -> None:
    risk, reasons = evaluate_segment_point(
        snapshot(elevation=2, precipitation=25, precip_forecast_6h=10), language="en"
    )

    assert risk == RiskLevel.HIGH
    assert reasons == ["very low elevation (2.0m)", "prolonged heavy rain (35mm)"]


def test_segment_point_ignores_accumulation() -> None:
    risk, reasons = evaluate_segment_point(snapshot(elevation=50, precip_72h=300))

    assert risk == RiskLevel.LOW
    assert reasons == []


@pytest.mark.parametrize("elevation", [None, 10, 50])
@pytest.mark.parametrize("precipitation,forecast", [(0, 0), (10, 0), (10, 10), (5, 15)])
def test_segment_point_low_case(elevation, precipitation, forecast) -> None:
    risk, reasons = evaluate_segment_point(
        snapshot(elevation=elevation, precipitation=precipitation, precip_forecast_6h=forecast)
    )

    assert risk == RiskLevel.LOW
    assert reasons == []


def test_segment_point_heavy_rain_from_forecast() -> None:
    risk, reasons = evaluate_segment_point(snapshot(elevation=8, precipitation=5, precip_forecast_6h=16), "en")

    assert risk == RiskLevel.MEDIUM
    assert reasons == ["low elevation (8.0m)", "heavy rain (5mm)"]


def test_segment_point_rain_reason_keeps_full_precision() -> None:
    _, heavy = evaluate_segment_point(snapshot(elevation=50, precipitation=12.345678), "en")
    _, very_heavy = evaluate_segment_point(snapshot(elevation=50, precipitation=22.125, precip_forecast_6h=0), "en")

    assert heavy == ["heavy rain (12.345678mm)"]
    assert very_heavy == ["very heavy rain (22.125mm)"]


@pytest.mark.parametrize(
    "value,text",
    [(15.0, "15"), (0, "0"), (12.5, "12.5"), (0.1 + 0.2, "0.30000000000000004"), (1234567.0, "1234567")],
)
def test_plain_number(value, text) -> None:
    assert plain_number(value) == text
