from models import AlertLevel, Assessment, Coordinate, DangerousSegment, RiskLevel
from route_aggregator import (
    apply_flood_alert_override,
    collect_route_stations,
    highest_matching_alert,
    route_fallback,
)
from tests.factories import flood_alert, station

INSIDE = Coordinate(lat=16.0, lng=108.0)
OUTSIDE = Coordinate(lat=21.0, lng=105.8)


def _low() -> Assessment:
    return Assessment(risk=RiskLevel.LOW, advice="Stay alert and monitor local news.")


def test_red_alert_forces_high_with_banner() -> None:
    result = apply_flood_alert_override([INSIDE], _low(), [flood_alert("Red")], language="en")

    assert result.risk == RiskLevel.HIGH
    assert result.advice.startswith("⚠️ GDACS Red Alert")
    assert result.advice.endswith("Stay alert and monitor local news.")


def test_orange_alert_forces_high() -> None:
    result = apply_flood_alert_override([INSIDE], _low(), [flood_alert("Orange")])

    assert result.risk == RiskLevel.HIGH
    assert "Orange" in result.advice


def test_green_alert_does_not_override() -> None:
    original = _low()
    result = apply_flood_alert_override([INSIDE], original, [flood_alert("Green")])

    assert result == original


def test_point_outside_bbox_is_untouched() -> None:
    assert apply_flood_alert_override([OUTSIDE], _low(), [flood_alert("Red")]).risk == RiskLevel.LOW


def test_inactive_alert_is_ignored() -> None:
    assert apply_flood_alert_override([INSIDE], _low(), [flood_alert("Red", is_current=False)]).risk == RiskLevel.LOW


def test_highest_severity_wins() -> None:
    alerts = [flood_alert("Green", alert_id="g"), flood_alert("Red", alert_id="r"), flood_alert("Orange", alert_id="o")]

    assert highest_matching_alert([INSIDE], alerts).id == "r"


def test_route_override_checks_both_endpoints() -> None:
    result = apply_flood_alert_override([OUTSIDE, INSIDE], _low(), [flood_alert("Red")], language="en")

    assert result.risk == RiskLevel.HIGH


def test_override_does_not_mutate_input() -> None:
    original = _low()
    apply_flood_alert_override([INSIDE], original, [flood_alert("Red")])

    assert original.risk == RiskLevel.LOW


def test_route_fallback_is_constant_medium() -> None:
    vi = route_fallback()
    en = route_fallback("en")

    assert vi.risk == en.risk == RiskLevel.MEDIUM
    assert en.advice == "Offline mode. Drive carefully and avoid low-lying flooded areas."
    assert vi.advice.startswith("Chế độ ngoại tuyến.")


def test_route_stations_are_collected_and_deduplicated() -> None:
    start = Coordinate(lat=16.0, lng=108.0)
    end = Coordinate(lat=16.5, lng=108.0)
    danger = DangerousSegment(
        coordinate=Coordinate(lat=16.25, lng=108.0),
        sequence_index=3,
        risk_level=RiskLevel.HIGH,
        reasons=["very low elevation (1.0m)"],
    )
    stations = [
        station(1, lat=16.01, lng=108.0),  # near start
        station(2, lat=16.02, lng=108.0),  # near start
        station(3, lat=16.03, lng=108.0),  # near start, beyond the 2-result cap
        station(4, lat=16.49, lng=108.0),  # near end
        station(5, lat=16.26, lng=108.0),  # near the dangerous segment
        station(6, lat=18.0, lng=108.0),   # far from everything
    ]

    result = collect_route_stations(start, end, [danger], stations)
    ids = [s.id for s in result]

    assert ids[:2] == [1, 2]
    assert 4 in ids and 5 in ids
    assert 6 not in ids
    assert len(ids) == len(set(ids))
    assert all(s.distance_km is not None for s in result)


def test_alert_level_enum_values() -> None:
    assert flood_alert("Red").alert_level == AlertLevel.RED
