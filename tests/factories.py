from models import (
    BoundingBox,
    Coordinate,
    EnvironmentalSnapshot,
    FloodAlert,
    HazardLevel,
    StationAssessment,
)


def snapshot(elevation=50.0, precipitation=0.0, precip_forecast_6h=0.0, precip_72h=0.0, **kwargs) -> EnvironmentalSnapshot:
    return EnvironmentalSnapshot(
        elevation=elevation,
        precipitation=precipitation,
        precip_forecast_6h=precip_forecast_6h,
        precip_72h=precip_72h,
        **kwargs,
    )


def station(
    station_id: int,
    lat: float = 16.0,
    lng: float = 108.0,
    distance_km=None,
    rainfall_now=0.0,
    rainfall_6h_forecast: float = 0.0,
    flash_flood_risk: HazardLevel = HazardLevel.LOW,
) -> StationAssessment:
    return StationAssessment(
        id=station_id,
        location=Coordinate(lat=lat, lng=lng),
        commune=f"Xã {station_id}",
        district="Hòa Vang",
        province="Đà Nẵng",
        rainfall_now=rainfall_now,
        rainfall_6h_forecast=rainfall_6h_forecast,
        flash_flood_risk=flash_flood_risk,
        distance_km=distance_km,
    )


def flood_alert(level: str, bbox=(105.0, 15.0, 109.0, 17.0), alert_id: str = "1", is_current: bool = True) -> FloodAlert:
    return FloodAlert(
        id=alert_id,
        alert_level=level,
        bbox=BoundingBox.from_list(bbox),
        description="Flood in Central Vietnam",
        is_current=is_current,
    )
