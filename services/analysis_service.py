#!/usr/bin/env python3
"""
Analysis Service - Orchestrates point and route flood risk analysis

Point:  snapshot -> nearby stations -> AI (or rule engine) -> GDACS override
Route:  OSRM route -> 8 samples -> parallel snapshots -> dangerous segments
        -> stations along route -> AI (or fixed fallback) -> GDACS override
"""
from typing import Optional, Tuple

from config import ROUTE_SAMPLE_COUNT
from data.constants import AI_UNREACHABLE_PREFIX, POINT_STATION_MAX_RESULTS, POINT_STATION_RADIUS_KM
from models import (
    Assessment,
    Coordinate,
    PointAnalysisResponse,
    RouteAnalysisResponse,
    RouteSample,
    RouteSummary,
    VehicleType,
)
from risk_rules import assess, assess_offline, confidence_for
from route_aggregator import (
    OVERRIDING_ALERTS,
    apply_flood_alert_override,
    collect_route_stations,
    route_fallback,
)
from route_analysis import identify_dangerous_segments, sample_route_points
from services.ai_analysis_service import AIAnalysisService, AIUnavailableError
from services.alert_service import AlertService
from services.station_service import StationService
from services.weather_service import WeatherService
import weather_api


class RouteNotFoundError(Exception):
    """Routing provider found no route between the two points"""


class AnalysisService:
    """Service for end-to-end flood risk analysis"""

    def __init__(
        self,
        weather_service: WeatherService = None,
        station_service: StationService = None,
        alert_service: AlertService = None,
        ai_service: AIAnalysisService = None,
    ):
        self.weather_service = weather_service or WeatherService()
        self.station_service = station_service or StationService()
        self.alert_service = alert_service or AlertService()
        self.ai_service = ai_service or AIAnalysisService()

    def analyze_point(
        self,
        coords: Coordinate,
        vehicle: VehicleType = VehicleType.UNKNOWN,
        language: str = "vi",
        name: Optional[str] = None,
    ) -> PointAnalysisResponse:
        """
        Đánh giá rủi ro ngập tại một điểm

        Args:
            coords: Tọa độ
            vehicle: Phương tiện
            language: "vi" hoặc "en"
            name: Tên hiển thị của địa điểm

        Returns:
            PointAnalysisResponse (không ném lỗi khi nguồn dữ liệu/AI lỗi)
        """
        print(f"\n[Analysis] Point {coords.label()} vehicle={vehicle.value} lang={language}")
        snapshot = self.weather_service.get_snapshot(coords, name)
        stations = self.station_service.find_nearby(coords, POINT_STATION_RADIUS_KM, POINT_STATION_MAX_RESULTS)
        print(f"[Analysis] Snapshot: elevation={snapshot.elevation} rain={snapshot.precipitation} "
              f"72h={snapshot.precip_72h}, {len(stations)} stations nearby")

        from_ai = False
        if not self.ai_service.is_configured:
            print("[Analysis] DeepSeek API chưa cấu hình, dùng bộ luật")
            assessment = assess(snapshot, vehicle, stations, language)
        else:
            try:
                assessment = self.ai_service.evaluate_point(snapshot, vehicle, stations, language)
                from_ai = True
            except AIUnavailableError as e:
                print(f"[Analysis] ✗ AI error: {e}, using rule engine")
                assessment = assess_offline(snapshot, vehicle, stations, language, prefix_table=AI_UNREACHABLE_PREFIX)

        assessment.confidence = confidence_for(snapshot, stations)

        alerts = self.alert_service.get_flood_alerts()
        alert = self.alert_service.find_alert_for([coords])
        assessment = apply_flood_alert_override([coords], assessment, alerts, language)
        if alert is not None and alert.alert_level in OVERRIDING_ALERTS:
            print(f"[Analysis] GDACS {alert.alert_level.value} alert covers point, risk forced to High")

        return PointAnalysisResponse(
            risk=assessment.risk,
            advice=assessment.advice,
            confidence=assessment.confidence,
            snapshot=snapshot,
            nearby_stations=stations,
            flood_alert_level=alert.alert_level if alert else None,
            from_ai=from_ai,
        )

    def _evaluate_route(self, start_snapshot, end_snapshot, route, vehicle, stations, language) -> Tuple[Assessment, bool]:
        if not self.ai_service.is_configured:
            print("[Analysis] DeepSeek API chưa cấu hình, dùng kết quả mặc định cho tuyến")
            return route_fallback(language), False

        try:
            return self.ai_service.evaluate_route(start_snapshot, end_snapshot, route, vehicle, stations, language), True
        except AIUnavailableError as e:
            print(f"[Analysis] ✗ AI route error: {e}, using fallback")
            return route_fallback(language), False

    def analyze_route(
        self,
        start: Coordinate,
        end: Coordinate,
        vehicle: VehicleType = VehicleType.UNKNOWN,
        language: str = "vi",
        start_name: Optional[str] = None,
        end_name: Optional[str] = None,
    ) -> RouteAnalysisResponse:
        """
        Đánh giá an toàn cho cả tuyến đường

        Raises:
            RouteNotFoundError: OSRM không tìm được tuyến
        """
        print(f"\n[Analysis] Route {start.label()} -> {end.label()} vehicle={vehicle.value}")
        geometry = weather_api.fetch_route(start, end)
        if geometry is None or not geometry.polyline:
            raise RouteNotFoundError(f"No route between {start.label()} and {end.label()}")

        points = sample_route_points(geometry.polyline, ROUTE_SAMPLE_COUNT)
        snapshots = self.weather_service.get_snapshots(points)
        samples = [
            RouteSample(snapshot=snapshot, coordinate=point, sequence_index=index)
            for index, (point, snapshot) in enumerate(zip(points, snapshots))
        ]
        segments = identify_dangerous_segments(samples, geometry.distance_meters, vehicle, language)
        print(f"[Analysis] {len(samples)} samples, {len(segments)} dangerous segments")

        route = RouteSummary(
            polyline=geometry.polyline,
            total_distance_meters=geometry.distance_meters,
            total_duration_seconds=geometry.duration_seconds,
            dangerous_segments=segments,
        )

        # First and last samples are always the route endpoints
        start_snapshot = snapshots[0].model_copy(update={"location_name": start_name or start.label()})
        end_snapshot = snapshots[-1].model_copy(update={"location_name": end_name or end.label()})

        stations = collect_route_stations(start, end, segments, self.station_service.get_stations())
        assessment, from_ai = self._evaluate_route(start_snapshot, end_snapshot, route, vehicle, stations, language)

        alerts = self.alert_service.get_flood_alerts()
        alert = self.alert_service.find_alert_for([start, end])
        assessment = apply_flood_alert_override([start, end], assessment, alerts, language)

        return RouteAnalysisResponse(
            risk=assessment.risk,
            advice=assessment.advice,
            route=route,
            start=start_snapshot,
            end=end_snapshot,
            nearby_stations=stations,
            flood_alert_level=alert.alert_level if alert else None,
            from_ai=from_ai,
        )
