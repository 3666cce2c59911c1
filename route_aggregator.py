#!/usr/bin/env python3
"""
Tổng hợp kết quả tuyến đường và áp cảnh báo lũ GDACS
"""
from typing import List, Optional, Sequence

from data.constants import (
    FLOOD_ALERT_BANNER,
    ROUTE_ENDPOINT_STATION_MAX_RESULTS,
    ROUTE_ENDPOINT_STATION_RADIUS_KM,
    ROUTE_FALLBACK_ADVICE,
    ROUTE_SEGMENT_STATION_MAX_RESULTS,
    ROUTE_SEGMENT_STATION_RADIUS_KM,
    message,
)
from geo_utils import is_within_bbox
from models import (
    AlertLevel,
    Assessment,
    Coordinate,
    DangerousSegment,
    FloodAlert,
    RiskLevel,
    StationAssessment,
)
from station_locator import find_nearby_stations, merge_unique_stations

ALERT_ORDER = {
    AlertLevel.RED: 3,
    AlertLevel.ORANGE: 2,
    AlertLevel.GREEN: 1,
}

# Alert levels that force the final risk to High
OVERRIDING_ALERTS = (AlertLevel.RED, AlertLevel.ORANGE)


def collect_route_stations(
    start: Coordinate,
    end: Coordinate,
    dangerous_segments: Sequence[DangerousSegment],
    stations: Sequence[StationAssessment],
) -> List[StationAssessment]:
    """
    Trạm NCHMF dọc tuyến: gần điểm đầu, điểm cuối và từng đoạn nguy hiểm

    - Điểm đầu / cuối: bán kính 50km, tối đa 2 trạm
    - Mỗi đoạn nguy hiểm: bán kính 30km, 1 trạm
    Gộp theo station id, giữ lần xuất hiện đầu tiên.
    """
    near_start = find_nearby_stations(
        start, stations, ROUTE_ENDPOINT_STATION_RADIUS_KM, ROUTE_ENDPOINT_STATION_MAX_RESULTS
    )
    near_end = find_nearby_stations(
        end, stations, ROUTE_ENDPOINT_STATION_RADIUS_KM, ROUTE_ENDPOINT_STATION_MAX_RESULTS
    )
    near_dangers = [
        station
        for segment in dangerous_segments
        for station in find_nearby_stations(
            segment.coordinate, stations, ROUTE_SEGMENT_STATION_RADIUS_KM, ROUTE_SEGMENT_STATION_MAX_RESULTS
        )
    ]
    return merge_unique_stations(near_start, near_end, near_dangers)


def route_fallback(language: str = "vi") -> Assessment:
    """Kết quả cố định khi không đánh giá được tuyến bằng AI"""
    return Assessment(risk=RiskLevel.MEDIUM, advice=message(ROUTE_FALLBACK_ADVICE, language))


def highest_matching_alert(
    points: Sequence[Coordinate],
    alerts: Sequence[FloodAlert],
) -> Optional[FloodAlert]:
    """Cảnh báo đang hoạt động có mức cao nhất chứa một trong các điểm"""
    matching = [
        alert for alert in alerts
        if alert.is_current and any(is_within_bbox(p, alert.bbox) for p in points)
    ]
    if not matching:
        return None
    return max(matching, key=lambda alert: ALERT_ORDER[alert.alert_level])


def apply_flood_alert_override(
    points: Sequence[Coordinate],
    assessment: Assessment,
    alerts: Sequence[FloodAlert],
    language: str = "vi",
) -> Assessment:
    """
    Nâng rủi ro lên Cao nếu điểm nằm trong vùng lũ GDACS Đỏ/Cam

    Args:
        points: Điểm phân tích (một điểm, hoặc hai đầu tuyến)
        assessment: Kết quả từ AI hoặc bộ luật
        alerts: Danh sách sự kiện lũ GDACS
        language: Ngôn ngữ của banner

    Returns:
        Assessment mới; giữ nguyên nếu không khớp cảnh báo Đỏ/Cam
    """
    alert = highest_matching_alert(points, alerts)
    if alert is None or alert.alert_level not in OVERRIDING_ALERTS:
        return assessment

    banner = message(FLOOD_ALERT_BANNER, language).format(level=alert.alert_level.value)
    return assessment.model_copy(update={
        "risk": RiskLevel.HIGH,
        "advice": banner + assessment.advice,
    })
