#!/usr/bin/env python3
"""
Các hàm hình học trên mặt cầu dùng cho tra cứu trạm và cảnh báo GDACS
"""
import math

from models import BoundingBox, Coordinate

EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Khoảng cách vòng lớn giữa hai điểm theo công thức Haversine

    Công thức:
        h = sin²(Δφ/2) + cos φ1 · cos φ2 · sin²(Δλ/2)
        d = 2R · atan2(√h, √(1-h))

    Args:
        a: Điểm thứ nhất
        b: Điểm thứ hai

    Returns:
        float: Khoảng cách (km), đối xứng và bằng 0 khi a == b
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_bbox(point: Coordinate, bbox: BoundingBox) -> bool:
    """Kiểm tra điểm nằm trong hộp bao (bao gồm cả 4 cạnh)"""
    return (
        bbox.min_lat <= point.lat <= bbox.max_lat
        and bbox.min_lng <= point.lng <= bbox.max_lng
    )
