#!/usr/bin/env python3
"""
Tra cứu trạm quan trắc NCHMF gần một tọa độ
"""
from typing import Iterable, List, Sequence

from geo_utils import distance_km
from models import Coordinate, StationAssessment


def find_nearby_stations(
    target: Coordinate,
    stations: Sequence[StationAssessment],
    radius_km: float = 50,
    max_results: int = 3,
) -> List[StationAssessment]:
    """
    Tìm các trạm trong bán kính, sắp xếp theo khoảng cách tăng dần

    Args:
        target: Tọa độ cần tra cứu
        stations: Danh sách trạm hiện tại (do caller sở hữu, không bị sửa)
        radius_km: Bán kính tìm kiếm (km), bao gồm biên
        max_results: Số trạm tối đa trả về

    Returns:
        List[StationAssessment]: Bản sao các trạm kèm distance_km.
        Trạm cách đều giữ nguyên thứ tự đầu vào. Không có trạm -> [].
    """
    if max_results <= 0:
        return []

    within = []
    for station in stations:
        d = distance_km(target, station.location)
        if d <= radius_km:
            within.append(station.model_copy(update={"distance_km": d}))

    # sorted() is stable, so equal distances keep input order
    within = sorted(within, key=lambda s: s.distance_km)
    return within[:max_results]


def merge_unique_stations(*groups: Iterable[StationAssessment]) -> List[StationAssessment]:
    """Gộp kết quả nhiều lần tra cứu, giữ lần xuất hiện đầu tiên của mỗi station id"""
    seen = set()
    merged = []
    for group in groups:
        for station in group:
            if station.id in seen:
                continue
            seen.add(station.id)
            merged.append(station)
    return merged
