#!/usr/bin/env python3
"""
Phân tích tuyến đường: lấy mẫu điểm và phát hiện đoạn nguy hiểm
"""
import math
from typing import List, Sequence

from models import (
    Coordinate,
    DangerousSegment,
    RiskLevel,
    RouteSample,
    VehicleType,
)
from risk_rules import evaluate_segment_point


def sample_route_points(polyline: Sequence[Coordinate], sample_count: int = 8) -> List[Coordinate]:
    """
    Lấy mẫu đều các điểm dọc tuyến đường

    index_i = round(i * (n-1) / (k-1)), i = 0..k-1 (làm tròn nửa lên).
    Chỉ số trùng do làm tròn được giữ nguyên.

    Args:
        polyline: Các tọa độ của tuyến đường theo thứ tự
        sample_count: Số điểm cần lấy (k)

    Returns:
        List[Coordinate]: Tuyến gốc nếu n <= k, ngược lại đúng k điểm
        gồm điểm đầu và điểm cuối
    """
    points = list(polyline)
    if len(points) <= sample_count:
        return points
    if sample_count == 1:
        return [points[0]]

    step = (len(points) - 1) / (sample_count - 1)
    # Half-up rounding; Python's round() would round half to even
    return [points[int(math.floor(i * step + 0.5))] for i in range(sample_count)]


def identify_dangerous_segments(
    samples: Sequence[RouteSample],
    total_distance_meters: float,
    vehicle: VehicleType = VehicleType.UNKNOWN,
    language: str = "vi",
) -> List[DangerousSegment]:
    """
    Xác định các điểm mẫu nguy hiểm trên tuyến

    Mỗi điểm được đánh giá độc lập (độ cao + mưa). Điểm có rủi ro Thấp bị bỏ.
    Kết quả giữ thứ tự dọc tuyến, không sắp theo mức độ.

    Args:
        samples: Điểm mẫu kèm dữ liệu môi trường và vị trí trong chuỗi mẫu
        total_distance_meters: Tổng chiều dài tuyến (m)
        vehicle: Phương tiện (hiện không ảnh hưởng ngưỡng)
        language: Ngôn ngữ của lý do

    Returns:
        List[DangerousSegment]
    """
    segments = []
    sample_count = len(samples)
    total_km = total_distance_meters / 1000

    for sample in samples:
        risk, reasons = evaluate_segment_point(sample.snapshot, language)
        if risk.rank <= RiskLevel.LOW.rank or not reasons:
            continue

        distance_from_start = 0.0
        if total_distance_meters > 0:
            distance_from_start = round(sample.sequence_index / sample_count * total_km, 1)

        segments.append(DangerousSegment(
            coordinate=sample.coordinate,
            sequence_index=sample.sequence_index,
            risk_level=risk,
            reasons=reasons,
            distance_from_start_km=distance_from_start,
        ))

    return sorted(segments, key=lambda s: s.sequence_index)
