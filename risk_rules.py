#!/usr/bin/env python3
"""
Bộ luật đánh giá rủi ro ngập lụt (offline, không cần AI)

Dùng làm engine chính khi chưa cấu hình AI và làm phương án dự phòng
khi gọi AI thất bại. Mọi hàm ở đây là hàm thuần: không I/O, không ném lỗi.

Thứ tự ưu tiên của chuỗi luật:
1. Mưa tích lũy 72h (độ bão hòa của đất)
2. Độ cao địa hình
3. Lượng mưa hiện tại (ưu tiên cao nhất, có thể ghi đè)
"""
from statistics import fmean
from typing import Callable, List, NamedTuple, Sequence, Tuple

from data.constants import (
    ADVICE_ACCUMULATION_LOW_ELEVATION,
    ADVICE_DEFAULT,
    ADVICE_HEAVY_RAIN,
    ADVICE_LOW_LYING,
    ADVICE_MEDIUM_ELEVATION,
    ADVICE_MESSAGES,
    ADVICE_SATURATED,
    ADVICE_SATURATED_LOWLAND,
    ADVICE_VERY_HEAVY_RAIN,
    ELEVATION_LOW_ACCUMULATION_M,
    ELEVATION_LOW_M,
    ELEVATION_VERY_LOW_M,
    OFFLINE_PREFIX,
    PRECIP_72H_MODERATE_MM,
    PRECIP_72H_SATURATED_MM,
    PRECIP_HEAVY_MM,
    PRECIP_VERY_HEAVY_MM,
    SEGMENT_REASONS,
    STATION_GROUND_TRUTH_RADIUS_KM,
    TOTAL_RAIN_HEAVY_MM,
    TOTAL_RAIN_PROLONGED_MM,
    VEHICLE_ADVICE,
    message,
)
from models import (
    Assessment,
    ConfidenceLevel,
    EnvironmentalSnapshot,
    RiskLevel,
    StationAssessment,
    VehicleType,
    max_risk,
)


class RuleState(NamedTuple):
    """Trạng thái đi qua từng bước của chuỗi luật"""
    risk: RiskLevel
    advice_key: str


RuleStage = Callable[[EnvironmentalSnapshot, RuleState], RuleState]

INITIAL_STATE = RuleState(RiskLevel.LOW, ADVICE_DEFAULT)


def _escalate(state: RuleState, risk: RiskLevel, advice_key: str) -> RuleState:
    return RuleState(max_risk(state.risk, risk), advice_key)


def _is_below(elevation, limit: float) -> bool:
    return elevation is not None and elevation < limit


def plain_number(value: float) -> str:
    """In số không làm tròn: 15.0 -> 15, 12.345678 -> 12.345678"""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


# ==================== STAGES ====================

def accumulation_stage(snapshot: EnvironmentalSnapshot, state: RuleState) -> RuleState:
    """Bước 1: mưa tích lũy 72h"""
    if snapshot.precip_72h > PRECIP_72H_SATURATED_MM and _is_below(snapshot.elevation, ELEVATION_LOW_M):
        return _escalate(state, RiskLevel.HIGH, ADVICE_SATURATED_LOWLAND)
    if snapshot.precip_72h > PRECIP_72H_SATURATED_MM:
        return _escalate(state, RiskLevel.MEDIUM, ADVICE_SATURATED)
    if snapshot.precip_72h > PRECIP_72H_MODERATE_MM and _is_below(snapshot.elevation, ELEVATION_LOW_ACCUMULATION_M):
        return _escalate(state, RiskLevel.MEDIUM, ADVICE_ACCUMULATION_LOW_ELEVATION)
    return state


def elevation_stage(snapshot: EnvironmentalSnapshot, state: RuleState) -> RuleState:
    """
    Bước 2: độ cao

    Vùng rất thấp (<3m) luôn ghi đè lời khuyên, nhưng chỉ nâng rủi ro
    lên Cao khi đang ở mức Thấp; mức Trung bình từ bước 1 được giữ nguyên.
    """
    if _is_below(snapshot.elevation, ELEVATION_VERY_LOW_M):
        risk = RiskLevel.HIGH if state.risk == RiskLevel.LOW else state.risk
        return RuleState(risk, ADVICE_LOW_LYING)
    if _is_below(snapshot.elevation, ELEVATION_LOW_M) and state.risk == RiskLevel.LOW:
        return _escalate(state, RiskLevel.MEDIUM, ADVICE_MEDIUM_ELEVATION)
    return state


def precipitation_stage(snapshot: EnvironmentalSnapshot, state: RuleState) -> RuleState:
    """Bước 3: lượng mưa hiện tại"""
    if snapshot.precipitation > PRECIP_VERY_HEAVY_MM:
        # Unconditional overwrite: very heavy rain always wins
        return RuleState(RiskLevel.HIGH, ADVICE_VERY_HEAVY_RAIN)
    if snapshot.precipitation > PRECIP_HEAVY_MM and state.risk == RiskLevel.LOW:
        return _escalate(state, RiskLevel.MEDIUM, ADVICE_HEAVY_RAIN)
    return state


RISK_STAGES: Tuple[RuleStage, ...] = (
    accumulation_stage,
    elevation_stage,
    precipitation_stage,
)


def run_cascade(snapshot: EnvironmentalSnapshot) -> RuleState:
    """Chạy lần lượt các bước từ trái sang phải"""
    state = INITIAL_STATE
    for stage in RISK_STAGES:
        state = stage(snapshot, state)
    return state


# ==================== STATION EVIDENCE ====================

def stations_within(
    stations: Sequence[StationAssessment],
    radius_km: float = STATION_GROUND_TRUTH_RADIUS_KM,
) -> List[StationAssessment]:
    return [s for s in stations if s.distance_km is not None and s.distance_km <= radius_km]


def confidence_for(
    snapshot: EnvironmentalSnapshot,
    stations: Sequence[StationAssessment],
) -> ConfidenceLevel:
    """
    Độ tin cậy của đánh giá, độc lập với mức rủi ro

    - Có trạm NCHMF (mọi khoảng cách) -> HIGH
    - Không có trạm, không rõ độ cao -> LOW
    - Còn lại -> MEDIUM
    """
    if stations:
        return ConfidenceLevel.HIGH
    if snapshot.elevation is None:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.MEDIUM


def apply_station_rainfall(
    snapshot: EnvironmentalSnapshot,
    stations: Sequence[StationAssessment],
) -> EnvironmentalSnapshot:
    """
    Thay lượng mưa từ API thời tiết bằng trung bình các trạm trong 15km

    Dữ liệu trạm là quan trắc mặt đất nên được ưu tiên.
    Trạm thiếu lượng mưa hiện tại được tính là 0mm.
    """
    close = stations_within(stations)
    if not close:
        return snapshot

    return snapshot.model_copy(update={
        "precipitation": fmean(s.rainfall_now or 0.0 for s in close),
        "precip_forecast_6h": fmean(s.rainfall_6h_forecast for s in close),
    })


# ==================== PUBLIC API ====================

def advice_text(advice_key: str, risk: RiskLevel, vehicle: VehicleType, language: str) -> str:
    """Lời khuyên theo ngôn ngữ; phương tiện chỉ thay đổi câu chữ"""
    advice = message(ADVICE_MESSAGES[advice_key], language)
    vehicle_note = VEHICLE_ADVICE.get(vehicle.value)
    if vehicle_note and risk != RiskLevel.LOW:
        advice = f"{advice} {message(vehicle_note, language)}"
    return advice


def assess(
    snapshot: EnvironmentalSnapshot,
    vehicle: VehicleType = VehicleType.UNKNOWN,
    nearby_stations: Sequence[StationAssessment] = (),
    language: str = "vi",
) -> Assessment:
    """
    Đánh giá rủi ro một điểm bằng bộ luật

    Args:
        snapshot: Dữ liệu môi trường tại điểm
        vehicle: Phương tiện di chuyển
        nearby_stations: Trạm NCHMF gần đó, đã có distance_km
        language: "vi" hoặc "en"

    Returns:
        Assessment: risk, advice, confidence (không bao giờ ném lỗi)
    """
    confidence = confidence_for(snapshot, nearby_stations)
    effective = apply_station_rainfall(snapshot, nearby_stations)
    state = run_cascade(effective)

    return Assessment(
        risk=state.risk,
        advice=advice_text(state.advice_key, state.risk, vehicle, language),
        confidence=confidence,
    )


def assess_offline(
    snapshot: EnvironmentalSnapshot,
    vehicle: VehicleType = VehicleType.UNKNOWN,
    nearby_stations: Sequence[StationAssessment] = (),
    language: str = "vi",
    prefix_table: dict = OFFLINE_PREFIX,
) -> Assessment:
    """Như assess() nhưng thêm tiền tố báo chế độ ngoại tuyến"""
    result = assess(snapshot, vehicle, nearby_stations, language)
    result.advice = message(prefix_table, language) + result.advice
    return result


def evaluate_segment_point(
    snapshot: EnvironmentalSnapshot,
    language: str = "vi",
) -> Tuple[RiskLevel, List[str]]:
    """
    Phiên bản rút gọn của chuỗi luật cho điểm lấy mẫu trên tuyến đường

    Chỉ xét độ cao và mưa (hiện tại + dự báo 6h); không dùng trạm và mưa 72h.
    Lý do được tích lũy theo đúng thứ tự kiểm tra.
    """
    risk = RiskLevel.LOW
    reasons = []
    elevation = snapshot.elevation

    if _is_below(elevation, ELEVATION_VERY_LOW_M):
        risk = RiskLevel.HIGH
        reasons.append(message(SEGMENT_REASONS["very_low_elevation"], language).format(value=elevation))
    elif _is_below(elevation, ELEVATION_LOW_M):
        risk = max_risk(risk, RiskLevel.MEDIUM)
        reasons.append(message(SEGMENT_REASONS["low_elevation"], language).format(value=elevation))

    precipitation = snapshot.precipitation
    total_rain = precipitation + snapshot.precip_forecast_6h
    if total_rain > TOTAL_RAIN_PROLONGED_MM:
        risk = RiskLevel.HIGH
        reasons.append(message(SEGMENT_REASONS["prolonged_rain"], language).format(value=total_rain))
    elif precipitation > PRECIP_VERY_HEAVY_MM:
        risk = RiskLevel.HIGH
        reasons.append(message(SEGMENT_REASONS["very_heavy_rain"], language).format(value=plain_number(precipitation)))
    elif precipitation > PRECIP_HEAVY_MM or total_rain > TOTAL_RAIN_HEAVY_MM:
        risk = max_risk(risk, RiskLevel.MEDIUM)
        reasons.append(message(SEGMENT_REASONS["heavy_rain"], language).format(value=plain_number(precipitation)))

    return risk, reasons
