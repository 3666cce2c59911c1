#!/usr/bin/env python3
"""
AI Analysis Service - DeepSeek (OpenAI-compatible) flood risk evaluation

The model only returns risk + advice. Confidence, station rainfall override
and the GDACS override stay in the service layer so the answer is
consistent whether the AI or the rule engine produced it.
"""
import json
from typing import Any, Optional, Sequence

from openai import OpenAI

from config import AI_MODEL, AI_TIMEOUT_SECONDS, DEEPSEEK_API_KEY, DEEPSEEK_BASE_URL
from data.constants import (
    ADVICE_DEFAULT,
    ADVICE_MESSAGES,
    NCHMF_RISK_LABELS,
    ROUTE_DEFAULT_ADVICE,
    VEHICLE_PROMPT_CONTEXT,
    message,
)
from models import (
    Assessment,
    EnvironmentalSnapshot,
    RiskLevel,
    RouteSummary,
    StationAssessment,
    VehicleType,
)

# HazardLevel value -> Vietnamese label used by NCHMF
HAZARD_LABELS_VI = {english: vietnamese for vietnamese, english in NCHMF_RISK_LABELS.items()}

SYSTEM_PROMPT = {
    "vi": "Bạn là chuyên gia phân tích rủi ro lũ lụt tại Việt Nam. LUÔN trả về JSON hợp lệ.",
    "en": "You are a flood risk expert for Vietnam. ALWAYS return valid JSON.",
}


class AIUnavailableError(Exception):
    """AI is not configured, unreachable, or returned an unusable answer"""


def strip_code_fence(text: str) -> str:
    """Remove ```json ... ``` wrappers some models add around JSON"""
    result = text.strip()
    if result.startswith("```"):
        result = result.split("```")[1]
        if result.startswith("json"):
            result = result[4:]
    return result.strip()


def parse_ai_response(text: Optional[str], default_advice: str) -> Assessment:
    """
    Parse the model reply into an Assessment

    Raises:
        AIUnavailableError: empty reply, invalid JSON or unrecognised risk
    """
    if not text:
        raise AIUnavailableError("No response from AI")

    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise AIUnavailableError(f"Invalid JSON from AI: {e}") from e

    if not isinstance(data, dict):
        raise AIUnavailableError("AI response is not a JSON object")

    risk = RiskLevel.parse(data.get("risk"))
    if risk == RiskLevel.UNKNOWN:
        raise AIUnavailableError(f"Unrecognised risk level: {data.get('risk')!r}")

    advice = str(data.get("advice") or "").strip() or default_advice
    return Assessment(risk=risk, advice=advice)


def _format_elevation(elevation: Optional[float], language: str) -> str:
    if elevation is None:
        return "không xác định" if language == "vi" else "unknown"
    return f"{elevation:g}"


def _hazard_label(level, language: str) -> str:
    if language == "vi":
        return HAZARD_LABELS_VI.get(level.value, level.value)
    return level.value.upper()


def format_station_context(stations: Sequence[StationAssessment], language: str, along_route: bool = False) -> str:
    """NCHMF station block for prompts (empty string when no stations)"""
    if not stations:
        return ""

    lines = []
    for station in stations:
        distance = f"{station.distance_km:.1f}" if station.distance_km is not None else "?"
        rain_now = f"{station.rainfall_now:.1f}" if station.rainfall_now is not None else "N/A"
        place = ", ".join(name for name in station.admin_names if name)
        if language == "vi":
            where = f"cách tuyến đường {distance}km" if along_route else f"cách {distance}km"
            lines.append(
                f"• {place} ({where}):\n"
                f"   - Nguy cơ lũ quét: {_hazard_label(station.flash_flood_risk, language)}\n"
                f"   - Nguy cơ sạt lở: {_hazard_label(station.landslide_risk, language)}\n"
                f"   - Mưa hiện tại: {rain_now}mm\n"
                f"   - Dự báo 6h: {station.rainfall_6h_forecast:.1f}mm"
            )
        else:
            where = f"{distance}km from route" if along_route else f"{distance}km away"
            lines.append(
                f"• {place} ({where}):\n"
                f"   - Flash Flood Risk: {_hazard_label(station.flash_flood_risk, language)}\n"
                f"   - Landslide Risk: {_hazard_label(station.landslide_risk, language)}\n"
                f"   - Current Rainfall: {rain_now}mm\n"
                f"   - 6h Forecast: {station.rainfall_6h_forecast:.1f}mm"
            )

    if language == "vi":
        header = "DỮ LIỆU TRẠM QUAN TRẮC NCHMF (dữ liệu chính thức của Việt Nam):"
        footer = "QUAN TRỌNG: Đây là đánh giá chính thức từ chuyên gia khí tượng. Hãy ưu tiên dữ liệu này."
    else:
        header = "OFFICIAL NCHMF MONITORING STATIONS (Vietnam government data):"
        footer = "IMPORTANT: These are official assessments from Vietnamese meteorologists. Give them significant weight."
    return f"\n{header}\n" + "\n".join(lines) + f"\n{footer}\n"


def format_dangerous_segments(route: RouteSummary, language: str) -> str:
    segments = route.dangerous_segments
    if not segments:
        if language == "vi":
            return "✓ Không phát hiện đoạn nguy hiểm trên tuyến đường."
        return "✓ No dangerous segments detected on route."

    lines = "\n".join(
        f"• Km {seg.distance_from_start_km}: {seg.risk_level.value} - {seg.reason}" for seg in segments
    )
    if language == "vi":
        return f"⚠️ CẢNH BÁO: Phát hiện {len(segments)} đoạn nguy hiểm trên tuyến đường:\n{lines}"
    return f"⚠️ WARNING: Detected {len(segments)} dangerous segments on route:\n{lines}"


def build_point_prompt(
    snapshot: EnvironmentalSnapshot,
    vehicle: VehicleType,
    stations: Sequence[StationAssessment],
    language: str = "vi",
) -> str:
    """Prompt for a single-location assessment"""
    vehicle_context = message(VEHICLE_PROMPT_CONTEXT[vehicle.value], language)
    stations_context = format_station_context(stations, language)
    elevation = _format_elevation(snapshot.elevation, language)
    total_rain = snapshot.precipitation + snapshot.precip_forecast_6h

    if language == "en":
        return f"""
Analyze flood risk data for a location in Vietnam ({snapshot.location_name}):
- Elevation: {elevation} m
- Current rainfall: {snapshot.precipitation} mm/hour
- 6h forecast: {snapshot.precip_forecast_6h} mm
- Total upcoming rain: {total_rain} mm
- 72-hour accumulated rainfall: {snapshot.precip_72h} mm (CRITICAL INDICATOR)
- River discharge: {snapshot.river_discharge} m3/s
{stations_context}
VEHICLE: {vehicle_context}

VIETNAM CONTEXT:
• Elevation <3m: HIGH DANGER (deltas, central coast, urban low-lying areas)
• Elevation 3-10m: MEDIUM RISK
• 72h rain >100mm: ground saturated, rivers overflowing
• 72h rain 50-100mm: flooding likely in low areas
• Current rain >20mm/h: very heavy, severe flooding risk; 10-20mm/h: heavy

Prioritize 72h accumulated rainfall as the primary indicator of existing floods.

Return JSON with:
1. "risk": "Low" | "Medium" | "High"
2. "advice": specific advice (1-2 sentences) in English

Return ONLY raw JSON, no explanation.
"""

    return f"""
Phân tích dữ liệu rủi ro lũ lụt cho địa điểm tại Việt Nam ({snapshot.location_name}):
- Độ cao: {elevation} mét
- Lượng mưa hiện tại: {snapshot.precipitation} mm/giờ
- Dự báo 6h tới: {snapshot.precip_forecast_6h} mm
- Tổng mưa sắp tới: {total_rain} mm
- Mưa tích lũy 72 giờ qua: {snapshot.precip_72h} mm (CHỈ SỐ QUAN TRỌNG NHẤT)
- Lưu lượng sông: {snapshot.river_discharge} m3/s
{stations_context}
PHƯƠNG TIỆN: {vehicle_context}

BỐI CẢNH VIỆT NAM:
• Độ cao <3m: NGUY HIỂM CAO (đồng bằng, ven biển miền Trung, vùng trũng đô thị)
• Độ cao 3-10m: RỦI RO TRUNG BÌNH
• Mưa 72h >100mm: đất bão hòa, sông tràn bờ
• Mưa 72h 50-100mm: có thể ngập ở vùng trũng
• Mưa hiện tại >20mm/giờ: rất lớn, nguy cơ ngập nghiêm trọng; 10-20mm/giờ: mưa lớn

Ưu tiên mưa tích lũy 72h là chỉ số chính để phát hiện ngập lụt hiện tại.

Trả về JSON với:
1. "risk": "Low" | "Medium" | "High" (giữ nguyên tiếng Anh)
2. "advice": lời khuyên cụ thể (1-2 câu) bằng Tiếng Việt

CHỈ trả về JSON thô, không giải thích thêm.
"""


def build_route_prompt(
    start: EnvironmentalSnapshot,
    end: EnvironmentalSnapshot,
    route: RouteSummary,
    vehicle: VehicleType,
    stations: Sequence[StationAssessment],
    language: str = "vi",
) -> str:
    """Prompt for a whole-route travel safety assessment"""
    vehicle_context = message(VEHICLE_PROMPT_CONTEXT[vehicle.value], language)
    stations_context = format_station_context(stations, language, along_route=True)
    dangerous_info = format_dangerous_segments(route, language)
    distance_km = f"{route.total_distance_meters / 1000:.1f}"
    duration_min = round(route.total_duration_seconds / 60)

    if language == "en":
        return f"""
Evaluate travel safety for a journey in Vietnam during adverse weather:

VEHICLE: {vehicle_context}

ROUTE INFORMATION:
• Distance: {distance_km} km
• Estimated time: {duration_min} minutes
{dangerous_info}
{stations_context}
STARTING POINT (A) {start.location_name}:
• Elevation: {_format_elevation(start.elevation, language)}m
• Current rainfall: {start.precipitation}mm
• 6h forecast: {start.precip_forecast_6h}mm

DESTINATION (B) {end.location_name}:
• Elevation: {_format_elevation(end.elevation, language)}m
• Current rainfall: {end.precipitation}mm
• 6h forecast: {end.precip_forecast_6h}mm

EVALUATION PRINCIPLES:
• Elevation <3m at ANY point: high flood risk
• Rain >20mm: serious risk; 10-20mm: limit travel
• If HIGH risk segments exist, overall risk should be HIGH or MEDIUM

Return JSON:
1. "risk": "Low" | "Medium" | "High"
2. "advice": specific advice (max 2 sentences) in English

Return ONLY raw JSON.
"""

    return f"""
Đánh giá an toàn hành trình tại Việt Nam trong điều kiện thời tiết xấu:

PHƯƠNG TIỆN: {vehicle_context}

THÔNG TIN HÀNH TRÌNH:
• Khoảng cách: {distance_km} km
• Thời gian dự kiến: {duration_min} phút
{dangerous_info}
{stations_context}
ĐIỂM XUẤT PHÁT (A) {start.location_name}:
• Độ cao: {_format_elevation(start.elevation, language)}m
• Lượng mưa hiện tại: {start.precipitation}mm
• Dự báo 6h tới: {start.precip_forecast_6h}mm

ĐIỂM ĐẾN (B) {end.location_name}:
• Độ cao: {_format_elevation(end.elevation, language)}m
• Lượng mưa hiện tại: {end.precipitation}mm
• Dự báo 6h tới: {end.precip_forecast_6h}mm

NGUYÊN TẮC ĐÁNH GIÁ:
• Độ cao <3m ở BẤT KỲ điểm nào: nguy cơ ngập cao
• Mưa >20mm: rủi ro nghiêm trọng; 10-20mm: hạn chế di chuyển
• Nếu có đoạn nguy hiểm HIGH: đánh giá risk là HIGH hoặc MEDIUM

Trả về JSON:
1. "risk": "Low" | "Medium" | "High"
2. "advice": lời khuyên cụ thể (tối đa 2 câu): có nên đi không, cần chú ý gì

CHỈ trả về JSON thô.
"""


class AIAnalysisService:
    """Service for AI-powered flood risk evaluation"""

    def __init__(self, client: Any = None):
        self.client = client or (OpenAI(
            api_key=DEEPSEEK_API_KEY,
            base_url=DEEPSEEK_BASE_URL,
            timeout=AI_TIMEOUT_SECONDS,
        ) if DEEPSEEK_API_KEY else None)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _call_deepseek_api(self, prompt: str, language: str) -> Optional[str]:
        if not self.client:
            raise AIUnavailableError("DeepSeek API key not configured")

        try:
            response = self.client.chat.completions.create(
                model=AI_MODEL,
                messages=[
                    {"role": "system", "content": message(SYSTEM_PROMPT, language)},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=500,
            )
        except Exception as e:
            raise AIUnavailableError(f"DeepSeek request failed: {e}") from e

        return response.choices[0].message.content

    def evaluate_point(
        self,
        snapshot: EnvironmentalSnapshot,
        vehicle: VehicleType = VehicleType.UNKNOWN,
        stations: Sequence[StationAssessment] = (),
        language: str = "vi",
    ) -> Assessment:
        """
        Đánh giá rủi ro một điểm bằng AI

        Raises:
            AIUnavailableError: khi chưa cấu hình, lỗi kết nối hoặc trả lời không hợp lệ
        """
        print(f"[AI Service] Evaluating point {snapshot.location_name} ({language})")
        prompt = build_point_prompt(snapshot, vehicle, stations, language)
        text = self._call_deepseek_api(prompt, language)
        result = parse_ai_response(text, message(ADVICE_MESSAGES[ADVICE_DEFAULT], language))
        print(f"[AI Service] ✓ Point risk: {result.risk.value}")
        return result

    def evaluate_route(
        self,
        start: EnvironmentalSnapshot,
        end: EnvironmentalSnapshot,
        route: RouteSummary,
        vehicle: VehicleType = VehicleType.UNKNOWN,
        stations: Sequence[StationAssessment] = (),
        language: str = "vi",
    ) -> Assessment:
        """
        Đánh giá an toàn toàn tuyến bằng AI

        Raises:
            AIUnavailableError: khi chưa cấu hình, lỗi kết nối hoặc trả lời không hợp lệ
        """
        print(f"[AI Service] Evaluating route with {len(route.dangerous_segments)} dangerous segments")
        prompt = build_route_prompt(start, end, route, vehicle, stations, language)
        text = self._call_deepseek_api(prompt, language)
        result = parse_ai_response(text, message(ROUTE_DEFAULT_ADVICE, language))
        print(f"[AI Service] ✓ Route risk: {result.risk.value}")
        return result
