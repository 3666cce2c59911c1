#!/usr/bin/env python3
"""
Static data: advice texts, vehicle context and NCHMF vocabulary.

All user-facing strings exist in Vietnamese ("vi", default) and English ("en").
"""

# Risk thresholds used by the rule cascade
ELEVATION_VERY_LOW_M = 3
ELEVATION_LOW_M = 10
ELEVATION_LOW_ACCUMULATION_M = 5
PRECIP_72H_SATURATED_MM = 100
PRECIP_72H_MODERATE_MM = 50
PRECIP_VERY_HEAVY_MM = 20
PRECIP_HEAVY_MM = 10
TOTAL_RAIN_PROLONGED_MM = 30
TOTAL_RAIN_HEAVY_MM = 20
STATION_GROUND_TRUTH_RADIUS_KM = 15

# Station lookups
POINT_STATION_RADIUS_KM = 50
POINT_STATION_MAX_RESULTS = 3
ROUTE_ENDPOINT_STATION_RADIUS_KM = 50
ROUTE_ENDPOINT_STATION_MAX_RESULTS = 2
ROUTE_SEGMENT_STATION_RADIUS_KM = 30
ROUTE_SEGMENT_STATION_MAX_RESULTS = 1

# Keys of ADVICE_MESSAGES, one per triggering condition
ADVICE_DEFAULT = "default"
ADVICE_SATURATED_LOWLAND = "saturated_lowland"
ADVICE_SATURATED = "saturated"
ADVICE_ACCUMULATION_LOW_ELEVATION = "accumulation_low_elevation"
ADVICE_LOW_LYING = "low_lying"
ADVICE_MEDIUM_ELEVATION = "medium_elevation"
ADVICE_VERY_HEAVY_RAIN = "very_heavy_rain"
ADVICE_HEAVY_RAIN = "heavy_rain"

ADVICE_MESSAGES = {
    ADVICE_DEFAULT: {
        "vi": "Hãy cảnh giác và theo dõi tin tức địa phương.",
        "en": "Stay alert and monitor local news.",
    },
    ADVICE_SATURATED_LOWLAND: {
        "vi": "Đất bão hòa do mưa lớn (3 ngày qua). Nguy cơ ngập cao do sông tràn bờ. Tránh di chuyển.",
        "en": "Ground saturated from heavy rain (past 3 days). High flooding risk from overflowing rivers. Avoid travel.",
    },
    ADVICE_SATURATED: {
        "vi": "Mưa lớn trong 3 ngày qua. Đất bão hòa, có thể ngập ở vùng trũng.",
        "en": "Heavy rainfall over past 3 days. Ground saturated, flooding possible in low areas.",
    },
    ADVICE_ACCUMULATION_LOW_ELEVATION: {
        "vi": "Mưa tích lũy vừa + độ cao thấp. Theo dõi mực nước dâng.",
        "en": "Moderate rain accumulation + low elevation. Watch for rising water levels.",
    },
    ADVICE_LOW_LYING: {
        "vi": "Khu vực thấp trũng, nguy cơ ngập cao. Di chuyển lên vùng cao hơn ngay.",
        "en": "Low-lying area, high flood risk. Move to higher ground immediately.",
    },
    ADVICE_MEDIUM_ELEVATION: {
        "vi": "Khu vực có độ cao trung bình. Theo dõi mực nước và chuẩn bị sơ tán nếu cần.",
        "en": "Medium elevation area. Monitor water levels and prepare to evacuate if needed.",
    },
    ADVICE_VERY_HEAVY_RAIN: {
        "vi": "Mưa rất lớn, nguy cơ lũ quét hoặc ngập lụt cao. Tránh di chuyển.",
        "en": "Very heavy rain, high risk of flash floods or severe flooding. Avoid travel.",
    },
    ADVICE_HEAVY_RAIN: {
        "vi": "Mưa lớn, hạn chế di chuyển. Tránh các vùng trũng thấp.",
        "en": "Heavy rain, limit travel. Avoid low-lying areas.",
    },
}

# Vehicle-specific wording appended to rule-based advice
VEHICLE_ADVICE = {
    "car": {
        "vi": "Ô tô: không đi qua chỗ nước sâu trên 30cm.",
        "en": "Car: do not drive through water deeper than 30cm.",
    },
    "motorcycle": {
        "vi": "Xe máy: rất nguy hiểm khi nước sâu trên 15cm.",
        "en": "Motorcycle: very dangerous in water deeper than 15cm.",
    },
    "pedestrian": {
        "vi": "Đi bộ: tránh dòng nước chảy sâu trên 15cm.",
        "en": "Pedestrian: avoid flowing water deeper than 15cm.",
    },
}

# Vehicle context for AI prompts
VEHICLE_PROMPT_CONTEXT = {
    "car": {
        "vi": "Người dùng đi bằng Ô TÔ. An toàn khi nước cao <25-30cm, nguy hiểm khi >30cm (có thể hỏng động cơ).",
        "en": "User is travelling by CAR. Safe below 25-30cm of water, dangerous above 30cm (engine damage possible).",
    },
    "motorcycle": {
        "vi": "Người dùng đi bằng XE MÁY. Rất nguy hiểm khi nước cao >12-15cm (xe có thể chết máy, người dễ té).",
        "en": "User is travelling by MOTORCYCLE. Very dangerous above 12-15cm of water (engine stalls, rider may fall).",
    },
    "pedestrian": {
        "vi": "Người dùng ĐI BỘ. Nguy hiểm khi nước cao >15cm (dòng chảy mạnh có thể cuốn trôi).",
        "en": "User is WALKING. Dangerous above 15cm of water (strong currents can sweep people away).",
    },
    "unknown": {
        "vi": "Người dùng di chuyển (chưa rõ phương tiện).",
        "en": "User is travelling (vehicle unknown).",
    },
}

# Prefixes for degraded answers
OFFLINE_PREFIX = {
    "vi": "Chế độ ngoại tuyến. ",
    "en": "Offline mode. ",
}
AI_UNREACHABLE_PREFIX = {
    "vi": "Không thể kết nối với AI. ",
    "en": "Unable to connect to AI. ",
}

ROUTE_FALLBACK_ADVICE = {
    "vi": "Chế độ ngoại tuyến. Hãy lái xe cẩn thận và tránh các vùng trũng thấp ngập nước.",
    "en": "Offline mode. Drive carefully and avoid low-lying flooded areas.",
}
ROUTE_DEFAULT_ADVICE = {
    "vi": "Hãy lái xe cẩn thận và quan sát mực nước.",
    "en": "Drive carefully and monitor water levels.",
}

FLOOD_ALERT_BANNER = {
    "vi": "⚠️ Cảnh báo GDACS {level}: Phát hiện lũ lụt đang diễn ra qua vệ tinh. ",
    "en": "⚠️ GDACS {level} Alert: Active flood event detected by satellite. ",
}

# Dangerous segment reasons
SEGMENT_REASONS = {
    "very_low_elevation": {
        "vi": "độ cao rất thấp ({value:.1f}m)",
        "en": "very low elevation ({value:.1f}m)",
    },
    "low_elevation": {
        "vi": "độ cao thấp ({value:.1f}m)",
        "en": "low elevation ({value:.1f}m)",
    },
    "prolonged_rain": {
        "vi": "mưa lớn kéo dài ({value:.0f}mm)",
        "en": "prolonged heavy rain ({value:.0f}mm)",
    },
    "very_heavy_rain": {
        "vi": "mưa rất lớn ({value}mm)",
        "en": "very heavy rain ({value}mm)",
    },
    "heavy_rain": {
        "vi": "mưa lớn ({value}mm)",
        "en": "heavy rain ({value}mm)",
    },
}

# NCHMF publishes hazard ratings as Vietnamese labels
NCHMF_RISK_LABELS = {
    "Thấp": "Low",
    "Trung bình": "Medium",
    "Cao": "High",
}

# Keyword tables for NCHMF warning titles (checked on upper-cased title)
WARNING_CATEGORY_KEYWORDS = [
    ("flood", ("LŨ", "FLOODING")),
    ("rain", ("MƯA", "RAIN")),
    ("landslide", ("SẠT LỞ", "LANDSLIDE")),
    ("typhoon", ("BÃO", "TYPHOON")),
    ("cold", ("LẠNH", "COLD")),
]
WARNING_SEVERITY_KEYWORDS = [
    ("emergency", ("KHẨN CẤP", "EMERGENCY", "ĐẶC BIỆT")),
    ("high", ("NGUY HIỂM", "RẤT LỚN", "QUAN TRỌNG")),
]

RATE_LIMIT_MESSAGE = {
    "error": "Too many requests. Please try again later.",
    "errorVi": "Quá nhiều yêu cầu. Vui lòng thử lại sau.",
}


def message(table: dict, language: str) -> str:
    """Pick the entry for language, falling back to Vietnamese."""
    return table.get(language) or table["vi"]
