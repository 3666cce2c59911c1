#!/usr/bin/env python3
"""
Data models / Pydantic schemas
"""
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    UNKNOWN = "Unknown"

    @property
    def rank(self) -> int:
        """Ordering Low < Medium < High; Unknown ranks below everything."""
        return _RISK_RANK[self]

    @classmethod
    def parse(cls, value) -> "RiskLevel":
        """Normalise an external risk label ("high", "Cao", "HIGH"...)."""
        if isinstance(value, RiskLevel):
            return value
        text = str(value or "").strip().lower()
        return _RISK_ALIASES.get(text, cls.UNKNOWN)


_RISK_RANK = {
    RiskLevel.UNKNOWN: -1,
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
}

_RISK_ALIASES = {
    "low": RiskLevel.LOW,
    "thấp": RiskLevel.LOW,
    "medium": RiskLevel.MEDIUM,
    "trung bình": RiskLevel.MEDIUM,
    "high": RiskLevel.HIGH,
    "cao": RiskLevel.HIGH,
}


def max_risk(*levels: RiskLevel) -> RiskLevel:
    """Highest of the given levels (Unknown never wins over a real level)."""
    return max(levels, key=lambda level: level.rank)


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class HazardLevel(str, Enum):
    """Official NCHMF hazard rating (flash flood / landslide)"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    PEDESTRIAN = "pedestrian"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        # Accept "CAR", "Motorcycle"... from older clients
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class AlertLevel(str, Enum):
    """GDACS alert colour"""
    GREEN = "Green"
    ORANGE = "Orange"
    RED = "Red"


# =====================================================
# Core value types
# =====================================================

class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def label(self) -> str:
        return f"{self.lat:.4f}, {self.lng:.4f}"


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    @classmethod
    def from_list(cls, values) -> "BoundingBox":
        """Build from GeoJSON order [minLng, minLat, maxLng, maxLat]"""
        min_lng, min_lat, max_lng, max_lat = (float(v) for v in values)
        return cls(min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat)


class EnvironmentalSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    elevation: Optional[float] = None  # meters, None = unknown
    precipitation: float = Field(default=0.0, ge=0)  # mm, current hourly rate
    precip_forecast_6h: float = Field(default=0.0, ge=0)  # mm, next 6 hours
    precip_72h: float = Field(default=0.0, ge=0)  # mm, trailing 72 hours
    river_discharge: float = Field(default=0.0, ge=0)  # m3/s, informational
    location_name: str = ""


class StationAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    location: Coordinate
    commune: str = ""
    district: str = ""
    province: str = ""
    rainfall_now: Optional[float] = None
    rainfall_6h_forecast: float = 0.0
    flash_flood_risk: HazardLevel = HazardLevel.LOW
    landslide_risk: HazardLevel = HazardLevel.LOW
    distance_km: Optional[float] = None

    @property
    def admin_names(self) -> Tuple[str, str, str]:
        return self.commune, self.district, self.province


class Assessment(BaseModel):
    risk: RiskLevel
    advice: str
    confidence: Optional[ConfidenceLevel] = None


class DangerousSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    sequence_index: int
    risk_level: RiskLevel
    reasons: List[str] = []
    distance_from_start_km: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def reason(self) -> str:
        return ", ".join(self.reasons)


class RouteSample(BaseModel):
    """One sampled route point with its fetched environmental data"""
    snapshot: EnvironmentalSnapshot
    coordinate: Coordinate
    sequence_index: int


class RouteGeometry(BaseModel):
    """Routing provider output"""
    polyline: List[Coordinate]
    distance_meters: float
    duration_seconds: float


class RouteSummary(BaseModel):
    polyline: List[Coordinate]
    total_distance_meters: float
    total_duration_seconds: float
    dangerous_segments: List[DangerousSegment] = []


# =====================================================
# External data sources
# =====================================================

class FloodAlert(BaseModel):
    id: str
    alert_level: AlertLevel
    bbox: BoundingBox
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    affected_countries: List[str] = []
    description: str = "Flood event"
    severity: float = 0.0
    is_current: bool = True


class WeatherWarning(BaseModel):
    title: str
    url: Optional[str] = None
    timestamp: str
    severity: Literal["emergency", "high", "medium"] = "medium"
    category: Literal["flood", "rain", "landslide", "typhoon", "cold", "other"] = "other"


class SearchResult(BaseModel):
    place_id: Optional[int] = None
    display_name: str
    lat: float
    lng: float


# =====================================================
# Request/Response Models
# =====================================================

class PointAnalysisRequest(BaseModel):
    location: Coordinate
    name: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.UNKNOWN
    language: Literal["vi", "en"] = "vi"


class PointAnalysisResponse(BaseModel):
    risk: RiskLevel
    advice: str
    confidence: ConfidenceLevel
    snapshot: EnvironmentalSnapshot
    nearby_stations: List[StationAssessment] = []
    flood_alert_level: Optional[AlertLevel] = None
    from_ai: bool = False


class RouteAnalysisRequest(BaseModel):
    start: Coordinate
    end: Coordinate
    start_name: Optional[str] = None
    end_name: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.UNKNOWN
    language: Literal["vi", "en"] = "vi"


class RouteAnalysisResponse(BaseModel):
    risk: RiskLevel
    advice: str
    route: RouteSummary
    start: EnvironmentalSnapshot
    end: EnvironmentalSnapshot
    nearby_stations: List[StationAssessment] = []
    flood_alert_level: Optional[AlertLevel] = None
    from_ai: bool = False
