#!/usr/bin/env python3
"""
Station Service - NCHMF flash flood / landslide monitoring stations

The station list is fetched from NCHMF, mapped into StationAssessment
(Vietnamese hazard labels -> HazardLevel) and kept as an immutable
snapshot that is replaced wholesale on refresh.
"""
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from config import STATIONS_REFRESH_SECONDS
from data.constants import NCHMF_RISK_LABELS, POINT_STATION_MAX_RESULTS, POINT_STATION_RADIUS_KM
from models import Coordinate, HazardLevel, StationAssessment
from station_locator import find_nearby_stations
import weather_api


def _hazard(label) -> HazardLevel:
    """'Thấp' / 'Trung bình' / 'Cao' -> HazardLevel"""
    text = str(label or "").strip()
    return HazardLevel(NCHMF_RISK_LABELS.get(text, text))


def parse_station(record: Dict) -> StationAssessment:
    """
    Map one raw NCHMF record to StationAssessment

    Raises:
        KeyError, TypeError, ValueError, ValidationError: invalid record
    """
    rainfall_now = record.get("luongmuatd")
    return StationAssessment(
        id=int(record["id"]),
        location=Coordinate(lat=float(record["lat"]), lng=float(record["lon"])),
        commune=record.get("commune_name") or "",
        district=record.get("district_name") or "",
        province=record.get("provinceName") or "",
        rainfall_now=float(rainfall_now) if rainfall_now is not None else None,
        rainfall_6h_forecast=float(record.get("luongmuadb") or 0),
        flash_flood_risk=_hazard(record["nguycoluquet"]),
        landslide_risk=_hazard(record["nguycosatlo"]),
    )


def parse_stations(records: List[Dict]) -> List[StationAssessment]:
    """Map raw records, dropping invalid ones individually"""
    stations = []
    skipped = 0
    for record in records:
        try:
            stations.append(parse_station(record))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            skipped += 1
            print(f"[Stations] Skipped invalid record {record.get('id') if isinstance(record, dict) else '?'}: {e}")

    if skipped:
        print(f"[Stations] ✗ {skipped} invalid records dropped")
    return stations


class StationService:
    """Service for NCHMF monitoring station data"""

    def __init__(self, refresh_seconds: int = STATIONS_REFRESH_SECONDS):
        self.refresh_seconds = refresh_seconds
        self._stations: Tuple[StationAssessment, ...] = ()
        self._fetched_at: Optional[datetime] = None
        self._lock = threading.Lock()

    def _is_cache_valid(self) -> bool:
        if self._fetched_at is None:
            return False
        elapsed = (datetime.now() - self._fetched_at).total_seconds()
        return elapsed < self.refresh_seconds

    def refresh(self) -> Tuple[StationAssessment, ...]:
        """Fetch a fresh station list; keeps the previous snapshot when NCHMF returns nothing"""
        print("[Stations] Fetching NCHMF station list...")
        stations = tuple(parse_stations(weather_api.fetch_nchmf_stations()))

        with self._lock:
            if stations or not self._stations:
                self._stations = stations
            self._fetched_at = datetime.now()
            current = self._stations

        print(f"[Stations] ✓ {len(current)} stations available")
        return current

    def get_stations(self) -> Tuple[StationAssessment, ...]:
        """Current station snapshot, refreshed when older than the refresh interval"""
        with self._lock:
            if self._is_cache_valid():
                return self._stations
        return self.refresh()

    def find_nearby(
        self,
        target: Coordinate,
        radius_km: float = POINT_STATION_RADIUS_KM,
        max_results: int = POINT_STATION_MAX_RESULTS,
    ) -> List[StationAssessment]:
        """Stations around target, nearest first"""
        return find_nearby_stations(target, self.get_stations(), radius_km, max_results)

    def get_stations_summary(self) -> Dict:
        stations = self.get_stations()
        return {
            "stations": [s.model_dump() for s in stations],
            "total_stations": len(stations),
            "generated_at": self._fetched_at.isoformat() if self._fetched_at else None,
        }
