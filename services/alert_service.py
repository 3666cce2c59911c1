#!/usr/bin/env python3
"""
Alert Service - GDACS flood events and NCHMF weather warnings

Features:
- GDACS active flood events for Vietnam, refreshed every 6 hours
- NCHMF warning bulletins, cached for 10 minutes
- Snapshots replaced wholesale under a lock; readers never see partial lists
"""
import threading
from datetime import datetime
from typing import Dict, Optional, Sequence, Tuple, Any

from config import GDACS_REFRESH_SECONDS, WARNINGS_REFRESH_SECONDS
from models import Coordinate, FloodAlert, WeatherWarning
from route_aggregator import highest_matching_alert
import weather_api


class AlertService:
    """Service for flood alert operations"""

    def __init__(
        self,
        gdacs_refresh_seconds: int = GDACS_REFRESH_SECONDS,
        warnings_refresh_seconds: int = WARNINGS_REFRESH_SECONDS,
    ):
        self.gdacs_refresh_seconds = gdacs_refresh_seconds
        self.warnings_refresh_seconds = warnings_refresh_seconds
        self._flood_alerts: Tuple[FloodAlert, ...] = ()
        self._flood_alerts_time: Optional[datetime] = None
        self._warnings: Tuple[WeatherWarning, ...] = ()
        self._warnings_time: Optional[datetime] = None
        self._lock = threading.Lock()

    @staticmethod
    def _is_fresh(fetched_at: Optional[datetime], ttl: int) -> bool:
        if fetched_at is None:
            return False
        return (datetime.now() - fetched_at).total_seconds() < ttl

    # ==================== GDACS ====================

    def refresh_flood_alerts(self) -> Tuple[FloodAlert, ...]:
        """Fetch GDACS events; an empty answer replaces the list (no active floods)"""
        print("[AlertService] Fetching GDACS flood events...")
        alerts = tuple(weather_api.fetch_gdacs_flood_alerts())

        with self._lock:
            self._flood_alerts = alerts
            self._flood_alerts_time = datetime.now()

        print(f"[AlertService] ✓ {len(alerts)} active GDACS flood events")
        return alerts

    def get_flood_alerts(self) -> Tuple[FloodAlert, ...]:
        with self._lock:
            if self._is_fresh(self._flood_alerts_time, self.gdacs_refresh_seconds):
                return self._flood_alerts
        return self.refresh_flood_alerts()

    def find_alert_for(self, points: Sequence[Coordinate]) -> Optional[FloodAlert]:
        """Highest active GDACS alert covering any of the points"""
        return highest_matching_alert(points, self.get_flood_alerts())

    # ==================== NCHMF WARNINGS ====================

    def get_warnings(self) -> Tuple[WeatherWarning, ...]:
        """Latest NCHMF warning bulletins (10-minute cache)"""
        with self._lock:
            if self._is_fresh(self._warnings_time, self.warnings_refresh_seconds):
                return self._warnings

        print("[AlertService] Fetching NCHMF warnings...")
        warnings = tuple(weather_api.fetch_vietnamese_warnings())

        with self._lock:
            self._warnings = warnings
            self._warnings_time = datetime.now()
        return warnings

    def get_combined_alerts(self) -> Dict[str, Any]:
        flood_alerts = self.get_flood_alerts()
        warnings = self.get_warnings()
        return {
            "flood_alerts": [a.model_dump() for a in flood_alerts],
            "warnings": [w.model_dump() for w in warnings],
            "total": len(flood_alerts) + len(warnings),
            "generated_at": datetime.now().isoformat(),
        }

    def invalidate_cache(self):
        with self._lock:
            self._flood_alerts_time = None
            self._warnings_time = None
        print("✓ Invalidated alerts cache")
