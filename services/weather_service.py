#!/usr/bin/env python3
"""
Weather Service - Environmental snapshot for a coordinate

Combines elevation (cached) with Open-Meteo rainfall/discharge data.
Missing data never fails the request: elevation -> None, rainfall -> 0.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from config import ELEVATION_CACHE_TTL_SECONDS, ROUTE_FETCH_WORKERS
from models import Coordinate, EnvironmentalSnapshot
from repositories.elevation_cache_repository import (
    ElevationCacheRepository,
    cache_key,
    is_valid_elevation,
)
import weather_api


class WeatherService:
    """Service for environmental data per coordinate"""

    def __init__(self, elevation_repo: ElevationCacheRepository = None, use_db_cache: bool = True):
        self.elevation_repo = elevation_repo or ElevationCacheRepository()
        self.use_db_cache = use_db_cache
        self._elevation_cache: Dict[str, Tuple[Optional[float], datetime]] = {}
        self._cache_lock = threading.Lock()
        self._cache_ttl = ELEVATION_CACHE_TTL_SECONDS

    def _get_memory_elevation(self, key: str) -> Tuple[bool, Optional[float]]:
        with self._cache_lock:
            entry = self._elevation_cache.get(key)
        if entry is None:
            return False, None

        elevation, cached_at = entry
        elapsed = (datetime.now() - cached_at).total_seconds()
        if elapsed >= self._cache_ttl:
            return False, None
        return True, elevation

    def _set_memory_elevation(self, key: str, elevation: Optional[float]):
        with self._cache_lock:
            self._elevation_cache[key] = (elevation, datetime.now())

    def get_elevation(self, coords: Coordinate) -> Optional[float]:
        """
        Get elevation for a coordinate

        Lookup order: memory cache -> DB cache -> Open-Elevation API.
        Only valid, known elevations are cached so a failed lookup is retried.
        """
        key = cache_key(coords.lat, coords.lng)

        hit, elevation = self._get_memory_elevation(key)
        if hit:
            return elevation

        if self.use_db_cache:
            hit, elevation = self.elevation_repo.get_elevation(coords.lat, coords.lng)
            if hit:
                self._set_memory_elevation(key, elevation)
                return elevation

        elevation = weather_api.fetch_elevation(coords)
        if elevation is not None and is_valid_elevation(elevation):
            self._set_memory_elevation(key, elevation)
            if self.use_db_cache:
                self.elevation_repo.save_elevation(coords.lat, coords.lng, elevation)
        return elevation

    def get_snapshot(self, coords: Coordinate, name: str = None) -> EnvironmentalSnapshot:
        """
        Build the environmental snapshot for one coordinate

        Args:
            coords: Location
            name: Display name (defaults to "lat, lng")

        Returns:
            EnvironmentalSnapshot
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            elevation_future = executor.submit(self.get_elevation, coords)
            flood_future = executor.submit(weather_api.fetch_flood_data, coords)
            elevation = elevation_future.result()
            flood = flood_future.result()

        return EnvironmentalSnapshot(
            elevation=elevation,
            precipitation=max(0.0, flood.get("precip", 0.0)),
            precip_forecast_6h=max(0.0, flood.get("precip_forecast_6h", 0.0)),
            precip_72h=max(0.0, flood.get("precip_72h", 0.0)),
            river_discharge=max(0.0, flood.get("discharge", 0.0)),
            location_name=name or coords.label(),
        )

    def get_snapshots(self, coordinates: Sequence[Coordinate]) -> List[EnvironmentalSnapshot]:
        """
        Fetch snapshots for many coordinates in parallel (fan-out / fan-in)

        Results keep the input order.
        """
        if not coordinates:
            return []

        print(f"[Weather] Fetching {len(coordinates)} snapshots in parallel...")
        workers = min(ROUTE_FETCH_WORKERS, len(coordinates))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.get_snapshot, coordinates))

    def cleanup_expired(self) -> int:
        """Drop expired elevation entries from memory and DB"""
        now = datetime.now()
        with self._cache_lock:
            expired = [
                key for key, (_, cached_at) in self._elevation_cache.items()
                if (now - cached_at).total_seconds() >= self._cache_ttl
            ]
            for key in expired:
                del self._elevation_cache[key]

        deleted = self.elevation_repo.cleanup_expired() if self.use_db_cache else 0
        return len(expired) + deleted
