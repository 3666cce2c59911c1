#!/usr/bin/env python3
"""
Elevation Cache Repository - Lưu độ cao đã tra cứu (hết hạn sau 7 ngày)
"""
from typing import Optional, Tuple

from config import ELEVATION_CACHE_TTL_SECONDS
from .base import BaseRepository

# Open-Elevation returns nonsense for some ocean tiles; ignore values outside this range
MIN_VALID_ELEVATION_M = -500
MAX_VALID_ELEVATION_M = 9000


def cache_key(lat: float, lng: float) -> str:
    """Khóa cache: tọa độ làm tròn 3 chữ số (~100m)"""
    return f"{lat:.3f},{lng:.3f}"


def is_valid_elevation(value) -> bool:
    return isinstance(value, (int, float)) and MIN_VALID_ELEVATION_M <= value <= MAX_VALID_ELEVATION_M


class ElevationCacheRepository(BaseRepository):
    """Repository for elevation lookups"""

    def get_elevation(self, lat: float, lng: float) -> Tuple[bool, Optional[float]]:
        """
        Tra độ cao trong cache

        Returns:
            (hit, elevation): hit=False khi không có hoặc đã hết hạn
        """
        query = """
            SELECT elevation FROM elevation_cache
            WHERE cache_key = %s
              AND fetched_at > CURRENT_TIMESTAMP - make_interval(secs => %s)
            LIMIT 1
        """

        try:
            row = self.execute_query(query, (cache_key(lat, lng), ELEVATION_CACHE_TTL_SECONDS), fetch_one=True)
        except Exception as e:
            print(f"[Elevation Cache] ✗ Lỗi khi đọc cache: {e}")
            return False, None

        if row is None:
            return False, None

        elevation = row.get("elevation")
        if elevation is None:
            return True, None
        elevation = float(elevation)
        if not is_valid_elevation(elevation):
            return False, None
        return True, elevation

    def save_elevation(self, lat: float, lng: float, elevation: Optional[float]) -> bool:
        """Lưu (hoặc cập nhật) độ cao cho một ô tọa độ"""
        query = """
            INSERT INTO elevation_cache (cache_key, latitude, longitude, elevation, fetched_at)
            VALUES (%s, %s, %s, %s, CURRENT_TIMESTAMP)
            ON CONFLICT (cache_key) DO UPDATE SET
                elevation = EXCLUDED.elevation,
                fetched_at = EXCLUDED.fetched_at
        """

        try:
            return self.execute_write(query, (cache_key(lat, lng), lat, lng, elevation)) > 0
        except Exception as e:
            print(f"[Elevation Cache] ✗ Lỗi khi lưu cache: {e}")
            return False

    def cleanup_expired(self) -> int:
        """Xóa các bản ghi đã hết hạn, trả về số bản ghi đã xóa"""
        query = """
            DELETE FROM elevation_cache
            WHERE fetched_at <= CURRENT_TIMESTAMP - make_interval(secs => %s)
        """

        try:
            return self.execute_write(query, (ELEVATION_CACHE_TTL_SECONDS,))
        except Exception as e:
            print(f"[Elevation Cache] ✗ Lỗi cleanup: {e}")
            return 0
