#!/usr/bin/env python3
"""
Location Service - Place search (Nominatim, Vietnam only)
"""
from typing import Dict

import weather_api

MIN_QUERY_LENGTH = 3


class LocationService:
    """Service for location search"""

    def search(self, query: str, limit: int = 5) -> Dict:
        """Tìm địa điểm; truy vấn ngắn hơn 3 ký tự trả về danh sách rỗng"""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return {"query": query, "total": 0, "results": []}

        results = weather_api.search_places(query, limit=limit)
        return {
            "query": query,
            "total": len(results),
            "results": [r.model_dump() for r in results],
        }
