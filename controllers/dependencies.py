#!/usr/bin/env python3
"""
Shared service instances and request helpers for the controllers

Station and alert snapshots are shared between the analysis endpoints,
the listing endpoints and the background refresh in app.py.
"""
from fastapi import HTTPException, Request

from data.constants import RATE_LIMIT_MESSAGE
from services.ai_analysis_service import AIAnalysisService
from services.alert_service import AlertService
from services.analysis_service import AnalysisService
from services.location_service import LocationService
from services.request_manager import RateLimiter
from services.station_service import StationService
from services.weather_service import WeatherService

# DB cache is switched on at startup once the database is known to be reachable
weather_service = WeatherService(use_db_cache=False)
station_service = StationService()
alert_service = AlertService()
location_service = LocationService()
analysis_service = AnalysisService(
    weather_service=weather_service,
    station_service=station_service,
    alert_service=alert_service,
    ai_service=AIAnalysisService(),
)


def client_ip(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop behind a proxy"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(limiter: RateLimiter, request: Request) -> int:
    """
    Count the request against limiter

    Returns:
        Remaining requests in the current window

    Raises:
        HTTPException: 429 with a bilingual message when the limit is hit
    """
    result = limiter.check(client_ip(request))
    if not result.allowed:
        raise HTTPException(
            status_code=429,
            detail=RATE_LIMIT_MESSAGE,
            headers={"Retry-After": str(max(1, int(result.reset_in)))},
        )
    return result.remaining
