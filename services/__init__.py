#!/usr/bin/env python3
"""
Service layer - Business logic
"""
from .ai_analysis_service import AIAnalysisService, AIUnavailableError
from .weather_service import WeatherService
from .station_service import StationService
from .alert_service import AlertService
from .location_service import LocationService
from .analysis_service import AnalysisService, RouteNotFoundError

__all__ = [
    "AIAnalysisService",
    "AIUnavailableError",
    "WeatherService",
    "StationService",
    "AlertService",
    "LocationService",
    "AnalysisService",
    "RouteNotFoundError",
]
