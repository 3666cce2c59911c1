#!/usr/bin/env python3
"""
Controller layer - API route handlers
"""
from .analysis_controller import router as analysis_router
from .alert_controller import router as alert_router
from .station_controller import router as station_router
from .location_controller import router as location_router

__all__ = [
    "analysis_router",
    "alert_router",
    "station_router",
    "location_router",
]
