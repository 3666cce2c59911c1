#!/usr/bin/env python3
"""
Alert Controller - API routes for GDACS flood events and NCHMF warnings

IMPORTANT: All heavy synchronous operations are wrapped with run_in_executor()
to prevent blocking the FastAPI event loop.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException, Request

from services.request_manager import warnings_limiter
from .dependencies import alert_service, enforce_rate_limit

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])

# Thread pool for running sync operations without blocking event loop
_executor = ThreadPoolExecutor(max_workers=2)


@router.get("/gdacs")
async def get_gdacs_alerts():
    """
    Sự kiện lũ lụt đang diễn ra tại Việt Nam (GDACS, qua vệ tinh)

    Returns:
        Danh sách sự kiện với mức cảnh báo Green/Orange/Red và hộp bao
    """
    try:
        loop = asyncio.get_event_loop()
        alerts = await loop.run_in_executor(_executor, alert_service.get_flood_alerts)
        return {
            "total": len(alerts),
            "alerts": [a.model_dump() for a in alerts],
        }
    except Exception as e:
        print(f"Error in /api/alerts/gdacs: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/warnings")
async def get_weather_warnings(request: Request):
    """
    Tin cảnh báo thời tiết mới nhất từ NCHMF (tối đa 5 tin)
    """
    enforce_rate_limit(warnings_limiter, request)
    try:
        loop = asyncio.get_event_loop()
        warnings = await loop.run_in_executor(_executor, alert_service.get_warnings)
        return {
            "total": len(warnings),
            "warnings": [w.model_dump() for w in warnings],
        }
    except Exception as e:
        print(f"Error in /api/alerts/warnings: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/all")
async def get_combined_alerts():
    """GDACS + NCHMF trong một lần gọi"""
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, alert_service.get_combined_alerts)
    except Exception as e:
        print(f"Error in /api/alerts/all: {e}")
        raise HTTPException(status_code=500, detail=str(e))
