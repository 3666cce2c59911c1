#!/usr/bin/env python3
"""
Station Controller - API routes for NCHMF monitoring stations
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException, Query, Request

from services.request_manager import stations_limiter
from models import Coordinate
from .dependencies import enforce_rate_limit, station_service

router = APIRouter(prefix="/api", tags=["Stations"])

_executor = ThreadPoolExecutor(max_workers=2)


@router.get("/stations")
async def get_all_stations(request: Request):
    """
    Lấy danh sách trạm cảnh báo lũ quét / sạt lở của NCHMF

    Returns:
        Danh sách trạm (làm mới mỗi 30 phút)
    """
    enforce_rate_limit(stations_limiter, request)
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, station_service.get_stations_summary)
    except Exception as e:
        print(f"Error in /api/stations: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/stations/nearby")
async def get_nearby_stations(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(50, gt=0, le=500, description="Bán kính tìm kiếm (km)"),
    max_results: int = Query(3, ge=1, le=50),
):
    """
    Tìm trạm gần một tọa độ, sắp xếp theo khoảng cách

    Args:
        lat, lng: Tọa độ
        radius_km: Bán kính (mặc định 50km)
        max_results: Số trạm tối đa (mặc định 3)
    """
    enforce_rate_limit(stations_limiter, request)
    try:
        loop = asyncio.get_event_loop()
        stations = await loop.run_in_executor(
            _executor,
            station_service.find_nearby,
            Coordinate(lat=lat, lng=lng),
            radius_km,
            max_results,
        )
        return {
            "total": len(stations),
            "stations": [s.model_dump() for s in stations],
        }
    except Exception as e:
        print(f"Error in /api/stations/nearby: {e}")
        raise HTTPException(status_code=500, detail=str(e))
