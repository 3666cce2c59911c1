#!/usr/bin/env python3
"""
Analysis Controller - API routes for point and route flood risk analysis

IMPORTANT: Analysis fans out to several external APIs (and the AI), so every
call runs through run_in_executor() to keep the FastAPI event loop free.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException, Request, Response

from models import (
    PointAnalysisRequest,
    PointAnalysisResponse,
    RouteAnalysisRequest,
    RouteAnalysisResponse,
)
from services.analysis_service import RouteNotFoundError
from services.request_manager import analysis_limiter
from .dependencies import analysis_service, enforce_rate_limit

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])

# Thread pool for running sync operations without blocking event loop
_executor = ThreadPoolExecutor(max_workers=4)


@router.post("/point", response_model=PointAnalysisResponse)
async def analyze_point(body: PointAnalysisRequest, request: Request, response: Response):
    """
    Đánh giá rủi ro ngập lụt tại một địa điểm

    Args:
        body: Tọa độ, tên địa điểm, phương tiện, ngôn ngữ

    Returns:
        risk (Low/Medium/High), advice, confidence, dữ liệu môi trường,
        trạm NCHMF gần nhất và mức cảnh báo GDACS (nếu có)
    """
    remaining = enforce_rate_limit(analysis_limiter, request)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            _executor,
            analysis_service.analyze_point,
            body.location,
            body.vehicle_type,
            body.language,
            body.name,
        )
    except HTTPException:
        raise
    except Exception as e:
        print(f"Error in /api/analysis/point: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/route", response_model=RouteAnalysisResponse)
async def analyze_route(body: RouteAnalysisRequest, request: Request, response: Response):
    """
    Đánh giá an toàn hành trình giữa hai điểm

    Tuyến được lấy mẫu 8 điểm; các điểm có rủi ro Trung bình/Cao được trả về
    trong route.dangerous_segments theo thứ tự dọc tuyến.
    """
    remaining = enforce_rate_limit(analysis_limiter, request)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            _executor,
            analysis_service.analyze_route,
            body.start,
            body.end,
            body.vehicle_type,
            body.language,
            body.start_name,
            body.end_name,
        )
    except RouteNotFoundError as e:
        print(f"[Analysis] ✗ {e}")
        detail = "Không tìm thấy tuyến đường" if body.language == "vi" else "No route found"
        raise HTTPException(status_code=404, detail=detail)
    except HTTPException:
        raise
    except Exception as e:
        print(f"Error in /api/analysis/route: {e}")
        raise HTTPException(status_code=500, detail=str(e))
