#!/usr/bin/env python3
"""
Location Controller - API routes for place search
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException, Query

from .dependencies import location_service

router = APIRouter(prefix="/api/locations", tags=["Locations"])

_executor = ThreadPoolExecutor(max_workers=2)


@router.get("/search")
async def search_locations(
    q: str = Query(..., description="Tên địa điểm (ít nhất 3 ký tự)"),
    limit: int = Query(5, ge=1, le=10),
):
    """
    Tìm địa điểm tại Việt Nam

    Args:
        q: Từ khóa
        limit: Số kết quả tối đa

    Returns:
        Danh sách địa điểm (rỗng nếu từ khóa quá ngắn)
    """
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, location_service.search, q, limit)
    except Exception as e:
        print(f"Error in /api/locations/search: {e}")
        raise HTTPException(status_code=500, detail=str(e))
