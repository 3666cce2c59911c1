#!/usr/bin/env python3
"""
Đường An Toàn - Vietnam Flood Risk API - Main Application

Cấu trúc:
- controllers/  : API route handlers
- services/     : Business logic layer
- repositories/ : Database access layer (elevation cache)
- models/       : Data models/schemas
- config/       : Configuration
- risk_rules.py, route_analysis.py, route_aggregator.py,
  station_locator.py, geo_utils.py : Core risk engine (pure functions)
"""
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from config import CORS_ORIGINS, GDACS_REFRESH_SECONDS, STATIONS_REFRESH_SECONDS
from controllers import (
    analysis_router,
    alert_router,
    station_router,
    location_router,
)
from controllers.dependencies import alert_service, analysis_service, station_service, weather_service
from repositories.base import BaseRepository
from services.request_manager import cleanup_all as cleanup_rate_limits

APP_VERSION = "1.0.0"
CACHE_CLEANUP_SECONDS = 24 * 60 * 60

DB_AVAILABLE = False


async def refresh_periodically(name: str, refresh, interval_seconds: int):
    """
    Background task: làm mới một snapshot dữ liệu theo chu kỳ.
    Lỗi được ghi log và thử lại ở chu kỳ sau.
    """
    loop = asyncio.get_event_loop()
    while True:
        try:
            await loop.run_in_executor(None, refresh)
        except Exception as e:
            print(f"✗ Lỗi làm mới {name}: {e}")
        await asyncio.sleep(interval_seconds)


async def cleanup_expired_caches():
    """
    Background task để xóa cache độ cao hết hạn và bộ đếm rate limit cũ.
    Chạy mỗi 24 giờ.
    """
    loop = asyncio.get_event_loop()
    while True:
        try:
            deleted = await loop.run_in_executor(None, weather_service.cleanup_expired)
            if deleted > 0:
                print(f"✓ Đã xóa {deleted} bản ghi cache độ cao hết hạn")
            cleanup_rate_limits()
        except Exception as e:
            print(f"✗ Lỗi cleanup cache: {e}")

        await asyncio.sleep(CACHE_CLEANUP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager để quản lý startup/shutdown tasks.
    - Startup: kiểm tra DB, làm mới trạm NCHMF + cảnh báo GDACS định kỳ, dọn cache
    - Shutdown: hủy các background task
    """
    global DB_AVAILABLE

    print("🚀 Starting background tasks...")
    DB_AVAILABLE = BaseRepository.check_db_available()
    weather_service.use_db_cache = DB_AVAILABLE
    print(f"Database cache: {'enabled' if DB_AVAILABLE else 'disabled'}")
    print(f"AI analysis: {'DeepSeek' if analysis_service.ai_service.is_configured else 'rule engine (offline)'}")

    tasks = [
        asyncio.create_task(refresh_periodically("trạm NCHMF", station_service.refresh, STATIONS_REFRESH_SECONDS)),
        asyncio.create_task(refresh_periodically("cảnh báo GDACS", alert_service.refresh_flood_alerts, GDACS_REFRESH_SECONDS)),
        asyncio.create_task(cleanup_expired_caches()),
    ]

    yield

    print("🛑 Shutting down...")
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass


# Create FastAPI app
app = FastAPI(
    title="Đường An Toàn - Cảnh báo ngập lụt",
    description="""
    API đánh giá rủi ro ngập lụt cho một địa điểm hoặc một hành trình tại Việt Nam.

    ## Tính năng chính:
    - **Đánh giá điểm**: Độ cao, mưa hiện tại, dự báo 6h, mưa tích lũy 72h
    - **Đánh giá tuyến đường**: Lấy mẫu 8 điểm, phát hiện đoạn nguy hiểm
    - **Trạm NCHMF**: Dữ liệu chính thức về nguy cơ lũ quét / sạt lở
    - **Cảnh báo GDACS**: Vùng lũ phát hiện qua vệ tinh (Đỏ/Cam nâng rủi ro lên Cao)
    - **Phân tích AI**: DeepSeek, tự động dùng bộ luật khi AI không khả dụng
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis_router)
app.include_router(alert_router)
app.include_router(station_router)
app.include_router(location_router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint - API information"""
    return {
        "name": "Duong An Toan Flood Risk API",
        "version": APP_VERSION,
        "description": "API đánh giá rủi ro ngập lụt Việt Nam",
        "database": "connected" if DB_AVAILABLE else "disconnected",
        "ai": "enabled" if analysis_service.ai_service.is_configured else "disabled",
        "endpoints": {
            "docs": "/docs",
            "point_analysis": "/api/analysis/point",
            "route_analysis": "/api/analysis/route",
            "stations": "/api/stations",
            "nearby_stations": "/api/stations/nearby",
            "gdacs": "/api/alerts/gdacs",
            "warnings": "/api/alerts/warnings",
            "search": "/api/locations/search",
        }
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "database": "connected" if DB_AVAILABLE else "disconnected"
    }


# Entry point
if __name__ == "__main__":
    print("=" * 50)
    print("  ĐƯỜNG AN TOÀN - FLOOD RISK API v1.0")
    print("=" * 50)
    print("API: http://localhost:8000")
    print("Docs: http://localhost:8000/docs")
    print("=" * 50)

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
