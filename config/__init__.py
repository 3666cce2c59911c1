#!/usr/bin/env python3
"""
Configuration module
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Database config (elevation cache)
DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "5433")),
    "database": os.getenv("DB_NAME", "duong_an_toan"),
    "user": os.getenv("DB_USER", "flooduser"),
    "password": os.getenv("DB_PASSWORD", "floodpass123"),
}

# DeepSeek AI config (OpenAI-compatible endpoint)
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
DEEPSEEK_BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
AI_MODEL = os.getenv("AI_MODEL", "deepseek-chat")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))

# External HTTP
HTTP_TIMEOUT_SECONDS = 30
HTTP_RETRIES = 2
USER_AGENT = "Mozilla/5.0 (compatible; DuongAnToan/1.0)"

# Cache settings
ELEVATION_CACHE_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 days
STATIONS_REFRESH_SECONDS = 30 * 60  # 30 minutes
GDACS_REFRESH_SECONDS = 6 * 60 * 60  # 6 hours
WARNINGS_REFRESH_SECONDS = 10 * 60  # 10 minutes

# Route analysis
ROUTE_SAMPLE_COUNT = 8
ROUTE_FETCH_WORKERS = 8

# Rate limits (requests per window per client IP)
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_ANALYSIS = 10
RATE_LIMIT_STATIONS = 30
RATE_LIMIT_WARNINGS = 20

# API settings
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]
