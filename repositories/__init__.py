#!/usr/bin/env python3
"""
Repository layer - Database access
"""
from .base import BaseRepository
from .elevation_cache_repository import ElevationCacheRepository

__all__ = [
    "BaseRepository",
    "ElevationCacheRepository",
]
