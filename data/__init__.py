#!/usr/bin/env python3
"""
Data constants module - advice texts, thresholds and NCHMF vocabulary
"""
from .constants import (
    ADVICE_MESSAGES,
    VEHICLE_ADVICE,
    VEHICLE_PROMPT_CONTEXT,
    NCHMF_RISK_LABELS,
    message,
)

__all__ = [
    "ADVICE_MESSAGES",
    "VEHICLE_ADVICE",
    "VEHICLE_PROMPT_CONTEXT",
    "NCHMF_RISK_LABELS",
    "message",
]
