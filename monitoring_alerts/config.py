"""Environment-driven settings for monitoring runs."""
from __future__ import annotations

import os

DATABASE_URL = os.getenv("MONITORING_DATABASE_URL") or "sqlite:///monitoring.db"
DIRECTORY_API_BASE_URL = os.getenv("MONITORING_DIRECTORY_API_BASE_URL")
DIRECTORY_API_TOKEN = os.getenv("MONITORING_DIRECTORY_API_TOKEN")
LOG_LEVEL = os.getenv("MONITORING_LOG_LEVEL", "INFO")

MIN_DAILY_MEASUREMENTS = int(os.getenv("MONITORING_MIN_DAILY_MEASUREMENTS", "6"))
REPEATED_SHORTFALL_DAYS = int(os.getenv("MONITORING_REPEATED_SHORTFALL_DAYS", "3"))


def default_thresholds() -> dict[str, int]:
    """Global threshold defaults handed to every rule through the context."""

    return {
        "minimum_daily_measurements": MIN_DAILY_MEASUREMENTS,
        "repeated_shortfall_days": REPEATED_SHORTFALL_DAYS,
    }
