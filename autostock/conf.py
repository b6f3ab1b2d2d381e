"""
Autostock configuration.

Usage in settings.py:
    AUTOSTOCK = {
        "CAS_MAX_RETRIES": 5,
        "RESERVATION_TTL_MINUTES": 15,
        "EXPIRATION_INTERVAL_SECONDS": 60,
        "METRICS_INTERVAL_SECONDS": 3600,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class AutostockSettings:
    """Autostock configuration settings."""

    # Optimistic concurrency: retries after the first attempt before Conflict
    CAS_MAX_RETRIES: int = 5

    # Jittered exponential backoff between CAS attempts (milliseconds)
    CAS_BACKOFF_BASE_MS: int = 10
    CAS_BACKOFF_MAX_MS: int = 200

    # Default reservation TTL when the caller gives no deadline
    RESERVATION_TTL_MINUTES: int = 15

    # Batch size for the expiration sweep
    EXPIRED_BATCH_SIZE: int = 200

    # Warning band of the reorder alert: stock <= reorder_point * factor
    ALERT_WARNING_FACTOR: float = 1.5

    # Execution budget of a single background tick
    JOB_BUDGET_SECONDS: float = 30.0

    # Background loop intervals
    EXPIRATION_INTERVAL_SECONDS: float = 60.0
    METRICS_INTERVAL_SECONDS: float = 3600.0


def get_autostock_settings() -> AutostockSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "AUTOSTOCK", {})
    return AutostockSettings(**{
        k: v for k, v in user_settings.items()
        if k in AutostockSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_autostock_settings(), name)


autostock_settings = _LazySettings()
