"""
Core module - Central orchestration and coordination.

This package contains the scan coordinator, the per-client daily quota and
the report structures the coordinator assembles.
"""

from .orchestrator import ScanCoordinator
from .rate_limiter import (
    DailyRateLimiter,
    InMemoryRateLimitStore,
    RateLimitConfig,
    RateLimitState,
    RateLimitStatus,
)
from .report import (
    ORIENTATION_NOTE,
    PANEL_ORDER,
    PanelResult,
    PanelStatus,
    ScanError,
    ScanReport,
    ScanResult,
    ScanScope,
    ScanStatus,
    overall_status,
)


__all__ = [
    # Orchestration
    "ScanCoordinator",
    # Rate limiting
    "DailyRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitConfig",
    "RateLimitState",
    "RateLimitStatus",
    # Report
    "ORIENTATION_NOTE",
    "PANEL_ORDER",
    "PanelResult",
    "PanelStatus",
    "ScanError",
    "ScanReport",
    "ScanResult",
    "ScanScope",
    "ScanStatus",
    "overall_status",
]
