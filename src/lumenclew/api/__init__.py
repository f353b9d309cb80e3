"""
API module - HTTP front end.
"""

from .server import (
    create_app,
    extract_client_id,
    http_status_for,
    validate_scan_request,
)


__all__ = [
    "create_app",
    "extract_client_id",
    "http_status_for",
    "validate_scan_request",
]
