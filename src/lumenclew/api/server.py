"""
HTTP API - aiohttp front end for the scan coordinator.

Routes:
    POST /api/scan   {"repoUrl": str, "scanMode": "fast" | "full"}
    GET  /health     liveness probe

The handler validates the request body, derives the client id used for the
daily quota and maps the ScanResult onto an HTTP status code.
"""

import json
from typing import Any, Dict, List, Optional

import structlog
from aiohttp import web

from ..config import SCAN_MODES
from ..core.orchestrator import ScanCoordinator
from ..core.report import ScanResult, ScanStatus
from ..errors import ErrorCode


COORDINATOR_KEY = web.AppKey("coordinator", ScanCoordinator)

_HTTP_STATUS_BY_CODE = {
    ErrorCode.INVALID_URL: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.REPO_NOT_FOUND: 404,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.CLONE_TIMEOUT: 504,
    ErrorCode.UPSTREAM_RATE_LIMITED: 502,
}

logger = structlog.get_logger(__name__)


def extract_client_id(request: web.Request) -> str:
    """
    Identify the caller for quota purposes.

    Order: first X-Forwarded-For entry, X-Real-IP, peer address, 'anonymous'.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.remote:
        return request.remote

    return "anonymous"


def validate_scan_request(body: Any) -> List[Dict[str, str]]:
    """
    Validate a scan request body.

    Returns:
        List of {field, message} problems (empty when valid)
    """
    if not isinstance(body, dict):
        return [{"field": "body", "message": "Request body is required"}]

    errors = []
    repo_url = body.get("repoUrl")
    scan_mode = body.get("scanMode")

    if not repo_url:
        errors.append({"field": "repoUrl", "message": "repoUrl is required"})
    elif not isinstance(repo_url, str):
        errors.append({"field": "repoUrl", "message": "repoUrl must be a string"})
    elif "github.com" not in repo_url:
        errors.append({"field": "repoUrl", "message": "repoUrl must be a GitHub URL"})

    if scan_mode is not None and scan_mode not in SCAN_MODES:
        errors.append({"field": "scanMode", "message": "scanMode must be 'fast' or 'full'"})

    return errors


def http_status_for(result: ScanResult) -> int:
    """Map a scan result to an HTTP status code"""
    if result.status in (ScanStatus.SUCCESS, ScanStatus.PARTIAL):
        return 200
    if result.error is None:
        return 500
    return _HTTP_STATUS_BY_CODE.get(result.error.code, 500)


def _error_body(code: ErrorCode, message: str, details: Optional[list] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    return {"status": "error", "error": error, "rateLimit": None}


async def handle_scan(request: web.Request) -> web.Response:
    """POST /api/scan"""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    problems = validate_scan_request(body)
    if problems:
        logger.info("scan_request_rejected", problems=problems)
        return web.json_response(
            _error_body(ErrorCode.VALIDATION_ERROR, "Invalid request", problems),
            status=400,
        )

    coordinator = request.app[COORDINATOR_KEY]
    client_id = extract_client_id(request)

    try:
        result = await coordinator.scan(
            body["repoUrl"],
            body.get("scanMode") or "fast",
            client_id,
        )
    except Exception as e:
        logger.error("scan_handler_failed", error=str(e), exc_info=True)
        return web.json_response(
            _error_body(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"),
            status=500,
        )

    status = http_status_for(result)
    logger.info("scan_request_complete", client_id=client_id, status=result.status.value, http_status=status)
    return web.json_response(result.to_dict(), status=status)


async def handle_health(request: web.Request) -> web.Response:
    """GET /health"""
    return web.json_response({"status": "ok"})


def create_app(coordinator: ScanCoordinator) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        coordinator: Coordinator shared by every request (owns the quota table)

    Returns:
        Configured web.Application

    Example:
        >>> app = create_app(ScanCoordinator.from_config(load_config()))
        >>> web.run_app(app, port=3000)
    """
    app = web.Application()
    app[COORDINATOR_KEY] = coordinator
    app.router.add_post("/api/scan", handle_scan)
    app.router.add_get("/health", handle_health)

    async def close_coordinator(app: web.Application):
        await app[COORDINATOR_KEY].close()

    app.on_cleanup.append(close_coordinator)
    return app
