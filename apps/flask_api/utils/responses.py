"""Response helpers for Flask API.

Every API response is JSON with an explicit UTF-8 charset. Errors use the
flat ``{"error": message}`` shape.
"""

import traceback
from typing import Any, Dict, Mapping, Optional

from flask import Response, jsonify

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Configuration - set by create_app()
_API_DEBUG_ERRORS: bool = False


def set_debug_mode(enabled: bool) -> None:
    """Set debug mode for error responses."""
    global _API_DEBUG_ERRORS
    _API_DEBUG_ERRORS = enabled


def _json(
    payload: Mapping[str, Any],
    *,
    status: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """Create a JSON response with explicit status code.

    Args:
        payload: Mapping to JSON-encode
        status: HTTP status code
        headers: Optional extra headers

    Returns:
        Flask response
    """
    resp = jsonify(dict(payload))
    resp.status_code = status
    resp.headers["Content-Type"] = JSON_CONTENT_TYPE
    for name, value in (headers or {}).items():
        resp.headers[name] = value
    return resp


def _err(
    message: str,
    *,
    status: int,
    headers: Optional[Mapping[str, str]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Response:
    """Create an error JSON response.

    Args:
        message: Human-readable error message
        status: HTTP status code
        headers: Optional extra headers (for example ``Allow`` on 405)
        extra: Optional additional data to include

    Returns:
        Flask response
    """
    payload: Dict[str, Any] = {"error": message}
    if extra:
        payload.update(extra)
    return _json(payload, status=status, headers=headers)


def _api_internal_error_response(exc: BaseException) -> Response:
    """Map an unexpected exception to a 500 carrying its message.

    In debug mode the traceback is included as well.
    """
    extra = None
    if _API_DEBUG_ERRORS:
        extra = {"traceback": traceback.format_exc()}
    return _err(str(exc) or type(exc).__name__, status=500, extra=extra)
