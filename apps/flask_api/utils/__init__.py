"""Flask API utilities package.

This package contains shared utilities for the Flask API, organized into focused modules:
- responses: JSON response helpers with a fixed content type
- params: Merging query string and JSON body into one parameter mapping
"""

# Re-export commonly used functions for convenience
from apps.flask_api.utils.params import _json_body, _request_params
from apps.flask_api.utils.responses import (
    JSON_CONTENT_TYPE,
    _api_internal_error_response,
    _err,
    _json,
    set_debug_mode,
)

__all__ = [
    # responses
    "JSON_CONTENT_TYPE",
    "_api_internal_error_response",
    "_err",
    "_json",
    "set_debug_mode",
    # params
    "_json_body",
    "_request_params",
]
