"""Health and metadata endpoints Blueprint.

Provides health check, OpenAPI spec, and version endpoints.
"""

from typing import Any, Dict

from flask import Blueprint

from apps.flask_api.utils import _json
from contracts.history_contracts import LIMIT_MAX, LIMIT_MIN, FilterMode
from pipeline.filter_request import MODE_FIELDS, MODE_REQUIRED
from version import ENGINE_NAME, ENGINE_VERSION, RESPONSE_SCHEMA_VERSION

# Create the blueprint
health_bp = Blueprint("health", __name__)


# API version - will be set from main app
_API_VERSION: str = "v1"
_API_PREFIX: str = "/api/v1"

_INT_PARAMS = {"score", "start_year", "end_year", "limit"}

_PARAM_DESCRIPTIONS: Dict[str, str] = {
    "entity": "Reporting entity, compared case- and whitespace-insensitively",
    "type": "Record type",
    "performance_area": "Performance area",
    "pi": "PI code such as PI2; matched against the start of Performance_Indicator",
    "ratings": "Qualitative rating",
    "score": "Exact numeric score",
    "start_year": "Inclusive lower year bound",
    "end_year": "Inclusive upper year bound",
    "limit": f"Maximum rows returned ({LIMIT_MIN}..{LIMIT_MAX})",
}


def init_blueprint(api_version: str, api_prefix: str) -> None:
    """Initialize blueprint with API version settings.

    Args:
        api_version: API version string (e.g., 'v1')
        api_prefix: API prefix string (e.g., '/api/v1')
    """
    global _API_VERSION, _API_PREFIX
    _API_VERSION = api_version
    _API_PREFIX = api_prefix


@health_bp.route("/health", methods=["GET"])
def health() -> Any:
    """Basic health check endpoint.

    Returns:
        JSON response with ok: true
    """
    return _json({"ok": True})


@health_bp.route("/openapi.json", methods=["GET"])
def api_openapi_public() -> Any:
    """OpenAPI 3.0 specification (public endpoint)."""
    return _json(_build_openapi_spec())


@health_bp.route("/api/openapi.json", methods=["GET"])
def api_openapi_scoped() -> Any:
    """OpenAPI 3.0 specification under API base."""
    return _json(_build_openapi_spec())


@health_bp.route("/api/version", methods=["GET"])
def api_version() -> Any:
    """API version metadata and supported versions.

    Returns:
        Version information JSON
    """
    return _json(
        {
            "engine": ENGINE_NAME,
            "engine_version": ENGINE_VERSION,
            "response_schema_version": RESPONSE_SCHEMA_VERSION,
            "version": _API_VERSION,
            "prefix": _API_PREFIX,
            "supported_versions": [_API_VERSION],
            "legacy_prefix": "/api",
        }
    )


def _param_schema(name: str) -> Dict[str, Any]:
    if name == "limit":
        return {"type": "integer", "minimum": LIMIT_MIN, "maximum": LIMIT_MAX}
    if name in _INT_PARAMS:
        return {"type": "integer"}
    return {"type": "string"}


def _query_parameters(mode: FilterMode) -> list[Dict[str, Any]]:
    required = set(MODE_REQUIRED[mode])
    return [
        {
            "name": name,
            "in": "query",
            "required": name in required,
            "description": _PARAM_DESCRIPTIONS[name],
            "schema": _param_schema(name),
        }
        for name in MODE_FIELDS[mode]
    ]


def _body_schema(mode: FilterMode) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": list(MODE_REQUIRED[mode]),
        "properties": {name: _param_schema(name) for name in MODE_FIELDS[mode]},
    }


_ROW_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "Entity": {"type": "string", "nullable": True},
        "Type": {"type": "string", "nullable": True},
        "Year": {"type": "integer", "nullable": True},
        "Performance_Area": {"type": "string", "nullable": True},
        "PerformanceIndicator": {"type": "string", "nullable": True},
        "Ratings": {"type": "string", "nullable": True},
        "Score": {"type": "integer", "nullable": True},
    },
}

_ERROR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["error"],
    "properties": {"error": {"type": "string"}},
}


def _error_responses() -> Dict[str, Any]:
    def _err_ref(description: str) -> Dict[str, Any]:
        return {
            "description": description,
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}},
        }

    return {
        "400": _err_ref("Missing or invalid parameters"),
        "405": _err_ref("Method other than GET or POST"),
        "500": _err_ref("Configuration, upstream fetch or CSV parse failure"),
    }


def _operation(mode: FilterMode, method: str, summary: str, response_ref: str) -> Dict[str, Any]:
    op: Dict[str, Any] = {
        "summary": summary,
        "responses": {
            "200": {
                "description": "OK",
                "content": {"application/json": {"schema": {"$ref": response_ref}}},
            },
            **_error_responses(),
        },
    }
    if method == "get":
        op["parameters"] = _query_parameters(mode)
    else:
        op["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": _body_schema(mode)}},
        }
    return op


def _build_openapi_spec() -> dict:
    """Build the OpenAPI document for the service.

    Parameter lists come from the same per-mode field tables the request
    parser uses, so the document cannot drift from validation.

    Returns:
        OpenAPI specification dictionary
    """
    minimal_ref = "#/components/schemas/MinimalHistoryResponse"
    extended_ref = "#/components/schemas/ExtendedHistoryResponse"
    return {
        "openapi": "3.0.3",
        "info": {
            "title": "PI History API",
            "version": _API_VERSION,
            "description": "Filter Performance Indicator reporting records from the configured CSV dataset.",
        },
        "servers": [{"url": _API_PREFIX}, {"url": "/api"}],
        "paths": {
            "/history": {
                "get": _operation(FilterMode.MINIMAL, "get", "PI history (query string)", minimal_ref),
                "post": _operation(FilterMode.MINIMAL, "post", "PI history (JSON body)", minimal_ref),
            },
            "/history/search": {
                "get": _operation(FilterMode.EXTENDED, "get", "Filtered PI records (query string)", extended_ref),
                "post": _operation(FilterMode.EXTENDED, "post", "Filtered PI records (JSON body)", extended_ref),
            },
            "/version": {
                "get": {
                    "summary": "API version info",
                    "responses": {"200": {"description": "OK"}},
                }
            },
        },
        "components": {
            "schemas": {
                "ResultRow": _ROW_SCHEMA,
                "Error": _ERROR_SCHEMA,
                "MinimalHistoryResponse": {
                    "type": "object",
                    "properties": {
                        "entity": {"type": "string"},
                        "pi": {"type": "string"},
                        "start_year": {"type": "integer"},
                        "end_year": {"type": "integer"},
                        "rows": {"type": "array", "items": {"$ref": "#/components/schemas/ResultRow"}},
                    },
                },
                "ExtendedHistoryResponse": {
                    "type": "object",
                    "properties": {
                        "filters": {"type": "object"},
                        "total_records": {"type": "integer"},
                        "returned_records": {"type": "integer"},
                        "rows": {"type": "array", "items": {"$ref": "#/components/schemas/ResultRow"}},
                    },
                },
            }
        },
    }
