"""History Blueprint.

Thin HTTP adapter around the PI history pipeline:
- /history:        minimal schema (entity, pi, start_year, end_year, all required)
- /history/search: extended schema (optional type/area/ratings/score/limit)

The blueprint is registered under ``/api`` and the versioned ``/api/vN``.
GET reads the query string; POST merges the JSON body over it. Any other
method gets a 405 with ``Allow: GET, POST``.
"""

from typing import Any, Callable

from flask import Blueprint, Response, current_app, request
from pydantic import ValidationError

from apps.flask_api.utils import _api_internal_error_response, _err, _json, _request_params
from contracts.history_contracts import ConfigurationError, FilterMode, HistoryError
from contracts.interfaces import RecordSource
from infra.config import Settings
from infra.logging_config import StructuredLogger
from pipeline.filter_request import parse_filter_request
from pipeline.history_query import extended_response, minimal_response, run_history_query

# Create the blueprint
history_bp = Blueprint("history", __name__)

logger = StructuredLogger(__name__)

ALLOWED_METHODS = ("GET", "POST")
_ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
_METHOD_NOT_ALLOWED = "Use GET with query params or POST with JSON body"

SOURCE_FACTORY_KEY = "PIHISTORY_SOURCE_FACTORY"
SETTINGS_LOADER_KEY = "PIHISTORY_SETTINGS_LOADER"

# Names the blueprint is registered under (legacy and versioned prefix).
HISTORY_BLUEPRINTS = ("history", "history_versioned")


def _resolve_source() -> RecordSource:
    """Build the record source from configuration read for this request.

    Raises:
        ConfigurationError: If settings are invalid or CSV_URL is unset
    """
    loader: Callable[[], Settings] = current_app.config[SETTINGS_LOADER_KEY]
    try:
        settings = loader()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    if not settings.source.csv_url:
        raise ConfigurationError("CSV_URL env not set")
    return current_app.config[SOURCE_FACTORY_KEY](settings.source)


def method_not_allowed_response() -> Response:
    """405 for any method other than GET and POST on a history route."""
    return _err(_METHOD_NOT_ALLOWED, status=405, headers={"Allow": ", ".join(ALLOWED_METHODS)})


def _handle(mode: FilterMode) -> Any:
    if request.method not in ALLOWED_METHODS:
        return method_not_allowed_response()

    try:
        filters = parse_filter_request(_request_params(), mode=mode)
        # Input errors return before configuration is read or the network touched.
        source = _resolve_source()
        result = run_history_query(filters, source)
    except HistoryError as exc:
        if exc.status_code >= 500:
            logger.error("history_query_failed", error_type=type(exc).__name__, detail=str(exc))
        else:
            logger.info("history_query_rejected", detail=str(exc))
        return _err(str(exc), status=exc.status_code)
    except Exception as exc:
        logger.exception("unhandled_exception", path=request.path, detail=str(exc))
        return _api_internal_error_response(exc)

    if mode is FilterMode.MINIMAL:
        return _json(minimal_response(result))
    return _json(extended_response(result))


@history_bp.route("/history", methods=_ROUTE_METHODS, provide_automatic_options=False)
def api_history() -> Any:
    """Rows for one entity and PI code over an inclusive year range.

    Params (query or JSON body):
        entity (required), pi (required), start_year (required), end_year (required)

    Returns:
        JSON with entity, pi, start_year, end_year and rows
    """
    return _handle(FilterMode.MINIMAL)


@history_bp.route("/history/search", methods=_ROUTE_METHODS, provide_automatic_options=False)
def api_history_search() -> Any:
    """Rows matching every supplied filter.

    Params (query or JSON body):
        entity (required), pi (required), type, performance_area, ratings,
        score, start_year, end_year, limit (1..1000)

    Returns:
        JSON with filters, total_records, returned_records and rows
    """
    return _handle(FilterMode.EXTENDED)
