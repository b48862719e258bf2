"""flask_app.py

HTTP API for the PI history service.

The dataset is a remote CSV; every history request fetches it once, filters
it and returns JSON. Nothing is cached between requests.

Env
---
- CSV_URL (required at request time) location of the PI history CSV
- CSV_TIMEOUT_SECONDS (optional) fetch timeout, default 30
- API_VERSION (optional) versioned prefix, default v1
- API_DEBUG_ERRORS=1 (optional) include tracebacks in 500 bodies

Run
---
FLASK_APP=apps.flask_api.flask_app flask run --host=0.0.0.0 --port=5000
"""

from __future__ import annotations

import os
import time
import uuid
from typing import Any, Callable, Optional

from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed

from apps.flask_api.blueprints import health_bp, history_bp
from apps.flask_api.blueprints import health as health_views
from apps.flask_api.blueprints.history import (
    HISTORY_BLUEPRINTS,
    SETTINGS_LOADER_KEY,
    SOURCE_FACTORY_KEY,
    method_not_allowed_response,
)
from apps.flask_api.utils import _api_internal_error_response, _err, set_debug_mode
from contracts.interfaces import SourceFactory
from infra.config import Settings, ValidationError, get_settings
from infra.logging_config import (
    StructuredLogger,
    clear_request_context,
    set_request_context,
    setup_logging,
)
from services.csv_source import build_csv_source

logger = StructuredLogger("pihistory.api")


def _load_settings() -> Settings:
    """Read configuration from the environment on every call."""
    return get_settings(reload=True)


def _merge_vary_header(current: Optional[str], token: str) -> str:
    """Return a Vary header value that includes token exactly once."""
    items = [x.strip() for x in str(current or "").split(",") if x.strip()]
    token_norm = token.strip()
    if token_norm and token_norm.lower() not in {x.lower() for x in items}:
        items.append(token_norm)
    return ", ".join(items)


def _start_request() -> None:
    request.environ["_pihistory_t0"] = time.monotonic()
    request_id = (request.headers.get("X-Request-ID") or "").strip() or uuid.uuid4().hex
    request.environ["_pihistory_request_id"] = request_id
    clear_request_context()
    set_request_context(request_id=request_id, method=request.method, path=request.path)


def _finish_request(resp: Response) -> Response:
    t0 = float(request.environ.get("_pihistory_t0") or 0.0)
    ms = int(max(0.0, (time.monotonic() - t0) * 1000.0)) if t0 else None
    logger.info(
        "http_request",
        status=int(resp.status_code or 0),
        ms=ms,
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
    )

    request_id = request.environ.get("_pihistory_request_id")
    if request_id:
        resp.headers["X-Request-ID"] = request_id

    # The dataset is re-fetched per request; intermediaries must not cache.
    if (request.path or "").startswith("/api/"):
        resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
        resp.headers["Vary"] = _merge_vary_header(resp.headers.get("Vary"), "Accept")
    return resp


def _register_error_handlers(app: Flask) -> None:
    def _is_history_route() -> bool:
        adapter = app.url_map.bind_to_environ(request.environ)
        try:
            rule, _ = adapter.match(method="GET", return_rule=True)
        except HTTPException:
            return False
        return str(rule.endpoint).split(".", 1)[0] in HISTORY_BLUEPRINTS

    @app.errorhandler(MethodNotAllowed)
    def _err_405(exc: MethodNotAllowed) -> Any:
        # Routing rejects verbs the history rules do not list (TRACE, PROPFIND...).
        if _is_history_route():
            return method_not_allowed_response()
        allow = ", ".join(sorted(exc.valid_methods or []))
        return _err("method not allowed", status=405, headers={"Allow": allow} if allow else None)

    @app.errorhandler(HTTPException)
    def _err_http(exc: HTTPException) -> Any:
        return _err(str(exc.description or exc.name).strip(), status=int(exc.code or 500))

    @app.errorhandler(Exception)
    def _err_500(exc: Exception) -> Any:
        logger.exception("unhandled_exception", path=request.path, detail=str(exc))
        return _api_internal_error_response(exc)


def create_app(
    *,
    source_factory: Optional[SourceFactory] = None,
    settings_loader: Optional[Callable[[], Settings]] = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        source_factory: Builds the record source from SourceConfig
            (defaults to the HTTP source; tests pass a fake)
        settings_loader: Returns settings for one request (defaults to
            re-reading the environment)

    Returns:
        Configured Flask application
    """
    loader = settings_loader or _load_settings
    startup_error: Optional[str] = None
    try:
        settings = loader()
    except ValidationError as exc:
        # History requests re-read settings and answer 500 until fixed.
        settings = Settings()
        startup_error = str(exc)
    setup_logging(level=settings.logging.level)
    if startup_error is not None:
        logger.warning("settings_invalid_at_startup", detail=startup_error)

    app = Flask(__name__)
    # Keep row/field order as projected and emit non-ASCII text as-is.
    app.json.sort_keys = False  # type: ignore[attr-defined]
    app.json.ensure_ascii = False  # type: ignore[attr-defined]

    app.config[SOURCE_FACTORY_KEY] = source_factory or build_csv_source
    app.config[SETTINGS_LOADER_KEY] = loader
    set_debug_mode(settings.api.debug_errors)

    api_version = settings.api.version
    api_prefix = f"/api/{api_version}"
    health_views.init_blueprint(api_version, api_prefix)

    app.register_blueprint(health_bp)
    app.register_blueprint(history_bp, url_prefix="/api")
    app.register_blueprint(history_bp, url_prefix=api_prefix, name="history_versioned")
    # Versioned aliases of the metadata routes.
    app.add_url_rule(
        f"{api_prefix}/version", "api_version_versioned", health_views.api_version, methods=["GET"]
    )
    app.add_url_rule(
        f"{api_prefix}/openapi.json",
        "api_openapi_versioned",
        health_views.api_openapi_scoped,
        methods=["GET"],
    )

    app.before_request(_start_request)
    app.after_request(_finish_request)
    _register_error_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port)
