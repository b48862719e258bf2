"""HTTP behavior of the history endpoints."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import pytest
from flask import Flask
from flask.testing import FlaskClient

from apps.flask_api.flask_app import create_app
from contracts.history_contracts import CsvParseError
from infra.config import Settings
from tests.factories import FakeSource, ctbto_history_csv, failing_source

_CSV_ENV = {"CSV_URL": "https://data.example.test/pi_history.csv"}
_JSON = "application/json; charset=utf-8"


def _make_app(
    source: FakeSource,
    *,
    env: Optional[Mapping[str, str]] = None,
    seen_configs: Optional[list[Any]] = None,
) -> Flask:
    def _factory(cfg: Any) -> FakeSource:
        if seen_configs is not None:
            seen_configs.append(cfg)
        return source

    def _loader() -> Settings:
        return Settings.from_env(env=_CSV_ENV if env is None else env, env_file=".missing.env")

    return create_app(source_factory=_factory, settings_loader=_loader)


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(ctbto_history_csv())


@pytest.fixture
def client(source: FakeSource) -> FlaskClient:
    return _make_app(source).test_client()


_MINIMAL_QS = "entity=CTBTO&pi=PI2&start_year=2018&end_year=2024"


def test_minimal_get_returns_rows(client: FlaskClient, source: FakeSource) -> None:
    resp = client.get(f"/api/history?{_MINIMAL_QS}")

    assert resp.status_code == 200
    assert resp.headers["Content-Type"] == _JSON
    body = resp.get_json()
    assert body["entity"] == "CTBTO"
    assert body["pi"] == "PI2"
    assert body["start_year"] == 2018
    assert body["end_year"] == 2024
    assert [r["Year"] for r in body["rows"]] == list(range(2018, 2025))
    assert body["rows"][0]["PerformanceIndicator"] == "PI2 — Audit compliance"
    assert source.calls == 1


def test_minimal_post_json_body(client: FlaskClient) -> None:
    resp = client.post(
        "/api/history",
        json={"entity": "ctbto ", "pi": "pi2", "start_year": 2018, "end_year": "2024"},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["entity"] == "ctbto"
    assert len(body["rows"]) == 7


def test_row_fields_keep_order_and_raw_unicode(client: FlaskClient) -> None:
    resp = client.get(f"/api/history?{_MINIMAL_QS}")
    text = resp.get_data(as_text=True)
    assert "PI2 — Audit compliance" in text
    positions = [text.index(f'"{key}"') for key in ("Entity", "Type", "Year", "Performance_Area")]
    assert positions == sorted(positions)


def test_extended_get_with_limit(client: FlaskClient) -> None:
    resp = client.get("/api/history/search?entity=CTBTO&pi=PI2&start_year=2018&end_year=2024&limit=2")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total_records"] == 7
    assert body["returned_records"] == 2
    assert [r["Year"] for r in body["rows"]] == [2018, 2019]
    assert body["filters"]["limit"] == 2
    assert body["filters"]["type"] is None


def test_extended_post_optional_filters(client: FlaskClient) -> None:
    resp = client.post("/api/history/search", json={"entity": "CTBTO", "pi": "PI2", "score": 5})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total_records"] == 1
    assert body["rows"][0]["Year"] == 2020


def test_post_merges_query_string_and_body_wins(client: FlaskClient) -> None:
    resp = client.post("/api/history/search?entity=UNESCO&pi=PI2", json={"entity": "CTBTO"})
    assert resp.status_code == 200
    assert resp.get_json()["filters"]["entity"] == "CTBTO"


def test_versioned_history_alias_works(client: FlaskClient) -> None:
    """`/api/v1/history` should behave like `/api/history`."""
    legacy = client.get(f"/api/history?{_MINIMAL_QS}")
    versioned = client.get(f"/api/v1/history?{_MINIMAL_QS}")
    assert versioned.status_code == 200
    assert versioned.get_json() == legacy.get_json()

    search = client.post("/api/v1/history/search", json={"entity": "CTBTO", "pi": "PI2"})
    assert search.status_code == 200


def test_no_matches_is_200_with_empty_rows(client: FlaskClient) -> None:
    resp = client.get("/api/history?entity=NOBODY&pi=PI2&start_year=2018&end_year=2024")
    assert resp.status_code == 200
    assert resp.get_json()["rows"] == []


@pytest.mark.parametrize(
    "path, message",
    [
        ("/api/history", "Missing params: entity, pi, start_year, end_year"),
        ("/api/history?entity=CTBTO&pi=PI2", "Missing params: start_year, end_year"),
        ("/api/history?entity=%20&pi=PI2&start_year=2018&end_year=2024", "Missing params: entity"),
        ("/api/history/search?pi=PI2", "Missing params: entity"),
    ],
)
def test_missing_params_is_400_naming_fields(
    client: FlaskClient, source: FakeSource, path: str, message: str
) -> None:
    resp = client.get(path)
    assert resp.status_code == 400
    assert resp.headers["Content-Type"] == _JSON
    assert resp.get_json() == {"error": message}
    assert source.calls == 0


@pytest.mark.parametrize(
    "path, message",
    [
        (
            "/api/history?entity=CTBTO&pi=PI2&start_year=2024&end_year=2018",
            "start_year cannot be greater than end_year",
        ),
        ("/api/history?entity=CTBTO&pi=PI2&start_year=abc&end_year=2018", "start_year must be an integer"),
        ("/api/history/search?entity=CTBTO&pi=PI2&limit=0", "limit must be between 1 and 1000"),
        ("/api/history/search?entity=CTBTO&pi=PI2&limit=1001", "limit must be between 1 and 1000"),
        ("/api/history/search?entity=CTBTO&pi=PI2&score=high", "score must be an integer"),
    ],
)
def test_invalid_params_are_400(client: FlaskClient, source: FakeSource, path: str, message: str) -> None:
    resp = client.get(path)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": message}
    assert source.calls == 0


def test_oversized_integer_param_is_400(client: FlaskClient, source: FakeSource) -> None:
    resp = client.get("/api/history/search?entity=CTBTO&pi=PI2&limit=" + "9" * 5000)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "limit must be an integer"}
    assert source.calls == 0


def test_invalid_json_body_is_400(client: FlaskClient) -> None:
    resp = client.post("/api/history", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid JSON body"}


def test_non_object_json_body_is_400(client: FlaskClient) -> None:
    resp = client.post("/api/history/search", json=["CTBTO", "PI2"])
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Request body must be a JSON object"}


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "PROPFIND"])
@pytest.mark.parametrize("path", ["/api/history", "/api/history/search", "/api/v1/history"])
def test_other_methods_are_405_with_allow(client: FlaskClient, source: FakeSource, method: str, path: str) -> None:
    resp = client.open(path, method=method)
    assert resp.status_code == 405
    assert resp.headers["Allow"] == "GET, POST"
    assert resp.headers["Content-Type"] == _JSON
    assert "GET" in resp.get_json()["error"]
    assert source.calls == 0


def test_missing_csv_url_is_500_without_fetch(source: FakeSource) -> None:
    seen: list[Any] = []
    client = _make_app(source, env={}, seen_configs=seen).test_client()

    resp = client.get(f"/api/history?{_MINIMAL_QS}")

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "CSV_URL env not set"}
    assert seen == []
    assert source.calls == 0


def test_invalid_settings_do_not_block_startup(source: FakeSource) -> None:
    env = {**_CSV_ENV, "CSV_TIMEOUT_SECONDS": "0"}
    client = _make_app(source, env=env).test_client()

    assert client.get("/health").status_code == 200
    resp = client.get(f"/api/history?{_MINIMAL_QS}")
    assert resp.status_code == 500
    assert resp.get_json()["error"].startswith("Invalid configuration")
    assert source.calls == 0


def test_input_errors_are_reported_before_configuration(source: FakeSource) -> None:
    client = _make_app(source, env={}).test_client()
    resp = client.get("/api/history")
    assert resp.status_code == 400


def test_source_factory_receives_source_config(source: FakeSource) -> None:
    seen: list[Any] = []
    client = _make_app(source, seen_configs=seen).test_client()
    client.get(f"/api/history?{_MINIMAL_QS}")
    assert [cfg.csv_url for cfg in seen] == [_CSV_ENV["CSV_URL"]]


def test_upstream_failure_is_500_with_message() -> None:
    client = _make_app(failing_source()).test_client()
    resp = client.get(f"/api/history?{_MINIMAL_QS}")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to fetch CSV: HTTP 503 Service Unavailable"}


def test_parse_failure_is_500() -> None:
    client = _make_app(FakeSource("Entity,Year\nCTBTO,2020,extra\n")).test_client()
    resp = client.get("/api/history/search?entity=CTBTO&pi=PI2")
    assert resp.status_code == 500
    assert resp.get_json()["error"].startswith("Invalid CSV at line 2")


def test_unexpected_error_is_500_with_message() -> None:
    client = _make_app(FakeSource(error=RuntimeError("boom"))).test_client()
    resp = client.get("/api/history/search?entity=CTBTO&pi=PI2")
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "boom"
    assert "traceback" not in resp.get_json()


def test_debug_errors_include_traceback() -> None:
    env = {**_CSV_ENV, "API_DEBUG_ERRORS": "1"}
    client = _make_app(FakeSource(error=RuntimeError("boom")), env=env).test_client()
    resp = client.get("/api/history/search?entity=CTBTO&pi=PI2")
    assert resp.status_code == 500
    assert "RuntimeError" in resp.get_json()["traceback"]


def test_parse_error_from_source_is_not_cached(source: FakeSource) -> None:
    client = _make_app(source).test_client()
    client.get(f"/api/history?{_MINIMAL_QS}")
    source.error = CsvParseError("Invalid CSV at line 3: expected 7 fields, got 2")
    resp = client.get(f"/api/history?{_MINIMAL_QS}")
    assert resp.status_code == 500
    assert source.calls == 2


def test_api_responses_carry_request_id_and_no_store(client: FlaskClient) -> None:
    resp = client.get(f"/api/history?{_MINIMAL_QS}", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "no-store" in resp.headers["Cache-Control"]
    assert "Accept" in resp.headers["Vary"]


def test_unknown_route_is_json_404(client: FlaskClient) -> None:
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.headers["Content-Type"] == _JSON
    assert "error" in resp.get_json()


def test_health(client: FlaskClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True}


def test_service_route_405_lists_its_own_methods(client: FlaskClient) -> None:
    resp = client.post("/health")
    assert resp.status_code == 405
    assert "POST" not in resp.headers["Allow"]
    assert "GET" in resp.headers["Allow"]
    assert resp.get_json() == {"error": "method not allowed"}
