#!/usr/bin/env python3
from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


@dataclass(frozen=True)
class Cfg:
    base_url: str
    entity: str
    pi: str
    timeout_s: float = 60.0


class SmokeFail(RuntimeError):
    pass


def _http_json(
    cfg: Cfg,
    method: str,
    path: str,
    *,
    query: Optional[Dict[str, str]] = None,
    body: Optional[Dict[str, Any]] = None,
    expected_status: Tuple[int, ...] = (200,),
) -> Tuple[int, Dict[str, Any], Dict[str, str]]:
    url = cfg.base_url.rstrip("/") + path
    if query:
        url += "?" + urlencode(query)

    headers = {
        "Accept": "application/json",
        "User-Agent": "pihistory-api-smoke/1.0",
    }

    data = None
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"

    req = Request(url=url, method=method, headers=headers, data=data)

    try:
        with urlopen(req, timeout=cfg.timeout_s) as resp:
            status = int(getattr(resp, "status", 200))
            raw = resp.read().decode("utf-8") if resp else ""
            payload = json.loads(raw) if raw else {}
            if status not in expected_status:
                raise SmokeFail(f"{method} {path}: expected {expected_status}, got {status}: {payload}")
            return status, payload, dict(resp.headers.items())
    except HTTPError as e:
        status = int(getattr(e, "code", 0))
        raw = e.read().decode("utf-8") if e.fp else ""
        try:
            payload = json.loads(raw) if raw else {}
        except ValueError:
            payload = {"raw": raw}
        if status in expected_status:
            return status, payload, dict(e.headers.items()) if e.headers else {}
        raise SmokeFail(f"{method} {path}: expected {expected_status}, got {status}: {payload}") from e
    except URLError as e:
        raise SmokeFail(f"{method} {path}: connection error: {e}") from e


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise SmokeFail(msg)


def run_smoke(cfg: Cfg) -> None:
    ok: list[str] = []

    # 1) Service endpoints
    _http_json(cfg, "GET", "/health")
    ok.append("GET /health")

    _, version, _ = _http_json(cfg, "GET", "/api/version")
    prefix = str(version.get("prefix") or "/api/v1")
    ok.append(f"GET /api/version (prefix {prefix})")

    _, spec, _ = _http_json(cfg, "GET", "/openapi.json")
    _assert("/history" in (spec.get("paths") or {}), "openapi.json does not describe /history")
    ok.append("GET /openapi.json")

    # 2) Method and input gates (no upstream fetch involved)
    _, _, headers = _http_json(cfg, "PUT", "/api/history", body={}, expected_status=(405,))
    allow = {k.lower(): v for k, v in headers.items()}.get("allow", "")
    _assert("GET" in allow and "POST" in allow, f"405 without Allow: GET, POST (got {allow!r})")
    ok.append("PUT /api/history -> 405")

    _, err, _ = _http_json(cfg, "GET", "/api/history", expected_status=(400,))
    _assert("entity" in str(err.get("error")), "400 body does not name missing params")
    ok.append("GET /api/history without params -> 400")

    _http_json(
        cfg,
        "GET",
        "/api/history",
        query={"entity": cfg.entity or "X", "pi": cfg.pi or "PI1", "start_year": "2024", "end_year": "2018"},
        expected_status=(400,),
    )
    ok.append("start_year > end_year -> 400")

    # 3) Real queries (needs CSV_URL on the server and SMOKE_ENTITY/SMOKE_PI here)
    if cfg.entity and cfg.pi:
        _, minimal, _ = _http_json(
            cfg,
            "POST",
            "/api/history",
            body={"entity": cfg.entity, "pi": cfg.pi, "start_year": 1900, "end_year": 2100},
        )
        _assert(isinstance(minimal.get("rows"), list), "minimal response has no rows list")
        ok.append(f"POST /api/history ({len(minimal['rows'])} rows)")

        _, extended, _ = _http_json(
            cfg,
            "GET",
            f"{prefix}/history/search",
            query={"entity": cfg.entity, "pi": cfg.pi, "limit": "5"},
        )
        total = int(extended.get("total_records") or 0)
        returned = int(extended.get("returned_records") or 0)
        _assert(returned == min(total, 5), f"returned_records {returned} != min({total}, 5)")
        ok.append(f"GET {prefix}/history/search (total {total}, returned {returned})")
    else:
        ok.append("skipped data queries (SMOKE_ENTITY/SMOKE_PI not set)")

    print("SMOKE OK")
    for x in ok:
        print("  -", x)


def main() -> int:
    base_url = (os.getenv("BASE_URL") or "http://127.0.0.1:5000").strip()
    entity = (os.getenv("SMOKE_ENTITY") or "").strip()
    pi = (os.getenv("SMOKE_PI") or "").strip()

    cfg = Cfg(base_url=base_url, entity=entity, pi=pi)

    try:
        run_smoke(cfg)
        return 0
    except SmokeFail as e:
        print("SMOKE FAIL", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
