"""
PI history CLI (flat-layout friendly).

Usage
-----
pihistory serve --port 5000
pihistory query --entity CTBTO --pi PI2 --start-year 2018 --end-year 2024 --csv-url "https://..."
pihistory query --entity CTBTO --pi PI2 --csv-file data/pi_history.csv --limit 10
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from contracts.history_contracts import FilterMode, HistoryError
from contracts.interfaces import RecordSource
from infra.config import SourceConfig, ValidationError, get_settings
from infra.logging_config import setup_logging
from pipeline.filter_request import parse_filter_request
from pipeline.history_query import extended_response, run_history_query
from services.csv_source import FileCsvSource, build_csv_source

# Exit status for client, configuration and upstream errors.
EXIT_QUERY_ERROR = 2


def _build_source(args: argparse.Namespace) -> RecordSource:
    if args.csv_file:
        return FileCsvSource(args.csv_file)
    source_cfg = get_settings(reload=True).source
    url = args.csv_url or source_cfg.csv_url
    timeout = args.timeout if args.timeout is not None else source_cfg.timeout_seconds
    return build_csv_source(
        SourceConfig(csv_url=url, timeout_seconds=timeout, user_agent=source_cfg.user_agent)
    )


def _query_params(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "entity": args.entity,
        "pi": args.pi,
        "type": args.type,
        "performance_area": args.performance_area,
        "ratings": args.ratings,
        "score": args.score,
        "start_year": args.start_year,
        "end_year": args.end_year,
        "limit": args.limit,
    }


def cmd_query(args: argparse.Namespace) -> None:
    setup_logging(level=args.log_level or "WARNING")
    try:
        filters = parse_filter_request(_query_params(args), mode=FilterMode.EXTENDED)
        result = run_history_query(filters, _build_source(args))
    except (HistoryError, ValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_QUERY_ERROR) from exc

    indent = None if args.compact else 2
    print(json.dumps(extended_response(result), ensure_ascii=False, indent=indent))


def cmd_serve(args: argparse.Namespace) -> None:
    # Imported lazily: building the app configures logging and reads settings.
    from apps.flask_api.flask_app import app

    api_cfg = get_settings(reload=True).api
    host = args.host or api_cfg.host
    port = args.port or api_cfg.port
    app.run(host=host, port=port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pihistory", description="PI history query CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("serve", help="Run the HTTP API (Flask development server).")
    sp.add_argument("--host", default=None, help="Bind address (or API_HOST env var). Default: 0.0.0.0")
    sp.add_argument("--port", type=int, default=None, help="Port (or PORT env var). Default: 5000")
    sp.add_argument("--debug", action="store_true", help="Enable Flask debug mode.")
    sp.set_defaults(func=cmd_serve)

    sp = sub.add_parser("query", help="Run one filtered query and print the JSON result.")
    sp.add_argument("--entity", default=None, help="Entity (required).")
    sp.add_argument("--pi", default=None, help="PI code, e.g. PI2 (required).")
    sp.add_argument("--type", default=None, help="Record type.")
    sp.add_argument("--performance-area", default=None, help="Performance area.")
    sp.add_argument("--ratings", default=None, help="Rating value.")
    sp.add_argument("--score", default=None, help="Exact score.")
    sp.add_argument("--start-year", default=None, help="Inclusive lower year bound.")
    sp.add_argument("--end-year", default=None, help="Inclusive upper year bound.")
    sp.add_argument("--limit", default=None, help="Maximum rows to print (1..1000).")
    src = sp.add_mutually_exclusive_group()
    src.add_argument("--csv-url", default=None, help="CSV location (or CSV_URL env var).")
    src.add_argument("--csv-file", default=None, help="Read the CSV from a local file instead.")
    sp.add_argument("--timeout", type=float, default=None, help="Fetch timeout in seconds.")
    sp.add_argument("--compact", action="store_true", help="Print JSON on one line.")
    sp.add_argument("--log-level", default=None, help="Log level. Default: WARNING")
    sp.set_defaults(func=cmd_query)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
