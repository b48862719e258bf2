"""Result shaping and end-to-end orchestration of a history query.

run_history_query: fetch -> parse -> filter -> shape, once per call.
Each call fetches the dataset again; nothing is cached between calls.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from contracts.history_contracts import (
    COL_ENTITY,
    COL_PERFORMANCE_AREA,
    COL_PERFORMANCE_INDICATOR,
    COL_RATINGS,
    COL_SCORE,
    COL_TYPE,
    COL_YEAR,
    FilterRequest,
    HistoryResult,
)
from contracts.interfaces import RecordSource
from contracts.normalization import safe_int
from contracts.typed_dicts import ExtendedHistoryResponse, MinimalHistoryResponse, ResultRow
from infra.logging_config import StructuredLogger
from pipeline.csv_records import parse_csv_records
from pipeline.history_filter import filter_records

logger = StructuredLogger(__name__)


def to_result_row(record: Mapping[str, Any]) -> ResultRow:
    """Project a parsed record onto the output schema."""
    return {
        "Entity": record.get(COL_ENTITY),
        "Type": record.get(COL_TYPE),
        "Year": safe_int(record.get(COL_YEAR)),
        "Performance_Area": record.get(COL_PERFORMANCE_AREA),
        "PerformanceIndicator": record.get(COL_PERFORMANCE_INDICATOR),
        "Ratings": record.get(COL_RATINGS),
        "Score": safe_int(record.get(COL_SCORE)),
    }


def shape_results(matches: Sequence[Mapping[str, Any]], request: FilterRequest) -> HistoryResult:
    """Count all matches, then keep the first ``limit`` rows when a limit is set."""
    total = len(matches)
    kept = matches if request.limit is None else matches[: request.limit]
    rows = [to_result_row(record) for record in kept]
    return HistoryResult(
        filters=request,
        total_records=total,
        returned_records=len(rows),
        rows=rows,
    )


def run_history_query(request: FilterRequest, source: RecordSource) -> HistoryResult:
    """Fetch the dataset once and return the shaped matches.

    Raises:
        UpstreamFetchError: the source could not supply the CSV text.
        CsvParseError: the CSV text is malformed.
    """
    t0 = time.perf_counter()
    text = source.fetch()
    records = parse_csv_records(text)
    matches = filter_records(records, request)
    result = shape_results(matches, request)
    logger.info(
        "history_query_completed",
        parsed_records=len(records),
        total_records=result.total_records,
        returned_records=result.returned_records,
        ms=int((time.perf_counter() - t0) * 1000.0),
    )
    return result


def minimal_response(result: HistoryResult) -> MinimalHistoryResponse:
    f = result.filters
    return {
        "entity": f.entity,
        "pi": f.pi,
        "start_year": f.start_year,
        "end_year": f.end_year,
        "rows": result.rows,
    }


def extended_response(result: HistoryResult) -> ExtendedHistoryResponse:
    return {
        "filters": result.filters.as_filters(),
        "total_records": result.total_records,
        "returned_records": result.returned_records,
        "rows": result.rows,
    }


__all__ = [
    "extended_response",
    "minimal_response",
    "run_history_query",
    "shape_results",
    "to_result_row",
]
