"""
TypedDict definitions for wire formats and API contracts.

This module provides explicit type definitions for the JSON bodies the
history endpoints return, so the pipeline and the Flask layer agree on
field names without sharing Flask types.

Usage:
    from contracts.typed_dicts import ResultRow, ExtendedHistoryResponse
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

# Keys below mirror the dataset's column names, hence the mixed casing.
ResultRow = TypedDict(
    "ResultRow",
    {
        "Entity": Optional[str],
        "Type": Optional[str],
        "Year": Optional[int],
        "Performance_Area": Optional[str],
        "PerformanceIndicator": Optional[str],  # original text, not the extracted code
        "Ratings": Optional[str],
        "Score": Optional[int],
    },
)


class MinimalHistoryResponse(TypedDict):
    """
    Wire format of ``/api/history``.
    """
    entity: Optional[str]
    pi: Optional[str]
    start_year: Optional[int]
    end_year: Optional[int]
    rows: List[ResultRow]


class ExtendedHistoryResponse(TypedDict):
    """
    Wire format of ``/api/history/search``.

    total_records counts matches before ``limit`` is applied;
    returned_records is ``len(rows)``.
    """
    filters: Dict[str, Any]
    total_records: int
    returned_records: int
    rows: List[ResultRow]


class ErrorResponse(TypedDict):
    error: str


__all__ = [
    "ErrorResponse",
    "ExtendedHistoryResponse",
    "MinimalHistoryResponse",
    "ResultRow",
]
