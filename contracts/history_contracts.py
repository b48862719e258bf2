"""
history_contracts.py

Types and error taxonomy for the PI history query.

This module is transport-agnostic: it knows nothing about Flask or requests.
It provides:
- Column names of the reporting dataset
- FilterRequest, the validated query every variant is reduced to
- HistoryResult, the shaped result before it is rendered as JSON
- The exception hierarchy, each error carrying its HTTP status
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from contracts.typed_dicts import ResultRow

# -----------------------------
# Dataset columns
# -----------------------------

COL_ENTITY = "Entity"
COL_TYPE = "Type"
COL_YEAR = "Year"
COL_PERFORMANCE_AREA = "Performance_Area"
COL_PERFORMANCE_INDICATOR = "Performance_Indicator"
COL_RATINGS = "Ratings"
COL_SCORE = "Score"

CONSUMED_COLUMNS: Tuple[str, ...] = (
    COL_ENTITY,
    COL_TYPE,
    COL_YEAR,
    COL_PERFORMANCE_AREA,
    COL_PERFORMANCE_INDICATOR,
    COL_RATINGS,
    COL_SCORE,
)

LIMIT_MIN = 1
LIMIT_MAX = 1000


# -----------------------------
# Exceptions
# -----------------------------


class HistoryError(Exception):
    """Base error for the history pipeline."""

    status_code: int = 500


class ClientInputError(HistoryError, ValueError):
    """Raised when caller-supplied parameters are missing or invalid."""

    status_code = 400


class ConfigurationError(HistoryError):
    """Raised when the data source location is not configured."""


class UpstreamFetchError(HistoryError):
    """Raised when the CSV could not be retrieved."""


class CsvParseError(HistoryError):
    """Raised when the CSV text is not a consistent table."""


# -----------------------------
# Request / result types
# -----------------------------


class FilterMode(str, Enum):
    """Which parameter schema an endpoint exposes."""

    MINIMAL = "minimal"
    EXTENDED = "extended"


@dataclass(frozen=True)
class FilterRequest:
    """Validated filters. None means "no filter on this dimension"."""

    entity: Optional[str] = None
    type: Optional[str] = None
    performance_area: Optional[str] = None
    pi: Optional[str] = None
    ratings: Optional[str] = None
    score: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    limit: Optional[int] = None

    def as_filters(self) -> Dict[str, Any]:
        """Return the effective filter values, echoed back to callers."""
        return {
            "entity": self.entity,
            "type": self.type,
            "performance_area": self.performance_area,
            "pi": self.pi,
            "ratings": self.ratings,
            "score": self.score,
            "start_year": self.start_year,
            "end_year": self.end_year,
            "limit": self.limit,
        }


@dataclass
class HistoryResult:
    filters: FilterRequest
    total_records: int
    returned_records: int
    rows: List[ResultRow] = field(default_factory=list)


__all__ = [
    "CONSUMED_COLUMNS",
    "COL_ENTITY",
    "COL_PERFORMANCE_AREA",
    "COL_PERFORMANCE_INDICATOR",
    "COL_RATINGS",
    "COL_SCORE",
    "COL_TYPE",
    "COL_YEAR",
    "ClientInputError",
    "ConfigurationError",
    "CsvParseError",
    "FilterMode",
    "FilterRequest",
    "HistoryError",
    "HistoryResult",
    "LIMIT_MAX",
    "LIMIT_MIN",
    "UpstreamFetchError",
]
