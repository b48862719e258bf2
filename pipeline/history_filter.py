"""Record predicates for the history query.

A record matches when every filter present on the FilterRequest holds
(conjunction). Absent filters always hold. The Year check is the exception:
a record whose Year does not parse is excluded even without year bounds.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, List, Optional

from contracts.history_contracts import (
    COL_ENTITY,
    COL_PERFORMANCE_AREA,
    COL_PERFORMANCE_INDICATOR,
    COL_RATINGS,
    COL_SCORE,
    COL_TYPE,
    COL_YEAR,
    FilterRequest,
)
from contracts.normalization import extract_pi_code, normalize_text, safe_int


def _text_matches(actual: Any, wanted: Optional[str]) -> bool:
    if wanted is None:
        return True
    return normalize_text(actual) == normalize_text(wanted)


def _year_matches(record: Mapping[str, Any], request: FilterRequest) -> bool:
    year = safe_int(record.get(COL_YEAR))
    if year is None:
        return False
    if request.start_year is not None and year < request.start_year:
        return False
    if request.end_year is not None and year > request.end_year:
        return False
    return True


def _pi_matches(record: Mapping[str, Any], wanted: Optional[str]) -> bool:
    if wanted is None:
        return True
    code = extract_pi_code(record.get(COL_PERFORMANCE_INDICATOR))
    return code is not None and code == normalize_text(wanted)


def _score_matches(record: Mapping[str, Any], wanted: Optional[int]) -> bool:
    if wanted is None:
        return True
    score = safe_int(record.get(COL_SCORE))
    return score is not None and score == wanted


def record_matches(record: Mapping[str, Any], request: FilterRequest) -> bool:
    """True when the record satisfies every filter present on ``request``."""
    return (
        _year_matches(record, request)
        and _text_matches(record.get(COL_ENTITY), request.entity)
        and _text_matches(record.get(COL_TYPE), request.type)
        and _text_matches(record.get(COL_PERFORMANCE_AREA), request.performance_area)
        and _pi_matches(record, request.pi)
        and _text_matches(record.get(COL_RATINGS), request.ratings)
        and _score_matches(record, request.score)
    )


def filter_records(
    records: Iterable[Mapping[str, Any]], request: FilterRequest
) -> List[Mapping[str, Any]]:
    """Return matching records in input order. Inputs are not modified."""
    return [record for record in records if record_matches(record, request)]


__all__ = ["filter_records", "record_matches"]
