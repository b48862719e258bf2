"""Input normalization: raw parameter mapping -> FilterRequest.

The HTTP layer merges query string and JSON body into one mapping before
calling ``parse_filter_request``; nothing here depends on the transport.

Numeric filters are strict: a present value that is not an integer is a
client error, never silently dropped.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from contracts.history_contracts import (
    LIMIT_MAX,
    LIMIT_MIN,
    ClientInputError,
    FilterMode,
    FilterRequest,
)

_STRICT_INT_RE = re.compile(r"^[+-]?\d+$", re.ASCII)

_TEXT_FIELDS: Tuple[str, ...] = ("entity", "type", "performance_area", "pi", "ratings")
_INT_FIELDS: Tuple[str, ...] = ("score", "start_year", "end_year", "limit")

# Accepted fields and required fields per endpoint schema.
MODE_FIELDS: Dict[FilterMode, Tuple[str, ...]] = {
    FilterMode.MINIMAL: ("entity", "pi", "start_year", "end_year"),
    FilterMode.EXTENDED: (
        "entity",
        "type",
        "performance_area",
        "pi",
        "ratings",
        "score",
        "start_year",
        "end_year",
        "limit",
    ),
}

MODE_REQUIRED: Dict[FilterMode, Tuple[str, ...]] = {
    FilterMode.MINIMAL: ("entity", "pi", "start_year", "end_year"),
    FilterMode.EXTENDED: ("entity", "pi"),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_filter_text(value: Any, *, field_name: str) -> Optional[str]:
    """Trim a text filter; blank -> None. Scalars are stringified."""
    if _is_blank(value):
        return None
    if isinstance(value, (list, tuple, dict, set)):
        raise ClientInputError(f"{field_name} must be a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).strip()
    return text or None


def coerce_filter_int(value: Any, *, field_name: str) -> Optional[int]:
    """Strict integer parse for filter values.

    Absent or blank -> None. Ints, integral floats and digit strings (with an
    optional sign) are accepted; everything else raises ClientInputError.
    """
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise ClientInputError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ClientInputError(f"{field_name} must be an integer")
    if isinstance(value, str):
        text = value.strip()
        if _STRICT_INT_RE.match(text):
            try:
                return int(text)
            except ValueError as exc:
                raise ClientInputError(f"{field_name} must be an integer") from exc
    raise ClientInputError(f"{field_name} must be an integer")


def _missing_fields(params: Mapping[str, Any], required: Tuple[str, ...]) -> List[str]:
    return [name for name in required if _is_blank(params.get(name))]


def parse_filter_request(
    params: Mapping[str, Any], *, mode: FilterMode = FilterMode.EXTENDED
) -> FilterRequest:
    """Validate a raw parameter mapping into a FilterRequest.

    Args:
        params: Merged request parameters (query string and/or JSON body)
        mode: Endpoint schema; decides accepted and required fields

    Returns:
        FilterRequest with trimmed strings and parsed integers

    Raises:
        ClientInputError: missing required field, non-integer numeric field,
            start_year > end_year, or limit outside [1, 1000]
    """
    missing = _missing_fields(params, MODE_REQUIRED[mode])
    if missing:
        raise ClientInputError(f"Missing params: {', '.join(missing)}")

    accepted = MODE_FIELDS[mode]
    values: Dict[str, Any] = {}
    for name in accepted:
        raw = params.get(name)
        if name in _TEXT_FIELDS:
            values[name] = coerce_filter_text(raw, field_name=name)
        elif name in _INT_FIELDS:
            values[name] = coerce_filter_int(raw, field_name=name)

    start_year = values.get("start_year")
    end_year = values.get("end_year")
    if start_year is not None and end_year is not None and start_year > end_year:
        raise ClientInputError("start_year cannot be greater than end_year")

    limit = values.get("limit")
    if limit is not None and not LIMIT_MIN <= limit <= LIMIT_MAX:
        raise ClientInputError(f"limit must be between {LIMIT_MIN} and {LIMIT_MAX}")

    return FilterRequest(**values)


__all__ = [
    "MODE_FIELDS",
    "MODE_REQUIRED",
    "coerce_filter_int",
    "coerce_filter_text",
    "parse_filter_request",
]
