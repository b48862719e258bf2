"""Field normalization shared by input validation and record comparison.

- ``normalize_text``: case/whitespace-insensitive comparison key (NBSP aware)
- ``safe_int``: lenient integer coercion for values read from the dataset
- ``extract_pi_code``: short PI code ("PI2", "PI10") from the indicator text

All helpers are pure and never raise on odd input; strict validation of
caller-supplied filters lives in ``pipeline.filter_request``.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

NBSP = "\u00a0"

# Leading sign + digit run, the same prefix a lenient integer parse accepts.
_LEADING_INT_RE = re.compile(r"^[+-]?\d+", re.ASCII)

# "PI" + one or two digits, then an ASCII word boundary ("PI2é" yields "PI2").
PI_CODE_RE = re.compile(r"^PI\d{1,2}\b", re.ASCII)


def normalize_text(value: Any) -> Optional[str]:
    """Return the comparison key for a text field, or None when empty."""
    if value is None:
        return None
    text = str(value).upper().replace(NBSP, " ").strip()
    return text or None


def safe_int(value: Any) -> Optional[int]:
    """Best-effort base-10 integer parse.

    ``"2020"`` and ``"2020 "`` give 2020, ``"12 pts"`` gives 12, while
    ``"FY2020"``, ``""`` and None give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    text = str(value).replace(NBSP, " ").strip()
    if not text:
        return None
    match = _LEADING_INT_RE.match(text)
    if match is None:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        # Digit runs past the interpreter's int conversion limit.
        return None


def extract_pi_code(value: Any) -> Optional[str]:
    """Return the PI code at the start of an indicator description.

    >>> extract_pi_code("PI2 — Compliance")
    'PI2'
    >>> extract_pi_code("PI1x") is None
    True
    """
    text = normalize_text(value)
    if text is None:
        return None
    match = PI_CODE_RE.match(text)
    return match.group(0) if match else None


__all__ = ["NBSP", "PI_CODE_RE", "extract_pi_code", "normalize_text", "safe_int"]
