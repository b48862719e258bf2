"""Property-based tests for filter matching and result shaping."""

from __future__ import annotations

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings  # type: ignore  # noqa: E402
from hypothesis import strategies as st

from contracts.history_contracts import FilterRequest
from pipeline.history_filter import filter_records, record_matches
from pipeline.history_query import shape_results
from tests.factories import make_record

_TEXT = st.from_regex(r"[A-Za-z][A-Za-z .-]{0,20}", fullmatch=True)
_PADDING = st.sampled_from(("", " ", "  ", "\u00a0", "\t"))
_YEAR = st.integers(min_value=1990, max_value=2035)
_PI_NUMBER = st.integers(min_value=1, max_value=99)

_RECORD = st.builds(
    lambda entity, pi, year, score, ratings: make_record(
        Entity=entity,
        Performance_Indicator=f"PI{pi} — Indicator {pi}",
        Year=str(year),
        Score=str(score),
        Ratings=ratings,
    ),
    entity=st.sampled_from(("CTBTO", "UNESCO", "WFP")),
    pi=st.integers(min_value=1, max_value=12),
    year=_YEAR,
    score=st.integers(min_value=0, max_value=5),
    ratings=st.sampled_from(("Meets requirements", "Approaches requirements", "Exceeds requirements")),
)


@settings(max_examples=200, deadline=None, database=None)
@given(text=_TEXT, left=_PADDING, right=_PADDING)
def test_text_match_ignores_case_and_padding(text: str, left: str, right: str) -> None:
    """A record matches a text filter that differs only in case and surrounding whitespace."""
    record = make_record(Entity=f"{left}{text.swapcase()}{right}")
    assert record_matches(record, FilterRequest(entity=text))
    assert record_matches(record, FilterRequest(entity=f" {text.lower()} "))


@settings(max_examples=200, deadline=None, database=None)
@given(year=_YEAR, a=_YEAR, b=_YEAR)
def test_year_range_is_inclusive(year: int, a: int, b: int) -> None:
    start, end = min(a, b), max(a, b)
    req = FilterRequest(start_year=start, end_year=end)
    assert record_matches(make_record(Year=str(year)), req) == (start <= year <= end)


@settings(max_examples=200, deadline=None, database=None)
@given(n=_PI_NUMBER, m=_PI_NUMBER)
def test_pi_code_matches_exactly(n: int, m: int) -> None:
    record = make_record(Performance_Indicator=f"PI{n} — Indicator")
    assert record_matches(record, FilterRequest(pi=f"pi{m}")) == (n == m)


@settings(max_examples=100, deadline=None, database=None)
@given(records=st.lists(_RECORD, max_size=30), score=st.integers(min_value=0, max_value=5))
def test_adding_a_filter_never_adds_rows(records: list[dict[str, str]], score: int) -> None:
    base = FilterRequest(entity="CTBTO")
    narrower = FilterRequest(entity="CTBTO", score=score)
    wide = filter_records(records, base)
    narrow = filter_records(records, narrower)
    assert all(any(r is w for w in wide) for r in narrow)
    assert len(narrow) <= len(wide)


@settings(max_examples=100, deadline=None, database=None)
@given(records=st.lists(_RECORD, max_size=40), limit=st.integers(min_value=1, max_value=50))
def test_limit_keeps_prefix_and_counts_everything(records: list[dict[str, str]], limit: int) -> None:
    unlimited = shape_results(records, FilterRequest())
    limited = shape_results(records, FilterRequest(limit=limit))

    assert limited.total_records == len(records)
    assert limited.returned_records == min(len(records), limit) == len(limited.rows)
    assert limited.rows == unlimited.rows[:limit]
