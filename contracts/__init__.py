"""Contracts for the PI history query.

The contracts package defines:
- the dataset columns and the validated FilterRequest
- the error taxonomy and its HTTP status mapping
- field normalization and PI code extraction
- Protocol definitions for dependency injection
- TypedDict definitions for wire formats

Main exports:
- FilterRequest, FilterMode, HistoryResult
- HistoryError, ClientInputError, ConfigurationError, UpstreamFetchError, CsvParseError
- normalize_text, safe_int, extract_pi_code
- RecordSource
"""

from contracts import history_contracts
from contracts import interfaces
from contracts import normalization

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "ClientInputError",
    "ConfigurationError",
    "CsvParseError",
    "FilterMode",
    "FilterRequest",
    "HistoryError",
    "HistoryResult",
    "RecordSource",
    "UpstreamFetchError",
    "extract_pi_code",
    "normalize_text",
    "safe_int",
]

# Re-export for convenience
ClientInputError = history_contracts.ClientInputError
ConfigurationError = history_contracts.ConfigurationError
CsvParseError = history_contracts.CsvParseError
FilterMode = history_contracts.FilterMode
FilterRequest = history_contracts.FilterRequest
HistoryError = history_contracts.HistoryError
HistoryResult = history_contracts.HistoryResult
UpstreamFetchError = history_contracts.UpstreamFetchError

RecordSource = interfaces.RecordSource

extract_pi_code = normalization.extract_pi_code
normalize_text = normalization.normalize_text
safe_int = normalization.safe_int
