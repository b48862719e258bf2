"""
Protocol definitions for dependency injection.

The history pipeline never fetches data itself; it asks a ``RecordSource``
for raw CSV text. This enables:
- Running the pipeline against a local file (CLI)
- Fake in-memory sources in tests
- Swapping the HTTP transport without touching the filter logic

Usage:
    from contracts.interfaces import RecordSource, SourceFactory
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from infra.config import SourceConfig


@runtime_checkable
class RecordSource(Protocol):
    """Supplies the raw CSV text of the reporting dataset."""

    def fetch(self) -> str:
        """Return the full CSV text.

        Raises:
            UpstreamFetchError: if the data could not be retrieved.
        """
        ...


# Builds a source from the per-request source configuration.
SourceFactory = Callable[["SourceConfig"], RecordSource]


__all__ = ["RecordSource", "SourceFactory"]
