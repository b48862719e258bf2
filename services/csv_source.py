"""
services/csv_source.py

Record sources for the PI history query
=======================================

Goals:
- Supply the raw CSV text; parsing and filtering happen elsewhere
- One blocking fetch per request: no retries, no caching
- Map every transport failure to UpstreamFetchError so the API answers 500
  with a readable message

Sources:
- HttpCsvSource: GET over ``requests`` (the deployed service)
- FileCsvSource: local file (CLI runs, fixtures)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import requests

from contracts.history_contracts import ConfigurationError, UpstreamFetchError
from infra.config import SourceConfig

logger = logging.getLogger(__name__)

# Kept short: the upstream body is only quoted in debug logs.
_PREVIEW_CHARS = 200


class HttpCsvSource:
    """Fetch the dataset from a URL with a single GET."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 30.0,
        user_agent: str = "pihistory/0.1",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = float(timeout_seconds)
        self.user_agent = user_agent
        self._session = session

    def fetch(self) -> str:
        headers = {"Accept": "text/csv, text/plain;q=0.9, */*;q=0.1", "User-Agent": self.user_agent}
        getter = self._session.get if self._session is not None else requests.get
        try:
            resp = getter(self.url, headers=headers, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamFetchError(f"Failed to fetch CSV: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            logger.debug(
                "csv fetch failed status=%s preview=%r",
                resp.status_code,
                (resp.text or "")[:_PREVIEW_CHARS],
            )
            reason = f" {resp.reason}" if resp.reason else ""
            raise UpstreamFetchError(f"Failed to fetch CSV: HTTP {resp.status_code}{reason}")

        # Servers often omit the charset for text/csv; requests would then
        # fall back to ISO-8859-1 and mangle accents and NBSPs.
        if "charset" not in (resp.headers.get("Content-Type") or "").lower():
            resp.encoding = "utf-8-sig"
        return resp.text


class FileCsvSource:
    """Read the dataset from a local file."""

    def __init__(self, path: str | Path, *, encoding: str = "utf-8-sig") -> None:
        self.path = Path(path)
        self.encoding = encoding

    def fetch(self) -> str:
        try:
            return self.path.read_text(encoding=self.encoding)
        except OSError as exc:
            raise UpstreamFetchError(f"Failed to read CSV: {exc}") from exc


def build_csv_source(
    config: SourceConfig, *, session: Optional[requests.Session] = None
) -> HttpCsvSource:
    """Build the HTTP source from configuration.

    Raises:
        ConfigurationError: if no CSV URL is configured.
    """
    if not config.csv_url:
        raise ConfigurationError("CSV_URL env not set")
    return HttpCsvSource(
        config.csv_url,
        timeout_seconds=config.timeout_seconds,
        user_agent=config.user_agent,
        session=session,
    )


__all__ = ["FileCsvSource", "HttpCsvSource", "build_csv_source"]
