"""CSV text -> list of field-keyed records.

The first row names the columns. Blank lines are skipped and every field is
trimmed. The dataset is treated as one consistent table: a row with the wrong
number of fields fails the whole parse.
"""

from __future__ import annotations

import csv
import io
from typing import Dict, List

from contracts.history_contracts import CsvParseError

Record = Dict[str, str]

_BOM = "\ufeff"


def _is_blank_row(row: List[str]) -> bool:
    return all(not cell.strip() for cell in row)


def parse_csv_records(text: str) -> List[Record]:
    """Parse CSV text with a header row into records, in file order.

    Raises:
        CsvParseError: on malformed quoting or a row whose field count
            differs from the header.
    """
    if text.startswith(_BOM):
        text = text[len(_BOM):]

    # skipinitialspace: a quoted field may follow the delimiter after spaces.
    reader = csv.reader(io.StringIO(text, newline=""), skipinitialspace=True)
    header: List[str] | None = None
    records: List[Record] = []
    try:
        for row in reader:
            if _is_blank_row(row):
                continue
            if header is None:
                header = [name.strip() for name in row]
                continue
            if len(row) != len(header):
                raise CsvParseError(
                    f"Invalid CSV at line {reader.line_num}: expected {len(header)} fields, got {len(row)}"
                )
            records.append({name: cell.strip() for name, cell in zip(header, row)})
    except csv.Error as exc:
        raise CsvParseError(f"Invalid CSV at line {reader.line_num}: {exc}") from exc
    return records


__all__ = ["Record", "parse_csv_records"]
