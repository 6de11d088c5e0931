"""Conversion between CSV text and lists of records (column -> value)."""

from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Dict, List, Mapping, Sequence

from utils.errors import ParseError

LOGGER = logging.getLogger(__name__)


def _is_blank(row: Sequence[str], width: int) -> bool:
    if not row:
        return True
    # A whitespace-only line in a multi-column table; single-column tables keep it as a value.
    return width != 1 and len(row) == 1 and not row[0].strip()


def table_to_records(text: str) -> List[Dict[str, str]]:
    """Parse CSV text with a header row into a list of records.

    Blank lines are skipped. Rows whose cell count differs from the header
    raise rather than being padded or truncated.

    Raises:
        ParseError: On broken quoting, duplicate headers, or column count mismatch.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    header: List[str] = []
    records: List[Dict[str, str]] = []
    try:
        for row in reader:
            if not header:
                if not row or not any(cell.strip() for cell in row):
                    continue
                header = row
                duplicates = sorted({name for name in header if header.count(name) > 1})
                if duplicates:
                    raise ParseError(f"Duplicate column names: {', '.join(duplicates)}")
                continue
            if _is_blank(row, len(header)):
                continue
            if len(row) != len(header):
                raise ParseError(
                    f"Row {reader.line_num} has {len(row)} columns, expected {len(header)}"
                )
            records.append(dict(zip(header, row)))
    except csv.Error as exc:
        raise ParseError(f"Failed to parse CSV: {exc}") from exc

    LOGGER.info("Converted CSV to %d records", len(records))
    return records


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def records_to_table(records: Sequence[Mapping[str, Any]]) -> str:
    """Render records as CSV text, header taken from the first record.

    Missing keys become empty cells and keys absent from the first record are
    dropped. An empty sequence yields an empty string.
    """
    if not records:
        LOGGER.warning("No records provided to convert to CSV; returning empty text")
        return ""

    first = records[0]
    if not isinstance(first, Mapping):
        raise ParseError("Records must be objects mapping column names to values")
    fieldnames = [str(key) for key in first.keys()]

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, restval="", extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ParseError(f"Record {index} is not an object")
        writer.writerow({str(key): _cell(value) for key, value in record.items()})

    output = buffer.getvalue()
    LOGGER.info("Converted %d records to CSV (%d chars)", len(records), len(output))
    return output
