"""Tabular snapshot format.

Format: UTF-8, comma-delimited, one header row (``EXPORT_COLUMNS``) followed
by one row per device. Unaddressed devices have an empty Address field.
"""

from __future__ import annotations

import csv
import io

from pydantic import ValidationError

from slc_addressing_mcp.models.export import EXPORT_COLUMNS, ExportRecord


def records_to_csv(records: list[ExportRecord]) -> bytes:
    """Encode export records as UTF-8 CSV bytes with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(EXPORT_COLUMNS)
    for record in records:
        writer.writerow(record.to_row())
    return buffer.getvalue().encode("utf-8")


def _is_header(row: list[str]) -> bool:
    return [c.strip().lower() for c in row[: len(EXPORT_COLUMNS)]] == [
        c.lower() for c in EXPORT_COLUMNS
    ]


def csv_to_records(data: bytes) -> tuple[list[ExportRecord], list[str]]:
    """Decode CSV bytes into records.

    Rows that cannot be parsed are reported in the error list (with their
    1-based line number) rather than dropped. Blank lines are ignored.

    Returns:
        (records, errors)
    """
    text = data.decode("utf-8-sig")
    records: list[ExportRecord] = []
    errors: list[str] = []

    for line_no, row in enumerate(csv.reader(io.StringIO(text)), start=1):
        if not any(field.strip() for field in row):
            continue
        if line_no == 1 and _is_header(row):
            continue
        try:
            records.append(ExportRecord.from_row(row))
        except (ValueError, ValidationError) as e:
            errors.append(f"Line {line_no}: {e}")

    return records, errors
