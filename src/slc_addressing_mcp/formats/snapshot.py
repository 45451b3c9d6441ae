"""Format dispatch for snapshot export and import."""

from __future__ import annotations

from slc_addressing_mcp.errors import ImportFormatError
from slc_addressing_mcp.formats.csv_formatter import csv_to_records, records_to_csv
from slc_addressing_mcp.formats.json_formatter import json_to_snapshot, snapshot_to_json
from slc_addressing_mcp.models.export import AddressingSnapshot, ExportRecord
from slc_addressing_mcp.models.options import ExportFormat


def encode_snapshot(snapshot: AddressingSnapshot, fmt: ExportFormat | str) -> bytes:
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.JSON:
        return snapshot_to_json(snapshot)
    return records_to_csv(snapshot.records())


def detect_format(data: bytes) -> ExportFormat:
    """JSON when the first non-blank character opens an object."""
    head = data.lstrip(b"\xef\xbb\xbf \t\r\n")[:1]
    return ExportFormat.JSON if head == b"{" else ExportFormat.CSV


def decode_snapshot(data: bytes) -> tuple[list[ExportRecord], list[str]]:
    """Decode either format into flat records plus per-row errors.

    Raises:
        ImportFormatError: if the payload is empty, not UTF-8, or malformed JSON
    """
    if not data or not data.strip():
        raise ImportFormatError("Snapshot payload is empty")
    if detect_format(data) == ExportFormat.JSON:
        return json_to_snapshot(data).records(), []
    try:
        return csv_to_records(data)
    except UnicodeDecodeError as e:
        raise ImportFormatError(f"Snapshot payload is not UTF-8: {e}") from e
