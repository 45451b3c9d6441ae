"""Structured (JSON) snapshot format."""

from __future__ import annotations

from pydantic import ValidationError

from slc_addressing_mcp.errors import ImportFormatError
from slc_addressing_mcp.models.export import AddressingSnapshot


def snapshot_to_json(snapshot: AddressingSnapshot, indent: int = 2) -> bytes:
    return snapshot.model_dump_json(indent=indent).encode("utf-8")


def json_to_snapshot(data: bytes) -> AddressingSnapshot:
    """Parse JSON bytes into a snapshot.

    Raises:
        ImportFormatError: if the payload is not a valid snapshot document
    """
    try:
        return AddressingSnapshot.model_validate_json(data.removeprefix(b"\xef\xbb\xbf"))
    except ValidationError as e:
        raise ImportFormatError(f"Invalid JSON snapshot: {e.error_count()} error(s)") from e
