"""Shared response helpers for tool implementations."""

from __future__ import annotations

from pydantic import ValidationError

from slc_addressing_mcp.errors import (
    AddressingError,
    CircuitNotFoundError,
    DeviceNotFoundError,
    ImportFormatError,
    TransactionError,
)

_ERROR_TYPES: list[tuple[type[Exception], str]] = [
    (DeviceNotFoundError, "device_not_found"),
    (CircuitNotFoundError, "circuit_not_found"),
    (TransactionError, "transaction"),
    (ImportFormatError, "import_format"),
    (ValidationError, "invalid_input"),
    (AddressingError, "invalid_input"),
]


def error_response(error: Exception) -> dict:
    """Convert a raised engine error into a tool result dict."""
    error_type = "internal"
    for exc_type, name in _ERROR_TYPES:
        if isinstance(error, exc_type):
            error_type = name
            break
    return {
        "status": "error",
        "error_type": error_type,
        "message": str(error),
    }


def ok(**payload) -> dict:
    return {"status": "success", **payload}
