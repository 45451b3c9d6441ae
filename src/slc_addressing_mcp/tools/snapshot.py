"""Snapshot export/import tools."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.errors import AddressingError
from slc_addressing_mcp.models.options import ExportFormat, ImportOptions
from slc_addressing_mcp.tools.responses import error_response, ok

logger = logging.getLogger(__name__)


def export_snapshot(
    session: AddressingSession,
    output_format: str = "csv",
    output_path: str | None = None,
) -> dict:
    """Export every panel's devices as CSV or JSON.

    Args:
        session: 주소 할당 세션
        output_format: "csv" 또는 "json"
        output_path: 저장 경로 (None이면 내용만 반환)

    Returns:
        content (텍스트), format, file_path (저장한 경우)
    """
    try:
        fmt = ExportFormat(output_format)
    except ValueError as e:
        return error_response(e)

    data = session.export_snapshot(fmt)
    result = ok(format=fmt.value, content=data.decode("utf-8"), file_path=None)

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        result["file_path"] = str(path)
        logger.info(f"Snapshot exported: {path}")
    return result


def import_snapshot(
    session: AddressingSession,
    content: str | None = None,
    file_path: str | None = None,
    options: dict | None = None,
) -> dict:
    """Import a CSV or JSON snapshot from text or from a file."""
    if content is None and not file_path:
        return {
            "status": "error",
            "error_type": "invalid_input",
            "message": "Either content or file_path is required",
        }
    if content is None:
        if not os.path.isfile(file_path):
            return {
                "status": "error",
                "error_type": "file_not_found",
                "message": f"File not found: {file_path}",
            }
        data = Path(file_path).read_bytes()
    else:
        data = content.encode("utf-8")

    try:
        opts = ImportOptions(**(options or {}))
        result = session.import_snapshot(data, opts)
    except (AddressingError, ValidationError) as e:
        return error_response(e)
    return ok(**result.model_dump(mode="json"))
