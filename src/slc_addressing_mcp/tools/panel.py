"""Panel initialization, validation and reporting tools."""

from __future__ import annotations

from pydantic import ValidationError

from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.errors import AddressingError
from slc_addressing_mcp.tools.responses import error_response, ok


def initialize_panels(session: AddressingSession, devices: list[dict]) -> dict:
    """Build panels and circuits from host device snapshots.

    Args:
        session: 주소 할당 세션
        devices: 디바이스 스냅샷 목록
            [{"element_id": "1001", "level": "L1", "circuit_number": "P1-C1", ...}]

    Returns:
        패널 ID, 회로 수, 주소 할당 현황, 경고
    """
    try:
        result = session.initialize_panels(devices)
    except (AddressingError, ValidationError) as e:
        return error_response(e)
    return ok(**result.model_dump(mode="json"))


def validate_panel(session: AddressingSession, panel_id: str | None = None) -> dict:
    """Validate one panel (or all panels when ``panel_id`` is None)."""
    try:
        result = session.validate_panel(panel_id)
    except AddressingError as e:
        return error_response(e)
    return ok(**result.model_dump(mode="json"))


def get_circuit_utilization(session: AddressingSession, circuit_id: str) -> dict:
    try:
        utilization = session.get_circuit_utilization(circuit_id)
        status = session.assignment.allocation_status(session.require_circuit(circuit_id))
    except AddressingError as e:
        return error_response(e)
    return ok(
        utilization=utilization.model_dump(mode="json"),
        allocation=status.model_dump(mode="json", exclude={"available_address_list"}),
    )


def get_statistics(session: AddressingSession) -> dict:
    stats = session.get_statistics()
    if stats.error is not None:
        return {"status": "error", "error_type": "internal", "message": stats.error}
    return ok(**stats.model_dump(mode="json"))
