"""Device assignment tools."""

from __future__ import annotations

from pydantic import ValidationError

from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.errors import AddressingError
from slc_addressing_mcp.models.options import AssignmentOptions, AutoAssignOptions
from slc_addressing_mcp.tools.responses import error_response, ok


def auto_assign_all(session: AddressingSession, options: dict | None = None) -> dict:
    """Auto-assign addresses to every eligible device on every circuit.

    Args:
        session: 주소 할당 세션
        options: {"strategy": "sequential", "start_address": 1,
                  "overwrite_existing": false, "respect_locks": true}

    Returns:
        처리/할당/건너뜀/실패 수와 디바이스별 결과
    """
    try:
        opts = AutoAssignOptions(**(options or {}))
    except ValidationError as e:
        return error_response(e)
    result = session.auto_assign_all(opts)
    return ok(success=result.success, **result.model_dump(mode="json"))


def assign_device_to_circuit(
    session: AddressingSession,
    device_id: str,
    circuit_id: str,
    options: dict | None = None,
) -> dict:
    try:
        opts = AssignmentOptions(**(options or {}))
        outcome = session.assign_device_to_circuit(device_id, circuit_id, opts)
    except (AddressingError, ValidationError) as e:
        return error_response(e)
    return ok(outcome=outcome.model_dump(mode="json"))


def remove_device_from_circuit(
    session: AddressingSession, device_id: str, circuit_id: str
) -> dict:
    removed = session.remove_device_from_circuit(device_id, circuit_id)
    return ok(removed=removed, device_id=device_id, circuit_id=circuit_id)


def update_device_address(
    session: AddressingSession,
    device_id: str,
    address: int | str | None,
    validate: bool = True,
) -> dict:
    """Change one device's address on its circuit.

    Args:
        session: 주소 할당 세션
        device_id: 디바이스 ID
        address: 새 주소 (None 또는 빈 문자열이면 주소 해제)
        validate: 할당 전 검증 여부

    Returns:
        success, old_value, new_value, 실패 시 code/error_message/validation
    """
    try:
        result = session.update_device_address(device_id, address, validate=validate)
    except AddressingError as e:
        return error_response(e)
    data = result.model_dump(mode="json", exclude={"validation"})
    if result.validation is not None:
        data["validation"] = result.validation.summary()
    return ok(**data)


def set_device_lock(session: AddressingSession, device_id: str, lock_state: str) -> dict:
    try:
        device = session.set_device_lock(device_id, lock_state)
    except (AddressingError, ValueError) as e:
        return error_response(e)
    return ok(device_id=device.device_id, lock_state=device.lock_state.value, address=device.address)
